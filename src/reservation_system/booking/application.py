"""
Прикладной слой контекста бронирования.

Координирует движок бронирования и платежный шлюз: сначала деньги,
потом фиксация; при отмене сначала возврат, потом смена статуса.
"""

from datetime import date
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from ..payments.interfaces import IPaymentGateway
from ..shared_kernel import (
    AlreadyCancelledError,
    AvailabilityError,
    DateRange,
    EntityId,
    Failure,
    InvalidRangeError,
    NotFoundError,
    Outcome,
    PaymentDeclinedError,
    RefundDeclinedError,
    Success,
    UnknownUnitError,
)
from . import interfaces as ports
from .domain import Reservation, ReservationStatus, Room, RoomCategory, to_cents
from .engine import ReservationEngine


def _single_line(value: str) -> str:
    if "\n" in value or "\r" in value:
        raise ValueError("Поле не может содержать перевод строки")
    return value


# DTO (Data Transfer Objects) для входящих данных


class SearchRoomsRequest(BaseModel):
    """Запрос на поиск свободных номеров."""

    check_in: date
    check_out: date
    category: Optional[RoomCategory] = None


class BookRoomRequest(BaseModel):
    """Запрос на бронирование номера. Дата выезда не включается."""

    room_id: EntityId
    holder_name: str = Field(..., min_length=1)
    holder_contact: str = ""
    check_in: date
    check_out: date
    payment_token: str = ""

    @field_validator("holder_name", "holder_contact")
    @classmethod
    def no_line_breaks(cls, v: str) -> str:
        return _single_line(v.strip())

    @model_validator(mode="after")
    def holder_name_not_blank(self) -> "BookRoomRequest":
        if not self.holder_name:
            raise ValueError("Имя гостя обязательно")
        return self


class CancelReservationRequest(BaseModel):
    """Запрос на отмену бронирования."""

    reservation_id: EntityId


# DTO для исходящих данных


class RoomDTO(BaseModel):
    """DTO для представления номера."""

    id: EntityId
    category: str
    nightly_rate: Decimal
    description: str

    @classmethod
    def from_domain(cls, room: Room) -> "RoomDTO":
        return cls(
            id=room.id,
            category=room.category.value,
            nightly_rate=room.nightly_rate,
            description=room.description,
        )


class RoomOfferDTO(BaseModel):
    """Свободный номер с ценой за весь период."""

    room: RoomDTO
    nights: int
    total_amount: Decimal


class ReservationDTO(BaseModel):
    """DTO для представления бронирования."""

    id: EntityId
    room_id: EntityId
    holder_name: str
    holder_contact: str
    start: date
    end: date
    check_out: date
    nights: int
    status: ReservationStatus
    total_amount: Decimal

    @classmethod
    def from_domain(cls, reservation: Reservation) -> "ReservationDTO":
        return cls(
            id=reservation.id,
            room_id=reservation.room_id,
            holder_name=reservation.holder_name,
            holder_contact=reservation.holder_contact,
            start=reservation.period.start,
            end=reservation.period.end,
            check_out=reservation.period.end_exclusive,
            nights=reservation.period.nights,
            status=reservation.status,
            total_amount=reservation.total_amount,
        )

    def describe(self) -> str:
        """Многострочное описание для вывода пользователю."""
        return (
            f"Booking ID: {self.id}\n"
            f"Room: {self.room_id}\n"
            f"Guest: {self.holder_name} ({self.holder_contact})\n"
            f"From: {self.start.isoformat()}  To: {self.end.isoformat()}\n"
            f"Status: {self.status.value}\n"
            f"Total: {self.total_amount:.2f}\n"
        )


# Сервисы приложения


class ReservationApplicationService:
    """Сервис приложения для поиска, бронирования и отмены."""

    def __init__(
        self,
        engine: ReservationEngine,
        payment_gateway: IPaymentGateway,
        logger: ports.ILogger,
    ):
        self._engine = engine
        self._payments = payment_gateway
        self._logger = logger

    @staticmethod
    def quote(room: Room, period: DateRange) -> Decimal:
        """Стоимость проживания: ставка за ночь, умноженная на число ночей."""
        return to_cents(room.nightly_rate * period.nights)

    def search_rooms(self, request: SearchRoomsRequest) -> Outcome[List[RoomOfferDTO]]:
        outcome = self._engine.search(request.check_in, request.check_out, request.category)
        if not outcome.ok:
            return outcome

        period = DateRange.from_half_open(request.check_in, request.check_out)
        return Success(
            [
                RoomOfferDTO(
                    room=RoomDTO.from_domain(room),
                    nights=period.nights,
                    total_amount=self.quote(room, period),
                )
                for room in outcome.value
            ]
        )

    def book(self, request: BookRoomRequest) -> Outcome[ReservationDTO]:
        """Оплачивает и создает бронирование.

        Если после списания оказалось, что номер уже занят, деньги возвращаются.
        """
        try:
            period = DateRange.from_half_open(request.check_in, request.check_out)
        except InvalidRangeError as e:
            return Failure(e)

        room = self._engine.get_room(request.room_id)
        if room is None:
            return Failure(UnknownUnitError(f"Номер {request.room_id} не найден"))

        # Предварительная проверка, чтобы не списывать деньги за занятый номер
        search = self._engine.search(request.check_in, request.check_out, room.category)
        if search.ok and room.id not in {r.id for r in search.value}:
            return Failure(
                AvailabilityError(f"Номер {room.id} уже забронирован на даты {period}")
            )

        amount = self.quote(room, period)
        if amount > 0:
            payment = self._payments.charge(amount, request.payment_token)
            if not payment.accepted:
                self._logger.info(
                    "Payment declined", room_id=room.id, reason=payment.reason
                )
                return Failure(PaymentDeclinedError(payment.reason or "Платеж отклонен"))

        outcome = self._engine.create_reservation(
            room_id=room.id,
            holder_name=request.holder_name,
            holder_contact=request.holder_contact,
            start=period.start,
            end=period.end,
            total_amount=amount,
        )
        if not outcome.ok:
            if amount > 0:
                self._compensate(amount, room.id)
            return outcome
        return Success(ReservationDTO.from_domain(outcome.value), warning=outcome.warning)

    def cancel(self, request: CancelReservationRequest) -> Outcome[ReservationDTO]:
        """Возвращает деньги и отменяет бронирование.

        Если шлюз отклонил возврат, бронирование остается активным.
        """
        reservation = self._engine.find_reservation(request.reservation_id)
        if reservation is None:
            return Failure(
                NotFoundError(f"Бронирование {request.reservation_id} не найдено")
            )
        if not reservation.is_active:
            return Failure(
                AlreadyCancelledError(f"Бронирование {reservation.id} уже отменено")
            )

        if reservation.total_amount > 0:
            refund = self._payments.refund(reservation.total_amount)
            if not refund.accepted:
                self._logger.warning(
                    "Refund declined",
                    reservation_id=reservation.id,
                    reason=refund.reason,
                )
                return Failure(RefundDeclinedError(refund.reason or "Возврат отклонен"))

        outcome = self._engine.cancel_reservation(reservation.id)
        if not outcome.ok:
            # Возврат выполнен, но отмену опередил параллельный вызов
            self._logger.error(
                "Reservation changed during refund",
                reservation_id=reservation.id,
                error=str(outcome.error),
            )
            return outcome
        return Success(ReservationDTO.from_domain(outcome.value), warning=outcome.warning)

    def get_reservation(self, reservation_id: EntityId) -> Optional[ReservationDTO]:
        reservation = self._engine.find_reservation(reservation_id)
        if reservation is None:
            return None
        return ReservationDTO.from_domain(reservation)

    def list_rooms(self) -> List[RoomDTO]:
        return [RoomDTO.from_domain(room) for room in self._engine.list_rooms()]

    def list_reservations(self) -> List[ReservationDTO]:
        return [
            ReservationDTO.from_domain(reservation)
            for reservation in self._engine.list_reservations()
        ]

    def _compensate(self, amount: Decimal, room_id: EntityId) -> None:
        refund = self._payments.refund(amount)
        if refund.accepted:
            self._logger.info("Charge refunded after failed booking", room_id=room_id)
        else:
            self._logger.error(
                "Could not refund charge after failed booking",
                room_id=room_id,
                amount=str(amount),
                reason=refund.reason,
            )
