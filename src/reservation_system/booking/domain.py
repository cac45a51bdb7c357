"""
Доменная модель контекста бронирования.

Содержит номера, бронирования и доменный сервис проверки доступности.
Модели неизменяемы: отмена бронирования создает новый экземпляр.
"""

from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Iterable, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..shared_kernel import DateRange, EntityId

CENTS = Decimal("0.01")


def to_cents(amount: Decimal) -> Decimal:
    """Округляет сумму до копеек так же, как она записывается в файл."""
    return amount.quantize(CENTS, rounding=ROUND_HALF_UP)


class RoomCategory(str, Enum):
    """Категории номеров."""

    STANDARD = "STANDARD"
    DELUXE = "DELUXE"
    SUITE = "SUITE"


class ReservationStatus(str, Enum):
    """Статусы бронирования. Переход возможен только ACTIVE -> CANCELLED."""

    ACTIVE = "ACTIVE"
    CANCELLED = "CANCELLED"


class Room(BaseModel):
    """Номер в отеле."""

    model_config = ConfigDict(frozen=True)

    id: EntityId = Field(..., min_length=1)
    category: RoomCategory
    nightly_rate: Decimal = Field(..., ge=0)
    description: str = ""

    def __str__(self) -> str:
        return (
            f"Room {self.id}: {self.category.value} "
            f"({self.nightly_rate:.2f}/night) - {self.description}"
        )


class Reservation(BaseModel):
    """Бронирование номера на включительный диапазон дат."""

    model_config = ConfigDict(frozen=True)

    id: EntityId = Field(..., min_length=1)
    room_id: EntityId
    holder_name: str
    holder_contact: str
    period: DateRange
    status: ReservationStatus = ReservationStatus.ACTIVE
    total_amount: Decimal = Field(..., ge=0)

    @property
    def is_active(self) -> bool:
        return self.status == ReservationStatus.ACTIVE

    def cancelled(self) -> "Reservation":
        """Возвращает копию бронирования в статусе CANCELLED."""
        return self.model_copy(update={"status": ReservationStatus.CANCELLED})

    def conflicts_with(self, room_id: EntityId, period: DateRange) -> bool:
        """Занимает ли это бронирование номер хотя бы на один день периода."""
        return self.is_active and self.room_id == room_id and self.period.overlaps(period)


class AvailabilityService:
    """Доменный сервис для проверки доступности номеров."""

    @staticmethod
    def find_conflicts(
        reservations: Iterable[Reservation],
        room_id: EntityId,
        period: DateRange,
        exclude_reservation_id: Optional[EntityId] = None,
    ) -> List[Reservation]:
        """Возвращает активные бронирования номера, пересекающиеся с периодом."""
        return [
            reservation
            for reservation in reservations
            if reservation.id != exclude_reservation_id
            and reservation.conflicts_with(room_id, period)
        ]

    @classmethod
    def is_room_available(
        cls,
        reservations: Iterable[Reservation],
        room_id: EntityId,
        period: DateRange,
    ) -> bool:
        return not cls.find_conflicts(reservations, room_id, period)

    @classmethod
    def available_rooms(
        cls,
        rooms: Iterable[Room],
        reservations: Iterable[Reservation],
        period: DateRange,
        category: Optional[RoomCategory] = None,
    ) -> List[Room]:
        """Возвращает свободные номера в порядке инвентаря."""
        # Одним проходом собираем занятые номера
        occupied = {
            reservation.room_id
            for reservation in reservations
            if reservation.is_active and reservation.period.overlaps(period)
        }
        return [
            room
            for room in rooms
            if (category is None or room.category == category)
            and room.id not in occupied
        ]
