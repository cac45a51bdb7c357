"""
Движок бронирования.

Хранит в памяти инвентарь номеров и все бронирования одного отеля.
Все изменения выполняются под одной блокировкой: повторная проверка
доступности, фиксация и запись на диск образуют одну критическую секцию.
"""

import threading
from datetime import date
from decimal import Decimal
from typing import Callable, Dict, List, Optional, Sequence

from ..shared_kernel import (
    AlreadyCancelledError,
    AvailabilityError,
    DateRange,
    EntityId,
    Failure,
    FormatError,
    InvalidRangeError,
    InvalidReservationError,
    NotFoundError,
    Outcome,
    PersistenceWarning,
    Success,
    UnknownUnitError,
    generate_reservation_id,
)
from . import interfaces as ports
from .domain import AvailabilityService, Reservation, Room, RoomCategory, to_cents

MAX_ID_ATTEMPTS = 16


class ReservationEngine:
    """Единственный экземпляр движка, охраняющий один инвентарь номеров."""

    def __init__(
        self,
        rooms: Sequence[Room],
        reservations: Sequence[Reservation],
        store: ports.IRecordStore,
        logger: ports.ILogger,
        id_factory: Callable[[], EntityId] = generate_reservation_id,
    ):
        self._store = store
        self._logger = logger
        self._id_factory = id_factory
        self._lock = threading.RLock()
        self._rooms: Dict[EntityId, Room] = {}
        self._reservations: Dict[EntityId, Reservation] = {}

        for room in rooms:
            if room.id in self._rooms:
                raise ValueError(f"Room with id {room.id} already exists")
            self._rooms[room.id] = room
        self._index_reservations(reservations)

    @classmethod
    def open(
        cls, store: ports.IRecordStore, logger: ports.ILogger, **kwargs
    ) -> "ReservationEngine":
        """Готовит файлы хранилища и загружает из них состояние.

        FormatError не перехватывается: поврежденный файл прерывает запуск.
        """
        store.bootstrap()
        rooms = store.load_rooms()
        reservations = store.load_reservations()
        engine = cls(rooms, reservations, store, logger, **kwargs)
        logger.info(
            "Reservation engine ready",
            rooms=len(engine._rooms),
            reservations=len(engine._reservations),
        )
        return engine

    def _index_reservations(self, reservations: Sequence[Reservation]) -> None:
        for reservation in reservations:
            if reservation.id in self._reservations:
                self._logger.warning(
                    "Skipping duplicate reservation", reservation_id=reservation.id
                )
                continue
            if reservation.room_id not in self._rooms:
                self._logger.warning(
                    "Reservation refers to unknown room",
                    reservation_id=reservation.id,
                    room_id=reservation.room_id,
                )
            if reservation.is_active and AvailabilityService.find_conflicts(
                self._reservations.values(), reservation.room_id, reservation.period
            ):
                self._logger.warning(
                    "Skipping reservation overlapping an earlier active one",
                    reservation_id=reservation.id,
                    room_id=reservation.room_id,
                    period=str(reservation.period),
                )
                continue
            self._reservations[reservation.id] = reservation

    # Чтение

    def search(
        self,
        start: date,
        end_exclusive: date,
        category: Optional[RoomCategory] = None,
    ) -> Outcome[List[Room]]:
        """Ищет свободные номера на полуоткрытый интервал [start, end_exclusive)."""
        try:
            period = DateRange.from_half_open(start, end_exclusive)
        except InvalidRangeError as e:
            return Failure(e)

        with self._lock:
            rooms = AvailabilityService.available_rooms(
                self._rooms.values(), self._reservations.values(), period, category
            )
        return Success(rooms)

    def find_reservation(self, reservation_id: EntityId) -> Optional[Reservation]:
        with self._lock:
            return self._reservations.get(reservation_id)

    def get_room(self, room_id: EntityId) -> Optional[Room]:
        with self._lock:
            return self._rooms.get(room_id)

    def list_rooms(self) -> List[Room]:
        with self._lock:
            return list(self._rooms.values())

    def list_reservations(self) -> List[Reservation]:
        with self._lock:
            return list(self._reservations.values())

    # Изменения

    def create_reservation(
        self,
        room_id: EntityId,
        holder_name: str,
        holder_contact: str,
        start: date,
        end: date,
        total_amount: Decimal,
    ) -> Outcome[Reservation]:
        """Создает бронирование на включительный диапазон [start, end].

        Предварительный поиск вызывающего кода носит рекомендательный характер:
        доступность заново проверяется здесь, под блокировкой.
        """
        if end < start:
            return Failure(
                InvalidRangeError(f"Дата окончания {end} раньше даты начала {start}")
            )
        period = DateRange(start=start, end=end)

        # Запись занимает одну строку файла
        for value in (holder_name, holder_contact):
            if "\n" in value or "\r" in value:
                return Failure(
                    InvalidReservationError("Поле не может содержать перевод строки")
                )
        if not total_amount.is_finite() or total_amount < 0:
            return Failure(
                InvalidReservationError(f"Недопустимая сумма: {total_amount}")
            )
        total_amount = to_cents(total_amount)

        with self._lock:
            if room_id not in self._rooms:
                return Failure(UnknownUnitError(f"Номер {room_id} не найден"))

            conflicts = AvailabilityService.find_conflicts(
                self._reservations.values(), room_id, period
            )
            if conflicts:
                self._logger.info(
                    "Reservation rejected: room is occupied",
                    room_id=room_id,
                    period=str(period),
                    conflicts=[reservation.id for reservation in conflicts],
                )
                return Failure(
                    AvailabilityError(
                        f"Номер {room_id} уже забронирован на даты {period}"
                    )
                )

            reservation = Reservation(
                id=self._new_reservation_id(),
                room_id=room_id,
                holder_name=holder_name,
                holder_contact=holder_contact,
                period=period,
                total_amount=total_amount,
            )
            self._reservations[reservation.id] = reservation
            self._logger.info(
                "Reservation created",
                reservation_id=reservation.id,
                room_id=room_id,
                period=str(period),
                total_amount=str(total_amount),
            )
            return Success(reservation, warning=self._persist())

    def cancel_reservation(self, reservation_id: EntityId) -> Outcome[Reservation]:
        with self._lock:
            reservation = self._reservations.get(reservation_id)
            if reservation is None:
                return Failure(NotFoundError(f"Бронирование {reservation_id} не найдено"))
            if not reservation.is_active:
                return Failure(
                    AlreadyCancelledError(f"Бронирование {reservation_id} уже отменено")
                )

            cancelled = reservation.cancelled()
            self._reservations[reservation_id] = cancelled
            self._logger.info("Reservation cancelled", reservation_id=reservation_id)
            return Success(cancelled, warning=self._persist())

    def flush(self) -> Optional[PersistenceWarning]:
        """Записывает текущее состояние на диск (при завершении работы)."""
        with self._lock:
            return self._persist()

    def _new_reservation_id(self) -> EntityId:
        for _ in range(MAX_ID_ATTEMPTS):
            reservation_id = self._id_factory()
            if reservation_id not in self._reservations:
                return reservation_id
        raise RuntimeError(
            f"Could not generate a unique reservation id in {MAX_ID_ATTEMPTS} attempts"
        )

    def _persist(self) -> Optional[PersistenceWarning]:
        # Вызывается под блокировкой
        try:
            self._store.save_reservations(list(self._reservations.values()))
        except (OSError, FormatError) as e:
            self._logger.warning("Failed to persist reservations", error=str(e))
            return PersistenceWarning(f"Failed to persist reservations: {e}")
        return None
