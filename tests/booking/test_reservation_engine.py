"""
Тесты для движка бронирования.
"""

import random
import threading
from datetime import date, timedelta
from decimal import Decimal

import pytest

from reservation_system.booking.domain import ReservationStatus, RoomCategory
from reservation_system.booking.engine import ReservationEngine
from reservation_system.booking.infrastructure import CsvRecordStore
from reservation_system.shared_kernel import (
    AlreadyCancelledError,
    AvailabilityError,
    InvalidRangeError,
    InvalidReservationError,
    NotFoundError,
    UnknownUnitError,
)


def book(engine, room_id="R101", start=date(2025, 9, 1), end=date(2025, 9, 3), amount="225.00"):
    return engine.create_reservation(
        room_id=room_id,
        holder_name="Иван Иванов",
        holder_contact="ivan@example.com",
        start=start,
        end=end,
        total_amount=Decimal(amount),
    )


class FailingStore:
    """Хранилище, которое не может записать журнал."""

    def __init__(self, inner: CsvRecordStore):
        self._inner = inner
        self.save_attempts = 0

    def bootstrap(self):
        self._inner.bootstrap()

    def load_rooms(self):
        return self._inner.load_rooms()

    def load_reservations(self):
        return self._inner.load_reservations()

    def save_reservations(self, reservations):
        self.save_attempts += 1
        raise OSError("disk is full")


class TestSearch:
    """Тесты поиска свободных номеров."""

    def test_search_returns_inventory_order(self, engine):
        outcome = engine.search(date(2025, 9, 1), date(2025, 9, 2))

        assert outcome.ok
        assert [room.id for room in outcome.value] == [
            "R101", "R102", "R201", "R202", "S301", "S302",
        ]

    def test_search_by_category(self, engine):
        outcome = engine.search(date(2025, 9, 1), date(2025, 9, 2), RoomCategory.SUITE)
        assert [room.id for room in outcome.value] == ["S301", "S302"]

    def test_search_rejects_empty_range(self, engine):
        """Тест: дата выезда должна быть позже даты заезда."""
        outcome = engine.search(date(2025, 9, 5), date(2025, 9, 5))

        assert not outcome.ok
        assert isinstance(outcome.error, InvalidRangeError)

    def test_boundary_dates(self, engine):
        """Тест: пересечение по 09-09 занимает номер, выезд 09-09 - нет."""
        assert book(engine, start=date(2025, 9, 9), end=date(2025, 9, 12)).ok

        touching = engine.search(date(2025, 9, 5), date(2025, 9, 10))
        adjacent = engine.search(date(2025, 9, 5), date(2025, 9, 9))

        assert "R101" not in [room.id for room in touching.value]
        assert "R101" in [room.id for room in adjacent.value]


class TestCreateReservation:
    """Тесты создания бронирований."""

    def test_create_reservation(self, engine):
        outcome = book(engine)

        assert outcome.ok
        assert outcome.warning is None
        reservation = outcome.value
        assert reservation.id.startswith("BKG-")
        assert reservation.status == ReservationStatus.ACTIVE
        assert reservation.total_amount == Decimal("225.00")
        assert engine.find_reservation(reservation.id) == reservation

    def test_unknown_room(self, engine):
        outcome = book(engine, room_id="X999")

        assert isinstance(outcome.error, UnknownUnitError)
        assert engine.list_reservations() == []

    def test_end_before_start(self, engine):
        outcome = book(engine, start=date(2025, 9, 3), end=date(2025, 9, 1))
        assert isinstance(outcome.error, InvalidRangeError)

    def test_overlapping_reservation_is_rejected(self, engine):
        """Тест: повторная проверка доступности при фиксации."""
        assert book(engine, start=date(2025, 9, 1), end=date(2025, 9, 5)).ok

        outcome = book(engine, start=date(2025, 9, 5), end=date(2025, 9, 7))

        assert isinstance(outcome.error, AvailabilityError)
        assert len(engine.list_reservations()) == 1

    def test_other_room_is_not_affected(self, engine):
        assert book(engine, room_id="R101").ok
        assert book(engine, room_id="R102").ok

    def test_cancelled_reservation_frees_dates(self, engine):
        first = book(engine).value
        assert engine.cancel_reservation(first.id).ok

        assert book(engine).ok

    def test_reservation_is_persisted(self, engine, store):
        reservation = book(engine).value

        assert [r.id for r in store.load_reservations()] == [reservation.id]

    def test_id_collision_is_regenerated(self, store, logger):
        ids = iter(["BKG-SAME", "BKG-SAME", "BKG-OTHER"])
        engine = ReservationEngine.open(store, logger, id_factory=lambda: next(ids))

        first = book(engine, room_id="R101").value
        second = book(engine, room_id="R102").value

        assert first.id == "BKG-SAME"
        assert second.id == "BKG-OTHER"

    def test_persistence_failure_is_a_warning(self, store, logger):
        """Тест: ошибка записи не отменяет бронирование в памяти."""
        failing = FailingStore(store)
        engine = ReservationEngine.open(failing, logger)

        outcome = book(engine)

        assert outcome.ok
        assert outcome.warning is not None
        assert "disk is full" in str(outcome.warning)
        assert engine.find_reservation(outcome.value.id) is not None
        assert failing.save_attempts == 1
        assert "Failed to persist reservations" in logger.messages("WARNING")

    @pytest.mark.parametrize(
        "field, value",
        [("holder_name", "Иван\nИванов"), ("holder_contact", "ivan@example.com\r")],
    )
    def test_line_break_is_rejected_before_commit(self, engine, store, logger, field, value):
        """Тест: поле с переводом строки не ломает запись последующих бронирований."""
        data = dict(
            room_id="R101",
            holder_name="Иван Иванов",
            holder_contact="ivan@example.com",
            start=date(2025, 9, 1),
            end=date(2025, 9, 3),
            total_amount=Decimal("225.00"),
        )
        data[field] = value

        rejected = engine.create_reservation(**data)
        accepted = book(engine, room_id="R102")

        assert isinstance(rejected.error, InvalidReservationError)
        assert accepted.ok
        assert accepted.warning is None
        reloaded = ReservationEngine.open(store, logger)
        assert [r.id for r in reloaded.list_reservations()] == [accepted.value.id]

    @pytest.mark.parametrize("amount", ["-1", "-0.01", "NaN", "Infinity"])
    def test_invalid_amount_is_rejected(self, engine, amount):
        outcome = book(engine, amount=amount)

        assert isinstance(outcome.error, InvalidReservationError)
        assert engine.list_reservations() == []

    def test_amount_is_rounded_to_cents(self, engine, store, logger):
        """Тест: сумма в памяти совпадает с суммой, прочитанной из файла."""
        reservation = book(engine, amount="1.005").value

        reloaded = ReservationEngine.open(store, logger)

        assert reservation.total_amount == Decimal("1.01")
        assert reloaded.find_reservation(reservation.id) == reservation

    def test_concurrent_creates_for_same_dates(self, engine):
        """Тест: из двух параллельных бронирований успешно только одно."""
        barrier = threading.Barrier(8)
        outcomes = []
        outcomes_lock = threading.Lock()

        def worker():
            barrier.wait()
            outcome = book(engine, start=date(2025, 10, 1), end=date(2025, 10, 5))
            with outcomes_lock:
                outcomes.append(outcome)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert sum(1 for outcome in outcomes if outcome.ok) == 1
        assert all(
            isinstance(outcome.error, AvailabilityError)
            for outcome in outcomes
            if not outcome.ok
        )
        active = [r for r in engine.list_reservations() if r.is_active]
        assert len(active) == 1


class TestCancelReservation:
    """Тесты отмены бронирований."""

    def test_cancel(self, engine):
        reservation = book(engine).value

        outcome = engine.cancel_reservation(reservation.id)

        assert outcome.ok
        assert outcome.value.status == ReservationStatus.CANCELLED
        assert engine.find_reservation(reservation.id).status == ReservationStatus.CANCELLED

    def test_cancel_unknown(self, engine):
        outcome = engine.cancel_reservation("BKG-NOPE")
        assert isinstance(outcome.error, NotFoundError)

    def test_cancel_twice_does_not_change_state(self, engine, store):
        """Тест: повторная отмена всегда сообщает AlreadyCancelledError."""
        reservation = book(engine).value
        engine.cancel_reservation(reservation.id)
        before = store.reservations_path.read_text(encoding="utf-8")

        for _ in range(3):
            outcome = engine.cancel_reservation(reservation.id)
            assert isinstance(outcome.error, AlreadyCancelledError)

        assert engine.find_reservation(reservation.id).status == ReservationStatus.CANCELLED
        assert store.reservations_path.read_text(encoding="utf-8") == before

    def test_find_missing_reservation(self, engine):
        assert engine.find_reservation("BKG-NOPE") is None


class TestReload:
    """Тесты восстановления состояния после перезапуска."""

    def test_create_cancel_reload(self, engine, store, logger):
        kept = book(engine, room_id="R101").value
        cancelled = book(engine, room_id="R102").value
        engine.cancel_reservation(cancelled.id)

        reloaded = ReservationEngine.open(store, logger)

        assert reloaded.find_reservation(kept.id) == kept
        assert reloaded.find_reservation(cancelled.id).status == ReservationStatus.CANCELLED
        assert [r.id for r in reloaded.list_reservations()] == [kept.id, cancelled.id]

    def test_overlapping_active_rows_are_skipped_on_load(self, store, logger):
        store.bootstrap()
        store.reservations_path.write_text(
            "id,roomId,guestName,guestEmail,start,end,status,totalAmount\n"
            '"BKG-1","R101","А","","2025-09-01","2025-09-05","ACTIVE","375.00"\n'
            '"BKG-2","R101","Б","","2025-09-05","2025-09-06","ACTIVE","150.00"\n'
            '"BKG-3","R101","В","","2025-09-05","2025-09-06","CANCELLED","150.00"\n'
            '"BKG-4","Z1","Г","","2025-09-05","2025-09-06","ACTIVE","150.00"\n',
            encoding="utf-8",
        )

        engine = ReservationEngine.open(store, logger)

        assert [r.id for r in engine.list_reservations()] == ["BKG-1", "BKG-3", "BKG-4"]
        warnings = logger.messages("WARNING")
        assert "Skipping reservation overlapping an earlier active one" in warnings
        assert "Reservation refers to unknown room" in warnings

    def test_flush_writes_state(self, engine, store):
        reservation = book(engine).value
        store.reservations_path.unlink()

        assert engine.flush() is None
        assert [r.id for r in store.load_reservations()] == [reservation.id]


def test_random_operations_keep_active_reservations_disjoint(engine):
    """Тест: после любой последовательности операций активные брони не пересекаются."""
    rng = random.Random(20250901)
    rooms = ["R101", "R102", "R201"]
    base = date(2025, 9, 1)

    for _ in range(300):
        if rng.random() < 0.7:
            start = base + timedelta(days=rng.randrange(60))
            end = start + timedelta(days=rng.randrange(7))
            book(engine, room_id=rng.choice(rooms), start=start, end=end)
        else:
            existing = engine.list_reservations()
            if existing:
                engine.cancel_reservation(rng.choice(existing).id)

    active = [r for r in engine.list_reservations() if r.is_active]
    for i, first in enumerate(active):
        for second in active[i + 1:]:
            if first.room_id == second.room_id:
                assert not first.period.overlaps(second.period)
