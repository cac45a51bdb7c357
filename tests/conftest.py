"""
Конфигурация тестов для pytest.
Общие фикстуры: логгер, хранилище во временной директории, движок и сервис.
"""

from typing import Any, Dict, List, Tuple

import pytest

from reservation_system.booking.application import ReservationApplicationService
from reservation_system.booking.engine import ReservationEngine
from reservation_system.booking.infrastructure import CsvRecordStore
from reservation_system.payments.infrastructure import DummyPaymentGateway


class RecordingLogger:
    """Логгер, запоминающий сообщения для проверок в тестах."""

    def __init__(self) -> None:
        self.records: List[Tuple[str, str, Dict[str, Any]]] = []

    def _record(self, level: str, message: str, **kwargs: Any) -> None:
        self.records.append((level, message, kwargs))

    def info(self, message: str, **kwargs: Any) -> None:
        self._record("INFO", message, **kwargs)

    def error(self, message: str, **kwargs: Any) -> None:
        self._record("ERROR", message, **kwargs)

    def warning(self, message: str, **kwargs: Any) -> None:
        self._record("WARNING", message, **kwargs)

    def debug(self, message: str, **kwargs: Any) -> None:
        self._record("DEBUG", message, **kwargs)

    def messages(self, level: str) -> List[str]:
        return [message for lvl, message, _ in self.records if lvl == level]


@pytest.fixture
def logger() -> RecordingLogger:
    return RecordingLogger()


@pytest.fixture
def store(tmp_path, logger) -> CsvRecordStore:
    """Хранилище в чистой временной директории."""
    return CsvRecordStore(
        rooms_path=tmp_path / "rooms.csv",
        reservations_path=tmp_path / "bookings.csv",
        logger=logger,
    )


@pytest.fixture
def engine(store, logger) -> ReservationEngine:
    """Движок с инвентарем по умолчанию и пустым журналом."""
    return ReservationEngine.open(store, logger)


@pytest.fixture
def gateway() -> DummyPaymentGateway:
    return DummyPaymentGateway()


@pytest.fixture
def service(engine, gateway, logger) -> ReservationApplicationService:
    return ReservationApplicationService(
        engine=engine, payment_gateway=gateway, logger=logger
    )
