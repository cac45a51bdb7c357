"""
Основные доменные типы и утилиты общего ядра.
"""

from __future__ import annotations

from datetime import date, timedelta
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, model_validator

# Общие типы идентификаторов
EntityId = str

RESERVATION_ID_PREFIX = "BKG-"


def generate_reservation_id() -> EntityId:
    """Генерирует компактный случайный идентификатор бронирования."""
    return f"{RESERVATION_ID_PREFIX}{uuid4().hex[:8].upper()}"


class DateRange(BaseModel):
    """Диапазон дат, обе границы включительно.

    ``end`` - последняя занятая ночь, поэтому дата выезда равна ``end + 1 день``.
    """

    model_config = ConfigDict(frozen=True)

    start: date
    end: date

    @model_validator(mode="after")
    def end_not_before_start(self) -> "DateRange":
        if self.end < self.start:
            raise ValueError("Дата окончания не может быть раньше даты начала")
        return self

    @classmethod
    def from_half_open(cls, start: date, end_exclusive: date) -> "DateRange":
        """Создает диапазон из полуоткрытого интервала [start, end_exclusive)."""
        if end_exclusive <= start:
            raise InvalidRangeError(
                f"Дата выезда {end_exclusive} должна быть позже даты заезда {start}"
            )
        return cls(start=start, end=end_exclusive - timedelta(days=1))

    @property
    def end_exclusive(self) -> date:
        """Дата выезда."""
        return self.end + timedelta(days=1)

    @property
    def nights(self) -> int:
        """Количество ночей в диапазоне."""
        return (self.end_exclusive - self.start).days

    def overlaps(self, other: "DateRange") -> bool:
        """Проверяет, есть ли у диапазонов хотя бы один общий день."""
        return self.start <= other.end and other.start <= self.end

    def __str__(self) -> str:
        return f"{self.start.isoformat()}..{self.end.isoformat()}"


class DomainException(Exception):
    """Базовое исключение для доменных ошибок."""

    pass


class FormatError(DomainException):
    """Строка файла хранилища повреждена и не может быть разобрана."""

    pass


class ParseError(DomainException):
    """Поле записи содержит недопустимое значение."""

    pass


class ReservationError(DomainException):
    """Базовый класс для ожидаемых бизнес-отказов движка бронирования."""

    pass


class InvalidRangeError(ReservationError):
    """Дата выезда не позже даты заезда."""

    pass


class UnknownUnitError(ReservationError):
    """Номер с указанным идентификатором отсутствует в инвентаре."""

    pass


class AvailabilityError(ReservationError):
    """Номер уже занят на пересекающиеся даты."""

    pass


class NotFoundError(ReservationError):
    """Бронирование не найдено."""

    pass


class AlreadyCancelledError(ReservationError):
    """Бронирование уже отменено."""

    pass


class PaymentDeclinedError(ReservationError):
    """Платеж отклонен платежным шлюзом."""

    pass


class RefundDeclinedError(ReservationError):
    """Возврат средств отклонен платежным шлюзом."""

    pass


class InvalidReservationError(ReservationError):
    """Данные бронирования нельзя сохранить: перевод строки или отрицательная сумма."""

    pass
