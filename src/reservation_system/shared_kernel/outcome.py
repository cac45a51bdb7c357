"""
Результаты операций в виде помеченных значений.

Ожидаемые бизнес-отказы не выбрасываются, а возвращаются вызывающему коду
как ``Failure``. Успешная операция может нести нефатальное предупреждение
о том, что запись на диск не удалась.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, Optional, TypeVar, Union

from .domain import ReservationError

T = TypeVar("T")


@dataclass(frozen=True)
class PersistenceWarning:
    """Изменение применено в памяти, но не записано в хранилище."""

    message: str

    def __str__(self) -> str:
        return self.message


@dataclass(frozen=True)
class Success(Generic[T]):
    value: T
    warning: Optional[PersistenceWarning] = None

    @property
    def ok(self) -> bool:
        return True

    def unwrap(self) -> T:
        return self.value


@dataclass(frozen=True)
class Failure:
    error: ReservationError

    @property
    def ok(self) -> bool:
        return False

    def unwrap(self):
        """Выбрасывает сохраненную ошибку."""
        raise self.error


Outcome = Union[Success[T], Failure]
