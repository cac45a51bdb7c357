"""
Интерфейсы (порты) для контекста бронирования.
"""

from __future__ import annotations

from typing import Any, List, Protocol, Sequence

from .domain import Reservation, Room


class ILogger(Protocol):
    """Интерфейс для логгера."""

    def info(self, message: str, **kwargs: Any) -> None: ...
    def error(self, message: str, **kwargs: Any) -> None: ...
    def warning(self, message: str, **kwargs: Any) -> None: ...
    def debug(self, message: str, **kwargs: Any) -> None: ...


class IRecordStore(Protocol):
    """Интерфейс хранилища номеров и бронирований."""

    def bootstrap(self) -> None: ...
    def load_rooms(self) -> List[Room]: ...
    def load_reservations(self) -> List[Reservation]: ...
    def save_reservations(self, reservations: Sequence[Reservation]) -> None: ...
