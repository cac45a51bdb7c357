"""
Общее ядро (Shared Kernel) - общие типы и утилиты,
используемые в нескольких ограниченных контекстах.
"""

from .csv_codec import CsvCodec, decode_line, encode_line
from .domain import (
    AlreadyCancelledError,
    AvailabilityError,
    DateRange,
    DomainException,
    EntityId,
    FormatError,
    InvalidRangeError,
    InvalidReservationError,
    NotFoundError,
    ParseError,
    PaymentDeclinedError,
    RefundDeclinedError,
    ReservationError,
    UnknownUnitError,
    generate_reservation_id,
)
from .outcome import Failure, Outcome, PersistenceWarning, Success

__all__ = [
    "CsvCodec",
    "decode_line",
    "encode_line",
    "EntityId",
    "generate_reservation_id",
    "DateRange",
    "DomainException",
    "FormatError",
    "ParseError",
    "ReservationError",
    "InvalidRangeError",
    "InvalidReservationError",
    "UnknownUnitError",
    "AvailabilityError",
    "NotFoundError",
    "AlreadyCancelledError",
    "PaymentDeclinedError",
    "RefundDeclinedError",
    "Outcome",
    "Success",
    "Failure",
    "PersistenceWarning",
]
