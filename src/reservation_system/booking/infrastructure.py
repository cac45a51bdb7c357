"""
Инфраструктурный слой контекста бронирования.

Содержит хранилище на CSV-файлах и консольный логгер.
"""

import json
import os
import sys
import tempfile
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Callable, Dict, List, Sequence, TypeVar

from ..shared_kernel import DateRange, FormatError, ParseError, decode_line, encode_line
from . import interfaces as ports
from .domain import Reservation, ReservationStatus, Room, RoomCategory

T = TypeVar("T")

ROOMS_HEADER = ["id", "type", "rate", "description"]
RESERVATIONS_HEADER = [
    "id",
    "roomId",
    "guestName",
    "guestEmail",
    "start",
    "end",
    "status",
    "totalAmount",
]

# Старые файлы помечали активные бронирования как оплаченные
LEGACY_STATUSES = {"PAID": ReservationStatus.ACTIVE}

SEED_ROOMS = [
    Room(id="R101", category=RoomCategory.STANDARD, nightly_rate=Decimal("75.00"),
         description="Standard single bed"),
    Room(id="R102", category=RoomCategory.STANDARD, nightly_rate=Decimal("80.00"),
         description="Standard double bed"),
    Room(id="R201", category=RoomCategory.DELUXE, nightly_rate=Decimal("120.00"),
         description="Deluxe with city view"),
    Room(id="R202", category=RoomCategory.DELUXE, nightly_rate=Decimal("130.00"),
         description="Deluxe with balcony"),
    Room(id="S301", category=RoomCategory.SUITE, nightly_rate=Decimal("220.00"),
         description="Executive suite"),
    Room(id="S302", category=RoomCategory.SUITE, nightly_rate=Decimal("260.00"),
         description="Luxury suite with lounge"),
]


def _parse_decimal(value: str, field: str) -> Decimal:
    try:
        amount = Decimal(value.strip())
    except InvalidOperation:
        raise ParseError(f"Invalid {field}: {value!r}")
    if not amount.is_finite():
        raise ParseError(f"Invalid {field}: {value!r}")
    return amount


def _parse_date(value: str, field: str) -> date:
    text = value.strip()
    try:
        parsed = datetime.strptime(text, "%Y-%m-%d").date()
    except ValueError:
        raise ParseError(f"Invalid {field} date: {value!r}")
    # Только YYYY-MM-DD с ведущими нулями
    if parsed.isoformat() != text:
        raise ParseError(f"Invalid {field} date: {value!r}")
    return parsed


def _expect_fields(fields: List[str], header: List[str]) -> None:
    if len(fields) != len(header):
        raise ParseError(f"Expected {len(header)} fields, got {len(fields)}")


def room_to_row(room: Room) -> List[str]:
    return [room.id, room.category.value, f"{room.nightly_rate:.2f}", room.description]


def room_from_row(fields: List[str]) -> Room:
    """Преобразует поля строки в номер или выбрасывает ParseError."""
    _expect_fields(fields, ROOMS_HEADER)
    room_id, category, rate, description = fields
    try:
        category_value = RoomCategory(category.strip().upper())
    except ValueError:
        raise ParseError(f"Unknown room type: {category!r}")
    try:
        return Room(
            id=room_id,
            category=category_value,
            nightly_rate=_parse_decimal(rate, "rate"),
            description=description,
        )
    except ValueError as e:
        raise ParseError(f"Invalid room {room_id!r}: {e}")


def reservation_to_row(reservation: Reservation) -> List[str]:
    return [
        reservation.id,
        reservation.room_id,
        reservation.holder_name,
        reservation.holder_contact,
        reservation.period.start.isoformat(),
        reservation.period.end.isoformat(),
        reservation.status.value,
        f"{reservation.total_amount:.2f}",
    ]


def reservation_from_row(fields: List[str]) -> Reservation:
    """Преобразует поля строки в бронирование или выбрасывает ParseError."""
    _expect_fields(fields, RESERVATIONS_HEADER)
    reservation_id, room_id, name, contact, start, end, status, amount = fields

    status_key = status.strip().upper()
    if status_key in LEGACY_STATUSES:
        status_value = LEGACY_STATUSES[status_key]
    else:
        try:
            status_value = ReservationStatus(status_key)
        except ValueError:
            raise ParseError(f"Unknown reservation status: {status!r}")

    start_date = _parse_date(start, "start")
    end_date = _parse_date(end, "end")
    total = _parse_decimal(amount, "totalAmount")
    try:
        return Reservation(
            id=reservation_id,
            room_id=room_id,
            holder_name=name,
            holder_contact=contact,
            period=DateRange(start=start_date, end=end_date),
            status=status_value,
            total_amount=total,
        )
    except ValueError as e:
        raise ParseError(f"Invalid reservation {reservation_id!r}: {e}")


class CsvRecordStore(ports.IRecordStore):
    """Хранилище номеров и бронирований в CSV-файлах.

    Строка, которую не удалось декодировать, прерывает загрузку (FormatError).
    Строка с недопустимым значением поля пропускается с предупреждением.
    Пропущенные строки не попадут в файл при следующей перезаписи.
    """

    def __init__(
        self,
        rooms_path: Path,
        reservations_path: Path,
        logger: ports.ILogger,
        seed_rooms: Sequence[Room] = tuple(SEED_ROOMS),
    ):
        self.rooms_path = Path(rooms_path)
        self.reservations_path = Path(reservations_path)
        self._logger = logger
        self._seed_rooms = list(seed_rooms)

    def bootstrap(self) -> None:
        """Создает отсутствующие файлы: инвентарь по умолчанию и пустой журнал."""
        if not self.rooms_path.exists():
            self._write_rows(
                self.rooms_path,
                ROOMS_HEADER,
                [room_to_row(room) for room in self._seed_rooms],
            )
            self._logger.info(
                "Seeded room inventory",
                path=str(self.rooms_path),
                rooms=len(self._seed_rooms),
            )
        if not self.reservations_path.exists():
            self._write_rows(self.reservations_path, RESERVATIONS_HEADER, [])
            self._logger.info(
                "Created empty reservation log", path=str(self.reservations_path)
            )

    def load_rooms(self) -> List[Room]:
        return self._load(self.rooms_path, room_from_row)

    def load_reservations(self) -> List[Reservation]:
        return self._load(self.reservations_path, reservation_from_row)

    def save_reservations(self, reservations: Sequence[Reservation]) -> None:
        """Полностью перезаписывает журнал бронирований."""
        self._write_rows(
            self.reservations_path,
            RESERVATIONS_HEADER,
            [reservation_to_row(reservation) for reservation in reservations],
        )

    def _load(self, path: Path, parse_row: Callable[[List[str]], T]) -> List[T]:
        # Записи разделяются только "\n": поля могут содержать U+2028
        with open(path, "r", encoding="utf-8") as f:
            lines = f.read().split("\n")

        records: Dict[str, T] = {}
        # Первая строка - заголовок
        for line_number, line in enumerate(lines[1:], start=2):
            if not line.strip():
                continue
            try:
                fields = decode_line(line)
            except FormatError as e:
                raise FormatError(f"{path}:{line_number}: {e}") from e
            try:
                record = parse_row(fields)
                if record.id in records:
                    raise ParseError(f"Duplicate id {record.id!r}")
            except ParseError as e:
                self._logger.warning(
                    "Skipping invalid record",
                    path=str(path),
                    line=line_number,
                    error=str(e),
                )
                continue
            records[record.id] = record

        self._logger.debug("Loaded records", path=str(path), count=len(records))
        return list(records.values())

    def _write_rows(self, path: Path, header: List[str], rows: List[List[str]]) -> None:
        # Кодируем до открытия файла, чтобы ошибка кодека не оставила файл пустым
        content = "".join(encode_line(row) + "\n" for row in rows)
        path.parent.mkdir(parents=True, exist_ok=True)

        fd, tmp_name = tempfile.mkstemp(
            dir=path.parent, prefix=f".{path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
                f.write(",".join(header) + "\n")
                f.write(content)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, path)
        except BaseException:
            if os.path.exists(tmp_name):
                os.remove(tmp_name)
            raise


_LEVELS = {"DEBUG": 10, "INFO": 20, "WARNING": 30, "ERROR": 40}


class ConsoleLogger(ports.ILogger):
    """Простая реализация логгера, выводящая сообщения в консоль."""

    def __init__(self, level: str = "INFO"):
        self._threshold = _LEVELS.get(level.upper(), _LEVELS["INFO"])

    def _emit(self, level: str, message: str, stream, **kwargs) -> None:
        if _LEVELS[level] < self._threshold:
            return
        print(f"[{level}] {message}", file=stream, flush=True)
        if kwargs:
            print(
                "  Context:",
                json.dumps(kwargs, default=str, indent=2, ensure_ascii=False),
                file=stream,
                flush=True,
            )

    def info(self, message: str, **kwargs) -> None:
        self._emit("INFO", message, sys.stdout, **kwargs)

    def error(self, message: str, **kwargs) -> None:
        self._emit("ERROR", message, sys.stderr, **kwargs)

    def warning(self, message: str, **kwargs) -> None:
        self._emit("WARNING", message, sys.stderr, **kwargs)

    def debug(self, message: str, **kwargs) -> None:
        self._emit("DEBUG", message, sys.stdout, **kwargs)
