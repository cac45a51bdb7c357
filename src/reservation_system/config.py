"""
Настройки приложения.

Значения по умолчанию переопределяются переменными окружения
с префиксом RESERVATIONS_ (в том числе из файла .env).
"""

import os
from pathlib import Path
from typing import Mapping, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

ENV_PREFIX = "RESERVATIONS_"


class Settings(BaseModel):
    """Конфигурация движка бронирования."""

    hotel_name: str = "Demo Hotel"
    data_dir: Path = Path("data")
    rooms_file: str = "rooms.csv"
    reservations_file: str = "bookings.csv"
    payment_failure_rate: float = Field(0.0, ge=0, le=1)
    refund_failure_rate: float = Field(0.0, ge=0, le=1)
    log_level: str = "INFO"

    @field_validator("log_level")
    @classmethod
    def known_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR"):
            raise ValueError(f"Unknown log level: {v}")
        return level

    @property
    def rooms_path(self) -> Path:
        return self.data_dir / self.rooms_file

    @property
    def reservations_path(self) -> Path:
        return self.data_dir / self.reservations_file

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """Собирает настройки из окружения.

        Если ``environ`` не передан, сначала подгружается файл .env.
        """
        if environ is None:
            load_dotenv()
            environ = os.environ

        values = {}
        for name in cls.model_fields:
            key = f"{ENV_PREFIX}{name.upper()}"
            if key in environ:
                values[name] = environ[key]
        return cls(**values)
