"""
Модуль контекста бронирования (Booking Context).

Отвечает за бронирование номеров в отеле, включая:
- Поиск свободных номеров на даты
- Создание и отмену бронирований без двойного бронирования
- Хранение номеров и бронирований в CSV-файлах
"""

from . import application, domain, engine, infrastructure, interfaces

__all__ = [
    "domain",
    "application",
    "engine",
    "infrastructure",
    "interfaces",
]
