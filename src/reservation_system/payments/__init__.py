"""
Модуль платежного контекста (Payments Context).

Предоставляет движку бронирования возможность списать и вернуть деньги.
"""

from . import infrastructure, interfaces

__all__ = [
    "infrastructure",
    "interfaces",
]
