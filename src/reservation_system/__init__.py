"""
Система бронирования номеров с хранением в CSV-файлах.
"""

__version__ = "0.1.0"
