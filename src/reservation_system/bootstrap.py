from typing import Any, Dict, Optional

from .booking.application import ReservationApplicationService
from .booking.engine import ReservationEngine
from .booking.infrastructure import ConsoleLogger, CsvRecordStore
from .config import Settings
from .payments.infrastructure import PaymentSimulator


def bootstrap_app(settings: Optional[Settings] = None) -> Dict[str, Any]:
    """Создает и настраивает все компоненты приложения."""
    settings = settings or Settings.from_env()

    # 1. Логгер и хранилище
    logger = ConsoleLogger(level=settings.log_level)
    store = CsvRecordStore(
        rooms_path=settings.rooms_path,
        reservations_path=settings.reservations_path,
        logger=logger,
    )

    # 2. Движок загружает состояние; поврежденный файл прерывает запуск
    engine = ReservationEngine.open(store, logger)

    # 3. Платежи и сервис приложения
    payment_gateway = PaymentSimulator(
        failure_rate=settings.payment_failure_rate,
        refund_failure_rate=settings.refund_failure_rate,
    )
    reservation_service = ReservationApplicationService(
        engine=engine, payment_gateway=payment_gateway, logger=logger
    )

    logger.info("Application started", hotel=settings.hotel_name)
    return {
        "settings": settings,
        "logger": logger,
        "engine": engine,
        "payment_gateway": payment_gateway,
        "reservation_service": reservation_service,
    }


def shutdown_app(components: Dict[str, Any]) -> None:
    """Сохраняет состояние перед завершением работы."""
    logger = components["logger"]
    warning = components["engine"].flush()
    if warning is not None:
        logger.error("Data was not saved on shutdown", error=str(warning))
    else:
        logger.info("Data saved", hotel=components["settings"].hotel_name)
