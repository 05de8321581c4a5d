from typing import Any, Dict, Iterable, Optional

from .availability.application import TimelineApplicationService
from .availability.infrastructure import InMemoryReservationSnapshot, InMemoryRoomCatalog
from .config import Settings
from .pricing.application import PricingApplicationService
from .pricing.domain import TariffConfig
from .pricing.infrastructure import BundledTariffRepository, JsonTariffRepository
from .shared_kernel import ILogger, LoggingLogger, Reservation, Room, configure_logging


def load_tariff(settings: Settings, logger: ILogger) -> TariffConfig:
    """Загружает тариф из файла или берет встроенный."""
    if settings.tariff_file is not None:
        return JsonTariffRepository(settings.tariff_file, logger).load()

    tariff = BundledTariffRepository().load()
    if tariff.currency != settings.currency:
        tariff = tariff.model_copy(update={"currency": settings.currency})
    return tariff


def bootstrap_app(
    settings: Optional[Settings] = None,
    rooms: Optional[Iterable[Room]] = None,
    reservations: Optional[Iterable[Reservation]] = None,
    logger: Optional[ILogger] = None,
) -> Dict[str, Any]:
    """Создает и настраивает все компоненты приложения."""
    settings = settings or Settings()

    # 1. Настраиваем логирование
    if logger is None:
        configure_logging(settings.log_level)
        logger = LoggingLogger("frontdesk")

    # 2. Загружаем тариф и справочные данные
    tariff = load_tariff(settings, logger)
    room_catalog = InMemoryRoomCatalog(rooms)
    snapshot = InMemoryReservationSnapshot(reservations)

    # 3. Создаем сервисы, передавая им зависимости
    timeline_service = TimelineApplicationService(
        room_catalog,
        snapshot,
        logger=logger,
        default_timeline_days=settings.default_timeline_days,
    )
    pricing_service = PricingApplicationService(
        room_catalog, snapshot, tariff, logger=logger
    )

    return {
        "settings": settings,
        "tariff": tariff,
        "room_catalog": room_catalog,
        "reservations": snapshot,
        "timeline_service": timeline_service,
        "pricing_service": pricing_service,
    }
