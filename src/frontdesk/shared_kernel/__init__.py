"""
Общее ядро (Shared Kernel) системы ресепшена.

Содержит общие типы данных, снимки бронирований и исключения,
используемые контекстами доступности и ценообразования.
"""

from .domain import (
    CENT,
    ConcurrencyException,
    ConflictOnCommit,
    DailyDetail,
    DateRange,
    # Исключения
    DomainException,
    # Базовые типы
    EntityId,
    ChildAge,
    GuestChild,
    GuestRef,
    InvalidDateRange,
    # Основные классы
    Money,
    NoMatchingSeasonalPeriod,
    PlaceholderGuest,
    PricingMode,
    PricingTierNotFound,
    RegisteredGuest,
    Reservation,
    ReservationNotFound,
    ReservationStatus,
    Room,
    RoomNotFound,
    # Перечисления
    RoomType,
    SeasonalPeriodNotConfigured,
    SeasonalPeriodTag,
    StayServices,
    TariffConfigurationError,
    generate_id,
    round_currency,
)
from .infrastructure import LoggingLogger, configure_logging
from .interfaces import ILogger, IReservationReadModel, IRoomCatalog

__all__ = [
    # Базовые типы
    "EntityId",
    "CENT",
    "generate_id",
    "round_currency",
    # Основные классы
    "Money",
    "DateRange",
    "Room",
    "Reservation",
    "DailyDetail",
    "GuestChild",
    "ChildAge",
    "StayServices",
    "GuestRef",
    "RegisteredGuest",
    "PlaceholderGuest",
    # Перечисления
    "RoomType",
    "SeasonalPeriodTag",
    "PricingMode",
    "ReservationStatus",
    # Исключения
    "DomainException",
    "RoomNotFound",
    "ReservationNotFound",
    "NoMatchingSeasonalPeriod",
    "InvalidDateRange",
    "TariffConfigurationError",
    "SeasonalPeriodNotConfigured",
    "PricingTierNotFound",
    "ConcurrencyException",
    "ConflictOnCommit",
    # Логирование
    "ILogger",
    "IRoomCatalog",
    "IReservationReadModel",
    "LoggingLogger",
    "configure_logging",
]
