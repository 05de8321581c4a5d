"""
Прикладной слой контекста ценообразования.
"""

from datetime import date
from typing import List, Optional, Sequence

from pydantic import BaseModel, Field, model_validator

from ..shared_kernel import (
    DailyDetail,
    DomainException,
    EntityId,
    GuestChild,
    LoggingLogger,
    SeasonalPeriodTag,
    StayServices,
)
from . import interfaces as ports
from .domain import (
    DayByDayAggregator,
    GuestList,
    NightlyPricingCalculator,
    SeasonalPeriodResolver,
    StayPricingSummary,
    TariffConfig,
)

# DTO для входящих данных


class PriceStayRequest(BaseModel):
    """Запрос на расчет стоимости проживания."""

    room_id: EntityId
    check_in: date
    check_out: date
    adults: int = Field(..., ge=0)
    children: List[GuestChild] = Field(default_factory=list)
    services: StayServices = Field(default_factory=StayServices)
    daily_overrides: List[DailyDetail] = Field(default_factory=list)
    tier_id: Optional[str] = None

    @model_validator(mode="after")
    def check_out_after_check_in(self) -> "PriceStayRequest":
        if self.check_out <= self.check_in:
            raise ValueError("Дата выезда должна быть позже даты заезда")
        return self


# Сервисы приложения


class PricingApplicationService:
    """Сервис приложения для расчета стоимости проживания."""

    def __init__(
        self,
        room_catalog: ports.IRoomCatalog,
        read_model: ports.IReservationReadModel,
        tariff: TariffConfig,
        logger: Optional[ports.ILogger] = None,
    ):
        """Инициализирует сервис."""
        self._rooms = room_catalog
        self._read_model = read_model
        self._tariff = tariff
        self._logger = logger or LoggingLogger(__name__)
        self._resolver = SeasonalPeriodResolver(tariff.periods)
        self._aggregator = DayByDayAggregator(
            self._resolver, NightlyPricingCalculator(tariff)
        )

    @property
    def tariff(self) -> TariffConfig:
        return self._tariff

    def resolve_period(self, day: date) -> SeasonalPeriodTag:
        """Определяет тарифный сезон для даты."""
        try:
            return self._resolver.resolve(day)
        except DomainException as e:
            self._logger.error(
                f"Ошибка при определении сезона: {e}",
                operation="resolve_period",
                day=day,
            )
            raise

    def price_stay(self, request: PriceStayRequest) -> StayPricingSummary:
        """Рассчитывает стоимость проживания по запросу."""
        try:
            room = self._rooms.get_by_id(request.room_id)
            summary = self._aggregator.aggregate(
                room,
                request.check_in,
                request.check_out,
                GuestList(adults=request.adults, children=request.children),
                request.services,
                request.daily_overrides,
                request.tier_id,
            )
        except DomainException as e:
            self._logger.error(
                f"Ошибка при расчете стоимости: {e}",
                operation="price_stay",
                room_id=request.room_id,
                tier_id=request.tier_id,
            )
            raise

        self._log_summary(summary)
        return summary

    def price_reservation(
        self,
        reservation_id: EntityId,
        daily_overrides: Sequence[DailyDetail] = (),
        tier_id: Optional[str] = None,
    ) -> StayPricingSummary:
        """Рассчитывает стоимость существующего бронирования."""
        try:
            reservation = self._read_model.get_by_id(reservation_id)
            room = self._rooms.get_by_id(reservation.room_id)
            summary = self._aggregator.aggregate(
                room,
                reservation.check_in,
                reservation.check_out,
                GuestList.from_reservation(reservation),
                reservation.services,
                daily_overrides,
                tier_id,
            )
        except DomainException as e:
            self._logger.error(
                f"Ошибка при расчете стоимости бронирования: {e}",
                operation="price_reservation",
                reservation_id=reservation_id,
                tier_id=tier_id,
            )
            raise

        self._log_summary(summary, reservation_id=reservation_id)
        return summary

    def _log_summary(self, summary: StayPricingSummary, **context) -> None:
        for warning in summary.warnings:
            self._logger.info(warning.message, room_id=summary.room_id, **context)
        self._logger.debug(
            "Рассчитана стоимость проживания",
            room_id=summary.room_id,
            nights=summary.total_nights,
            grand_total=summary.grand_total.amount,
            **context,
        )
