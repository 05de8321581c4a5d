"""
Доменная модель контекста ценообразования.

Содержит тарифную конфигурацию, определение сезона по дате,
расчет стоимости одной ночи и посуточную агрегацию стоимости
проживания.

Порядок расчета ночи:
1. Базовая цена = цена номера для сезона × множитель тарифного плана
2. Проживание = базовая цена × присутствующие гости - скидки на детей
   (для номеров с ценой за номер - фиксированная цена, без скидок)
3. Туристический налог = ставка сезона × (взрослые + дети по возрастным долям)
4. Услуги = парковка + животные + полотенца
5. НДС выделяется из цены или начисляется сверху - по флагу тарифа
6. Итог ночи = проживание + услуги + туристический налог (+ НДС сверху)

Округление выполняется только в итогах проживания, никогда по ночам.
"""

import re
from datetime import date, timedelta
from decimal import Decimal
from enum import Enum
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ..shared_kernel import (
    DailyDetail,
    DateRange,
    GuestChild,
    Money,
    NoMatchingSeasonalPeriod,
    PricingMode,
    PricingTierNotFound,
    Reservation,
    Room,
    SeasonalPeriodNotConfigured,
    SeasonalPeriodTag,
    StayServices,
)

MONTH_DAY_PATTERN = re.compile(r"^(\d{2})-(\d{2})$")
ZERO = Decimal("0")
ONE = Decimal("1")


def _parse_month_day(value: str) -> Tuple[int, int]:
    match = MONTH_DAY_PATTERN.match(value)
    if not match:
        raise ValueError(f"Ожидается формат ММ-ДД, получено {value!r}")
    month, day = int(match.group(1)), int(match.group(2))
    # Високосный год допускает 02-29
    date(2024, month, day)
    return month, day


class SeasonalSubRange(BaseModel):
    """
    Повторяющееся ежегодно окно дат, включительно с обеих сторон.

    Окно, у которого начало позже конца, переходит через Новый год
    (например, 12-30 .. 01-02).
    """

    model_config = ConfigDict(frozen=True)

    start: str
    end: str

    @field_validator("start", "end")
    def valid_month_day(cls, v):
        _parse_month_day(v)
        return v

    @property
    def wraps_year(self) -> bool:
        return _parse_month_day(self.start) > _parse_month_day(self.end)

    def contains(self, day: date) -> bool:
        key = (day.month, day.day)
        start = _parse_month_day(self.start)
        end = _parse_month_day(self.end)
        if start > end:
            return key >= start or key <= end
        return start <= key <= end


class SeasonalPeriodDefinition(BaseModel):
    """Тарифный сезон с одним или несколькими окнами дат."""

    model_config = ConfigDict(frozen=True)

    tag: SeasonalPeriodTag
    name: str
    sub_ranges: List[SeasonalSubRange] = Field(..., min_length=1)
    tourism_tax_rate: Decimal = Field(..., ge=0)  # За человека за ночь

    def contains(self, day: date) -> bool:
        return any(sub_range.contains(day) for sub_range in self.sub_ranges)


class AgeBand(BaseModel):
    """Возрастная группа: действует для детей младше below_age лет."""

    model_config = ConfigDict(frozen=True)

    below_age: int = Field(..., gt=0)
    factor: Decimal = Field(..., ge=0, le=1)


class PricingTier(BaseModel):
    """Тарифный план (агентский, корпоративный) с множителями по сезонам."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    multipliers: Dict[SeasonalPeriodTag, Decimal] = Field(default_factory=dict)

    def multiplier_for(self, period: SeasonalPeriodTag) -> Decimal:
        return self.multipliers.get(period, ONE)


def _default_child_discounts() -> List[AgeBand]:
    # Доля скидки с цены проживания ребенка
    return [
        AgeBand(below_age=3, factor=Decimal("1.0")),
        AgeBand(below_age=7, factor=Decimal("0.5")),
        AgeBand(below_age=14, factor=Decimal("0.2")),
    ]


def _default_tourism_tax_child_rules() -> List[AgeBand]:
    # Доля ставки туристического налога, которую платит ребенок
    return [
        AgeBand(below_age=12, factor=Decimal("0")),
        AgeBand(below_age=18, factor=Decimal("0.5")),
    ]


class TariffConfig(BaseModel):
    """Тарифная конфигурация на один тарифный год."""

    model_config = ConfigDict(frozen=True)

    year: int
    currency: str = Field("EUR", max_length=3)
    periods: List[SeasonalPeriodDefinition] = Field(..., min_length=1)

    vat_included: bool = True
    accommodation_vat_rate: Decimal = Field(Decimal("0.13"), ge=0)
    services_vat_rate: Decimal = Field(Decimal("0.25"), ge=0)

    parking_fee: Decimal = Field(Decimal("7.00"), ge=0)  # За место за ночь
    pet_fee: Decimal = Field(Decimal("20.00"), ge=0)  # За ночь с животными
    towel_fee: Decimal = Field(Decimal("5.00"), ge=0)  # За полотенце в день

    child_discounts: List[AgeBand] = Field(default_factory=_default_child_discounts)
    tourism_tax_child_rules: List[AgeBand] = Field(
        default_factory=_default_tourism_tax_child_rules
    )

    short_stay_min_nights: int = Field(3, ge=1)
    short_stay_supplement: Decimal = Field(ZERO, ge=0)

    pricing_tiers: List[PricingTier] = Field(default_factory=list)

    @model_validator(mode="after")
    def unique_period_tags(self) -> "TariffConfig":
        tags = [period.tag for period in self.periods]
        if len(tags) != len(set(tags)):
            raise ValueError("Сезон с одинаковым обозначением указан дважды")
        return self

    def period(self, tag: SeasonalPeriodTag) -> SeasonalPeriodDefinition:
        for definition in self.periods:
            if definition.tag == tag:
                return definition
        raise SeasonalPeriodNotConfigured(tag)

    def tier(self, tier_id: Optional[str]) -> Optional[PricingTier]:
        if tier_id is None:
            return None
        for tier in self.pricing_tiers:
            if tier.id == tier_id:
                return tier
        raise PricingTierNotFound(tier_id)

    def child_discount(self, age: int) -> Decimal:
        return _band_factor(self.child_discounts, age, default=ZERO)

    def tourism_tax_factor(self, age: int) -> Decimal:
        return _band_factor(self.tourism_tax_child_rules, age, default=ONE)


def _band_factor(bands: Iterable[AgeBand], age: int, default: Decimal) -> Decimal:
    for band in sorted(bands, key=lambda b: b.below_age):
        if age < band.below_age:
            return band.factor
    return default


def tariff_coverage_issues(
    periods: Sequence[SeasonalPeriodDefinition],
) -> Tuple[List[Tuple[str, List[SeasonalPeriodTag]]], List[str]]:
    """
    Проверяет покрытие календарного года сезонами.

    Возвращает пару (дни, попавшие в несколько сезонов; дни без сезона)
    в формате ММ-ДД. Проверяется високосный год, чтобы учесть 02-29.
    """
    overlapping: List[Tuple[str, List[SeasonalPeriodTag]]] = []
    uncovered: List[str] = []

    day = date(2024, 1, 1)
    while day.year == 2024:
        tags = [period.tag for period in periods if period.contains(day)]
        key = day.strftime("%m-%d")
        if len(tags) > 1:
            overlapping.append((key, tags))
        elif not tags:
            uncovered.append(key)
        day += timedelta(days=1)

    return overlapping, uncovered


class SeasonalPeriodResolver:
    """
    Определяет тарифный сезон для даты.

    Возвращает первый по порядку конфигурации сезон, окно которого
    содержит дату. Пересечения окон не исправляются.
    """

    def __init__(self, periods: Sequence[SeasonalPeriodDefinition]):
        self._periods = list(periods)

    def definition_for(self, day: date) -> SeasonalPeriodDefinition:
        for definition in self._periods:
            if definition.contains(day):
                return definition
        raise NoMatchingSeasonalPeriod(day)

    def resolve(self, day: date) -> SeasonalPeriodTag:
        return self.definition_for(day).tag


class PricingWarningCode(str, Enum):
    """Коды предупреждений расчета."""

    INVALID_OCCUPANCY = "invalid_occupancy"
    OVERRIDE_OUTSIDE_STAY = "override_outside_stay"


class PricingWarning(BaseModel):
    """Мягкое предупреждение расчета."""

    model_config = ConfigDict(frozen=True)

    code: PricingWarningCode
    message: str


class ServiceFees(BaseModel):
    """Сборы за услуги за одну ночь (без округления)."""

    model_config = ConfigDict(frozen=True)

    parking: Decimal = ZERO
    pets: Decimal = ZERO
    towels: Decimal = ZERO
    tourism_tax: Decimal = ZERO

    @property
    def vatable(self) -> Decimal:
        """Услуги, облагаемые НДС (туристический налог не облагается)."""
        return self.parking + self.pets + self.towels

    @property
    def total(self) -> Decimal:
        return self.vatable + self.tourism_tax


class PricingBreakdown(BaseModel):
    """Расчет стоимости одной ночи."""

    model_config = ConfigDict(frozen=True)

    day: Optional[date] = None
    period: SeasonalPeriodTag
    base_rate: Decimal
    adults: int
    child_ages: List[int] = Field(default_factory=list)
    base_accommodation: Decimal
    child_discount: Decimal
    accommodation: Decimal
    services: ServiceFees
    vat_accommodation: Decimal
    vat_services: Decimal
    vat_included: bool
    total: Decimal
    is_override: bool = False
    warnings: List[PricingWarning] = Field(default_factory=list)

    @property
    def vat_total(self) -> Decimal:
        return self.vat_accommodation + self.vat_services


class NightlyPricingCalculator:
    """Рассчитывает стоимость одной ночи для номера, гостей и услуг."""

    def __init__(self, tariff: TariffConfig):
        self._tariff = tariff

    @property
    def tariff(self) -> TariffConfig:
        return self._tariff

    def base_rate(
        self, room: Room, period: SeasonalPeriodTag, tier_id: Optional[str] = None
    ) -> Decimal:
        rate = room.rate_for(period)
        tier = self._tariff.tier(tier_id)
        if tier is not None:
            rate = rate * tier.multiplier_for(period)
        return rate

    def price_night(
        self,
        room: Room,
        period: SeasonalPeriodTag,
        adults_present: int,
        children_present: Sequence[int] = (),
        services: Optional[StayServices] = None,
        *,
        day: Optional[date] = None,
        tier_id: Optional[str] = None,
        check_occupancy: bool = True,
        is_override: bool = False,
    ) -> PricingBreakdown:
        if adults_present < 0:
            raise ValueError("Количество взрослых не может быть отрицательным")

        tariff = self._tariff
        services = services or StayServices()
        child_ages = list(children_present)
        persons = adults_present + len(child_ages)

        warnings: List[PricingWarning] = []
        if check_occupancy and persons > room.max_occupancy:
            warnings.append(occupancy_warning(room, persons))

        base_rate = self.base_rate(room, period, tier_id)

        if room.pricing_mode is PricingMode.PER_ROOM:
            base_accommodation = base_rate if persons > 0 else ZERO
            child_discount = ZERO
        else:
            base_accommodation = base_rate * persons
            child_discount = sum(
                (base_rate * tariff.child_discount(age) for age in child_ages), ZERO
            )
        accommodation = base_accommodation - child_discount

        tourism_persons = Decimal(adults_present) + sum(
            (tariff.tourism_tax_factor(age) for age in child_ages), ZERO
        )
        chargeable_spots = max(0, services.parking_spots - room.included_parking_spots)
        fees = ServiceFees(
            parking=tariff.parking_fee * chargeable_spots,
            pets=tariff.pet_fee if services.has_pets else ZERO,
            towels=tariff.towel_fee * services.towel_rentals,
            tourism_tax=tariff.period(period).tourism_tax_rate * tourism_persons,
        )

        vat_accommodation, vat_services = self._vat(accommodation, fees.vatable)
        total = accommodation + fees.total
        if not tariff.vat_included:
            total += vat_accommodation + vat_services

        return PricingBreakdown(
            day=day,
            period=period,
            base_rate=base_rate,
            adults=adults_present,
            child_ages=child_ages,
            base_accommodation=base_accommodation,
            child_discount=child_discount,
            accommodation=accommodation,
            services=fees,
            vat_accommodation=vat_accommodation,
            vat_services=vat_services,
            vat_included=tariff.vat_included,
            total=total,
            is_override=is_override,
            warnings=warnings,
        )

    def _vat(self, accommodation: Decimal, services: Decimal) -> Tuple[Decimal, Decimal]:
        acc_rate = self._tariff.accommodation_vat_rate
        svc_rate = self._tariff.services_vat_rate
        if self._tariff.vat_included:
            # НДС уже в цене: выделяем его для отображения
            return (
                accommodation * acc_rate / (ONE + acc_rate),
                services * svc_rate / (ONE + svc_rate),
            )
        return accommodation * acc_rate, services * svc_rate


def occupancy_warning(room: Room, persons: int) -> PricingWarning:
    return PricingWarning(
        code=PricingWarningCode.INVALID_OCCUPANCY,
        message=(
            f"Превышена вместимость номера {room.number}: {persons} "
            f"при максимуме {room.max_occupancy}"
        ),
    )


class GuestList(BaseModel):
    """Номинальный состав гостей на все проживание."""

    model_config = ConfigDict(frozen=True)

    adults: int = Field(..., ge=0)
    children: List[GuestChild] = Field(default_factory=list)

    @property
    def child_ages(self) -> List[int]:
        return [child.age for child in self.children]

    @property
    def persons(self) -> int:
        return self.adults + len(self.children)

    @classmethod
    def from_reservation(cls, reservation: Reservation) -> "GuestList":
        return cls(adults=reservation.adults, children=reservation.children)


class StayPricingSummary(BaseModel):
    """Посуточный расчет и итоги проживания."""

    model_config = ConfigDict(frozen=True)

    room_id: str
    check_in: date
    check_out: date
    nights: List[PricingBreakdown]
    total_nights: int
    total_accommodation: Money
    total_services: Money
    total_tourism_tax: Money
    total_vat: Money
    vat_included: bool
    short_stay_supplement: Money
    grand_total: Money
    warnings: List[PricingWarning] = Field(default_factory=list)


class DayByDayAggregator:
    """
    Посуточно рассчитывает проживание и сводит итоги.

    Суммы компонентов округляются один раз, затем общий итог
    считается как их сумма и округляется еще раз.
    """

    def __init__(
        self,
        resolver: SeasonalPeriodResolver,
        calculator: NightlyPricingCalculator,
    ):
        self._resolver = resolver
        self._calculator = calculator

    def aggregate(
        self,
        room: Room,
        check_in: date,
        check_out: date,
        guest_list: GuestList,
        stay_level_services: Optional[StayServices] = None,
        daily_overrides: Sequence[DailyDetail] = (),
        tier_id: Optional[str] = None,
    ) -> StayPricingSummary:
        stay = DateRange.of(check_in, check_out)
        tariff = self._calculator.tariff
        services = stay_level_services or StayServices()

        warnings: List[PricingWarning] = []
        if guest_list.persons > room.max_occupancy:
            warnings.append(occupancy_warning(room, guest_list.persons))

        # Более поздняя запись на ту же дату заменяет предыдущую
        overrides: Dict[date, DailyDetail] = {}
        for detail in daily_overrides:
            if not stay.contains(detail.stay_date):
                warnings.append(
                    PricingWarning(
                        code=PricingWarningCode.OVERRIDE_OUTSIDE_STAY,
                        message=(
                            f"Данные на {detail.stay_date.isoformat()} вне периода "
                            f"проживания и не учтены"
                        ),
                    )
                )
                continue
            overrides[detail.stay_date] = detail

        nights = []
        for day in stay.days():
            period = self._resolver.resolve(day)
            detail = overrides.get(day)
            if detail is not None:
                breakdown = self._calculator.price_night(
                    room,
                    period,
                    detail.adults_present,
                    detail.children_present,
                    StayServices(
                        parking_spots=detail.parking_spots,
                        has_pets=detail.pets_present,
                        towel_rentals=detail.towel_rentals,
                    ),
                    day=day,
                    tier_id=tier_id,
                    check_occupancy=False,
                    is_override=True,
                )
            else:
                breakdown = self._calculator.price_night(
                    room,
                    period,
                    guest_list.adults,
                    guest_list.child_ages,
                    services,
                    day=day,
                    tier_id=tier_id,
                    check_occupancy=False,
                )
            nights.append(breakdown)

        accommodation_sum = sum((n.accommodation for n in nights), ZERO)
        services_sum = sum((n.services.total for n in nights), ZERO)
        tourism_sum = sum((n.services.tourism_tax for n in nights), ZERO)
        vat_sum = sum((n.vat_total for n in nights), ZERO)

        currency = tariff.currency
        total_accommodation = Money(amount=accommodation_sum, currency=currency).rounded()
        total_services = Money(amount=services_sum, currency=currency).rounded()
        total_vat = Money(amount=vat_sum, currency=currency).rounded()

        supplement = Money(amount=ZERO, currency=currency)
        if stay.nights < tariff.short_stay_min_nights and tariff.short_stay_supplement:
            supplement = Money(
                amount=accommodation_sum * tariff.short_stay_supplement, currency=currency
            ).rounded()

        grand_total = total_accommodation + total_services + supplement
        if not tariff.vat_included:
            grand_total = grand_total + total_vat

        return StayPricingSummary(
            room_id=room.id,
            check_in=check_in,
            check_out=check_out,
            nights=nights,
            total_nights=len(nights),
            total_accommodation=total_accommodation,
            total_services=total_services,
            total_tourism_tax=Money(amount=tourism_sum, currency=currency).rounded(),
            total_vat=total_vat,
            vat_included=tariff.vat_included,
            short_stay_supplement=supplement,
            grand_total=grand_total.rounded(),
            warnings=warnings,
        )
