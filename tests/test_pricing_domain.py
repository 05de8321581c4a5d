"""
Тесты для доменной модели контекста ценообразования.
"""
from datetime import date, timedelta
from decimal import Decimal

import pytest
from pydantic import ValidationError

from frontdesk.pricing.domain import (
    DayByDayAggregator,
    GuestList,
    NightlyPricingCalculator,
    PricingTier,
    PricingWarningCode,
    SeasonalPeriodResolver,
    SeasonalSubRange,
    TariffConfig,
    tariff_coverage_issues,
)
from frontdesk.shared_kernel import (
    DailyDetail,
    DomainException,
    GuestChild,
    InvalidDateRange,
    NoMatchingSeasonalPeriod,
    PricingTierNotFound,
    SeasonalPeriodNotConfigured,
    SeasonalPeriodTag,
    StayServices,
    TariffConfigurationError,
    round_currency,
)

A, B, C, D = (
    SeasonalPeriodTag.A,
    SeasonalPeriodTag.B,
    SeasonalPeriodTag.C,
    SeasonalPeriodTag.D,
)


def july(day: int) -> date:
    return date(2026, 7, day)


@pytest.fixture
def calculator(tariff):
    return NightlyPricingCalculator(tariff)


@pytest.fixture
def aggregator(tariff, calculator):
    return DayByDayAggregator(SeasonalPeriodResolver(tariff.periods), calculator)


class TestSeasonalSubRange:
    """Тесты для окна дат сезона."""

    def test_wraps_over_new_year(self):
        window = SeasonalSubRange(start="12-30", end="01-03")

        assert window.wraps_year
        assert window.contains(date(2026, 12, 31))
        assert window.contains(date(2027, 1, 3))
        assert not window.contains(date(2027, 1, 4))
        assert not window.contains(date(2026, 12, 29))

    @pytest.mark.parametrize("value", ["2026-01-01", "13-01", "02-30", "1-5"])
    def test_invalid_month_day(self, value):
        with pytest.raises(ValidationError):
            SeasonalSubRange(start=value, end="12-31")


class TestSeasonalPeriodResolver:
    """Тесты для определения тарифного сезона."""

    @pytest.mark.parametrize(
        "day, expected",
        [
            (date(2026, 1, 4), A),
            (date(2026, 4, 1), A),
            (date(2026, 4, 2), B),
            (date(2026, 5, 21), B),
            (date(2026, 5, 22), C),
            (date(2026, 7, 9), C),
            (date(2026, 7, 10), D),
            (date(2026, 8, 31), D),
            (date(2026, 9, 1), C),
            (date(2026, 9, 26), C),
            (date(2026, 9, 27), B),
            (date(2026, 10, 24), B),
            (date(2026, 10, 25), A),
            (date(2026, 12, 29), A),
            (date(2026, 12, 30), B),
            (date(2026, 1, 3), B),
        ],
    )
    def test_sub_range_boundaries(self, tariff, day, expected):
        """Первый и последний день окна относятся к своему сезону."""
        assert SeasonalPeriodResolver(tariff.periods).resolve(day) == expected

    def test_total_over_tariff_year(self, tariff):
        resolver = SeasonalPeriodResolver(tariff.periods)
        day = date(2026, 1, 1)
        while day.year == 2026:
            matches = [p.tag for p in tariff.periods if p.contains(day)]
            assert matches == [resolver.resolve(day)], day
            day += timedelta(days=1)

    def test_first_listed_period_wins(self, tariff):
        overlapping = [
            tariff.period(C).model_copy(
                update={"sub_ranges": [SeasonalSubRange(start="05-20", end="07-09")]}
            ),
            tariff.period(B),
        ]

        assert SeasonalPeriodResolver(overlapping).resolve(date(2026, 5, 20)) == C

    def test_no_matching_period(self, tariff):
        resolver = SeasonalPeriodResolver([tariff.period(D)])

        with pytest.raises(NoMatchingSeasonalPeriod) as exc_info:
            resolver.resolve(date(2026, 1, 15))
        assert exc_info.value.day == date(2026, 1, 15)


class TestTariffConfig:
    """Тесты для тарифной конфигурации."""

    @pytest.mark.parametrize(
        "age, discount",
        [(0, "1.0"), (2, "1.0"), (3, "0.5"), (6, "0.5"), (7, "0.2"), (13, "0.2"), (14, "0"), (17, "0")],
    )
    def test_default_child_discounts(self, tariff, age, discount):
        assert tariff.child_discount(age) == Decimal(discount)

    @pytest.mark.parametrize("age, factor", [(0, "0"), (11, "0"), (12, "0.5"), (17, "0.5"), (18, "1")])
    def test_default_tourism_tax_factors(self, tariff, age, factor):
        assert tariff.tourism_tax_factor(age) == Decimal(factor)

    def test_duplicate_period_tags_rejected(self, tariff):
        with pytest.raises(ValidationError):
            TariffConfig(year=2026, periods=[tariff.period(A), tariff.period(A)])

    def test_coverage_issues(self, tariff):
        assert tariff_coverage_issues(tariff.periods) == ([], [])

        overlapping, uncovered = tariff_coverage_issues(
            [tariff.period(B), tariff.period(D)]
        )
        assert overlapping == []
        assert "01-15" in uncovered
        assert "02-29" in uncovered


class TestNightlyPricingCalculator:
    """Тесты для расчета стоимости одной ночи."""

    def test_per_person_with_child_discount(self, calculator, rooms_by_id):
        # Действие
        night = calculator.price_night(
            rooms_by_id["R1"], D, 2, [8], StayServices(parking_spots=1)
        )

        # Проверка
        assert night.base_rate == Decimal("90")
        assert night.base_accommodation == Decimal("270")
        assert night.child_discount == Decimal("18.0")
        assert night.accommodation == Decimal("252")
        assert night.services.tourism_tax == Decimal("3.00")
        assert night.services.parking == Decimal("7.00")
        assert night.total == Decimal("262")
        assert night.warnings == []

    @pytest.mark.parametrize(
        "age, accommodation, tourism_tax",
        [(1, "90", "1.50"), (5, "135", "1.50"), (10, "162", "1.50"), (13, "162", "2.25"), (15, "180", "2.25")],
    )
    def test_child_age_bands(self, calculator, rooms_by_id, age, accommodation, tourism_tax):
        night = calculator.price_night(rooms_by_id["R1"], D, 1, [age])

        assert night.accommodation == Decimal(accommodation)
        assert night.services.tourism_tax == Decimal(tourism_tax)

    def test_zero_guests(self, calculator, rooms_by_id):
        night = calculator.price_night(
            rooms_by_id["R1"], D, 0, [], StayServices(parking_spots=1)
        )

        assert night.accommodation == 0
        assert night.services.tourism_tax == 0
        assert night.total == Decimal("7.00")

    def test_per_room_pricing(self, calculator, rooms_by_id):
        room = rooms_by_id["401"]

        with_child = calculator.price_night(room, D, 1, [2], StayServices(parking_spots=3))
        empty = calculator.price_night(room, D, 0, [])

        assert with_child.accommodation == Decimal("450")
        assert with_child.child_discount == 0
        assert with_child.services.parking == 0
        assert with_child.total == Decimal("451.50")
        assert empty.accommodation == 0

    def test_parking_above_included_spots(self, calculator, rooms_by_id):
        night = calculator.price_night(rooms_by_id["401"], D, 2, [], StayServices(parking_spots=4))

        assert night.services.parking == Decimal("7.00")

    def test_pets_and_towels(self, calculator, rooms_by_id):
        night = calculator.price_night(
            rooms_by_id["R2"], C, 2, [], StayServices(has_pets=True, pet_count=2, towel_rentals=3)
        )

        assert night.services.pets == Decimal("20.00")
        assert night.services.towels == Decimal("15.00")
        assert night.services.vatable == Decimal("35.00")
        assert night.total == Decimal("138") + Decimal("35.00") + Decimal("3.00")

    def test_vat_included_is_extracted(self, calculator, rooms_by_id):
        night = calculator.price_night(rooms_by_id["R2"], D, 2, [], StayServices(parking_spots=1))

        assert night.vat_included
        assert night.vat_accommodation == Decimal("180") * Decimal("0.13") / Decimal("1.13")
        assert night.vat_services == Decimal("7.00") * Decimal("0.25") / Decimal("1.25")
        assert night.total == Decimal("190.00")

    def test_vat_added_on_top(self, tariff, rooms_by_id):
        calculator = NightlyPricingCalculator(tariff.model_copy(update={"vat_included": False}))

        night = calculator.price_night(rooms_by_id["R2"], D, 2, [], StayServices(parking_spots=1))

        assert night.vat_accommodation == Decimal("23.40")
        assert night.vat_services == Decimal("1.75")
        # Туристический налог не облагается НДС
        assert night.total == Decimal("215.15")

    def test_invalid_occupancy_is_a_warning(self, calculator, rooms_by_id):
        night = calculator.price_night(rooms_by_id["R2"], D, 3, [])

        assert [w.code for w in night.warnings] == [PricingWarningCode.INVALID_OCCUPANCY]
        assert night.accommodation == Decimal("270")

    def test_pricing_tier(self, tariff, rooms_by_id):
        agency = PricingTier(id="agency", name="Агентский", multipliers={D: Decimal("0.9")})
        calculator = NightlyPricingCalculator(
            tariff.model_copy(update={"pricing_tiers": [agency]})
        )

        night = calculator.price_night(rooms_by_id["R2"], D, 2, [], tier_id="agency")
        shoulder = calculator.price_night(rooms_by_id["R2"], B, 2, [], tier_id="agency")

        assert night.accommodation == Decimal("162.0")
        assert shoulder.accommodation == Decimal("114")
        with pytest.raises(PricingTierNotFound) as exc_info:
            calculator.price_night(rooms_by_id["R2"], D, 2, [], tier_id="unknown")
        assert exc_info.value.tier_id == "unknown"
        assert isinstance(exc_info.value, DomainException)

    def test_period_not_configured(self, tariff):
        partial = tariff.model_copy(update={"periods": [tariff.period(D)]})

        with pytest.raises(SeasonalPeriodNotConfigured) as exc_info:
            partial.period(B)
        assert exc_info.value.tag == B
        assert isinstance(exc_info.value, TariffConfigurationError)


class TestDayByDayAggregator:
    """Тесты для посуточного расчета проживания."""

    def test_scenario_three_nights(self, aggregator, rooms_by_id):
        """2 взрослых и ребенок 8 лет, парковка каждую ночь, 20-23 июля."""
        # Действие
        summary = aggregator.aggregate(
            rooms_by_id["R1"],
            july(20),
            july(23),
            GuestList(adults=2, children=[GuestChild(age=8)]),
            StayServices(parking_spots=1),
        )

        # Проверка
        assert summary.total_nights == 3
        assert [n.period for n in summary.nights] == [D, D, D]
        assert len({n.total for n in summary.nights}) == 1
        assert summary.nights[0].total == Decimal("262")
        assert summary.total_accommodation.amount == Decimal("756.00")
        assert summary.total_services.amount == Decimal("30.00")
        assert summary.total_tourism_tax.amount == Decimal("9.00")
        assert summary.grand_total.amount == round_currency(
            sum(n.total for n in summary.nights)
        )
        assert summary.grand_total.amount == Decimal("786.00")
        assert summary.grand_total.currency == "EUR"
        assert summary.warnings == []

    def test_rounding_happens_once(self, tariff, rooms_by_id):
        """Сумма за проживание не накапливает ошибку округления по ночам."""
        corporate = PricingTier(id="corp", name="Корпоративный", multipliers={D: Decimal("0.9333")})
        tariff = tariff.model_copy(update={"pricing_tiers": [corporate]})
        aggregator = DayByDayAggregator(
            SeasonalPeriodResolver(tariff.periods), NightlyPricingCalculator(tariff)
        )

        summary = aggregator.aggregate(
            rooms_by_id["R2"], july(20), july(23), GuestList(adults=2), tier_id="corp"
        )

        exact = sum(n.accommodation for n in summary.nights)
        per_night_rounded = sum(round_currency(n.accommodation) for n in summary.nights)
        assert exact == Decimal("503.9820")
        assert summary.total_accommodation.amount == Decimal("503.98")
        assert per_night_rounded == Decimal("503.97")

    def test_daily_override(self, aggregator, rooms_by_id):
        # Подготовка
        override = DailyDetail(stay_date=july(21), adults_present=1, notes="Второй гость приехал позже")

        # Действие
        summary = aggregator.aggregate(
            rooms_by_id["R1"],
            july(20),
            july(23),
            GuestList(adults=2, children=[GuestChild(age=8)]),
            StayServices(parking_spots=1),
            [override],
        )

        # Проверка
        assert [n.is_override for n in summary.nights] == [False, True, False]
        assert summary.nights[1].total == Decimal("91.50")
        assert summary.grand_total.amount == Decimal("615.50")

    def test_override_outside_stay_is_ignored(self, aggregator, rooms_by_id):
        outside = DailyDetail(stay_date=july(23), adults_present=0)

        summary = aggregator.aggregate(
            rooms_by_id["R2"], july(20), july(23), GuestList(adults=2), daily_overrides=[outside]
        )

        assert not any(n.is_override for n in summary.nights)
        assert [w.code for w in summary.warnings] == [PricingWarningCode.OVERRIDE_OUTSIDE_STAY]

    def test_stay_level_occupancy_warning(self, aggregator, rooms_by_id):
        summary = aggregator.aggregate(rooms_by_id["R2"], july(20), july(23), GuestList(adults=3))

        assert [w.code for w in summary.warnings] == [PricingWarningCode.INVALID_OCCUPANCY]
        assert all(n.warnings == [] for n in summary.nights)

    def test_stay_across_seasons(self, aggregator, rooms_by_id):
        summary = aggregator.aggregate(rooms_by_id["R2"], july(8), july(12), GuestList(adults=2))

        assert [n.period for n in summary.nights] == [C, C, D, D]
        assert summary.total_accommodation.amount == Decimal("636.00")

    def test_short_stay_supplement(self, tariff, rooms_by_id):
        tariff = tariff.model_copy(update={"short_stay_supplement": Decimal("0.2")})
        aggregator = DayByDayAggregator(
            SeasonalPeriodResolver(tariff.periods), NightlyPricingCalculator(tariff)
        )

        short = aggregator.aggregate(rooms_by_id["R2"], july(20), july(22), GuestList(adults=2))
        regular = aggregator.aggregate(rooms_by_id["R2"], july(20), july(23), GuestList(adults=2))

        assert short.short_stay_supplement.amount == Decimal("72.00")
        assert short.total_accommodation.amount == Decimal("360.00")
        assert short.grand_total.amount == Decimal("438.00")
        assert regular.short_stay_supplement.amount == 0

    def test_vat_added_to_grand_total(self, tariff, rooms_by_id):
        tariff = tariff.model_copy(update={"vat_included": False})
        aggregator = DayByDayAggregator(
            SeasonalPeriodResolver(tariff.periods), NightlyPricingCalculator(tariff)
        )

        summary = aggregator.aggregate(rooms_by_id["R2"], july(20), july(21), GuestList(adults=2))

        assert summary.total_vat.amount == Decimal("23.40")
        assert summary.grand_total.amount == Decimal("206.40")

    def test_totals_in_tariff_currency(self, tariff, rooms_by_id):
        tariff = tariff.model_copy(
            update={"currency": "USD", "short_stay_supplement": Decimal("0.2")}
        )
        aggregator = DayByDayAggregator(
            SeasonalPeriodResolver(tariff.periods), NightlyPricingCalculator(tariff)
        )

        summary = aggregator.aggregate(rooms_by_id["R2"], july(20), july(21), GuestList(adults=2))

        assert {
            summary.total_accommodation.currency,
            summary.short_stay_supplement.currency,
            summary.grand_total.currency,
        } == {"USD"}
        # 180 + надбавка 36 + налог 3.00
        assert summary.grand_total.amount == Decimal("219.00")

    def test_invalid_range(self, aggregator, rooms_by_id):
        with pytest.raises(InvalidDateRange):
            aggregator.aggregate(rooms_by_id["R2"], july(20), july(20), GuestList(adults=2))

    def test_missing_period_aborts(self, tariff, calculator, rooms_by_id):
        aggregator = DayByDayAggregator(SeasonalPeriodResolver([tariff.period(D)]), calculator)

        with pytest.raises(NoMatchingSeasonalPeriod):
            aggregator.aggregate(rooms_by_id["R2"], date(2026, 8, 30), date(2026, 9, 2), GuestList(adults=2))
