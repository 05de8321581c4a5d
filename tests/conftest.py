"""
Общие фикстуры для тестов.
"""
from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Tuple

import pytest

from frontdesk.availability.infrastructure import InMemoryReservationSnapshot, InMemoryRoomCatalog
from frontdesk.pricing.domain import SeasonalPeriodDefinition, SeasonalSubRange, TariffConfig
from frontdesk.shared_kernel import (
    PricingMode,
    RegisteredGuest,
    Reservation,
    ReservationStatus,
    Room,
    RoomType,
    SeasonalPeriodTag,
    StayServices,
)


class RecordingLogger:
    """Логгер, запоминающий все записи."""

    def __init__(self):
        self.records: List[Tuple[str, str, Dict[str, Any]]] = []

    def info(self, message: str, **kwargs: Any) -> None:
        self.records.append(("info", message, kwargs))

    def error(self, message: str, **kwargs: Any) -> None:
        self.records.append(("error", message, kwargs))

    def warning(self, message: str, **kwargs: Any) -> None:
        self.records.append(("warning", message, kwargs))

    def debug(self, message: str, **kwargs: Any) -> None:
        self.records.append(("debug", message, kwargs))

    def at(self, level: str) -> List[Tuple[str, Dict[str, Any]]]:
        return [(message, context) for lvl, message, context in self.records if lvl == level]


def _rates(a: str, b: str, c: str, d: str) -> Dict[SeasonalPeriodTag, Decimal]:
    return {
        SeasonalPeriodTag.A: Decimal(a),
        SeasonalPeriodTag.B: Decimal(b),
        SeasonalPeriodTag.C: Decimal(c),
        SeasonalPeriodTag.D: Decimal(d),
    }


def _windows(*pairs):
    return [SeasonalSubRange(start=start, end=end) for start, end in pairs]


@pytest.fixture
def tariff() -> TariffConfig:
    """Тариф 2026 года с туристическим налогом 1.50 в пик сезона."""
    return TariffConfig(
        year=2026,
        periods=[
            SeasonalPeriodDefinition(
                tag=SeasonalPeriodTag.A,
                name="Зима",
                sub_ranges=_windows(("01-04", "04-01"), ("10-25", "12-29")),
                tourism_tax_rate=Decimal("1.10"),
            ),
            SeasonalPeriodDefinition(
                tag=SeasonalPeriodTag.B,
                name="Межсезонье",
                sub_ranges=_windows(("04-02", "05-21"), ("09-27", "10-24"), ("12-30", "01-03")),
                tourism_tax_rate=Decimal("1.10"),
            ),
            SeasonalPeriodDefinition(
                tag=SeasonalPeriodTag.C,
                name="Начало лета",
                sub_ranges=_windows(("05-22", "07-09"), ("09-01", "09-26")),
                tourism_tax_rate=Decimal("1.50"),
            ),
            SeasonalPeriodDefinition(
                tag=SeasonalPeriodTag.D,
                name="Пик",
                sub_ranges=_windows(("07-10", "08-31")),
                tourism_tax_rate=Decimal("1.50"),
            ),
        ],
    )


@pytest.fixture
def rooms() -> List[Room]:
    """Небольшой каталог: четыре обычных номера и апартамент на крыше."""
    standard = _rates("47", "57", "69", "90")
    return [
        Room(id="R1", number="101", floor=1, type=RoomType.FAMILY, max_occupancy=4,
             seasonal_rates=standard),
        Room(id="R2", number="102", floor=1, type=RoomType.DOUBLE, max_occupancy=2,
             seasonal_rates=standard),
        Room(id="R3", number="103", floor=1, type=RoomType.TRIPLE, max_occupancy=3,
             seasonal_rates=standard),
        Room(id="R4", number="104", floor=1, type=RoomType.SINGLE, max_occupancy=1,
             seasonal_rates=_rates("70", "88", "110", "144")),
        Room(
            id="401",
            number="401",
            floor=4,
            type=RoomType.ROOFTOP_APARTMENT,
            max_occupancy=2,
            seasonal_rates=_rates("250", "300", "360", "450"),
            is_premium=True,
            pricing_mode=PricingMode.PER_ROOM,
            included_parking_spots=3,
            minimum_nights=4,
            cleaning_days_between=1,
        ),
    ]


@pytest.fixture
def rooms_by_id(rooms) -> Dict[str, Room]:
    return {room.id: room for room in rooms}


@pytest.fixture
def room_catalog(rooms) -> InMemoryRoomCatalog:
    return InMemoryRoomCatalog(rooms)


@pytest.fixture
def make_reservation():
    """Фабрика бронирований для снимка."""

    def factory(
        room_id: str,
        check_in: date,
        check_out: date,
        status: ReservationStatus = ReservationStatus.CONFIRMED,
        reservation_id: str = None,
        adults: int = 2,
        children=(),
        services: StayServices = None,
    ) -> Reservation:
        data = dict(
            room_id=room_id,
            guest=RegisteredGuest(guest_id="guest-1"),
            check_in=check_in,
            check_out=check_out,
            status=status,
            adults=adults,
            children=list(children),
            services=services or StayServices(),
        )
        if reservation_id is not None:
            data["id"] = reservation_id
        return Reservation(**data)

    return factory


@pytest.fixture
def snapshot() -> InMemoryReservationSnapshot:
    return InMemoryReservationSnapshot()


@pytest.fixture
def recording_logger() -> RecordingLogger:
    return RecordingLogger()
