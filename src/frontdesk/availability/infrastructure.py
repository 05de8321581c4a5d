"""
Инфраструктурный слой контекста доступности.

Содержит реализации каталога номеров и модели чтения бронирований
в памяти. Реальные адаптеры хранилища реализуют те же порты.
"""
from decimal import Decimal
from typing import Dict, Iterable, List, Optional

from ..shared_kernel import (
    EntityId,
    IReservationReadModel,
    IRoomCatalog,
    PricingMode,
    Reservation,
    ReservationNotFound,
    Room,
    RoomNotFound,
    RoomType,
    SeasonalPeriodTag,
)

# Цены 2026 года по типам номеров (за человека, НДС включен)
ROOM_RATES_2026: Dict[RoomType, Dict[str, str]] = {
    RoomType.BIG_DOUBLE: {"A": "56", "B": "70", "C": "87", "D": "106"},
    RoomType.BIG_SINGLE: {"A": "83", "B": "108", "C": "139", "D": "169"},
    RoomType.DOUBLE: {"A": "47", "B": "57", "C": "69", "D": "90"},
    RoomType.TRIPLE: {"A": "47", "B": "57", "C": "69", "D": "90"},
    RoomType.SINGLE: {"A": "70", "B": "88", "C": "110", "D": "144"},
    RoomType.FAMILY: {"A": "47", "B": "57", "C": "69", "D": "90"},
    RoomType.APARTMENT: {"A": "47", "B": "57", "C": "69", "D": "90"},
    RoomType.ROOFTOP_APARTMENT: {"A": "250", "B": "300", "C": "360", "D": "450"},
}

MAX_OCCUPANCY: Dict[RoomType, int] = {
    RoomType.BIG_DOUBLE: 2,
    RoomType.BIG_SINGLE: 1,
    RoomType.DOUBLE: 2,
    RoomType.TRIPLE: 3,
    RoomType.SINGLE: 1,
    RoomType.FAMILY: 4,
    RoomType.APARTMENT: 3,
    RoomType.ROOFTOP_APARTMENT: 2,
}

# Планировка этажа: 18 номеров
FLOOR_PATTERN: List[RoomType] = (
    [RoomType.FAMILY]
    + [RoomType.DOUBLE] * 4
    + [RoomType.TRIPLE] * 2
    + [RoomType.DOUBLE] * 7
    + [RoomType.TRIPLE] * 2
    + [RoomType.DOUBLE, RoomType.SINGLE]
)


def seasonal_rates(room_type: RoomType) -> Dict[SeasonalPeriodTag, Decimal]:
    return {
        SeasonalPeriodTag(tag): Decimal(rate)
        for tag, rate in ROOM_RATES_2026[room_type].items()
    }


def build_hotel_rooms() -> List[Room]:
    """Строит каталог номеров отеля: три этажа по 18 номеров и апартамент 401."""
    rooms = []
    for floor in (1, 2, 3):
        for position, room_type in enumerate(FLOOR_PATTERN, start=1):
            number = f"{floor}{position:02d}"
            rooms.append(
                Room(
                    id=number,
                    number=number,
                    floor=floor,
                    type=room_type,
                    max_occupancy=MAX_OCCUPANCY[room_type],
                    seasonal_rates=seasonal_rates(room_type),
                )
            )

    rooms.append(
        Room(
            id="401",
            number="401",
            floor=4,
            type=RoomType.ROOFTOP_APARTMENT,
            max_occupancy=MAX_OCCUPANCY[RoomType.ROOFTOP_APARTMENT],
            seasonal_rates=seasonal_rates(RoomType.ROOFTOP_APARTMENT),
            is_premium=True,
            pricing_mode=PricingMode.PER_ROOM,
            included_parking_spots=3,
            minimum_nights=4,
            cleaning_days_between=1,
        )
    )
    return rooms


class InMemoryRoomCatalog(IRoomCatalog):
    """Реализация каталога номеров в памяти."""

    def __init__(self, rooms: Optional[Iterable[Room]] = None):
        self._rooms: Dict[EntityId, Room] = {}
        for room in rooms if rooms is not None else build_hotel_rooms():
            self._rooms[room.id] = room

    def get_by_id(self, room_id: EntityId) -> Room:
        if room_id not in self._rooms:
            raise RoomNotFound(room_id)
        return self._rooms[room_id]

    def list_rooms(self) -> List[Room]:
        return list(self._rooms.values())

    def find_by_floor(self, floor: int) -> List[Room]:
        return [room for room in self._rooms.values() if room.floor == floor]


class InMemoryReservationSnapshot(IReservationReadModel):
    """
    Модель чтения бронирований в памяти.

    Вызывающая сторона обновляет снимок по уведомлению об изменениях;
    движок только читает его.
    """

    def __init__(self, reservations: Optional[Iterable[Reservation]] = None):
        self._reservations: Dict[EntityId, Reservation] = {}
        self.refresh(reservations or [])

    def refresh(self, reservations: Iterable[Reservation]) -> None:
        """Полностью заменяет снимок."""
        self._reservations = {r.id: r for r in reservations}

    def upsert(self, reservation: Reservation) -> None:
        self._reservations[reservation.id] = reservation

    def remove(self, reservation_id: EntityId) -> None:
        if reservation_id not in self._reservations:
            raise ReservationNotFound(reservation_id)
        del self._reservations[reservation_id]

    def snapshot(self) -> List[Reservation]:
        return list(self._reservations.values())

    def get_by_id(self, reservation_id: EntityId) -> Reservation:
        if reservation_id not in self._reservations:
            raise ReservationNotFound(reservation_id)
        return self._reservations[reservation_id]
