"""
Доменная модель контекста доступности номеров.

Содержит доменные сервисы проверки пересечений бронирований,
валидации выделения на таймлайне, переноса бронирований
и расчета загрузки отеля. Все сервисы работают со снимком данных,
переданным вызывающей стороной, и не хранят состояния.
"""

from bisect import bisect_left
from collections import defaultdict
from datetime import date, timedelta
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Dict, Iterable, List, Optional, Sequence, Union

from pydantic import BaseModel, ConfigDict, Field

from ..shared_kernel import (
    DateRange,
    EntityId,
    Reservation,
    ReservationNotFound,
    Room,
    RoomNotFound,
)


class ConflictLevel(str, Enum):
    """Уровень конфликта на конкретную дату."""

    NONE = "none"  # Номер свободен
    PARTIAL = "partial"  # Одно бронирование занимает номер
    FULL = "full"  # Несколько бронирований: двойное бронирование в данных


class ConflictResult(BaseModel):
    """Состояние номера на одну ночь."""

    model_config = ConfigDict(frozen=True)

    room_id: EntityId
    day: date
    is_available: bool
    reservation: Optional[Reservation] = None  # Блокирующее бронирование
    reservations: List[Reservation] = Field(default_factory=list)
    conflict_level: ConflictLevel = ConflictLevel.NONE

    @property
    def is_integrity_alert(self) -> bool:
        """Двойное бронирование, уже существующее в данных."""
        return self.conflict_level is ConflictLevel.FULL


class WarningCode(str, Enum):
    """Коды предупреждений бизнес-правил."""

    MINIMUM_STAY = "minimum_stay"
    CLEANING_GAP = "cleaning_gap"


class BookingWarning(BaseModel):
    """Мягкое предупреждение, не влияющее на допустимость диапазона."""

    model_config = ConfigDict(frozen=True)

    code: WarningCode
    message: str
    reservation_id: Optional[EntityId] = None


class RangeValidation(BaseModel):
    """Результат проверки диапазона дат для номера."""

    model_config = ConfigDict(frozen=True)

    room_id: EntityId
    check_in: date
    check_out: date
    is_valid: bool
    conflicts: List[Reservation] = Field(default_factory=list)
    warnings: List[BookingWarning] = Field(default_factory=list)

    @property
    def nights(self) -> int:
        return (self.check_out - self.check_in).days


class DragCreateValidation(RangeValidation):
    """Результат проверки выделения на таймлайне."""

    start_day: int
    end_day: int


class MoveValidation(RangeValidation):
    """Результат проверки переноса бронирования."""

    reservation_id: EntityId
    source_room_id: EntityId


class OccupancyStats(BaseModel):
    """Статистика загрузки за окно дат."""

    model_config = ConfigDict(frozen=True)

    start_date: date
    days: int
    total_rooms: int
    occupied_room_ids: List[EntityId]
    available_room_ids: List[EntityId]
    occupancy_rate: int  # Целый процент

    @property
    def occupied_rooms(self) -> int:
        return len(self.occupied_room_ids)


class RoomReservationIndex:
    """
    Индекс бронирований по номерам, отсортированный по дате заезда.

    Для каждого номера хранит бронирования по возрастанию даты заезда
    и префиксный максимум дат выезда, что позволяет найти кандидатов
    на пересечение без полного перебора снимка.
    """

    def __init__(self, reservations: Iterable[Reservation]):
        grouped: Dict[EntityId, List[Reservation]] = defaultdict(list)
        self._by_id: Dict[EntityId, Reservation] = {}
        for reservation in reservations:
            self._by_id[reservation.id] = reservation
            if reservation.status.occupies_room:
                grouped[reservation.room_id].append(reservation)

        self._items: Dict[EntityId, List[Reservation]] = {}
        self._starts: Dict[EntityId, List[date]] = {}
        self._max_ends: Dict[EntityId, List[date]] = {}

        for room_id, items in grouped.items():
            items.sort(key=lambda r: (r.check_in, r.id))
            max_ends: List[date] = []
            running: Optional[date] = None
            for item in items:
                running = item.check_out if running is None else max(running, item.check_out)
                max_ends.append(running)
            self._items[room_id] = items
            self._starts[room_id] = [item.check_in for item in items]
            self._max_ends[room_id] = max_ends

    def __len__(self) -> int:
        return len(self._by_id)

    def get(self, reservation_id: EntityId) -> Optional[Reservation]:
        return self._by_id.get(reservation_id)

    def candidates(
        self, room_id: EntityId, check_in: date, check_out: date
    ) -> List[Reservation]:
        """Возвращает бронирования номера, которые могут пересекать диапазон."""
        items = self._items.get(room_id)
        if not items:
            return []

        # Все бронирования правее upper начинаются не раньше check_out
        upper = bisect_left(self._starts[room_id], check_out)
        max_ends = self._max_ends[room_id]

        result = []
        for position in range(upper - 1, -1, -1):
            if max_ends[position] <= check_in:
                break
            result.append(items[position])
        result.reverse()
        return result


ReservationSource = Union[Sequence[Reservation], RoomReservationIndex]


def _sort_key(reservation: Reservation):
    return (reservation.check_in, reservation.id)


class ConflictDetector:
    """
    Доменный сервис проверки занятости номеров.

    find_overlaps - единственный источник истины для проверки пересечения
    интервалов; все валидаторы делегируют ему.
    """

    def find_overlaps(
        self,
        room_id: EntityId,
        check_in: date,
        check_out: date,
        reservations: ReservationSource,
        exclude_reservation_id: Optional[EntityId] = None,
    ) -> List[Reservation]:
        """Находит бронирования номера, пересекающие [check_in, check_out)."""
        period = DateRange.of(check_in, check_out)

        if isinstance(reservations, RoomReservationIndex):
            candidates = reservations.candidates(room_id, check_in, check_out)
        else:
            candidates = [
                r
                for r in reservations
                if r.room_id == room_id and r.status.occupies_room
            ]

        overlaps = [
            r
            for r in candidates
            if r.id != exclude_reservation_id
            and r.period.overlaps(period.check_in, period.check_out)
        ]
        return sorted(overlaps, key=_sort_key)

    def check_availability(
        self,
        room_id: EntityId,
        check_in: date,
        check_out: date,
        reservations: ReservationSource,
        exclude_reservation_id: Optional[EntityId] = None,
    ) -> List[ConflictResult]:
        """Возвращает состояние номера на каждую ночь диапазона."""
        period = DateRange.of(check_in, check_out)
        overlapping = self.find_overlaps(
            room_id, check_in, check_out, reservations, exclude_reservation_id
        )

        results = []
        for day in period.days():
            day_reservations = [r for r in overlapping if r.period.contains(day)]
            if len(day_reservations) > 1:
                level = ConflictLevel.FULL
            elif day_reservations:
                level = ConflictLevel.PARTIAL
            else:
                level = ConflictLevel.NONE

            results.append(
                ConflictResult(
                    room_id=room_id,
                    day=day,
                    is_available=not day_reservations,
                    reservation=day_reservations[0] if day_reservations else None,
                    reservations=day_reservations,
                    conflict_level=level,
                )
            )
        return results

    def is_available(
        self,
        room_id: EntityId,
        check_in: date,
        check_out: date,
        reservations: ReservationSource,
        exclude_reservation_id: Optional[EntityId] = None,
    ) -> bool:
        return not self.find_overlaps(
            room_id, check_in, check_out, reservations, exclude_reservation_id
        )


class BookingRulesChecker:
    """Проверяет правила номера: минимальный срок и дни на уборку."""

    def __init__(self, detector: Optional[ConflictDetector] = None):
        self._detector = detector or ConflictDetector()

    def check(
        self,
        room: Room,
        check_in: date,
        check_out: date,
        reservations: ReservationSource,
        exclude_reservation_id: Optional[EntityId] = None,
    ) -> List[BookingWarning]:
        warnings: List[BookingWarning] = []
        nights = (check_out - check_in).days

        if nights < room.minimum_nights:
            warnings.append(
                BookingWarning(
                    code=WarningCode.MINIMUM_STAY,
                    message=(
                        f"Номер {room.number} требует минимум {room.minimum_nights} "
                        f"ночей, выбрано {nights}"
                    ),
                )
            )

        gap = room.cleaning_days_between
        if gap > 0:
            # Соседи, попадающие в окно уборки, пересекают расширенный диапазон
            neighbours = self._detector.find_overlaps(
                room.id,
                check_in - timedelta(days=gap),
                check_out + timedelta(days=gap),
                reservations,
                exclude_reservation_id,
            )
            for neighbour in neighbours:
                if neighbour.period.overlaps(check_in, check_out):
                    continue
                warnings.append(
                    BookingWarning(
                        code=WarningCode.CLEANING_GAP,
                        message=(
                            f"Номер {room.number} требует {gap} дн. на уборку "
                            f"между бронированиями"
                        ),
                        reservation_id=neighbour.id,
                    )
                )

        return warnings


def _find_room(rooms: Iterable[Room], room_id: EntityId) -> Room:
    for room in rooms:
        if room.id == room_id:
            return room
    raise RoomNotFound(room_id)


class DragRangeNormalizer:
    """Преобразует выделение на таймлайне в проверенный диапазон дат."""

    def __init__(
        self,
        detector: Optional[ConflictDetector] = None,
        rooms: Optional[Sequence[Room]] = None,
        rules: Optional[BookingRulesChecker] = None,
    ):
        self._detector = detector or ConflictDetector()
        self._rooms = {room.id: room for room in rooms or []}
        self._rules = rules or BookingRulesChecker(self._detector)

    def validate_create(
        self,
        room_id: EntityId,
        start_offset: int,
        end_offset: int,
        timeline_origin: date,
        reservations: ReservationSource,
    ) -> DragCreateValidation:
        # Выделение может идти справа налево
        start_day = min(start_offset, end_offset)
        end_day = max(start_offset, end_offset)

        check_in = timeline_origin + timedelta(days=start_day)
        check_out = timeline_origin + timedelta(days=end_day + 1)

        conflicts = self._detector.find_overlaps(
            room_id, check_in, check_out, reservations
        )

        warnings: List[BookingWarning] = []
        room = self._rooms.get(room_id)
        if self._rooms and room is None:
            raise RoomNotFound(room_id)
        if room is not None:
            warnings = self._rules.check(room, check_in, check_out, reservations)

        return DragCreateValidation(
            room_id=room_id,
            check_in=check_in,
            check_out=check_out,
            start_day=start_day,
            end_day=end_day,
            is_valid=not conflicts,
            conflicts=conflicts,
            warnings=warnings,
        )


class RoomChangeValidator:
    """Проверяет перенос бронирования в другой номер или на другие даты."""

    def __init__(
        self,
        rooms: Sequence[Room],
        detector: Optional[ConflictDetector] = None,
        rules: Optional[BookingRulesChecker] = None,
    ):
        self._rooms = list(rooms)
        self._detector = detector or ConflictDetector()
        self._rules = rules or BookingRulesChecker(self._detector)

    def validate_move(
        self,
        reservation_id: EntityId,
        target_room_id: EntityId,
        new_check_in: date,
        new_check_out: date,
        reservations: ReservationSource,
    ) -> MoveValidation:
        DateRange.of(new_check_in, new_check_out)
        reservation = _find_reservation(reservations, reservation_id)

        _find_room(self._rooms, reservation.room_id)
        target_room = _find_room(self._rooms, target_room_id)

        # Бронирование не может конфликтовать само с собой
        conflicts = self._detector.find_overlaps(
            target_room_id,
            new_check_in,
            new_check_out,
            reservations,
            exclude_reservation_id=reservation_id,
        )
        warnings = self._rules.check(
            target_room,
            new_check_in,
            new_check_out,
            reservations,
            exclude_reservation_id=reservation_id,
        )

        return MoveValidation(
            reservation_id=reservation_id,
            source_room_id=reservation.room_id,
            room_id=target_room_id,
            check_in=new_check_in,
            check_out=new_check_out,
            is_valid=not conflicts,
            conflicts=conflicts,
            warnings=warnings,
        )


def _find_reservation(
    reservations: ReservationSource, reservation_id: EntityId
) -> Reservation:
    if isinstance(reservations, RoomReservationIndex):
        found = reservations.get(reservation_id)
        if found is None:
            raise ReservationNotFound(reservation_id)
        return found

    for reservation in reservations:
        if reservation.id == reservation_id:
            return reservation
    raise ReservationNotFound(reservation_id)


class AlternativeRoomFinder:
    """Подбирает свободные альтернативные номера при конфликте."""

    def __init__(self, detector: Optional[ConflictDetector] = None):
        self._detector = detector or ConflictDetector()

    def suggest(
        self,
        room_id: EntityId,
        check_in: date,
        check_out: date,
        reservations: ReservationSource,
        rooms: Sequence[Room],
        limit: int = 3,
    ) -> List[Room]:
        original = _find_room(rooms, room_id)

        alternatives = []
        for room in rooms:
            if room.id == original.id:
                continue
            # Тот же тип номера или не ниже по категории
            if room.type != original.type and room.is_premium < original.is_premium:
                continue
            if self._detector.is_available(room.id, check_in, check_out, reservations):
                alternatives.append(room)
            if len(alternatives) >= limit:
                break
        return alternatives


class OccupancyStatsCalculator:
    """Рассчитывает загрузку отеля за окно дат."""

    def __init__(self, detector: Optional[ConflictDetector] = None):
        self._detector = detector or ConflictDetector()

    def occupancy_stats(
        self,
        start_date: date,
        days: int,
        reservations: ReservationSource,
        all_rooms: Sequence[Room],
    ) -> OccupancyStats:
        end_date = start_date + timedelta(days=days)
        DateRange.of(start_date, end_date)

        occupied: List[EntityId] = []
        available: List[EntityId] = []
        for room in all_rooms:
            day_results = self._detector.check_availability(
                room.id, start_date, end_date, reservations
            )
            if any(not result.is_available for result in day_results):
                occupied.append(room.id)
            else:
                available.append(room.id)

        total_rooms = len(all_rooms)
        return OccupancyStats(
            start_date=start_date,
            days=days,
            total_rooms=total_rooms,
            occupied_room_ids=occupied,
            available_room_ids=available,
            occupancy_rate=occupancy_percent(len(occupied), total_rooms),
        )


def occupancy_percent(occupied_rooms: int, total_rooms: int) -> int:
    """Процент загрузки, округленный до целого (половина - вверх)."""
    if total_rooms == 0:
        return 0
    rate = Decimal(occupied_rooms * 100) / Decimal(total_rooms)
    return int(rate.quantize(Decimal("1"), rounding=ROUND_HALF_UP))
