"""
Интерфейсы (порты) общего ядра.

Определяют контракты внешних источников данных, из которых
движок получает снимок номеров и бронирований.
"""

from __future__ import annotations

from typing import Any, List, Protocol

from .domain import EntityId, Reservation, Room


class ILogger(Protocol):
    """Интерфейс для логгера."""

    def info(self, message: str, **kwargs: Any) -> None: ...
    def error(self, message: str, **kwargs: Any) -> None: ...
    def warning(self, message: str, **kwargs: Any) -> None: ...
    def debug(self, message: str, **kwargs: Any) -> None: ...


class IRoomCatalog(Protocol):
    """Каталог номеров (справочные данные)."""

    def get_by_id(self, room_id: EntityId) -> Room: ...
    def list_rooms(self) -> List[Room]: ...


class IReservationReadModel(Protocol):
    """Модель чтения бронирований, отдающая снимок."""

    def snapshot(self) -> List[Reservation]: ...
    def get_by_id(self, reservation_id: EntityId) -> Reservation: ...
