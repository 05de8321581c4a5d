"""
Интерфейсы (порты) для контекста ценообразования.
"""

from __future__ import annotations

from typing import Protocol

from ..shared_kernel import ILogger, IReservationReadModel, IRoomCatalog
from .domain import TariffConfig


class ITariffRepository(Protocol):
    """Источник тарифной конфигурации."""

    def load(self) -> TariffConfig: ...


__all__ = [
    "ILogger",
    "IRoomCatalog",
    "IReservationReadModel",
    "ITariffRepository",
]
