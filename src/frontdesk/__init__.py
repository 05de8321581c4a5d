"""
Движок ресепшена отеля: проверка занятости номеров на таймлайне
и сезонный расчет стоимости проживания.
"""

from . import availability, pricing, shared_kernel

__all__ = [
    "shared_kernel",
    "availability",
    "pricing",
]

__version__ = "0.1.0"
