"""
Модуль контекста доступности номеров (Availability Context).

Отвечает за проверку занятости номеров на таймлайне ресепшена:
- Поиск пересечений бронирований и уровень конфликта по дням
- Проверку выделения диапазона и переноса бронирований
- Подбор альтернативных номеров и расчет загрузки
"""

from . import application, domain, infrastructure, interfaces

__all__ = [
    "domain",
    "application",
    "infrastructure",
    "interfaces",
]
