"""
Модуль контекста ценообразования (Pricing Context).

Отвечает за расчет стоимости проживания:
- Определение тарифного сезона по дате
- Расчет стоимости одной ночи с налогами и услугами
- Посуточную агрегацию с итогами проживания
"""

from . import application, domain, infrastructure, interfaces

__all__ = [
    "domain",
    "application",
    "infrastructure",
    "interfaces",
]
