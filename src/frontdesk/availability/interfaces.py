"""
Интерфейсы (порты) для контекста доступности.

Контекст только читает данные: номера из каталога и снимок
бронирований из модели чтения. Запись бронирований и обработка
двойного бронирования при записи лежат на адаптерах хранилища.
"""

from ..shared_kernel import ILogger, IReservationReadModel, IRoomCatalog

__all__ = [
    "ILogger",
    "IRoomCatalog",
    "IReservationReadModel",
]
