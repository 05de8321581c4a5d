"""
Основные доменные типы и утилиты общего ядра.
"""

from datetime import date, datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Annotated, Dict, Iterator, List, Literal, Optional, Union
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, model_validator

# Общие типы идентификаторов
EntityId = str

CENT = Decimal("0.01")


def generate_id() -> EntityId:
    """Генерирует новый идентификатор."""
    return str(uuid4())


def round_currency(amount: Decimal) -> Decimal:
    """Округляет сумму до точности валюты (коммерческое округление)."""
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


class Money(BaseModel):
    """Денежная сумма с валютой."""

    model_config = ConfigDict(frozen=True)

    amount: Decimal = Field(..., ge=0, description="Сумма денег")
    currency: str = Field(
        default="EUR", max_length=3, description="Код валюты (ISO 4217)"
    )

    def __add__(self, other: "Money") -> "Money":
        if not isinstance(other, Money):
            raise TypeError("Можно складывать только объекты Money")
        if self.currency != other.currency:
            raise ValueError("Нельзя складывать разные валюты")
        return Money(amount=self.amount + other.amount, currency=self.currency)

    def rounded(self) -> "Money":
        """Возвращает сумму, округленную до центов."""
        return Money(amount=round_currency(self.amount), currency=self.currency)


class DateRange(BaseModel):
    """
    Полуоткрытый диапазон дат [check_in, check_out).

    Дата выезда не входит в диапазон, поэтому выезд и заезд
    в один и тот же день не пересекаются.
    """

    model_config = ConfigDict(frozen=True)

    check_in: date
    check_out: date

    @model_validator(mode="after")
    def check_out_after_check_in(self) -> "DateRange":
        if self.check_out <= self.check_in:
            raise ValueError("Дата выезда должна быть позже даты заезда")
        return self

    @classmethod
    def of(cls, check_in: date, check_out: date) -> "DateRange":
        """Создает диапазон, выбрасывая InvalidDateRange вместо ValidationError."""
        if check_out <= check_in:
            raise InvalidDateRange(check_in, check_out)
        return cls(check_in=check_in, check_out=check_out)

    @property
    def nights(self) -> int:
        """Количество ночей в диапазоне."""
        return (self.check_out - self.check_in).days

    def days(self) -> Iterator[date]:
        """Перебирает ночи диапазона (без даты выезда)."""
        current = self.check_in
        while current < self.check_out:
            yield current
            current += timedelta(days=1)

    def contains(self, day: date) -> bool:
        return self.check_in <= day < self.check_out

    def overlaps(self, check_in: date, check_out: date) -> bool:
        """Проверяет пересечение с полуоткрытым диапазоном [check_in, check_out)."""
        return self.check_in < check_out and self.check_out > check_in


# Общие перечисления
class RoomType(str, Enum):
    """Типы номеров в отеле."""

    BIG_DOUBLE = "big-double"
    BIG_SINGLE = "big-single"
    DOUBLE = "double"
    TRIPLE = "triple"
    SINGLE = "single"
    FAMILY = "family"
    APARTMENT = "apartment"
    ROOFTOP_APARTMENT = "rooftop-apartment"


class SeasonalPeriodTag(str, Enum):
    """Тарифные сезоны."""

    A = "A"  # Зима / ранняя весна
    B = "B"  # Весна / поздняя осень
    C = "C"  # Начало лета / начало осени
    D = "D"  # Пик сезона


class PricingMode(str, Enum):
    """Способ тарификации номера."""

    PER_PERSON = "per_person"
    PER_ROOM = "per_room"


class ReservationStatus(str, Enum):
    """Статусы бронирования."""

    CONFIRMED = "confirmed"
    CHECKED_IN = "checked_in"
    CHECKED_OUT = "checked_out"
    ROOM_CLOSURE = "room_closure"  # Номер закрыт на обслуживание
    UNALLOCATED = "unallocated"
    INCOMPLETE_PAYMENT = "incomplete_payment"
    CANCELLED = "cancelled"

    @property
    def occupies_room(self) -> bool:
        """Занимает ли бронирование номер при проверке доступности."""
        return self is not ReservationStatus.CANCELLED


# Ссылка на гостя: зарегистрированный или временный
class RegisteredGuest(BaseModel):
    """Гость, зарегистрированный в системе."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["registered"] = "registered"
    guest_id: EntityId


class PlaceholderGuest(BaseModel):
    """Временный гость, еще не внесенный в картотеку."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["placeholder"] = "placeholder"
    local_ref: str


GuestRef = Annotated[
    Union[RegisteredGuest, PlaceholderGuest], Field(discriminator="kind")
]


# Возраст ребенка в полных годах
ChildAge = Annotated[int, Field(ge=0, le=17)]


class GuestChild(BaseModel):
    """Ребенок в составе гостей."""

    model_config = ConfigDict(frozen=True)

    age: ChildAge
    name: Optional[str] = None


class StayServices(BaseModel):
    """Услуги на уровне всего проживания."""

    model_config = ConfigDict(frozen=True)

    parking_spots: int = Field(0, ge=0)
    has_pets: bool = False
    pet_count: int = Field(0, ge=0)
    towel_rentals: int = Field(0, ge=0)


class Room(BaseModel):
    """Номер в отеле (справочные данные)."""

    model_config = ConfigDict(frozen=True)

    id: EntityId
    number: str  # Номер комнаты (например, "101", "401")
    floor: int
    type: RoomType
    max_occupancy: int = Field(..., gt=0)
    seasonal_rates: Dict[SeasonalPeriodTag, Decimal]
    is_premium: bool = False
    pricing_mode: PricingMode = PricingMode.PER_PERSON
    included_parking_spots: int = Field(0, ge=0)
    minimum_nights: int = Field(1, ge=1)
    cleaning_days_between: int = Field(0, ge=0)

    @model_validator(mode="after")
    def all_periods_priced(self) -> "Room":
        missing = [tag.value for tag in SeasonalPeriodTag if tag not in self.seasonal_rates]
        if missing:
            raise ValueError(f"Нет цены для сезонов: {', '.join(missing)}")
        return self

    def rate_for(self, period: SeasonalPeriodTag) -> Decimal:
        return self.seasonal_rates[period]


class Reservation(BaseModel):
    """Бронирование (снимок модели чтения)."""

    model_config = ConfigDict(frozen=True)

    id: EntityId = Field(default_factory=generate_id)
    room_id: EntityId
    guest: GuestRef
    check_in: date
    check_out: date
    adults: int = Field(1, ge=0)
    children: List[GuestChild] = Field(default_factory=list)
    status: ReservationStatus = ReservationStatus.CONFIRMED
    services: StayServices = Field(default_factory=StayServices)
    total_amount: Optional[Decimal] = None
    last_modified: datetime = Field(default_factory=datetime.now)

    @model_validator(mode="after")
    def check_out_after_check_in(self) -> "Reservation":
        if self.check_out <= self.check_in:
            raise ValueError("Дата выезда должна быть позже даты заезда")
        return self

    @property
    def period(self) -> DateRange:
        return DateRange(check_in=self.check_in, check_out=self.check_out)

    @property
    def child_ages(self) -> List[int]:
        return [child.age for child in self.children]

    def occupies(self, day: date) -> bool:
        """Занимает ли бронирование номер в указанную ночь."""
        return self.status.occupies_room and self.period.contains(day)


class DailyDetail(BaseModel):
    """
    Переопределение присутствия и услуг на конкретную дату проживания.

    Отсутствие записи на дату означает полное присутствие гостей
    и услуги по умолчанию для всего проживания.
    """

    model_config = ConfigDict(frozen=True)

    stay_date: date
    adults_present: int = Field(..., ge=0)
    children_present: List[ChildAge] = Field(default_factory=list)
    parking_spots: int = Field(0, ge=0)
    pets_present: bool = False
    towel_rentals: int = Field(0, ge=0)
    notes: Optional[str] = None


# Общие исключения
class DomainException(Exception):
    """Базовое исключение для доменных ошибок."""

    pass


class RoomNotFound(DomainException):
    """Номер отсутствует в каталоге."""

    def __init__(self, room_id: EntityId):
        self.room_id = room_id
        super().__init__(f"Номер {room_id} не найден")


class ReservationNotFound(DomainException):
    """Бронирование отсутствует в снимке."""

    def __init__(self, reservation_id: EntityId):
        self.reservation_id = reservation_id
        super().__init__(f"Бронирование {reservation_id} не найдено")


class NoMatchingSeasonalPeriod(DomainException):
    """Дата не попадает ни в один тарифный сезон (ошибка конфигурации)."""

    def __init__(self, day: date):
        self.day = day
        super().__init__(f"Для даты {day.isoformat()} не настроен тарифный сезон")


class InvalidDateRange(DomainException):
    """Дата выезда не позже даты заезда."""

    def __init__(self, check_in: date, check_out: date):
        self.check_in = check_in
        self.check_out = check_out
        super().__init__(
            f"Дата выезда {check_out.isoformat()} должна быть позже "
            f"даты заезда {check_in.isoformat()}"
        )


class TariffConfigurationError(DomainException):
    """Тарифная конфигурация не может быть загружена."""

    pass


class SeasonalPeriodNotConfigured(TariffConfigurationError):
    """В тарифе нет определения сезона."""

    def __init__(self, tag: "SeasonalPeriodTag"):
        self.tag = tag
        super().__init__(f"Сезон {tag.value} не настроен в тарифе")


class PricingTierNotFound(DomainException):
    """Тарифный план отсутствует в тарифе."""

    def __init__(self, tier_id: str):
        self.tier_id = tier_id
        super().__init__(f"Тарифный план {tier_id} не найден")


class ConcurrencyException(DomainException):
    """Исключение при конфликте версий."""

    pass


class ConflictOnCommit(ConcurrencyException):
    """
    Двойное бронирование обнаружено при записи.

    Выбрасывается слоем хранения; вызывающий код должен повторить
    проверку на свежем снимке.
    """

    def __init__(self, room_id: EntityId, check_in: date, check_out: date):
        self.room_id = room_id
        self.check_in = check_in
        self.check_out = check_out
        super().__init__(
            f"Номер {room_id} уже занят на период "
            f"{check_in.isoformat()} - {check_out.isoformat()}"
        )
