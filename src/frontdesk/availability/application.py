"""
Прикладной слой контекста доступности.

Содержит сервис приложения таймлайна, который получает свежий снимок
бронирований при каждом вызове и делегирует проверки доменным сервисам.
Одиночные проверки идут линейным проходом по снимку, индекс по номерам
строится только для операций по многим номерам.
"""

from datetime import date
from typing import Annotated, List, Literal, Optional, Sequence, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ..shared_kernel import (
    DomainException,
    EntityId,
    InvalidDateRange,
    LoggingLogger,
    Reservation,
    Room,
)
from . import interfaces as ports
from .domain import (
    AlternativeRoomFinder,
    BookingRulesChecker,
    ConflictDetector,
    ConflictResult,
    DragCreateValidation,
    DragRangeNormalizer,
    MoveValidation,
    OccupancyStats,
    OccupancyStatsCalculator,
    RoomChangeValidator,
    RoomReservationIndex,
)

# DTO для входящих данных


class DragCreateRequest(BaseModel):
    """Запрос на проверку выделения на таймлайне."""

    room_id: EntityId
    start_offset: int
    end_offset: int
    timeline_origin: date


class MoveReservationRequest(BaseModel):
    """Запрос на проверку переноса бронирования."""

    reservation_id: EntityId
    target_room_id: EntityId
    new_check_in: date
    new_check_out: date


class CreateOperation(BaseModel):
    """Операция пакета: создание бронирования на даты."""

    model_config = ConfigDict(frozen=True)

    type: Literal["create"] = "create"
    room_id: EntityId
    check_in: date
    check_out: date


class MoveOperation(BaseModel):
    """Операция пакета: перенос бронирования."""

    model_config = ConfigDict(frozen=True)

    type: Literal["move"] = "move"
    reservation_id: EntityId
    target_room_id: EntityId
    new_check_in: date
    new_check_out: date


BatchOperation = Annotated[Union[CreateOperation, MoveOperation], Field(discriminator="type")]


class BatchRequest(BaseModel):
    """Пакет операций для проверки на одном снимке."""

    operations: List[BatchOperation] = Field(default_factory=list)


# DTO для исходящих данных


class BatchItemResult(BaseModel):
    """Результат проверки одной операции пакета."""

    position: int
    operation: BatchOperation
    validation: Optional[Union[DragCreateValidation, MoveValidation]] = None
    error: Optional[str] = None

    @model_validator(mode="after")
    def validation_or_error(self) -> "BatchItemResult":
        if (self.validation is None) == (self.error is None):
            raise ValueError("Должен быть указан либо результат проверки, либо ошибка")
        return self

    @property
    def is_valid(self) -> bool:
        return self.validation is not None and self.validation.is_valid


# Сервисы приложения


class TimelineApplicationService:
    """Сервис приложения для проверок на таймлайне ресепшена."""

    def __init__(
        self,
        room_catalog: ports.IRoomCatalog,
        read_model: ports.IReservationReadModel,
        logger: Optional[ports.ILogger] = None,
        default_timeline_days: int = 14,
    ):
        """Инициализирует сервис."""
        self._rooms = room_catalog
        self._read_model = read_model
        self._logger = logger or LoggingLogger(__name__)
        self._default_timeline_days = default_timeline_days
        self._detector = ConflictDetector()
        self._rules = BookingRulesChecker(self._detector)

    def _snapshot(self) -> List[Reservation]:
        return list(self._read_model.snapshot())

    def _index(self) -> RoomReservationIndex:
        return RoomReservationIndex(self._read_model.snapshot())

    def _catalog(self) -> List[Room]:
        return self._rooms.list_rooms()

    def check_availability(
        self, room_id: EntityId, check_in: date, check_out: date
    ) -> List[ConflictResult]:
        """Возвращает состояние номера на каждую ночь диапазона."""
        try:
            self._rooms.get_by_id(room_id)
            results = self._detector.check_availability(
                room_id, check_in, check_out, self._snapshot()
            )
        except DomainException as e:
            self._logger.error(
                f"Ошибка при проверке доступности: {e}",
                operation="check_availability",
                room_id=room_id,
            )
            raise

        alerts = [r.day.isoformat() for r in results if r.is_integrity_alert]
        if alerts:
            self._logger.warning(
                "Обнаружено двойное бронирование в данных",
                room_id=room_id,
                days=", ".join(alerts),
            )
        return results

    def validate_create(self, request: DragCreateRequest) -> DragCreateValidation:
        """Проверяет выделение диапазона на таймлайне."""
        try:
            normalizer = DragRangeNormalizer(self._detector, self._catalog(), self._rules)
            result = normalizer.validate_create(
                request.room_id,
                request.start_offset,
                request.end_offset,
                request.timeline_origin,
                self._snapshot(),
            )
        except DomainException as e:
            self._logger.error(
                f"Ошибка при проверке выделения: {e}",
                operation="validate_create",
                room_id=request.room_id,
            )
            raise

        self._logger.debug(
            "Проверено выделение на таймлайне",
            room_id=result.room_id,
            check_in=result.check_in,
            check_out=result.check_out,
            is_valid=result.is_valid,
        )
        return result

    def validate_move(self, request: MoveReservationRequest) -> MoveValidation:
        """Проверяет перенос бронирования."""
        try:
            validator = RoomChangeValidator(self._catalog(), self._detector, self._rules)
            result = validator.validate_move(
                request.reservation_id,
                request.target_room_id,
                request.new_check_in,
                request.new_check_out,
                self._snapshot(),
            )
        except DomainException as e:
            self._logger.error(
                f"Ошибка при проверке переноса: {e}",
                operation="validate_move",
                reservation_id=request.reservation_id,
                room_id=request.target_room_id,
            )
            raise

        self._logger.debug(
            "Проверен перенос бронирования",
            reservation_id=result.reservation_id,
            room_id=result.room_id,
            is_valid=result.is_valid,
        )
        return result

    def validate_batch(self, operations: Sequence[BatchOperation]) -> List[BatchItemResult]:
        """
        Проверяет пакет операций на одном снимке.

        Каждая операция проверяется независимо от остальных. Ошибка
        одной операции попадает в ее результат и не прерывает пакет.
        """
        index = self._index()
        rooms = self._catalog()
        normalizer = DragRangeNormalizer(self._detector, rooms, self._rules)
        validator = RoomChangeValidator(rooms, self._detector, self._rules)

        results = []
        for position, operation in enumerate(operations):
            try:
                if isinstance(operation, CreateOperation):
                    if operation.check_out <= operation.check_in:
                        raise InvalidDateRange(operation.check_in, operation.check_out)
                    last_night = (operation.check_out - operation.check_in).days - 1
                    validation = normalizer.validate_create(
                        operation.room_id,
                        0,
                        last_night,
                        operation.check_in,
                        index,
                    )
                else:
                    validation = validator.validate_move(
                        operation.reservation_id,
                        operation.target_room_id,
                        operation.new_check_in,
                        operation.new_check_out,
                        index,
                    )
                results.append(
                    BatchItemResult(position=position, operation=operation, validation=validation)
                )
            except DomainException as e:
                self._logger.warning(
                    f"Операция пакета не проверена: {e}",
                    operation="validate_batch",
                    position=position,
                )
                results.append(
                    BatchItemResult(position=position, operation=operation, error=str(e))
                )

        self._logger.info(
            "Проверен пакет операций",
            operations=len(results),
            valid=sum(1 for r in results if r.is_valid),
        )
        return results

    def occupancy_stats(
        self, start_date: date, days: Optional[int] = None
    ) -> OccupancyStats:
        """Рассчитывает загрузку отеля за окно дат."""
        days = self._default_timeline_days if days is None else days
        try:
            stats = OccupancyStatsCalculator(self._detector).occupancy_stats(
                start_date, days, self._index(), self._catalog()
            )
        except DomainException as e:
            self._logger.error(
                f"Ошибка при расчете загрузки: {e}",
                operation="occupancy_stats",
                start_date=start_date,
                days=days,
            )
            raise
        return stats

    def suggest_alternatives(
        self, room_id: EntityId, check_in: date, check_out: date, limit: int = 3
    ) -> List[Room]:
        """Подбирает свободные альтернативные номера."""
        try:
            return AlternativeRoomFinder(self._detector).suggest(
                room_id, check_in, check_out, self._index(), self._catalog(), limit
            )
        except DomainException as e:
            self._logger.error(
                f"Ошибка при подборе альтернатив: {e}",
                operation="suggest_alternatives",
                room_id=room_id,
            )
            raise

