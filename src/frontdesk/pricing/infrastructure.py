"""
Инфраструктурный слой контекста ценообразования.

Содержит загрузку тарифной конфигурации из JSON-файла
и встроенный тариф 2026 года.
"""
import json
from decimal import Decimal
from pathlib import Path
from typing import Optional, Union

from pydantic import ValidationError

from ..shared_kernel import LoggingLogger, SeasonalPeriodTag, TariffConfigurationError
from . import interfaces as ports
from .domain import (
    SeasonalPeriodDefinition,
    SeasonalSubRange,
    TariffConfig,
    tariff_coverage_issues,
)


def _windows(*pairs):
    return [SeasonalSubRange(start=start, end=end) for start, end in pairs]


def build_tariff_2026() -> TariffConfig:
    """Тариф 2026 года: сезоны A-D, НДС включен в цены, надбавка 20% за проживание короче 3 ночей."""
    return TariffConfig(
        year=2026,
        currency="EUR",
        periods=[
            SeasonalPeriodDefinition(
                tag=SeasonalPeriodTag.A,
                name="Зимний сезон",
                sub_ranges=_windows(("01-04", "04-01"), ("10-25", "12-29")),
                tourism_tax_rate=Decimal("1.10"),
            ),
            SeasonalPeriodDefinition(
                tag=SeasonalPeriodTag.B,
                name="Межсезонье",
                # Новогоднее окно включает 03.01, иначе дата остается без сезона
                sub_ranges=_windows(
                    ("04-02", "05-21"), ("09-27", "10-24"), ("12-30", "01-03")
                ),
                tourism_tax_rate=Decimal("1.10"),
            ),
            SeasonalPeriodDefinition(
                tag=SeasonalPeriodTag.C,
                name="Ранний летний сезон",
                sub_ranges=_windows(("05-22", "07-09"), ("09-01", "09-26")),
                tourism_tax_rate=Decimal("1.60"),
            ),
            SeasonalPeriodDefinition(
                tag=SeasonalPeriodTag.D,
                name="Пик сезона",
                sub_ranges=_windows(("07-10", "08-31")),
                tourism_tax_rate=Decimal("1.60"),
            ),
        ],
        short_stay_min_nights=3,
        short_stay_supplement=Decimal("0.20"),
    )


class BundledTariffRepository(ports.ITariffRepository):
    """Отдает встроенный тариф 2026 года."""

    def load(self) -> TariffConfig:
        return build_tariff_2026()


class JsonTariffRepository(ports.ITariffRepository):
    """Репозиторий тарифной конфигурации в JSON-файле."""

    def __init__(
        self,
        file_path: Union[str, Path],
        logger: Optional[ports.ILogger] = None,
    ):
        """
        Инициализирует репозиторий.

        Args:
            file_path: Путь к JSON-файлу с тарифом
            logger: Логгер для диагностики покрытия сезонов
        """
        self._file_path = Path(file_path)
        self._logger = logger or LoggingLogger(__name__)

    def load(self) -> TariffConfig:
        """Загружает и проверяет тариф из файла."""
        try:
            raw_data = self._file_path.read_text(encoding="utf-8")
        except OSError as e:
            raise TariffConfigurationError(
                f"Не удалось прочитать тариф {self._file_path}: {e}"
            ) from e

        try:
            config = TariffConfig.model_validate_json(raw_data)
        except ValidationError as e:
            raise TariffConfigurationError(
                f"Некорректный тариф в файле {self._file_path}: {e}"
            ) from e

        self._report_coverage(config)
        self._logger.info(
            "Тариф загружен",
            file=str(self._file_path),
            year=config.year,
            periods=len(config.periods),
        )
        return config

    def save(self, config: TariffConfig) -> None:
        """Сохраняет тариф в JSON-файл."""
        # Создаем директорию, если она не существует
        self._file_path.parent.mkdir(parents=True, exist_ok=True)

        data = config.model_dump(mode="json")
        with open(self._file_path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)

    def _report_coverage(self, config: TariffConfig) -> None:
        overlapping, uncovered = tariff_coverage_issues(config.periods)
        for day, tags in overlapping:
            self._logger.warning(
                "Дата попадает в несколько сезонов, применяется первый",
                day=day,
                periods=",".join(tag.value for tag in tags),
            )
        if uncovered:
            self._logger.warning(
                "Даты без тарифного сезона",
                days=", ".join(uncovered),
            )
