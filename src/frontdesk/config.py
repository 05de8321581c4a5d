from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Настройки процесса с поддержкой переменных окружения FRONTDESK_*."""

    model_config = SettingsConfigDict(
        env_prefix="FRONTDESK_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    # Тарифы
    tariff_file: Optional[Path] = None  # Без файла используется встроенный тариф 2026
    currency: str = Field("EUR", max_length=3)

    # Логирование
    log_level: str = "INFO"

    # Таймлайн
    default_timeline_days: int = Field(14, gt=0)
