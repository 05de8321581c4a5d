"""
Инфраструктура общего ядра: логирование.
"""
import logging
from typing import Any, Optional

from .interfaces import ILogger

LOG_FORMAT = "%(asctime)s | %(name)s | %(levelname)s | %(message)s"


def configure_logging(level: str = "INFO", logger_name: str = "frontdesk") -> logging.Logger:
    """Настраивает корневой логгер пакета."""
    formatter = logging.Formatter(LOG_FORMAT)
    handler = logging.StreamHandler()
    handler.setFormatter(formatter)

    logger = logging.getLogger(logger_name)
    logger.setLevel(level.upper())

    if not logger.handlers:
        logger.addHandler(handler)

    return logger


class LoggingLogger(ILogger):
    """Реализация логгера поверх стандартного модуля logging."""

    def __init__(self, name: str = "frontdesk", logger: Optional[logging.Logger] = None):
        self._logger = logger or logging.getLogger(name)

    def _log(self, level: int, message: str, context: dict) -> None:
        if context:
            rendered = ", ".join(f"{key}={value}" for key, value in context.items())
            message = f"{message} [{rendered}]"
        self._logger.log(level, message, extra={"context": context})

    def info(self, message: str, **kwargs: Any) -> None:
        self._log(logging.INFO, message, kwargs)

    def error(self, message: str, **kwargs: Any) -> None:
        self._log(logging.ERROR, message, kwargs)

    def warning(self, message: str, **kwargs: Any) -> None:
        self._log(logging.WARNING, message, kwargs)

    def debug(self, message: str, **kwargs: Any) -> None:
        self._log(logging.DEBUG, message, kwargs)
