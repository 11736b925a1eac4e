"""
Structured logger for transfer engine.

Wraps a stdlib logger with keyword-argument fields, masking sensitive values
before they reach any handler.
"""

import logging
from typing import Optional, Any

from .config import LoggingConfig, LogLevel
from .handlers import build_handlers
from ..utils import mask_sensitive_data


class EngineLogger:
    """
    Structured logger with console/file handlers.

    Example:
        >>> logger = EngineLogger(LoggingConfig.create(level="DEBUG", format="json"))
        >>> logger.info("Transfer submitted", method="GET", url="https://api.com")
        >>> logger.close()
    """

    def __init__(self, config: Optional[LoggingConfig] = None, name: str = "transfer_engine.events"):
        """
        Args:
            config: Logging configuration (defaults if None)
            name: Logger name
        """
        self.config = config or LoggingConfig()
        self.name = name
        self._closed = False

        self._logger = logging.getLogger(name)
        self._logger.setLevel(self._get_level(self.config.level))
        self._logger.propagate = False

        # Reinitializing replaces whatever handlers were there
        self._logger.handlers.clear()
        for handler in build_handlers(self.config):
            self._logger.addHandler(handler)

    @staticmethod
    def _get_level(level: LogLevel) -> int:
        return getattr(logging, level.value)

    def _log(self, level: int, message: str, fields: dict, exc_info: bool = False) -> None:
        self._logger.log(level, message, extra=mask_sensitive_data(fields), exc_info=exc_info)

    def debug(self, message: str, **kwargs: Any) -> None:
        self._log(logging.DEBUG, message, kwargs)

    def info(self, message: str, **kwargs: Any) -> None:
        self._log(logging.INFO, message, kwargs)

    def warning(self, message: str, **kwargs: Any) -> None:
        self._log(logging.WARNING, message, kwargs)

    def error(self, message: str, **kwargs: Any) -> None:
        self._log(logging.ERROR, message, kwargs)

    def exception(self, message: str, **kwargs: Any) -> None:
        """Log with traceback; call from an exception handler."""
        self._log(logging.ERROR, message, kwargs, exc_info=True)

    def close(self) -> None:
        """
        Flush and close all handlers.

        Idempotent; file handlers keep their descriptors open until this runs.
        """
        if self._closed:
            return

        for handler in self._logger.handlers[:]:
            try:
                handler.flush()
                handler.close()
            except Exception:
                # Handler already unusable; nothing more to release
                pass
            self._logger.removeHandler(handler)

        self._closed = True

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
