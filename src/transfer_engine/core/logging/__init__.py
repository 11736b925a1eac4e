"""
Structured logging for transfer engine.

Example:
    >>> from transfer_engine.core.logging import EngineLogger, LoggingConfig
    >>>
    >>> config = LoggingConfig.create(level="DEBUG", format="colored")
    >>> logger = EngineLogger(config)
    >>> logger.info("Transfer submitted", method="GET", url="https://api.com")
"""

from .config import LoggingConfig, LogLevel, LogFormat
from .logger import EngineLogger
from .formatters import JSONFormatter, TextFormatter, ColoredFormatter, get_formatter
from .filters import ExtraFieldsFilter
from .handlers import build_handlers

__all__ = [
    # Config
    "LoggingConfig",
    "LogLevel",
    "LogFormat",
    # Logger
    "EngineLogger",
    # Formatters
    "JSONFormatter",
    "TextFormatter",
    "ColoredFormatter",
    "get_formatter",
    # Filters
    "ExtraFieldsFilter",
    # Handlers
    "build_handlers",
]
