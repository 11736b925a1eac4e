"""
Handler set for the lifecycle event logger.

One LoggingConfig maps to at most two destinations: stdout and a rotating
file. Both share the same level, formatter and static-field filter.
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import List, Optional, TextIO

from .config import LoggingConfig
from .filters import ExtraFieldsFilter
from .formatters import get_formatter


def build_handlers(config: LoggingConfig, stream: Optional[TextIO] = None) -> List[logging.Handler]:
    """
    Собрать обработчики для EngineLogger по конфигу.

    Args:
        config: Logging configuration
        stream: Console stream (stdout when None)

    Returns:
        Handlers in order: console first, then file. Empty when both
        destinations are disabled.

    Example:
        >>> config = LoggingConfig.create(format="json", enable_file=True, file_path="logs/events.log")
        >>> for handler in build_handlers(config):
        ...     logging.getLogger("transfer_engine.events").addHandler(handler)
    """
    level = getattr(logging, config.level.value)
    formatter = get_formatter(config.format.value)
    field_filter = ExtraFieldsFilter(config.extra_fields) if config.extra_fields else None

    handlers: List[logging.Handler] = []
    if config.enable_console:
        handlers.append(logging.StreamHandler(stream or sys.stdout))
    if config.enable_file and config.file_path:
        handlers.append(_rotating_file(config))

    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        if field_filter is not None:
            handler.addFilter(field_filter)
    return handlers


def _rotating_file(config: LoggingConfig) -> RotatingFileHandler:
    # Log directory may not exist yet on first run
    path = Path(config.file_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    return RotatingFileHandler(
        filename=str(path),
        maxBytes=config.max_bytes,
        backupCount=config.backup_count,
        encoding='utf-8',
    )
