"""
Конфигурация transfer engine.

Все конфиги immutable (frozen dataclasses) для потокобезопасности.
Параметры отдельного запроса живут в RequestDescriptor, здесь только
то, что общее для контроллера и мультиплексора.
"""

from dataclasses import dataclass, replace
from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from .logging import LoggingConfig

# Дефолты дескриптора
DEFAULT_METHOD = "GET"
DEFAULT_CONTENT_TYPE = "application/text"
DEFAULT_TIMEOUT_MS = 10000
DEFAULT_MAX_RETRY_COUNT = 5

# Максимум байт тела в превью diagnostics dump
DEFAULT_PREVIEW_LIMIT = 0x400


@dataclass(frozen=True)
class EngineConfig:
    """
    Главная конфигурация движка.

    Args:
        max_workers: Количество потоков ThreadedMultiplexer
        chunk_size: Размер чанка при чтении тела ответа (байты)
        debug: Печатать diagnostics dump для всех дескрипторов
        ca_bundle_path: Путь к CA bundle (None = bundle из certifi)
        dump_preview_limit: Максимум байт тела в превью dump
        logging: Конфигурация структурного логирования (None = только stdlib logger)

    Examples:
        >>> EngineConfig(max_workers=4)
        >>> EngineConfig.create(debug=True, ca_bundle_path="/tmp/cacert.pem")
    """
    max_workers: int = 8
    chunk_size: int = 16 * 1024
    debug: bool = False
    ca_bundle_path: Optional[str] = None
    dump_preview_limit: int = DEFAULT_PREVIEW_LIMIT
    logging: Optional['LoggingConfig'] = None

    def __post_init__(self):
        """Валидация."""
        if self.max_workers <= 0:
            raise ValueError("max_workers must be positive")
        if self.chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        if self.dump_preview_limit < 0:
            raise ValueError("dump_preview_limit must be non-negative")

    @classmethod
    def create(
        cls,
        max_workers: int = 8,
        debug: bool = False,
        ca_bundle_path: Optional[str] = None,
        logging: Optional['LoggingConfig'] = None,
        **kwargs
    ) -> 'EngineConfig':
        """
        Удобный конструктор конфигурации.

        Args:
            max_workers: Количество рабочих потоков
            debug: Включить diagnostics dump
            ca_bundle_path: Путь к CA bundle
            logging: Конфигурация логирования

        Returns:
            EngineConfig instance
        """
        return cls(
            max_workers=max_workers,
            debug=debug,
            ca_bundle_path=ca_bundle_path,
            logging=logging,
            **kwargs
        )

    def with_debug(self, debug: bool = True) -> 'EngineConfig':
        """
        Создать новый конфиг с изменённым флагом debug.

        Example:
            >>> new_config = config.with_debug()
        """
        return replace(self, debug=debug)
