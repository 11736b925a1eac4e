"""Transfer Engine - callback-driven HTTP request lifecycle on top of a transfer multiplexer."""

import logging
from importlib.metadata import version, PackageNotFoundError

from .core.config import EngineConfig
from .core.descriptor import LifecycleState, RequestDescriptor
from .core.lifecycle import LifecycleController
from .core.registry import HandleRegistry, get_registry
from .core.trust import global_init
from .core.diagnostics import dump
from .core.utils import escape, unescape
from .core.logging import LoggingConfig, EngineLogger
from .core.exceptions import (
    TransferEngineError,
    TransportError,
    TimeoutError,
    ConnectionError,
    DNSError,
    SSLError,
    WriteAbortedError,
    ConfigurationError,
    SinkClosedError,
    RetryBudgetExhaustedError,
)
from .transport import (
    Multiplexer,
    TransferCode,
    TransferInfo,
    TransferOptions,
    TransferResult,
)
from .transport.threaded import ThreadedMultiplexer

# Library logging stays silent unless the application configures it
logging.getLogger('transfer_engine').addHandler(logging.NullHandler())

try:
    __version__ = version("transfer-engine")
except PackageNotFoundError:
    # Package is not installed (development mode)
    __version__ = "0.0.0-dev"

__all__ = [
    # Core
    "RequestDescriptor",
    "LifecycleState",
    "LifecycleController",
    "HandleRegistry",
    "get_registry",
    "global_init",
    "dump",
    "escape",
    "unescape",

    # Config
    "EngineConfig",
    "LoggingConfig",
    "EngineLogger",

    # Transport
    "Multiplexer",
    "ThreadedMultiplexer",
    "TransferCode",
    "TransferInfo",
    "TransferOptions",
    "TransferResult",

    # Exceptions
    "TransferEngineError",
    "TransportError",
    "TimeoutError",
    "ConnectionError",
    "DNSError",
    "SSLError",
    "WriteAbortedError",
    "ConfigurationError",
    "SinkClosedError",
    "RetryBudgetExhaustedError",

    # Version
    "__version__",
]
