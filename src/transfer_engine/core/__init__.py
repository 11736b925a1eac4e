"""Core transfer engine modules."""

from .config import EngineConfig
from .descriptor import LifecycleState, RequestDescriptor
from .sinks import StreamSink, MemorySink, FileSink, open_body_sink
from .header_codec import (
    ResponseHead,
    encode_request_header,
    decode_response_header,
    parse_header_lines,
)
from .registry import HandleRegistry, get_registry
from .callbacks import CALLBACKS, header_function, write_function, debug_function
from .retry_budget import RetryBudget
from .trust import global_init, get_ca_path
from .diagnostics import dump
from .lifecycle import LifecycleController
from .utils import escape, unescape, sanitize_url, sanitize_headers
from .exceptions import (
    TransferEngineError,
    TransportError,
    TimeoutError,
    ConnectionError,
    DNSError,
    SSLError,
    WriteAbortedError,
    FatalError,
    ConfigurationError,
    SinkClosedError,
    RetryBudgetExhaustedError,
    classify_transport_exception,
)

__all__ = [
    # Config
    "EngineConfig",
    # Data model
    "LifecycleState",
    "RequestDescriptor",
    # Streaming
    "StreamSink",
    "MemorySink",
    "FileSink",
    "open_body_sink",
    "ResponseHead",
    "encode_request_header",
    "decode_response_header",
    "parse_header_lines",
    # Handles
    "HandleRegistry",
    "get_registry",
    "CALLBACKS",
    "header_function",
    "write_function",
    "debug_function",
    # Lifecycle
    "RetryBudget",
    "LifecycleController",
    "global_init",
    "get_ca_path",
    "dump",
    # Utils
    "escape",
    "unescape",
    "sanitize_url",
    "sanitize_headers",
    # Exceptions
    "TransferEngineError",
    "TransportError",
    "TimeoutError",
    "ConnectionError",
    "DNSError",
    "SSLError",
    "WriteAbortedError",
    "FatalError",
    "ConfigurationError",
    "SinkClosedError",
    "RetryBudgetExhaustedError",
    "classify_transport_exception",
]
