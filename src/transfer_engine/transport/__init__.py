"""
Transport layer: transfer types, the multiplexer interface and session handling.

The concrete ``ThreadedMultiplexer`` lives in ``transport.threaded`` and is
re-exported from the top-level package.
"""

from .types import (
    TransferCode,
    HttpVersion,
    DebugKind,
    TransferCallbacks,
    TransferOptions,
    TransferInfo,
    TransferResult,
)
from .base import Multiplexer, CompletionHandler
from .session_manager import ThreadSafeSessionManager

__all__ = [
    "TransferCode",
    "HttpVersion",
    "DebugKind",
    "TransferCallbacks",
    "TransferOptions",
    "TransferInfo",
    "TransferResult",
    "Multiplexer",
    "CompletionHandler",
    "ThreadSafeSessionManager",
]
