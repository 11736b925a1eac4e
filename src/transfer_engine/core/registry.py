# src/transfer_engine/core/registry.py
"""
Token registry for in-flight descriptors.

While an attempt is in flight the multiplexer only knows an integer token.
The registry holds the strong reference that keeps the descriptor alive for
that window and lets the static callbacks find it again. Tokens come from a
monotonically increasing counter, so a token is never handed out twice.
"""
import itertools
import threading
from typing import Dict, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from .descriptor import RequestDescriptor


class HandleRegistry:
    """
    Thread-safe mapping from opaque token to RequestDescriptor.

    Example:
        >>> registry = HandleRegistry()
        >>> token = registry.register(descriptor)
        >>> registry.resolve(token) is descriptor
        True
        >>> registry.release(token)
        True
        >>> registry.resolve(token) is None
        True
    """

    def __init__(self):
        self._entries: Dict[int, 'RequestDescriptor'] = {}
        self._lock = threading.Lock()
        self._counter = itertools.count(1)

    def register(self, descriptor: 'RequestDescriptor') -> int:
        """
        Register descriptor under a fresh token.

        Returns:
            New token, unique for the lifetime of the registry
        """
        with self._lock:
            token = next(self._counter)
            self._entries[token] = descriptor
        return token

    def resolve(self, token: int) -> Optional['RequestDescriptor']:
        """Descriptor registered under token, or None."""
        with self._lock:
            return self._entries.get(token)

    def release(self, token: int) -> bool:
        """
        Drop the entry for token.

        Returns:
            True if an entry was removed, False if the token was unknown
        """
        with self._lock:
            return self._entries.pop(token, None) is not None

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, token: object) -> bool:
        with self._lock:
            return token in self._entries


# Process-wide registry used by the static callback table
_registry = HandleRegistry()


def get_registry() -> HandleRegistry:
    """Process-wide registry instance."""
    return _registry
