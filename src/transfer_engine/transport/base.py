# src/transfer_engine/transport/base.py
"""
Multiplexer interface.

A multiplexer executes prepared transfers concurrently, streams their bytes
through the callbacks in ``TransferOptions`` and reports exactly one
completion per transfer to the registered completion handler. Completions
are dispatched from ``perform()``, on the thread that drives it.
"""
import time
from abc import ABC, abstractmethod
from typing import Callable, Optional

from .types import TransferOptions, TransferResult

CompletionHandler = Callable[[TransferResult, int], None]


class Multiplexer(ABC):
    """
    Base class for multiplexers.

    Example:
        >>> with ThreadedMultiplexer() as multi:
        ...     controller = LifecycleController(multi)
        ...     controller.submit(request, on_done)
        ...     multi.run()
    """

    def __init__(self):
        self._completion_handler: Optional[CompletionHandler] = None

    def set_completion_handler(self, handler: CompletionHandler) -> None:
        """Register the function receiving ``(result, token)`` per finished transfer."""
        self._completion_handler = handler

    def _notify(self, result: TransferResult, token: int) -> None:
        if self._completion_handler is None:
            raise RuntimeError("No completion handler registered with the multiplexer")
        self._completion_handler(result, token)

    @abstractmethod
    def add_handle(self, options: TransferOptions) -> None:
        """Start executing a prepared transfer."""

    @abstractmethod
    def perform(self, timeout: Optional[float] = 0) -> int:
        """
        Dispatch completions that are ready.

        Args:
            timeout: Seconds to wait for the first completion; 0 does not
                block, None blocks until one arrives (or nothing is running)

        Returns:
            Number of transfers still running
        """

    @property
    @abstractmethod
    def running_count(self) -> int:
        """Transfers added but not yet completed."""

    def run(self, timeout: Optional[float] = None, poll_interval: float = 0.05) -> int:
        """
        Drive ``perform()`` until nothing is running.

        Args:
            timeout: Give up after this many seconds (None = no limit)
            poll_interval: Max seconds per blocking wait

        Returns:
            Number of transfers still running (0 unless timeout hit)
        """
        deadline = None if timeout is None else time.monotonic() + timeout
        running = self.running_count
        while running:
            if deadline is not None and time.monotonic() >= deadline:
                break
            running = self.perform(timeout=poll_interval)
        return running

    def close(self) -> None:
        """Release transport resources."""

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
