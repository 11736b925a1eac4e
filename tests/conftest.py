"""
Pytest configuration and fixtures for transfer-engine tests.
"""

from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Union

import pytest
import responses as responses_lib

from transfer_engine.core.config import EngineConfig
from transfer_engine.core.exceptions import ConnectionError, TransportError
from transfer_engine.core.lifecycle import LifecycleController
from transfer_engine.core.logging.config import LoggingConfig
from transfer_engine.core.registry import get_registry
from transfer_engine.transport.base import Multiplexer
from transfer_engine.transport.threaded import ThreadedMultiplexer
from transfer_engine.transport.types import (
    DebugKind,
    TransferInfo,
    TransferOptions,
    TransferResult,
)


@dataclass
class Reply:
    """Scripted outcome of one attempt."""
    status_line: str = "HTTP/1.1 200 OK"
    headers: Sequence = ()
    chunks: Sequence[bytes] = ()
    error: Optional[TransportError] = None
    raw_header: Optional[bytes] = None


Step = Union[Reply, Callable[[TransferOptions], Reply]]


class ScriptedMultiplexer(Multiplexer):
    """
    In-process multiplexer replaying scripted replies.

    ``add_handle`` only queues; ``perform`` executes every queued transfer
    through the callback table and notifies completion, so tests control
    exactly when the controller runs. An empty script answers 200 OK.
    """

    def __init__(self):
        super().__init__()
        self.script: List[Step] = []
        self.pending: List[TransferOptions] = []
        self.submitted: List[TransferOptions] = []

    # ==================== Script ====================

    def respond(self, status: int = 200, reason: str = "OK", headers=None,
                body: Union[bytes, Sequence[bytes]] = b"") -> 'ScriptedMultiplexer':
        chunks = [body] if isinstance(body, bytes) else list(body)
        self.script.append(Reply(
            status_line=f"HTTP/1.1 {status} {reason}".rstrip(),
            headers=list((headers or {}).items()),
            chunks=[c for c in chunks if c],
        ))
        return self

    def respond_raw(self, header: bytes, body: bytes = b"") -> 'ScriptedMultiplexer':
        self.script.append(Reply(raw_header=header, chunks=[body] if body else []))
        return self

    def fail(self, message: str = "Connection refused", error: Optional[TransportError] = None):
        self.script.append(Reply(error=error or ConnectionError(message, "scripted")))
        return self

    def then(self, step: Callable[[TransferOptions], Reply]) -> 'ScriptedMultiplexer':
        self.script.append(step)
        return self

    # ==================== Multiplexer API ====================

    def add_handle(self, options: TransferOptions) -> None:
        self.pending.append(options)
        self.submitted.append(options)

    @property
    def running_count(self) -> int:
        return len(self.pending)

    def perform(self, timeout=0) -> int:
        batch, self.pending = self.pending, []
        for options in batch:
            self._notify(self._execute(options), options.token)
        return self.running_count

    def _execute(self, options: TransferOptions) -> TransferResult:
        step = self.script.pop(0) if self.script else Reply()
        if callable(step):
            step = step(options)

        if step.error is not None:
            return TransferResult.failure(step.error, TransferInfo(effective_url=options.url))

        if options.verbose:
            block = f"{options.method} / HTTP/1.1\r\n"
            block += "".join(f"{line}\r\n" for line in options.header_lines) + "\r\n"
            options.callbacks.debug(options.token, DebugKind.HEADER_OUT, block.encode())

        if step.raw_header is not None:
            options.callbacks.header(options.token, step.raw_header)
        else:
            options.callbacks.header(options.token, f"{step.status_line}\r\n".encode())
            for key, value in step.headers:
                options.callbacks.header(options.token, f"{key}: {value}\r\n".encode())
            options.callbacks.header(options.token, b"\r\n")

        downloaded = 0
        for chunk in step.chunks:
            options.callbacks.write(options.token, chunk)
            downloaded += len(chunk)

        return TransferResult.success(TransferInfo(
            effective_url=options.url,
            upload_size=len(options.body or b""),
            download_size=downloaded,
            total_time=0.012,
            http_version="HTTP/1.1",
        ))


@pytest.fixture
def scripted():
    """Scripted multiplexer with an empty script."""
    return ScriptedMultiplexer()


@pytest.fixture
def controller(scripted):
    """Lifecycle controller wired to the scripted multiplexer."""
    ctrl = LifecycleController(scripted, EngineConfig())
    yield ctrl
    ctrl.close()


@pytest.fixture
def registry():
    """Process-wide token registry."""
    return get_registry()


@pytest.fixture
def mock_responses():
    """Mock HTTP responses using responses library."""
    with responses_lib.RequestsMock(assert_all_requests_are_fired=False) as rsps:
        yield rsps


@pytest.fixture
def threaded():
    """Threaded multiplexer, closed after the test."""
    multi = ThreadedMultiplexer(max_workers=4)
    yield multi
    multi.close()


@pytest.fixture
def logging_config_with_file(tmp_path):
    """LoggingConfig writing JSON records to a temporary file."""
    return LoggingConfig.create(
        level="DEBUG",
        format="json",
        enable_console=False,
        enable_file=True,
        file_path=str(tmp_path / "engine.log"),
    )
