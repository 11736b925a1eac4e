"""Request descriptor: configuration and per-attempt state of one HTTP exchange."""

import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, Optional, TYPE_CHECKING

from .config import (
    DEFAULT_CONTENT_TYPE,
    DEFAULT_MAX_RETRY_COUNT,
    DEFAULT_METHOD,
    DEFAULT_TIMEOUT_MS,
)
from .exceptions import RetryBudgetExhaustedError

if TYPE_CHECKING:
    from ..transport.types import TransferInfo, TransferResult
    from .sinks import StreamSink


class LifecycleState(str, Enum):
    """States of the per-descriptor lifecycle."""
    IDLE = "idle"
    PREPARING = "preparing"
    IN_FLIGHT = "in_flight"
    REDIRECTING = "redirecting"
    RETRYING = "retrying"
    COMPLETED = "completed"
    FAILED = "failed"


CompletionCallback = Callable[['RequestDescriptor'], None]


@dataclass
class RequestDescriptor:
    """
    One logical HTTP exchange across all of its attempts.

    Configuration fields should not be changed while ``running`` is set.
    Incoming fields are reset at the start of every attempt.

    Attributes:
        url: Target URL (rewritten when a redirect is followed)
        method: HTTP method
        content_type: Value of the Content-Type request header
        output_path: Write the response body to this file instead of memory
        timeout: Whole-attempt timeout in milliseconds
        max_retry_count: Retry budget (failures and redirects share it)
        use_http2: Ask the transport for HTTP/2
        insecure: Skip peer and host certificate verification
        out_data: Request body
        debug: Dump the exchange when the descriptor finishes

    Example:
        >>> request = RequestDescriptor("https://api.example.com/users", method="POST")
        >>> request.set_header("Authorization", "Bearer token")
        >>> request.out_data = b'{"name": "alice"}'
    """

    url: str = ""
    method: str = DEFAULT_METHOD
    content_type: str = DEFAULT_CONTENT_TYPE
    output_path: Optional[str] = None
    timeout: int = DEFAULT_TIMEOUT_MS
    max_retry_count: int = DEFAULT_MAX_RETRY_COUNT
    use_http2: bool = False
    insecure: bool = False
    out_data: Optional[bytes] = None
    debug: bool = False

    # Lifecycle state
    running: bool = field(default=False, init=False)
    state: LifecycleState = field(default=LifecycleState.IDLE, init=False)
    retry_budget: int = field(default=0, init=False)
    attempts: int = field(default=0, init=False)
    status: int = field(default=0, init=False)
    message: Optional[str] = field(default=None, init=False)
    http_version: Optional[str] = field(default=None, init=False)
    request_id: str = field(default_factory=lambda: str(uuid.uuid4()), init=False)

    # Incoming state
    in_data: Optional[bytes] = field(default=None, init=False, repr=False)
    sent_headers: Optional[Dict[str, str]] = field(default=None, init=False, repr=False)
    last_result: Optional['TransferResult'] = field(default=None, init=False, repr=False)
    transfer_info: Optional['TransferInfo'] = field(default=None, init=False, repr=False)

    callback: Optional[CompletionCallback] = field(default=None, init=False, repr=False)
    token: Optional[int] = field(default=None, init=False, repr=False)
    header_sink: Optional['StreamSink'] = field(default=None, init=False, repr=False)
    body_sink: Optional['StreamSink'] = field(default=None, init=False, repr=False)

    _user_headers: Optional[Dict[str, str]] = field(default=None, init=False, repr=False)
    _in_headers: Optional[Dict[str, str]] = field(default=None, init=False, repr=False)

    # ==================== Заголовки ====================

    def set_header(self, key: str, value: str) -> None:
        """Set a request header. Keys are case-sensitive; last write wins."""
        if self._user_headers is None:
            self._user_headers = {}
        self._user_headers[key] = value

    def get_request_header(self, key: str) -> Optional[str]:
        if self._user_headers is None:
            return None
        return self._user_headers.get(key)

    def get_all_request_headers(self) -> Optional[Dict[str, str]]:
        return self._user_headers

    def get_response_header(self, key: str) -> Optional[str]:
        """Response header by exact key, None before any header block was parsed."""
        if self._in_headers is None:
            return None
        return self._in_headers.get(key)

    def get_all_response_headers(self) -> Optional[Dict[str, str]]:
        return self._in_headers

    def find_response_header(self, key: str) -> Optional[str]:
        """Case-insensitive response header lookup."""
        if self._in_headers is None:
            return None
        wanted = key.lower()
        for name, value in self._in_headers.items():
            if name.lower() == wanted:
                return value
        return None

    def reset_incoming(self) -> None:
        """Forget everything received by the previous attempt."""
        self.status = 0
        self.message = None
        self.http_version = None
        self.in_data = None
        self.sent_headers = None
        self._in_headers = None

    def apply_response_head(self, head) -> None:
        """Store a decoded ResponseHead."""
        self.http_version = head.http_version
        self.status = head.status
        self.message = head.message
        self._in_headers = dict(head.headers)

    # ==================== Итог ====================

    @property
    def succeeded(self) -> bool:
        return self.state is LifecycleState.COMPLETED

    @property
    def failed(self) -> bool:
        return self.state is LifecycleState.FAILED

    def raise_for_outcome(self) -> None:
        """
        Raise if the last submission ended without success.

        Raises:
            RetryBudgetExhaustedError: descriptor finished in FAILED
        """
        if self.state is LifecycleState.FAILED:
            raise RetryBudgetExhaustedError(
                self.max_retry_count,
                status=self.status,
                message=self.message,
                url=self.url,
            )

    def duplicate(self) -> 'RequestDescriptor':
        """Fresh idle descriptor with the same configuration and request headers."""
        copy = RequestDescriptor(
            url=self.url,
            method=self.method,
            content_type=self.content_type,
            output_path=self.output_path,
            timeout=self.timeout,
            max_retry_count=self.max_retry_count,
            use_http2=self.use_http2,
            insecure=self.insecure,
            out_data=self.out_data,
            debug=self.debug,
        )
        if self._user_headers is not None:
            copy._user_headers = dict(self._user_headers)
        return copy
