"""
Types exchanged between the lifecycle controller and a multiplexer.

A multiplexer only ever sees ``TransferOptions`` going in and a
``TransferResult`` plus the token coming back out. Everything it needs to
reach managed request state goes through the callbacks table and the token.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from ..core.exceptions import TransportError


class TransferCode(str, Enum):
    """Outcome of one transfer at the protocol level."""
    OK = "OK"
    UNSUPPORTED_PROTOCOL = "UNSUPPORTED_PROTOCOL"
    URL_MALFORMAT = "URL_MALFORMAT"
    COULDNT_RESOLVE_HOST = "COULDNT_RESOLVE_HOST"
    COULDNT_CONNECT = "COULDNT_CONNECT"
    OPERATION_TIMEDOUT = "OPERATION_TIMEDOUT"
    SSL_CONNECT_ERROR = "SSL_CONNECT_ERROR"
    WRITE_ERROR = "WRITE_ERROR"
    SEND_ERROR = "SEND_ERROR"
    RECV_ERROR = "RECV_ERROR"
    UNKNOWN = "UNKNOWN"


class HttpVersion(str, Enum):
    """Requested protocol version."""
    DEFAULT = "default"
    HTTP_1_1 = "1.1"
    HTTP_2 = "2"


class DebugKind(str, Enum):
    """Kind of data passed to the debug callback."""
    TEXT = "text"
    HEADER_OUT = "header_out"
    HEADER_IN = "header_in"


# (token, data) -> number of bytes consumed
ChunkCallback = Callable[[int, bytes], int]
# (token, kind, data) -> 0
DebugCallback = Callable[[int, DebugKind, bytes], int]


@dataclass(frozen=True)
class TransferCallbacks:
    """
    Fixed set of free functions a multiplexer calls while streaming.

    Attributes:
        header: Receives the response header block, one line per call
        write: Receives response body chunks in delivery order
        debug: Receives verbose transport data (only when ``verbose`` is set)
    """
    header: ChunkCallback
    write: ChunkCallback
    debug: DebugCallback


@dataclass
class TransferOptions:
    """
    Everything a multiplexer needs to execute one attempt.

    Attributes:
        token: Opaque registry token passed back to every callback
        url: Target URL
        method: HTTP method (sent verbatim)
        header_lines: Request headers as ``"Key:Value"`` lines
        body: Request body or None
        timeout_ms: Whole-transfer timeout in milliseconds, 0 for none. Also
            the per connect/read limit; the total is checked between body chunks
        verify_peer: Verify the server certificate chain
        verify_host: Verify the certificate host name
        ca_info: Path to the CA bundle
        http_version: Requested protocol version
        pipewait: Reuse a pooled HTTP/2 client so transfers share one
            multiplexed connection instead of opening their own
        verbose: Emit debug callbacks
        callbacks: Static callback table
    """
    token: int
    url: str
    method: str
    callbacks: TransferCallbacks
    header_lines: List[str] = field(default_factory=list)
    body: Optional[bytes] = None
    timeout_ms: int = 10000
    verify_peer: bool = True
    verify_host: bool = True
    ca_info: Optional[str] = None
    http_version: HttpVersion = HttpVersion.DEFAULT
    pipewait: bool = False
    verbose: bool = False


@dataclass(frozen=True)
class TransferInfo:
    """Sizes and timing reported by the transport for a finished attempt."""
    effective_url: Optional[str] = None
    upload_size: int = 0
    download_size: int = 0
    total_time: float = 0.0
    http_version: Optional[str] = None


@dataclass(frozen=True)
class TransferResult:
    """
    Completion notification payload.

    Examples:
        >>> TransferResult.success(TransferInfo(effective_url="https://example.com")).ok
        True
    """
    code: TransferCode
    error: Optional['TransportError'] = None
    info: TransferInfo = field(default_factory=TransferInfo)

    @property
    def ok(self) -> bool:
        return self.code is TransferCode.OK

    @classmethod
    def success(cls, info: Optional[TransferInfo] = None) -> 'TransferResult':
        return cls(code=TransferCode.OK, info=info or TransferInfo())

    @classmethod
    def failure(
        cls,
        error: 'TransportError',
        info: Optional[TransferInfo] = None
    ) -> 'TransferResult':
        return cls(code=error.code, error=error, info=info or TransferInfo())

    def describe(self) -> str:
        """Short human-readable description used for logs and ``message``."""
        if self.ok:
            return self.code.value
        if self.error is not None:
            return f"{self.code.value}: {self.error.message}"
        return self.code.value
