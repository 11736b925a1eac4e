# src/transfer_engine/transport/threaded.py
"""
Thread-pool multiplexer built on requests (HTTP/1.1) and httpx (HTTP/2).

Worker threads execute transfers and call the header/write/debug callbacks
as bytes arrive. Completions are queued and only dispatched from
``perform()``, so the lifecycle controller always runs on the driving
thread.
"""
import logging
import queue
import ssl
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from contextlib import nullcontext
from typing import Dict, Iterable, Optional, Tuple, Union

import httpx
import requests
from requests.adapters import HTTPAdapter

from ..core.config import EngineConfig
from ..core.exceptions import TimeoutError as TransferTimeoutError
from ..core.exceptions import WriteAbortedError, classify_transport_exception
from .base import Multiplexer
from .session_manager import ThreadSafeSessionManager
from .types import (
    DebugKind,
    HttpVersion,
    TransferInfo,
    TransferOptions,
    TransferResult,
)

logger = logging.getLogger(__name__)

# urllib3 reports the protocol version as an int
_RAW_VERSIONS = {10: "HTTP/1.0", 11: "HTTP/1.1", 20: "HTTP/2"}


def _split_header_lines(lines: Iterable[str]) -> dict:
    headers = {}
    for line in lines:
        key, sep, value = line.partition(":")
        if sep and key.strip():
            headers[key.strip()] = value.strip()
    return headers


def _wire(text: Union[str, bytes]) -> bytes:
    if isinstance(text, bytes):
        return text
    return text.encode("latin-1", errors="replace")


def _operation_timeout(options: TransferOptions) -> Optional[float]:
    """Per connect/read limit handed to the HTTP library; 0 means none."""
    return options.timeout_ms / 1000 if options.timeout_ms > 0 else None


def _deadline(options: TransferOptions, start: float) -> Optional[float]:
    return start + options.timeout_ms / 1000 if options.timeout_ms > 0 else None


class ThreadedMultiplexer(Multiplexer):
    """
    Multiplexer executing transfers on a ThreadPoolExecutor.

    Features:
        - Thread-local requests.Session per worker
        - HTTP/2 transfers through httpx
        - Redirects are never followed by the transport itself
        - Completions dispatched on the thread calling ``perform()``/``run()``

    Example:
        >>> with ThreadedMultiplexer(max_workers=4) as multi:
        ...     controller = LifecycleController(multi)
        ...     controller.submit(RequestDescriptor("https://example.com"), print)
        ...     multi.run()
    """

    def __init__(
        self,
        max_workers: Optional[int] = None,
        chunk_size: Optional[int] = None,
        config: Optional[EngineConfig] = None
    ):
        """
        Args:
            max_workers: Worker threads (overrides config.max_workers)
            chunk_size: Body read size in bytes (overrides config.chunk_size)
            config: EngineConfig to take defaults from
        """
        super().__init__()
        config = config or EngineConfig()
        self._max_workers = max_workers or config.max_workers
        self._chunk_size = chunk_size or config.chunk_size

        self._executor = ThreadPoolExecutor(
            max_workers=self._max_workers,
            thread_name_prefix="transfer-worker"
        )
        self._completions: "queue.Queue[Tuple[TransferResult, int]]" = queue.Queue()
        self._running = 0
        self._lock = threading.Lock()
        self._closed = False
        self._sessions = ThreadSafeSessionManager(session_factory=self._create_session)
        self._httpx_clients: Dict[tuple, httpx.Client] = {}

    def _create_session(self) -> requests.Session:
        session = requests.Session()
        # Retries are the controller's business
        adapter = HTTPAdapter(max_retries=0)
        session.mount('http://', adapter)
        session.mount('https://', adapter)
        return session

    # ==================== Multiplexer API ====================

    def add_handle(self, options: TransferOptions) -> None:
        if self._closed:
            raise RuntimeError("Multiplexer is closed")
        with self._lock:
            self._running += 1
        self._executor.submit(self._execute, options)

    @property
    def running_count(self) -> int:
        with self._lock:
            return self._running

    def perform(self, timeout: Optional[float] = 0) -> int:
        dispatched = 0
        while True:
            wait = timeout != 0 and dispatched == 0 and self.running_count > 0
            try:
                if wait:
                    result, token = self._completions.get(timeout=timeout)
                else:
                    result, token = self._completions.get_nowait()
            except queue.Empty:
                break

            with self._lock:
                self._running -= 1
            dispatched += 1
            self._notify(result, token)

        return self.running_count

    def close(self) -> None:
        """
        Wait for workers and close all sessions and pooled httpx clients.

        Completions still queued are not dispatched.
        """
        if self._closed:
            return
        self._closed = True
        self._executor.shutdown(wait=True)
        self._sessions.close_all()
        with self._lock:
            clients, self._httpx_clients = list(self._httpx_clients.values()), {}
        for client in clients:
            client.close()

    # ==================== Worker side ====================
    # ==================== Worker side ====================

    def _execute(self, options: TransferOptions) -> None:
        start = time.monotonic()
        try:
            if options.http_version is HttpVersion.HTTP_2:
                info = self._perform_httpx(options, start)
            else:
                info = self._perform_requests(options, start)
            result = TransferResult.success(info)
        except Exception as exc:
            # Every transfer must end in exactly one completion
            error = classify_transport_exception(exc, options.url, options.timeout_ms)
            logger.debug(f"Transfer {options.token} failed: {error.code.value}: {exc}")
            result = TransferResult.failure(
                error,
                TransferInfo(
                    effective_url=options.url,
                    total_time=time.monotonic() - start,
                )
            )
        self._completions.put((result, options.token))

    def _perform_requests(self, options: TransferOptions, start: float) -> TransferInfo:
        if options.verify_peer != options.verify_host:
            logger.debug("requests transport cannot verify peer without host; using verify_peer")
        verify = (options.ca_info or True) if options.verify_peer else False

        session = self._sessions.get_session()
        response = session.request(
            method=options.method,
            url=options.url,
            headers=_split_header_lines(options.header_lines),
            data=options.body,
            timeout=_operation_timeout(options),
            verify=verify,
            allow_redirects=False,
            stream=True,
        )
        with response:
            version = _RAW_VERSIONS.get(getattr(response.raw, 'version', None), "HTTP/1.1")
            if options.verbose:
                self._emit_request_header(
                    options,
                    response.request.method,
                    response.request.path_url,
                    response.request.headers.items(),
                )
            # http.client decodes header values as latin-1, so encoding back restores the wire bytes
            self._deliver_header(
                options, version, response.status_code, response.reason or "",
                response.headers.items(),
            )
            downloaded = self._deliver_body(
                options, response.iter_content(chunk_size=self._chunk_size), _deadline(options, start)
            )

            return TransferInfo(
                effective_url=response.url,
                upload_size=len(options.body) if options.body else 0,
                download_size=downloaded,
                total_time=time.monotonic() - start,
                http_version=version,
            )

    def _perform_httpx(self, options: TransferOptions, start: float) -> TransferInfo:
        if options.pipewait:
            client_context = nullcontext(self._shared_httpx_client(options))
        else:
            client_context = self._build_httpx_client(options)

        with client_context as client:
            with client.stream(
                options.method,
                options.url,
                headers=_split_header_lines(options.header_lines),
                content=options.body,
                timeout=_operation_timeout(options),
            ) as response:
                version = response.http_version
                if options.verbose:
                    request = response.request
                    self._emit_request_header(
                        options, request.method, request.url.raw_path.decode("ascii"),
                        request.headers.items(), version,
                    )
                # Raw pairs keep the received name case and undecoded value bytes
                self._deliver_header(
                    options, version, response.status_code, response.reason_phrase,
                    response.headers.raw,
                )
                downloaded = self._deliver_body(
                    options, response.iter_bytes(chunk_size=self._chunk_size), _deadline(options, start)
                )

                return TransferInfo(
                    effective_url=str(response.url),
                    upload_size=len(options.body) if options.body else 0,
                    download_size=downloaded,
                    total_time=time.monotonic() - start,
                    http_version=version,
                )

    # ==================== httpx clients ====================

    @staticmethod
    def _build_httpx_client(options: TransferOptions) -> httpx.Client:
        if options.verify_peer:
            verify = ssl.create_default_context(cafile=options.ca_info)
            verify.check_hostname = options.verify_host
        else:
            verify = False
        return httpx.Client(http2=True, verify=verify, follow_redirects=False)

    def _shared_httpx_client(self, options: TransferOptions) -> httpx.Client:
        """
        Pooled client for transfers that may wait for a multiplexed connection.

        One client per TLS setting, shared by all workers, so concurrent
        HTTP/2 transfers to the same origin ride one connection.
        """
        key = (options.verify_peer, options.verify_host, options.ca_info)
        with self._lock:
            client = self._httpx_clients.get(key)
            if client is None:
                client = self._build_httpx_client(options)
                self._httpx_clients[key] = client
            return client

    # ==================== Callback delivery ====================

    def _deliver_header(
        self,
        options: TransferOptions,
        version: str,
        status: int,
        reason: str,
        headers: Iterable[Tuple[Union[str, bytes], Union[str, bytes]]]
    ) -> None:
        status_line = f"{version} {status} {reason}".rstrip()
        self._deliver(options.callbacks.header, options, _wire(status_line) + b"\r\n")
        for key, value in headers:
            self._deliver(options.callbacks.header, options, _wire(key) + b": " + _wire(value) + b"\r\n")
        self._deliver(options.callbacks.header, options, b"\r\n")

    def _deliver_body(
        self,
        options: TransferOptions,
        chunks: Iterable[bytes],
        deadline: Optional[float] = None
    ) -> int:
        """
        Push body chunks to the write callback.

        Raises:
            TransferTimeoutError: ``deadline`` passed before the body ended
        """
        downloaded = 0
        for chunk in chunks:
            if deadline is not None and time.monotonic() > deadline:
                raise TransferTimeoutError("Operation timed out", options.url, options.timeout_ms)
            if chunk:
                self._deliver(options.callbacks.write, options, chunk)
                downloaded += len(chunk)
        return downloaded

    @staticmethod
    def _deliver(callback, options: TransferOptions, data: bytes) -> None:
        consumed = callback(options.token, data)
        if consumed != len(data):
            raise WriteAbortedError(
                f"Callback consumed {consumed} of {len(data)} bytes",
                options.url,
            )

    @staticmethod
    def _emit_request_header(
        options: TransferOptions,
        method: str,
        path: str,
        headers: Iterable[Tuple[str, str]],
        version: str = "HTTP/1.1"
    ) -> None:
        lines = [f"{method} {path} {version}"]
        lines.extend(f"{key}: {value}" for key, value in headers)
        block = "\r\n".join(lines) + "\r\n\r\n"
        options.callbacks.debug(options.token, DebugKind.HEADER_OUT, block.encode("latin-1", errors="replace"))
