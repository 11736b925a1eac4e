# src/transfer_engine/core/lifecycle.py
"""
Per-descriptor lifecycle state machine.

    IDLE -> PREPARING -> IN_FLIGHT -> COMPLETED
                 ^            |    -> FAILED
                 |            v
                 +--- REDIRECTING / RETRYING

Every attempt registers the descriptor under a fresh token in ``prepare()``;
``on_completion()`` releases it before anything else. Failures and followed
redirects draw from one retry budget; a successful attempt draws nothing.
"""
import logging
from typing import Optional, TYPE_CHECKING
from urllib.parse import urljoin

from ..transport.base import Multiplexer
from ..transport.types import HttpVersion, TransferOptions, TransferResult
from .callbacks import CALLBACKS
from .config import EngineConfig
from .descriptor import CompletionCallback, LifecycleState, RequestDescriptor
from .diagnostics import dump
from .exceptions import ConfigurationError, WriteAbortedError
from .header_codec import decode_response_header, encode_request_header
from .registry import HandleRegistry, get_registry
from .retry_budget import RetryBudget
from .sinks import MemorySink, open_body_sink
from .trust import global_init
from .utils import sanitize_url

if TYPE_CHECKING:
    from .logging import EngineLogger

logger = logging.getLogger(__name__)


class LifecycleController:
    """
    Drives descriptors through prepare -> stream -> complete/retry/redirect.

    Must be used from the thread that drives the multiplexer. One controller
    can serve any number of descriptors; each descriptor has at most one
    attempt in flight.

    Example:
        >>> with ThreadedMultiplexer() as multi:
        ...     controller = LifecycleController(multi)
        ...     request = RequestDescriptor("https://api.example.com/users")
        ...     controller.submit(request, lambda r: print(r.status, r.in_data))
        ...     multi.run()
    """

    def __init__(self, multiplexer: Multiplexer, config: Optional[EngineConfig] = None):
        """
        Args:
            multiplexer: Transport that executes prepared transfers
            config: Engine configuration
        """
        self._config = config or EngineConfig()
        self._multiplexer = multiplexer
        # Same table the static callbacks resolve tokens through
        self._registry: HandleRegistry = get_registry()
        self._budget = RetryBudget()

        # Process-wide precondition; idempotent
        self._ca_path = global_init(self._config.ca_bundle_path)

        self._logger: Optional['EngineLogger'] = None
        if self._config.logging:
            from .logging import EngineLogger
            self._logger = EngineLogger(config=self._config.logging)

        multiplexer.set_completion_handler(self.on_completion)

    @property
    def config(self) -> EngineConfig:
        return self._config

    @property
    def ca_path(self) -> str:
        return self._ca_path

    def close(self) -> None:
        """Close the structured logger. The multiplexer is owned by the caller."""
        if self._logger is not None:
            self._logger.close()

    # ==================== Submit ====================

    def submit(self, descriptor: RequestDescriptor, callback: Optional[CompletionCallback]) -> bool:
        """
        Start a new submission cycle.

        Args:
            descriptor: Configured request
            callback: Called once with the descriptor when it reaches a
                terminal state

        Returns:
            False if the descriptor is already running (nothing changes)

        Raises:
            ConfigurationError: descriptor has no url
        """
        if descriptor.running:
            logger.warning(f"Can't submit a running descriptor again: {sanitize_url(descriptor.url)}")
            return False
        if not descriptor.url:
            raise ConfigurationError("RequestDescriptor.url is required")

        descriptor.running = True
        descriptor.callback = callback
        self._budget.reset(descriptor)

        if self._logger:
            self._logger.info(
                "Transfer submitted",
                request_id=descriptor.request_id,
                method=descriptor.method,
                url=descriptor.url,
                max_retries=descriptor.max_retry_count,
            )

        self._start_attempt(descriptor)
        return True

    def _start_attempt(self, descriptor: RequestDescriptor) -> None:
        """
        Hand the next attempt to the multiplexer.

        An output file that can't be opened counts as a failed attempt: it
        draws from the budget and the next attempt is prepared right away,
        or the descriptor finishes FAILED once the budget is gone.
        """
        while True:
            try:
                options = self.prepare(descriptor)
            except OSError as exc:
                self._discard_sinks(descriptor)
                result = TransferResult.failure(WriteAbortedError(
                    f"Can't open output file {descriptor.output_path}: {exc}", descriptor.url
                ))
                descriptor.last_result = result
                descriptor.transfer_info = result.info
                descriptor.message = result.describe()
                logger.warning(f"Failed to prepare: {sanitize_url(descriptor.url)}, reason: {descriptor.message}")

                if not self._budget.consume(descriptor):
                    self._finish(descriptor, LifecycleState.FAILED)
                    return
                self._enter_retry(descriptor, redirected=False)
                continue

            descriptor.state = LifecycleState.IN_FLIGHT
            self._multiplexer.add_handle(options)
            return

    # ==================== Prepare ====================

    def prepare(self, descriptor: RequestDescriptor) -> TransferOptions:
        """
        Set up one attempt: reset incoming state, allocate sinks, register
        the descriptor and build the transfer options.

        Returns:
            TransferOptions ready for ``Multiplexer.add_handle``
        """
        descriptor.state = LifecycleState.PREPARING
        descriptor.reset_incoming()
        descriptor.attempts += 1

        descriptor.header_sink = MemorySink()
        descriptor.body_sink = open_body_sink(descriptor.output_path)

        token = self._registry.register(descriptor)
        descriptor.token = token

        body = descriptor.out_data if descriptor.out_data else None
        http2 = descriptor.use_http2
        options = TransferOptions(
            token=token,
            url=descriptor.url,
            method=descriptor.method,
            callbacks=CALLBACKS,
            header_lines=encode_request_header(
                descriptor.content_type,
                descriptor.get_all_request_headers(),
            ),
            body=body,
            timeout_ms=descriptor.timeout,
            verify_peer=not descriptor.insecure,
            verify_host=not descriptor.insecure,
            ca_info=self._ca_path,
            http_version=HttpVersion.HTTP_2 if http2 else HttpVersion.DEFAULT,
            pipewait=http2,
            verbose=self._debug_enabled(descriptor),
        )

        logger.debug(
            f"Prepared attempt {descriptor.attempts} for {sanitize_url(descriptor.url)} (token {token})"
        )
        return options

    # ==================== Completion ====================

    def on_completion(self, result: TransferResult, token: int) -> None:
        """
        Handle the multiplexer's completion notification for one attempt.

        Decides between terminal success, redirect, retry and give-up.
        """
        descriptor = self._registry.resolve(token)
        self._registry.release(token)
        if descriptor is None:
            logger.warning(f"Completion for unknown token {token} ignored")
            return
        descriptor.token = None
        descriptor.last_result = result
        descriptor.transfer_info = result.info

        done = False
        redirected = False

        if result.ok:
            self._process_response(descriptor)

            if descriptor.status == 200:
                done = True
            elif 300 <= descriptor.status < 400:
                location = descriptor.find_response_header("Location")
                if location:
                    descriptor.url = urljoin(descriptor.url, location)
                    redirected = True
            elif descriptor.status == 0:
                logger.warning(
                    f"Malformed status line from {sanitize_url(descriptor.url)}: {descriptor.message!r}"
                )
        else:
            self._discard_sinks(descriptor)
            descriptor.message = result.describe()
            logger.warning(f"Failed to request: {sanitize_url(descriptor.url)}, reason: {result.describe()}")

        if done:
            self._finish(descriptor, LifecycleState.COMPLETED)
            return

        if not self._budget.consume(descriptor):
            self._finish(descriptor, LifecycleState.FAILED)
            return

        self._enter_retry(descriptor, redirected)
        self._start_attempt(descriptor)

    def _enter_retry(self, descriptor: RequestDescriptor, redirected: bool) -> None:
        if redirected:
            descriptor.state = LifecycleState.REDIRECTING
            if self._logger:
                self._logger.info(
                    "Following redirect",
                    request_id=descriptor.request_id,
                    status=descriptor.status,
                    location=descriptor.url,
                    retries_left=descriptor.retry_budget,
                )
        else:
            descriptor.state = LifecycleState.RETRYING
            if self._logger:
                self._logger.warning(
                    "Attempt failed",
                    request_id=descriptor.request_id,
                    url=descriptor.url,
                    attempt=descriptor.attempts,
                    status=descriptor.status,
                    reason=descriptor.message,
                    retries_left=descriptor.retry_budget,
                )

    def _process_response(self, descriptor: RequestDescriptor) -> None:
        header_data = descriptor.header_sink.finalize() if descriptor.header_sink else b""
        descriptor.apply_response_head(decode_response_header(header_data or b""))
        descriptor.in_data = descriptor.body_sink.finalize() if descriptor.body_sink else None
        descriptor.header_sink = None
        descriptor.body_sink = None

    @staticmethod
    def _discard_sinks(descriptor: RequestDescriptor) -> None:
        for sink in (descriptor.header_sink, descriptor.body_sink):
            if sink is not None:
                sink.finalize()
        descriptor.header_sink = None
        descriptor.body_sink = None

    def _finish(self, descriptor: RequestDescriptor, state: LifecycleState) -> None:
        descriptor.state = state

        if self._debug_enabled(descriptor):
            text = dump(descriptor, self._config.dump_preview_limit)
            if self._logger:
                self._logger.info(text, request_id=descriptor.request_id)
            else:
                logger.info(text)

        if self._logger:
            self._logger.info(
                "Transfer finished",
                request_id=descriptor.request_id,
                url=descriptor.url,
                outcome=state.value,
                status=descriptor.status,
                attempts=descriptor.attempts,
            )

        callback = descriptor.callback
        descriptor.callback = None
        descriptor.running = False

        if callback is not None:
            try:
                callback(descriptor)
            except Exception:
                logger.exception(f"Completion callback raised for {sanitize_url(descriptor.url)}")

    def _debug_enabled(self, descriptor: RequestDescriptor) -> bool:
        return descriptor.debug or self._config.debug
