"""
Иерархия исключений transfer engine.

Классификация:
- TransportError (retryable=True) - попытка не дошла до HTTP уровня, можно повторить
- FatalError (fatal=True) - НЕ повторять никогда

Ошибки отдельных попыток не выходят наружу из движка: контроллер их логирует
и списывает бюджет повторов. Наружу попадает только итог через callback.
"""

from typing import Optional

import httpx
import requests

from ..transport.types import TransferCode

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# BASE
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class TransferEngineError(Exception):
    """Базовое исключение transfer engine."""

    retryable: bool = False
    fatal: bool = False

    def __init__(self, message: str, **kwargs):
        self.message = message
        super().__init__(message)

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# ТРАНСПОРТНЫЕ ОШИБКИ (retryable=True)
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class TransportError(TransferEngineError):
    """
    Попытка не завершилась на уровне протокола.

    Args:
        message: Сообщение об ошибке
        url: URL попытки
        code: Код результата передачи
    """
    retryable = True
    code: TransferCode = TransferCode.UNKNOWN

    def __init__(
        self,
        message: str,
        url: Optional[str] = None,
        code: Optional[TransferCode] = None
    ):
        self.url = url
        if code is not None:
            self.code = code

        full_message = message
        if url:
            full_message += f" (url: {url})"
        super().__init__(full_message)

class TimeoutError(TransportError):
    """
    Таймаут попытки.

    Args:
        message: Сообщение
        url: URL
        timeout_ms: Значение таймаута (мс)
    """
    code = TransferCode.OPERATION_TIMEDOUT

    def __init__(self, message: str, url: str, timeout_ms: Optional[int] = None):
        self.timeout_ms = timeout_ms
        msg = message
        if timeout_ms:
            msg += f" (timeout: {timeout_ms}ms)"
        super().__init__(msg, url)

class ConnectionError(TransportError):
    """
    Ошибка подключения.

    Примеры:
    - Connection refused
    - Connection reset
    - Network unreachable
    """
    code = TransferCode.COULDNT_CONNECT

class DNSError(ConnectionError):
    """DNS resolution failed."""
    code = TransferCode.COULDNT_RESOLVE_HOST

class SSLError(TransportError):
    """TLS handshake or certificate verification failed."""
    code = TransferCode.SSL_CONNECT_ERROR

class WriteAbortedError(TransportError):
    """A write or header callback refused the delivered bytes."""
    code = TransferCode.WRITE_ERROR

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# ФАТАЛЬНЫЕ ОШИБКИ (fatal=True)
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class FatalError(TransferEngineError):
    """Фатальная ошибка - НЕ повторять."""
    fatal = True

class ConfigurationError(FatalError):
    """Ошибка конфигурации дескриптора или движка."""

class SinkClosedError(FatalError):
    """Запись в sink после finalize()."""

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# СПЕЦИАЛЬНЫЕ
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class RetryBudgetExhaustedError(TransferEngineError):
    """
    Исчерпан бюджет повторов.

    Args:
        max_retries: Размер бюджета
        status: Последний наблюдаемый HTTP статус (0 если неизвестен)
        message: Последнее сообщение статуса или описание ошибки
        url: URL последней попытки
    """

    def __init__(
        self,
        max_retries: int,
        status: int = 0,
        message: Optional[str] = None,
        url: Optional[str] = None
    ):
        self.max_retries = max_retries
        self.status = status
        self.last_message = message
        self.url = url

        msg = f"Retry budget ({max_retries}) exhausted"
        if url:
            msg += f" for {url}"
        if status:
            msg += f". Last status: {status}"
        if message:
            msg += f" {message}"

        super().__init__(msg)

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# УТИЛИТЫ
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

def classify_transport_exception(
    exc: Exception,
    url: str,
    timeout_ms: Optional[int] = None
) -> TransportError:
    """
    Конвертировать исключения requests/httpx в TransportError.

    Args:
        exc: Исключение транспорта
        url: URL попытки
        timeout_ms: Таймаут попытки (для сообщения)

    Returns:
        TransportError с кодом результата передачи

    Examples:
        >>> err = classify_transport_exception(requests.exceptions.ReadTimeout(), "https://example.com")
        >>> assert err.code == TransferCode.OPERATION_TIMEDOUT
        >>> assert err.retryable
    """
    if isinstance(exc, TransportError):
        return exc

    if isinstance(exc, (requests.exceptions.Timeout, httpx.TimeoutException)):
        return TimeoutError("Operation timed out", url, timeout_ms)

    if isinstance(exc, requests.exceptions.SSLError):
        return SSLError(f"SSL error: {exc}", url)

    if isinstance(exc, requests.exceptions.InvalidURL) or isinstance(exc, httpx.InvalidURL):
        return TransportError(f"Malformed URL: {exc}", url, TransferCode.URL_MALFORMAT)

    if isinstance(exc, (requests.exceptions.MissingSchema,
                        requests.exceptions.InvalidSchema,
                        httpx.UnsupportedProtocol)):
        return TransportError(f"Unsupported protocol: {exc}", url, TransferCode.UNSUPPORTED_PROTOCOL)

    if isinstance(exc, (requests.exceptions.ConnectionError, httpx.ConnectError)):
        text = str(exc)
        if "Name or service not known" in text or "nodename nor servname" in text \
                or "getaddrinfo failed" in text or "NameResolutionError" in text:
            return DNSError(f"Could not resolve host: {exc}", url)
        if "CERTIFICATE_VERIFY_FAILED" in text or "SSL" in text:
            return SSLError(f"SSL error: {exc}", url)
        return ConnectionError(f"Connection error: {exc}", url)

    if isinstance(exc, (requests.exceptions.ChunkedEncodingError,
                        requests.exceptions.ContentDecodingError,
                        httpx.ReadError,
                        httpx.RemoteProtocolError)):
        return TransportError(f"Receive failure: {exc}", url, TransferCode.RECV_ERROR)

    if isinstance(exc, httpx.WriteError):
        return TransportError(f"Send failure: {exc}", url, TransferCode.SEND_ERROR)

    # Неизвестная ошибка - оборачиваем
    return TransportError(f"Transfer failed: {exc}", url, TransferCode.UNKNOWN)
