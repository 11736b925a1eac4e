"""
Utility functions for transfer engine.

Includes:
- URL and header sanitization for safe logging and dumps
- Masking of sensitive structured log fields
- Percent-encoding helpers
"""

import re
from typing import Any, Optional, Set
from urllib.parse import parse_qs, quote, unquote, urlencode, urlparse, urlunparse


# Default sensitive parameter names that should be masked in logs
DEFAULT_SENSITIVE_PARAMS = {
    'api_key',
    'apikey',
    'api-key',
    'token',
    'access_token',
    'refresh_token',
    'key',
    'secret',
    'password',
    'passwd',
    'auth',
    'authorization',
    'client_secret',
    'session',
    'session_id',
    'sessionid',
}

SENSITIVE_HEADER_NAMES = {
    'authorization',
    'proxy-authorization',
    'api-key',
    'x-api-key',
    'x-auth-token',
    'cookie',
    'set-cookie',
    'x-csrf-token',
}

_BEARER_PATTERN = re.compile(r'((?:Bearer|Basic)\s+)(\S+)', re.IGNORECASE)


def sanitize_url(
    url: Optional[str],
    extra_params: Optional[Set[str]] = None,
    mask: str = 'REDACTED'
) -> Optional[str]:
    """
    Mask sensitive query parameters in URL for safe logging.

    Args:
        url: The URL to sanitize
        extra_params: Additional parameter names to mask (case-insensitive)
        mask: Replacement string

    Returns:
        URL with sensitive parameter values replaced

    Examples:
        >>> sanitize_url('https://api.example.com/data?api_key=secret123')
        'https://api.example.com/data?api_key=REDACTED'
    """
    if not url:
        return url

    try:
        sensitive_params = DEFAULT_SENSITIVE_PARAMS | (
            {p.lower() for p in extra_params} if extra_params else set()
        )

        parsed = urlparse(url)
        if not parsed.query:
            return url

        params = parse_qs(parsed.query, keep_blank_values=True)
        sanitized = {
            name: [mask] * len(values) if name.lower() in sensitive_params else values
            for name, values in params.items()
        }
        return urlunparse(parsed._replace(query=urlencode(sanitized, doseq=True)))

    except Exception:
        # Never fall back to the raw URL
        return '<URL sanitization failed>'


def sanitize_headers(headers: Optional[dict], mask: str = 'REDACTED') -> Optional[dict]:
    """
    Mask sensitive headers for safe logging.

    Examples:
        >>> sanitize_headers({'Authorization': 'Bearer token123'})
        {'Authorization': 'REDACTED'}
    """
    if not headers:
        return headers

    return {
        key: mask if key.lower() in SENSITIVE_HEADER_NAMES else value
        for key, value in headers.items()
    }


def mask_sensitive_data(data: Any, mask: str = "***REDACTED***") -> Any:
    """
    Recursively mask sensitive values in log fields.

    Dict keys are matched against the sensitive parameter and header names,
    strings are scrubbed of bearer/basic credentials and URL parameters.

    Examples:
        >>> mask_sensitive_data({"token": "abc", "status": 200})
        {'token': '***REDACTED***', 'status': 200}
    """
    if isinstance(data, dict):
        masked = {}
        for key, value in data.items():
            name = str(key).lower()
            if name in DEFAULT_SENSITIVE_PARAMS or name in SENSITIVE_HEADER_NAMES:
                masked[key] = mask
            else:
                masked[key] = mask_sensitive_data(value, mask)
        return masked

    if isinstance(data, (list, tuple)):
        return type(data)(mask_sensitive_data(item, mask) for item in data)

    if isinstance(data, str):
        text = _BEARER_PATTERN.sub(lambda m: m.group(1) + mask, data)
        if '://' in text and '?' in text:
            text = sanitize_url(text, mask=mask)
        return text

    return data


def escape(data: str) -> str:
    """
    Percent-encode a string for use in a URL component.

    Example:
        >>> escape("a b&c")
        'a%20b%26c'
    """
    return quote(data, safe='')


def unescape(data: str) -> str:
    """
    Decode a percent-encoded string.

    Example:
        >>> unescape('a%20b%26c')
        'a b&c'
    """
    return unquote(data)
