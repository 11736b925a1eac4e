"""Human-readable dump of a finished exchange."""

from typing import Dict, List, Optional

from .config import DEFAULT_PREVIEW_LIMIT
from .descriptor import RequestDescriptor
from .utils import sanitize_headers, sanitize_url


def dump(descriptor: RequestDescriptor, preview_limit: int = DEFAULT_PREVIEW_LIMIT) -> str:
    """
    Render a multi-line summary of the last attempt.

    The first line carries effective URL, method, protocol/status/message,
    upload and download sizes (transport-reported, then actual) and the
    total time. Header sections and body previews follow when present.
    Reads the descriptor only.

    Example output::

        https://api.example.com/users [ POST ] [ HTTP/1.1 200 OK ] [ 17(17) | 42(42) ] [ 81.0 ms ]
        Request Headers
        [Content-Type] application/json
        Request Body [ 17 ]
        {"name": "alice"}
    """
    info = descriptor.transfer_info
    effective_url = info.effective_url if info and info.effective_url else descriptor.url
    upload_size = info.upload_size if info else 0
    download_size = info.download_size if info else 0
    total_ms = round(info.total_time * 1000, 2) if info else 0.0

    out_len = len(descriptor.out_data) if descriptor.out_data else 0
    in_len = len(descriptor.in_data) if descriptor.in_data else 0

    lines: List[str] = [
        f"{sanitize_url(effective_url)} [ {descriptor.method.upper()} ] "
        f"[ {descriptor.http_version or ''} {descriptor.status} {descriptor.message or ''} ] "
        f"[ {upload_size}({out_len}) | {download_size}({in_len}) ] "
        f"[ {total_ms} ms ]"
    ]

    request_headers = descriptor.sent_headers
    if request_headers is None:
        request_headers = descriptor.get_all_request_headers()
    _header_section(lines, "Request Headers", request_headers)
    _body_section(lines, "Request Body", descriptor.out_data, preview_limit)

    _header_section(lines, "Response Headers", descriptor.get_all_response_headers())
    _body_section(lines, "Response Body", descriptor.in_data, preview_limit)

    return "\n".join(lines)


def _header_section(lines: List[str], title: str, headers: Optional[Dict[str, str]]) -> None:
    if headers is None:
        return
    lines.append(title)
    for key, value in sanitize_headers(headers).items():
        lines.append(f"[{key}] {value}")


def _body_section(lines: List[str], title: str, body: Optional[bytes], limit: int) -> None:
    if not body:
        return
    lines.append(f"{title} [ {len(body)} ]")
    lines.append(body[:limit].decode("utf-8", errors="replace"))
