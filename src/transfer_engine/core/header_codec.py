"""
Wire encoding of request headers and decoding of response header blocks.

Decoding never raises: a status line that cannot be parsed leaves the
status at 0 and the rest of the block is still read.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Tuple, Union

logger = logging.getLogger(__name__)

HeaderData = Union[bytes, bytearray, str]


@dataclass(frozen=True)
class ResponseHead:
    """Decoded status line and header map of a response."""
    http_version: str = ""
    status: int = 0
    message: str = ""
    headers: Dict[str, str] = field(default_factory=dict)


def encode_request_header(
    content_type: str,
    headers: Optional[Mapping[str, str]] = None
) -> List[str]:
    """
    Serialize request headers into ``"Key:Value"`` lines.

    The ``Content-Type`` line always comes first; user headers follow in
    insertion order.

    Example:
        >>> encode_request_header("application/json", {"X-Trace": "1"})
        ['Content-Type:application/json', 'X-Trace:1']
    """
    lines = [f"Content-Type:{content_type}"]
    if headers:
        for key, value in headers.items():
            lines.append(f"{key}:{value}")
    return lines


def decode_response_header(data: HeaderData) -> ResponseHead:
    """
    Decode an accumulated response header stream.

    Args:
        data: Raw header bytes as delivered by the header callback

    Returns:
        ResponseHead with version, status, message and headers

    The stream may hold several blocks when the server sent interim 1xx
    responses first; those are skipped and the block that follows is
    decoded. A missing trailing blank line is fine.

    Example:
        >>> head = decode_response_header(b"HTTP/1.1 200 OK\\r\\nA: b\\r\\n\\r\\n")
        >>> head.status, head.headers
        (200, {'A': 'b'})
    """
    blocks = _split_blocks(_to_lines(data))
    if not blocks:
        return ResponseHead()

    index = 0
    version, status, message = _parse_status_line(blocks[0][0])
    while 100 <= status < 200 and index + 1 < len(blocks):
        index += 1
        version, status, message = _parse_status_line(blocks[index][0])

    headers = _parse_fields(blocks[index][1:])
    return ResponseHead(
        http_version=version,
        status=status,
        message=message,
        headers=headers,
    )


def parse_header_lines(data: HeaderData, skip_first: bool = True) -> Dict[str, str]:
    """
    Parse a header block into a dict, stopping at the first blank line.

    Used for the outgoing-header debug stream, where the first line is the
    request line.
    """
    lines = _to_lines(data)
    if skip_first and lines:
        lines = lines[1:]

    block = []
    for line in lines:
        if not line.strip():
            break
        block.append(line)
    return _parse_fields(block)


def _to_lines(data: HeaderData) -> List[str]:
    if isinstance(data, (bytes, bytearray)):
        data = bytes(data).decode("utf-8", errors="replace")
    return data.splitlines()


def _split_blocks(lines: List[str]) -> List[List[str]]:
    blocks: List[List[str]] = []
    current: List[str] = []
    for line in lines:
        if line.strip():
            current.append(line)
        elif current:
            blocks.append(current)
            current = []
    if current:
        blocks.append(current)
    return blocks


def _parse_status_line(line: str) -> Tuple[str, int, str]:
    line = line.strip()
    first = line.find(" ")
    if first < 0:
        logger.debug(f"Malformed status line: {line!r}")
        return line, 0, ""

    version = line[:first]
    second = line.find(" ", first + 1)
    if second < 0:
        status_text, message = line[first + 1:], ""
    else:
        status_text, message = line[first + 1:second], line[second + 1:]

    try:
        status = int(status_text)
    except ValueError:
        logger.debug(f"Malformed status line: {line!r}")
        status = 0
    return version, status, message


def _parse_fields(lines: List[str]) -> Dict[str, str]:
    headers: Dict[str, str] = {}
    for line in lines:
        index = line.find(":")
        if index < 0:
            # Not a header field; skip it
            continue
        key = line[:index].strip()
        if key:
            headers[key] = line[index + 1:].strip()
    return headers
