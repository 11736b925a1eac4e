"""
Static callback table handed to the multiplexer.

These are plain module-level functions registered once; none of them closes
over a descriptor. Each one finds its descriptor through the process-wide
registry using the token the multiplexer passes back. Returning fewer bytes
than offered tells the transport to abort the transfer.
"""

import logging

from ..transport.types import DebugKind, TransferCallbacks
from .exceptions import SinkClosedError
from .header_codec import parse_header_lines
from .registry import get_registry

logger = logging.getLogger(__name__)


def header_function(token: int, data: bytes) -> int:
    """Append one response header line to the descriptor's header sink."""
    descriptor = get_registry().resolve(token)
    if descriptor is None or descriptor.header_sink is None:
        logger.warning(f"Header data for unknown token {token}, aborting transfer")
        return 0
    try:
        return descriptor.header_sink.append(data)
    except SinkClosedError:
        return 0


def write_function(token: int, data: bytes) -> int:
    """Append one body chunk to the descriptor's body sink."""
    descriptor = get_registry().resolve(token)
    if descriptor is None or descriptor.body_sink is None:
        logger.warning(f"Body data for unknown token {token}, aborting transfer")
        return 0
    try:
        return descriptor.body_sink.append(data)
    except SinkClosedError:
        return 0


def debug_function(token: int, kind: DebugKind, data: bytes) -> int:
    """Capture the outgoing header block for diagnostics."""
    if kind is not DebugKind.HEADER_OUT:
        return 0
    descriptor = get_registry().resolve(token)
    if descriptor is None:
        return 0

    headers = parse_header_lines(data, skip_first=True)
    if descriptor.sent_headers is None:
        descriptor.sent_headers = {}
    descriptor.sent_headers.update(headers)
    return 0


CALLBACKS = TransferCallbacks(
    header=header_function,
    write=write_function,
    debug=debug_function,
)
