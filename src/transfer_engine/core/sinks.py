"""
Append-only destinations for streamed response bytes.

A sink is created per attempt in ``prepare()`` and fed by the static write
and header callbacks, possibly from a transport worker thread. Each sink is
only ever written by the one transfer it belongs to, so no locking is done
here; ordering is whatever order ``append`` is called in.
"""

import io
from pathlib import Path
from typing import Optional, Union

from .exceptions import SinkClosedError


class StreamSink:
    """Base class for append-only byte sinks."""

    def __init__(self):
        self._closed = False
        self._size = 0

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def size(self) -> int:
        """Number of bytes appended so far."""
        return self._size

    def append(self, chunk: bytes) -> int:
        """
        Append one chunk.

        Args:
            chunk: Bytes as delivered by the transport

        Returns:
            Number of bytes consumed

        Raises:
            SinkClosedError: If the sink was already finalized
        """
        if self._closed:
            raise SinkClosedError(f"{self.__class__.__name__} is closed")
        written = self._write(chunk)
        self._size += written
        return written

    def finalize(self) -> Optional[bytes]:
        """
        Close the backing resource.

        Safe to call more than once; only the first call does any work.

        Returns:
            Accumulated bytes for in-memory sinks, None for file sinks
        """
        if self._closed:
            return self._result()
        self._closed = True
        self._close()
        return self._result()

    def _write(self, chunk: bytes) -> int:
        raise NotImplementedError

    def _close(self) -> None:
        raise NotImplementedError

    def _result(self) -> Optional[bytes]:
        return None


class MemorySink(StreamSink):
    """
    In-memory sink.

    Example:
        >>> sink = MemorySink()
        >>> for chunk in (b"ab", b"cd", b"ef"):
        ...     sink.append(chunk)
        >>> sink.finalize()
        b'abcdef'
    """

    def __init__(self):
        super().__init__()
        self._buffer = io.BytesIO()
        self._data: Optional[bytes] = None

    def _write(self, chunk: bytes) -> int:
        return self._buffer.write(chunk)

    def _close(self) -> None:
        self._data = self._buffer.getvalue()
        self._buffer.close()

    def _result(self) -> Optional[bytes]:
        return self._data

    def getvalue(self) -> bytes:
        """Bytes accumulated so far, without finalizing."""
        if self._closed:
            return self._data or b""
        return self._buffer.getvalue()


class FileSink(StreamSink):
    """
    Sink writing straight to a file.

    The file is opened for create-or-truncate as soon as the sink is built
    and missing parent directories are created. I/O happens on whatever
    thread calls ``append``.
    """

    def __init__(self, path: Union[str, Path]):
        super().__init__()
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._file = open(self.path, "wb")

    def _write(self, chunk: bytes) -> int:
        return self._file.write(chunk)

    def _close(self) -> None:
        self._file.close()


def open_body_sink(output_path: Optional[str]) -> StreamSink:
    """Memory sink when no output path is given, file sink otherwise."""
    if output_path:
        return FileSink(output_path)
    return MemorySink()
