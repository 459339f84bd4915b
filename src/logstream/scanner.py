from __future__ import annotations

from collections.abc import Iterator
from typing import Any

from .errors import LineTooLongError

# Matches the default token limit of the service's own line scanner.
MAX_LINE_BYTES = 64 * 1024
READ_SIZE = 4096


def _chunks(source: Any, read_size: int) -> Iterator[bytes]:
    read = getattr(source, "read", None)
    if callable(read):
        while True:
            chunk = read(read_size)
            if not chunk:
                return
            yield chunk
    else:
        yield from source


class LineScanner:
    """Split a byte source into lines.

    `source` is either a readable binary object (`read(n)` returning bytes,
    `b""` at end-of-data) or an iterable of byte chunks. Lines are returned
    without the `\\n` terminator and without one trailing `\\r`.

    `scan()` never raises: a failure of the source (or a line that does not
    fit into `max_line_bytes`) ends the scan and is kept in `err`.
    """

    def __init__(
        self,
        source: Any,
        *,
        max_line_bytes: int = MAX_LINE_BYTES,
        read_size: int = READ_SIZE,
    ):
        if max_line_bytes <= 0:
            raise ValueError("max_line_bytes must be positive")
        if read_size <= 0:
            raise ValueError("read_size must be positive")

        self._chunks: Iterator[bytes] | None = None
        self._source = source
        self._read_size = read_size
        self._max = max_line_bytes

        self._buf = bytearray()
        self._start = 0
        self._line = b""
        self._eof = False
        self._done = False
        self._err: BaseException | None = None

    @property
    def line(self) -> bytes:
        return self._line

    @property
    def err(self) -> BaseException | None:
        return self._err

    def _fill(self) -> None:
        # Drop consumed bytes before growing the buffer.
        if self._start:
            del self._buf[: self._start]
            self._start = 0

        if self._chunks is None:
            self._chunks = _chunks(self._source, self._read_size)
        chunk = next(self._chunks, None)
        if chunk is None:
            self._eof = True
        else:
            self._buf += chunk

    def _emit(self, end: int, next_start: int) -> bool:
        line = bytes(self._buf[self._start : end])
        if line.endswith(b"\r"):
            line = line[:-1]
        self._line = line
        self._start = next_start
        return True

    def scan(self) -> bool:
        if self._done:
            return False

        while True:
            nl = self._buf.find(b"\n", self._start)
            if nl >= 0:
                # The limit covers the terminator, as in the service.
                if nl + 1 - self._start > self._max:
                    return self._fail(LineTooLongError(self._max))
                return self._emit(nl, nl + 1)

            pending = len(self._buf) - self._start
            if pending >= self._max:
                return self._fail(LineTooLongError(self._max))

            if self._eof:
                if pending:
                    return self._emit(len(self._buf), len(self._buf))
                self._line = b""
                self._done = True
                return False

            try:
                self._fill()
            except Exception as e:
                return self._fail(e)

    def _fail(self, err: BaseException) -> bool:
        self._line = b""
        self._err = err
        self._done = True
        return False

