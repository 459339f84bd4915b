from __future__ import annotations

import json
import logging
from collections.abc import Callable, Iterator
from typing import Any, Generic, TypeVar

from .errors import DecodeError
from .events import AuditEvent, ErrorEvent
from .scanner import MAX_LINE_BYTES, READ_SIZE, LineScanner

logger = logging.getLogger(__name__)

E = TypeVar("E")


def json_record_decoder(from_dict: Callable[[dict[str, Any]], E]) -> Callable[[bytes], E]:
    """Return a decoder turning one JSON-encoded line into a record."""

    def decode(raw: bytes) -> E:
        # Besides JSONDecodeError, bad UTF-8 and oversized integers raise ValueError.
        try:
            obj = json.loads(raw)
        except (ValueError, RecursionError) as e:
            raise DecodeError(str(e)) from e
        if not isinstance(obj, dict):
            raise DecodeError(f"cannot decode line: expected object, got {type(obj).__name__}")
        return from_dict(obj)

    return decode


class EventStream(Generic[E]):
    """Iterate over a newline-delimited stream of JSON records.

    Successive calls to `next()` step through the records of a byte source.
    Each non-empty line must hold exactly one JSON-encoded record; empty
    lines are skipped.

    Iteration stops at the end of the source, at the first read error, at a
    line too large for the buffer, at the first line that cannot be decoded,
    or once the stream gets closed. After `next()` returned False, `err`
    holds the error that stopped the iteration (None for a clean end).

    Closing the stream closes the source, if it has a `close()` method, and
    every later call to `next()` returns False.
    """

    def __init__(
        self,
        source: Any,
        decode: Callable[[bytes], E],
        *,
        max_line_bytes: int = MAX_LINE_BYTES,
        read_size: int = READ_SIZE,
    ):
        self._scanner = LineScanner(source, max_line_bytes=max_line_bytes, read_size=read_size)
        self._decode = decode

        self._event: E | None = None
        self._err: BaseException | None = None

        close = getattr(source, "close", None)
        self._closer: Callable[[], Any] | None = close if callable(close) else None
        self._closed = False

    @property
    def err(self) -> BaseException | None:
        """The first non-EOF error encountered while iterating.

        Errors raised by `close()` are never reported here.
        """
        return self._err

    @property
    def event(self) -> E | None:
        """The record decoded by the most recent successful `next()`."""
        return self._event

    @property
    def raw(self) -> bytes:
        """The most recently scanned line, which may not be valid JSON.

        Only meaningful until the next call to `next()`.
        """
        return self._scanner.line

    @property
    def closed(self) -> bool:
        return self._closed

    def next(self) -> bool:
        """Advance to the next record.

        Returns False once the iteration stops: at the end of the source,
        after closing the stream, or on error (see `err`).
        """

        if self._err is not None or self._closed:
            return False

        while True:
            if not self._scanner.scan():
                # Errors caused by closing the source are ignored.
                if not self._closed:
                    self._err = self._scanner.err
                    if self._err is None:
                        logger.debug("event stream reached end of data")
                    else:
                        logger.debug("event stream read failed: %s", self._err)
                return False
            if self._scanner.line:
                break

        try:
            event = self._decode(self._scanner.line)
        except DecodeError as e:
            if not self._closed:
                self._err = e
                logger.debug("event stream decode failed: %s", e)
            return False

        self._event = event
        return True

    def close(self) -> None:
        """Close the underlying source, if it can be closed.

        Exceptions raised by the source's `close()` propagate to the caller;
        they are not recorded in `err`.
        """

        if self._closer is None:
            return
        self._closed = True
        logger.debug("closing event stream")
        self._closer()

    def __iter__(self) -> Iterator[E]:
        while self.next():
            yield self._event  # type: ignore[misc]
        if self._err is not None:
            raise self._err

    def __enter__(self) -> "EventStream[E]":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc is None:
            self.close()
            return
        try:
            self.close()
        except Exception:
            logger.debug("closing event stream failed", exc_info=True)


class ErrorStream(EventStream[ErrorEvent]):
    """A stream of error events, as served by the service's error log."""

    def __init__(self, source: Any, **kwargs: Any):
        super().__init__(source, json_record_decoder(ErrorEvent.from_dict), **kwargs)


class AuditStream(EventStream[AuditEvent]):
    """A stream of audit events, as served by the service's audit log."""

    def __init__(self, source: Any, **kwargs: Any):
        super().__init__(source, json_record_decoder(AuditEvent.from_dict), **kwargs)
