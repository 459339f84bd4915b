from __future__ import annotations


class StreamError(Exception):
    """Base class for errors raised while decoding an event log."""


class LineTooLongError(StreamError):
    def __init__(self, limit: int):
        super().__init__(f"token too long (line exceeds {limit} bytes)")
        self.limit = limit


class DecodeError(StreamError, ValueError):
    """A non-empty line is not a valid JSON record of the expected shape.

    The message of the underlying error is kept as-is; the error itself is
    available as `__cause__`.
    """
