from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from decimal import Decimal, InvalidOperation
from typing import Any

from .errors import DecodeError

_RFC3339 = re.compile(
    r"^(\d{4})-(\d{2})-(\d{2})[Tt](\d{2}):(\d{2}):(\d{2})(?:\.(\d+))?([Zz]|[+-]\d{2}:\d{2})$"
)

_DURATION_PART = re.compile(r"(\d+\.?\d*|\.\d+)(ns|us|µs|μs|ms|s|m|h)")

MIN_DURATION_NS = -(2**63)
MAX_DURATION_NS = 2**63 - 1

_UNIT_NS = {
    "ns": 1,
    "us": 1_000,
    "µs": 1_000,
    "μs": 1_000,
    "ms": 1_000_000,
    "s": 1_000_000_000,
    "m": 60 * 1_000_000_000,
    "h": 3600 * 1_000_000_000,
}


def _json_type(v: Any) -> str:
    if isinstance(v, bool):
        return "bool"
    if isinstance(v, (int, float)):
        return "number"
    if isinstance(v, str):
        return "string"
    if isinstance(v, list):
        return "array"
    if isinstance(v, dict):
        return "object"
    return type(v).__name__


def _mismatch(key: str, want: str, v: Any) -> DecodeError:
    return DecodeError(f"cannot decode {key!r}: expected {want}, got {_json_type(v)}")


def _as_object(v: Any, *, key: str) -> dict[str, Any]:
    if v is None:
        return {}
    if not isinstance(v, dict):
        raise _mismatch(key, "object", v)
    return v


def _as_str(v: Any, *, key: str) -> str:
    # JSON null leaves the zero value, like a missing key.
    if v is None:
        return ""
    if not isinstance(v, str):
        raise _mismatch(key, "string", v)
    return v


def _as_int(v: Any, *, key: str) -> int:
    if v is None:
        return 0
    if isinstance(v, bool) or not isinstance(v, int):
        raise _mismatch(key, "integer", v)
    return v


def parse_timestamp(s: str) -> datetime:
    """Parse an RFC 3339 timestamp.

    Fractional seconds beyond microsecond precision are truncated.
    """

    m = _RFC3339.match(s)
    if m is None:
        raise ValueError(f"invalid RFC 3339 timestamp: {s!r}")

    year, month, day, hour, minute, second = (int(g) for g in m.groups()[:6])
    frac, offset = m.group(7), m.group(8)
    micro = int((frac or "0")[:6].ljust(6, "0"))

    if offset in ("Z", "z"):
        tz = timezone.utc
    else:
        sign = -1 if offset[0] == "-" else 1
        delta = timedelta(hours=int(offset[1:3]), minutes=int(offset[4:6]))
        tz = timezone(sign * delta)

    return datetime(year, month, day, hour, minute, second, micro, tzinfo=tz)


def format_timestamp(dt: datetime) -> str:
    out = dt.isoformat()
    if out.endswith("+00:00"):
        out = out[: -len("+00:00")] + "Z"
    return out


def nanoseconds_to_timedelta(ns: int) -> timedelta:
    # The service encodes durations as signed 64-bit nanoseconds.
    if not MIN_DURATION_NS <= ns <= MAX_DURATION_NS:
        raise ValueError(f"duration out of range: {ns}ns")
    # timedelta has microsecond resolution; truncate towards zero.
    td = timedelta(microseconds=abs(ns) // 1000)
    return -td if ns < 0 else td


def timedelta_to_nanoseconds(td: timedelta) -> int:
    return ((td.days * 86400 + td.seconds) * 1_000_000 + td.microseconds) * 1000


def parse_duration(s: str) -> timedelta:
    """Parse a duration string such as "1.5s", "250ms" or "1h2m3s"."""

    body = s
    sign = 1
    if body[:1] in ("-", "+"):
        sign = -1 if body[0] == "-" else 1
        body = body[1:]

    if body == "0":
        return timedelta(0)
    if not body:
        raise ValueError(f"invalid duration: {s!r}")

    total = Decimal(0)
    pos = 0
    for m in _DURATION_PART.finditer(body):
        if m.start() != pos:
            raise ValueError(f"invalid duration: {s!r}")
        try:
            total += Decimal(m.group(1)) * _UNIT_NS[m.group(2)]
        except InvalidOperation as e:
            raise ValueError(f"invalid duration: {s!r}") from e
        pos = m.end()
    if pos != len(body):
        raise ValueError(f"invalid duration: {s!r}")

    return nanoseconds_to_timedelta(sign * int(total))


def _as_timestamp(v: Any, *, key: str) -> datetime | None:
    if v is None:
        return None
    if not isinstance(v, str):
        raise _mismatch(key, "RFC 3339 string", v)
    try:
        return parse_timestamp(v)
    except ValueError as e:
        raise DecodeError(f"cannot decode {key!r}: {e}") from e


def _as_duration(v: Any, *, key: str) -> timedelta:
    if v is None:
        return timedelta(0)
    if isinstance(v, str):
        try:
            return parse_duration(v)
        except ValueError as e:
            raise DecodeError(f"cannot decode {key!r}: {e}") from e
    ns = _as_int(v, key=key)
    try:
        return nanoseconds_to_timedelta(ns)
    except ValueError as e:
        raise DecodeError(f"cannot decode {key!r}: {e}") from e


@dataclass(frozen=True)
class ErrorEvent:
    """An error logged by the service."""

    message: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {"message": self.message}

    @classmethod
    def from_dict(cls, data: Any) -> "ErrorEvent":
        obj = _as_object(data, key="error event")
        return cls(message=_as_str(obj.get("message"), key="message"))


@dataclass(frozen=True)
class AuditEventRequest:
    path: str = ""
    identity: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {"path": self.path, "identity": self.identity}

    @classmethod
    def from_dict(cls, data: Any) -> "AuditEventRequest":
        obj = _as_object(data, key="request")
        return cls(
            path=_as_str(obj.get("path"), key="request.path"),
            identity=_as_str(obj.get("identity"), key="request.identity"),
        )


@dataclass(frozen=True)
class AuditEventResponse:
    code: int = 0
    # Time spent handling the request.
    time: timedelta = timedelta(0)

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "time": timedelta_to_nanoseconds(self.time)}

    @classmethod
    def from_dict(cls, data: Any) -> "AuditEventResponse":
        obj = _as_object(data, key="response")
        return cls(
            code=_as_int(obj.get("code"), key="response.code"),
            time=_as_duration(obj.get("time"), key="response.time"),
        )


@dataclass(frozen=True)
class AuditEvent:
    """A request handled by the service, recorded right before responding."""

    time: datetime | None = None
    request: AuditEventRequest = field(default_factory=AuditEventRequest)
    response: AuditEventResponse = field(default_factory=AuditEventResponse)

    def to_dict(self) -> dict[str, Any]:
        return {
            "time": format_timestamp(self.time) if self.time is not None else None,
            "request": self.request.to_dict(),
            "response": self.response.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Any) -> "AuditEvent":
        obj = _as_object(data, key="audit event")
        return cls(
            time=_as_timestamp(obj.get("time"), key="time"),
            request=AuditEventRequest.from_dict(obj.get("request")),
            response=AuditEventResponse.from_dict(obj.get("response")),
        )
