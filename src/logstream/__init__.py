from __future__ import annotations

from .errors import DecodeError, LineTooLongError, StreamError
from .events import AuditEvent, AuditEventRequest, AuditEventResponse, ErrorEvent
from .stream import AuditStream, ErrorStream, EventStream, json_record_decoder

__all__ = [
    "AuditEvent",
    "AuditEventRequest",
    "AuditEventResponse",
    "AuditStream",
    "DecodeError",
    "ErrorEvent",
    "ErrorStream",
    "EventStream",
    "LineTooLongError",
    "StreamError",
    "json_record_decoder",
]
