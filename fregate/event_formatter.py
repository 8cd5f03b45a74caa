"""JSON log line formatter for the standard logging module."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any

from fregate.errors import FregateError
from fregate.text import limit_str
from fregate.tracing_fields import TracingFields

__all__ = [
    "VERSION",
    "SERVICE",
    "COMPONENT",
    "TARGET",
    "MSG",
    "MESSAGE",
    "LOG_LEVEL",
    "TIME",
    "TIMESTAMP",
    "TRACE_ID",
    "SPAN_ID",
    "DEFAULT_FIELDS",
    "EventFormatter",
]

VERSION = "version"
SERVICE = "service"
COMPONENT = "component"
TARGET = "target"
MSG = "msg"
MESSAGE = "message"
LOG_LEVEL = "LogLevel"
TIME = "time"
TIMESTAMP = "timestamp"
TRACE_ID = "traceId"
SPAN_ID = "spanId"

DEFAULT_FIELDS: frozenset[str] = frozenset(
    {VERSION, SERVICE, COMPONENT, TARGET, MSG, LOG_LEVEL, TIME, TIMESTAMP, MESSAGE, TRACE_ID, SPAN_ID}
)

# Record attributes that carry the current trace and span ids.
_TRACE_ID_ATTR = "trace_id"
_SPAN_ID_ATTR = "span_id"
_INVALID_SPAN_ID = "0000000000000000"

_STANDARD_ATTRS: frozenset[str] = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None))
) | {"message", "asctime", "taskName", "created_ns", _TRACE_ID_ATTR, _SPAN_ID_ATTR}


def _level_name(levelno: int) -> str:
    if levelno >= logging.ERROR:
        return "ERROR"
    if levelno >= logging.WARNING:
        return "WARN"
    if levelno >= logging.INFO:
        return "INFO"
    if levelno >= logging.DEBUG:
        return "DEBUG"
    return "TRACE"


def _encode(value: Any) -> Any:
    if isinstance(value, Mapping):
        return dict(value)
    if isinstance(value, (set, frozenset)):
        return list(value)
    if isinstance(value, BaseException):
        return str(value)
    return repr(value)


def _dumps(value: Any) -> str:
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False, default=_encode)


class EventFormatter(logging.Formatter):
    """Formats log records as one-line JSON objects.

    Fields appear in this order: ``time``, ``timestamp``, ``LogLevel``,
    ``target``, ``traceId`` and ``spanId`` (when the record carries
    ``trace_id``), the fields added to every event, ``msg``, then the
    record's ``extra`` fields sorted by name. A :class:`TracingFields`
    passed as an extra value is flattened into top-level fields.
    """

    def __init__(
        self,
        msg_len: int | None = None,
        *,
        version: str | None = None,
        service: str | None = None,
        component: str | None = None,
    ) -> None:
        super().__init__()
        self.msg_len = msg_len
        self._additional_fields: dict[str, Any] = {}
        for key, value in ((VERSION, version), (SERVICE, service), (COMPONENT, component)):
            if value is not None:
                self._store_field(key, value)

    def __repr__(self) -> str:
        return f"EventFormatter(msg_len={self.msg_len!r}, additional_fields={self._additional_fields!r})"

    def add_field_to_events(self, key: str, value: Any) -> None:
        """Add a field written in every event.

        Raises :class:`FregateError` for reserved names or values that
        cannot be represented as JSON.
        """
        if key in DEFAULT_FIELDS:
            raise FregateError(f"Prohibited to add key: '{key}' to EventFormatter")
        self._store_field(key, value)

    def _store_field(self, key: str, value: Any) -> None:
        try:
            normalized = json.loads(json.dumps(value))
        except (TypeError, ValueError) as err:
            raise FregateError(str(err)) from err
        self._additional_fields[key] = normalized

    def _event_fields(self, record: logging.LogRecord) -> dict[str, Any]:
        storage: dict[str, Any] = {}
        for key, value in vars(record).items():
            if key in _STANDARD_ATTRS:
                continue
            if isinstance(value, TracingFields):
                storage.update(value.as_value())
            else:
                storage[key] = value
        return storage

    def format(self, record: logging.LogRecord) -> str:
        """Render ``record`` as a JSON object on one line."""
        storage = self._event_fields(record)

        message = record.getMessage()
        if self.msg_len is not None:
            message = limit_str(message, self.msg_len)

        created_ns = getattr(record, "created_ns", None)
        if created_ns is None:
            created_ns = int(round(record.created * 1_000_000_000))
        moment = datetime.fromtimestamp(created_ns // 1_000_000_000, tz=timezone.utc)
        millis = created_ns // 1_000_000 % 1000
        timestamp = f"{moment:%Y-%m-%dT%H:%M:%S}.{millis:03d}Z"

        line: dict[str, Any] = {
            TIME: created_ns,
            TIMESTAMP: timestamp,
            LOG_LEVEL: _level_name(record.levelno),
            TARGET: record.name,
        }

        trace_id = getattr(record, _TRACE_ID_ATTR, None)
        if trace_id is not None:
            span_id = getattr(record, _SPAN_ID_ATTR, None)
            line[TRACE_ID] = str(trace_id)
            line[SPAN_ID] = str(span_id) if span_id is not None else _INVALID_SPAN_ID

        for key in sorted(self._additional_fields):
            line[key] = self._additional_fields[key]

        line[MSG] = message

        for key in sorted(storage):
            if key not in DEFAULT_FIELDS and key not in self._additional_fields:
                line[key] = storage[key]

        try:
            return _dumps(line)
        except (TypeError, ValueError) as err:
            return str(err)