"""Trace context spans and W3C ``traceparent`` propagation through headers."""

from __future__ import annotations

import contextlib
import contextvars
import re
import secrets
from collections.abc import Iterator, Mapping, MutableMapping
from dataclasses import dataclass, field
from typing import Any, Union

from fregate.messages import Headers

__all__ = [
    "TRACEPARENT",
    "SpanContext",
    "Span",
    "current_span",
    "inject_from_span",
    "inject_from_current_span",
    "extract_context",
]

TRACEPARENT = "traceparent"
_INVALID_TRACE_ID = "0" * 32
_INVALID_SPAN_ID = "0" * 16
_TRACEPARENT_RE = re.compile(r"^([0-9a-f]{2})-([0-9a-f]{32})-([0-9a-f]{16})-([0-9a-f]{2})$")

HeaderTarget = Union[Headers, MutableMapping[str, str]]


@dataclass(frozen=True)
class SpanContext:
    """Identifiers of a span as carried between services."""

    trace_id: str = _INVALID_TRACE_ID
    span_id: str = _INVALID_SPAN_ID
    sampled: bool = True

    @property
    def is_valid(self) -> bool:
        """True when both ids are non-zero."""
        return self.trace_id != _INVALID_TRACE_ID and self.span_id != _INVALID_SPAN_ID

    def to_traceparent(self) -> str:
        """Encode as a W3C ``traceparent`` header value."""
        return f"00-{self.trace_id}-{self.span_id}-{'01' if self.sampled else '00'}"

    @classmethod
    def new_root(cls) -> SpanContext:
        """Create a context with fresh random ids."""
        return cls(trace_id=secrets.token_hex(16), span_id=secrets.token_hex(8))


@dataclass
class Span:
    """A named unit of work with recorded fields."""

    name: str
    fields: dict[str, Any] = field(default_factory=dict)
    context: SpanContext = field(default_factory=SpanContext.new_root)
    parent: SpanContext | None = None

    def record(self, key: str, value: Any) -> None:
        """Set the field ``key`` to ``value``."""
        self.fields[key] = value

    def set_parent(self, context: SpanContext | None) -> None:
        """Make ``context`` the parent; a valid parent gives this span its trace id."""
        if context is None or not context.is_valid:
            self.parent = None
            return
        self.parent = context
        self.context = SpanContext(context.trace_id, self.context.span_id, context.sampled)

    @contextlib.contextmanager
    def entered(self) -> Iterator[Span]:
        """Make this span the current one for the duration of the block."""
        token = _current.set(self)
        try:
            yield self
        finally:
            _current.reset(token)


_NO_SPAN = Span("none", context=SpanContext())
_current: contextvars.ContextVar[Span] = contextvars.ContextVar("fregate_current_span", default=_NO_SPAN)


def current_span() -> Span:
    """Return the span entered most recently, or a span with an invalid context."""
    return _current.get()


def inject_from_span(headers: HeaderTarget, span: Span) -> None:
    """Write the span's context into ``headers``; nothing is written for invalid contexts."""
    if not span.context.is_valid:
        return
    value = span.context.to_traceparent()
    if isinstance(headers, Headers):
        headers.set(TRACEPARENT, value)
    else:
        headers[TRACEPARENT] = value


def inject_from_current_span(headers: HeaderTarget) -> None:
    """Write the current span's context into ``headers``."""
    inject_from_span(headers, current_span())


def extract_context(headers: Headers | Mapping[str, str]) -> SpanContext | None:
    """Read a ``traceparent`` header; return ``None`` if absent or malformed."""
    if isinstance(headers, Headers):
        raw = headers.get(TRACEPARENT)
    else:
        raw = next((v for k, v in headers.items() if k.lower() == TRACEPARENT), None)
    if raw is None:
        return None
    match = _TRACEPARENT_RE.match(raw.strip().lower())
    if match is None or match.group(1) == "ff":
        return None
    context = SpanContext(match.group(2), match.group(3), int(match.group(4), 16) & 1 == 1)
    return context if context.is_valid else None