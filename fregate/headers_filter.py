"""Header filtering: include, exclude and sanitize header values."""

from __future__ import annotations

import os
import threading
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from fregate.messages import Headers

__all__ = [
    "SANITIZED_VALUE",
    "Filter",
    "HeadersFilter",
    "pointer_and_deserialize",
    "set_headers_filter",
    "get_headers_filter",
    "get_filtered",
]

SANITIZED_VALUE = "*****"

_SANITIZE_PTR = "/sanitize"
_INCLUDE_PTR = "/include"
_EXCLUDE_PTR = "/exclude"


def _pointer(value: Any, pointer: str) -> Any:
    if pointer == "":
        return value
    if not pointer.startswith("/"):
        raise KeyError(pointer)
    target = value
    for raw in pointer[1:].split("/"):
        segment = raw.replace("~1", "/").replace("~0", "~")
        if isinstance(target, Mapping):
            target = target[segment]
        elif isinstance(target, list) and segment.isdigit() and (segment == "0" or not segment.startswith("0")):
            target = target[int(segment)]
        else:
            raise KeyError(segment)
    return target


def pointer_and_deserialize(value: Any, pointer: str, kind: type) -> Any:
    """Look up ``pointer`` (a JSON pointer) in ``value`` and check it is of ``kind``.

    Raises ``KeyError`` if nothing is found and ``TypeError`` on a type mismatch.
    """
    try:
        found = _pointer(value, pointer)
    except (KeyError, IndexError):
        raise KeyError(f"missing field `{pointer}`") from None
    if not isinstance(found, kind):
        raise TypeError(f"invalid type at `{pointer}`: expected {kind.__name__}, found {type(found).__name__}")
    return found


@dataclass(frozen=True)
class Filter:
    """Either every header (``everything``) or a set of lower-cased header names."""

    names: frozenset[str] = field(default_factory=frozenset)
    everything: bool = False

    @classmethod
    def parse(cls, text: str | None) -> Filter:
        """Parse ``"*"`` or a comma separated list of names; ``None`` gives an empty set."""
        if text is None:
            return cls()
        text = text.strip()
        if text == "*":
            return cls(everything=True)
        return cls(names=frozenset(part.strip().lower() for part in text.split(",")))

    def contains(self, name: str) -> bool:
        """Return whether the header ``name`` is matched by this filter."""
        return self.everything or name.lower() in self.names


@dataclass(frozen=True)
class HeadersFilter:
    """Which headers to include, exclude and sanitize."""

    include: Filter = field(default_factory=Filter)
    exclude: Filter = field(default_factory=Filter)
    sanitize: Filter = field(default_factory=Filter)

    @classmethod
    def from_config(cls, config: Any) -> HeadersFilter:
        """Build from a mapping with optional string keys ``include``, ``exclude``, ``sanitize``.

        Missing or non-string entries give an empty set of names.
        """

        def read(pointer: str) -> str | None:
            try:
                return pointer_and_deserialize(config, pointer, str)
            except (KeyError, TypeError):
                return None

        return cls(
            include=Filter.parse(read(_INCLUDE_PTR)),
            exclude=Filter.parse(read(_EXCLUDE_PTR)),
            sanitize=Filter.parse(read(_SANITIZE_PTR)),
        )

    @classmethod
    def from_env(cls, prefix: str) -> HeadersFilter:
        """Build from ``<PREFIX>_HEADERS_INCLUDE``, ``_EXCLUDE`` and ``_SANITIZE``.

        When the include variable is unset every header is included.
        """
        config: dict[str, str] = {"include": "*"}
        for key in ("include", "exclude", "sanitize"):
            value = os.environ.get(f"{prefix}_HEADERS_{key.upper()}")
            if value is not None:
                config[key] = value
        return cls.from_config(config)


_lock = threading.Lock()
_headers_filter: HeadersFilter | None = None


def set_headers_filter(headers_filter: HeadersFilter) -> HeadersFilter:
    """Install the process-wide filter once; return whichever filter is installed."""
    global _headers_filter
    with _lock:
        if _headers_filter is None:
            _headers_filter = headers_filter
        return _headers_filter


def get_headers_filter() -> HeadersFilter | None:
    """Return the process-wide filter, or ``None`` if none was installed."""
    return _headers_filter


def get_filtered(headers: Headers, headers_filter: HeadersFilter | None = None) -> Headers:
    """Return the headers left after applying a filter.

    Uses the process-wide filter when none is given; with no filter at all
    the same ``headers`` object is returned.
    """
    active = headers_filter if headers_filter is not None else get_headers_filter()
    if active is None:
        return headers
    filtered = Headers()
    for name, value in headers.items():
        lowered = name.lower()
        if not active.include.contains(lowered) or active.exclude.contains(lowered):
            continue
        filtered.add(name, SANITIZED_VALUE if active.sanitize.contains(lowered) else value)
    return filtered