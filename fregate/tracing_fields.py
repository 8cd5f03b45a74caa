"""A bag of key-value pairs that the event formatter flattens into log lines."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from typing import Any

__all__ = ["TracingFields"]


class TracingFields(Mapping[str, Any]):
    """Named values to log together.

    Passed as a single ``extra`` entry to a logging call, its pairs are
    written as top-level fields of the event by
    :class:`fregate.event_formatter.EventFormatter` rather than nested
    under the entry's own name.
    """

    def __init__(self, fields: Mapping[str, Any] | None = None) -> None:
        self._fields: dict[str, Any] = dict(fields) if fields is not None else {}

    def insert(self, key: str, value: Any) -> None:
        """Store ``value`` under ``key``, overwriting any previous value."""
        self._fields[key] = value

    def insert_ref(self, key: str, value: Any) -> None:
        """Store a reference to ``value`` under ``key``, overwriting any previous value."""
        self._fields[key] = value

    def insert_str(self, key: str, value: str) -> None:
        """Store the string ``value`` under ``key``, overwriting any previous value."""
        if not isinstance(value, str):
            raise TypeError(f"expected str, found {type(value).__name__}")
        self._fields[key] = value

    def insert_as_string(self, key: str, value: Any) -> None:
        """Store ``str(value)`` under ``key``, overwriting any previous value."""
        self._fields[key] = str(value)

    def insert_as_debug(self, key: str, value: Any) -> None:
        """Store ``repr(value)`` under ``key``, overwriting any previous value."""
        self._fields[key] = repr(value)

    def remove_keys(self, keys: Iterable[str]) -> None:
        """Remove every key in ``keys``; missing keys are ignored."""
        for key in keys:
            self.remove_by_key(key)

    def remove_by_key(self, key: str) -> None:
        """Remove ``key`` if present."""
        self._fields.pop(key, None)

    def merge(self, other: TracingFields) -> None:
        """Copy every pair of ``other`` into this map; ``other`` wins on clashes."""
        self._fields.update(other._fields)

    def as_value(self) -> dict[str, Any]:
        """Return the pairs as a plain dictionary."""
        return dict(self._fields)

    def __getitem__(self, key: str) -> Any:
        return self._fields[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._fields)

    def __len__(self) -> int:
        return len(self._fields)

    def __repr__(self) -> str:
        inner = ", ".join(f"{k}={v!r}" for k, v in self._fields.items())
        return f"TracingFields({inner})"