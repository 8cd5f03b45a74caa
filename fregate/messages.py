"""Minimal HTTP message types used across the package."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from typing import Any, Union

__all__ = ["Headers", "Request", "Response", "yaml"]

_HeaderSource = Union[Mapping[str, str], Iterable[tuple[str, str]], None]


class Headers:
    """Ordered, case-insensitive multi-map of header names to values.

    Names are stored lower-cased.
    """

    def __init__(self, items: _HeaderSource = None) -> None:
        self._items: list[tuple[str, str]] = []
        if items is not None:
            pairs = items.items() if isinstance(items, Mapping) else items
            for name, value in pairs:
                self.add(name, value)

    def add(self, name: str, value: str) -> None:
        """Append a value, keeping any existing ones."""
        self._items.append((name.lower(), value))

    def set(self, name: str, value: str) -> None:
        """Replace all values of ``name`` with ``value``."""
        self.remove(name)
        self.add(name, value)

    def remove(self, name: str) -> None:
        """Drop every value of ``name``."""
        key = name.lower()
        self._items = [(n, v) for n, v in self._items if n != key]

    def get(self, name: str, default: str | None = None) -> str | None:
        """Return the first value of ``name`` or ``default``."""
        key = name.lower()
        return next((v for n, v in self._items if n == key), default)

    def get_all(self, name: str) -> list[str]:
        """Return every value of ``name`` in insertion order."""
        key = name.lower()
        return [v for n, v in self._items if n == key]

    def items(self) -> list[tuple[str, str]]:
        """Return all (name, value) pairs in insertion order."""
        return list(self._items)

    def __getitem__(self, name: str) -> str:
        value = self.get(name)
        if value is None:
            raise KeyError(name)
        return value

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and any(n == name.lower() for n, _ in self._items)

    def __iter__(self) -> Iterator[str]:
        return (n for n, _ in self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Headers):
            return NotImplemented
        return self._items == other._items

    def __repr__(self) -> str:
        return f"Headers({self._items!r})"


@dataclass
class Request:
    """An HTTP request."""

    method: str = "GET"
    uri: str = "/"
    headers: Headers = field(default_factory=Headers)
    body: bytes = b""
    extensions: dict[Any, Any] = field(default_factory=dict)


@dataclass
class Response:
    """An HTTP response."""

    status: int = 200
    headers: Headers = field(default_factory=Headers)
    body: bytes = b""


def yaml(content: str) -> Response:
    """Wrap YAML text in a response with YAML content type and cache-control headers."""
    headers = Headers([("content-type", "application/yaml"), ("cache-control", "24 hours")])
    return Response(status=200, headers=headers, body=content.encode("utf-8"))