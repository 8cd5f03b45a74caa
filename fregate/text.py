"""Text helpers that respect UTF-8 character boundaries."""

from __future__ import annotations

__all__ = ["floor_char_boundary", "limit_str", "TRUNCATION_SUFFIX"]

TRUNCATION_SUFFIX = " ..."


def _is_utf8_char_boundary(byte: int) -> bool:
    # Continuation bytes look like 0b10xxxxxx.
    return byte < 0x80 or byte >= 0xC0


def floor_char_boundary(val: str | bytes, index: int) -> int:
    """Return the largest UTF-8 byte offset not above ``index`` that starts a character.

    ``val`` is a string (measured in its UTF-8 encoding) or UTF-8 bytes.
    """
    if index < 0:
        raise ValueError("index must not be negative")
    data = val.encode("utf-8") if isinstance(val, str) else bytes(val)
    if index >= len(data):
        return len(data)
    lower_bound = max(index - 3, 0)
    for position in range(index, lower_bound - 1, -1):
        if _is_utf8_char_boundary(data[position]):
            return position
    raise ValueError("input is not valid UTF-8")


def limit_str(value: str, limit: int) -> str:
    """Cut ``value`` to at most ``limit`` UTF-8 bytes, marking the cut with ``" ..."``."""
    data = value.encode("utf-8")
    if len(data) <= limit:
        return value
    cut = floor_char_boundary(data, limit)
    return data[:cut].decode("utf-8") + TRUNCATION_SUFFIX