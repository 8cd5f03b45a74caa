"""Seeded hashing of hashable values."""

from __future__ import annotations

import secrets
from collections.abc import Hashable

__all__ = ["HashBuilder", "HashId"]

HashId = int

_U64_MASK = (1 << 64) - 1


class HashBuilder:
    """Computes 64-bit hashes with a random seed chosen per instance."""

    def __init__(self) -> None:
        self._seed = secrets.randbits(64)

    def __repr__(self) -> str:
        return "HashBuilder()"

    def calculate_hash(self, value: Hashable) -> HashId:
        """Return an unsigned 64-bit hash of ``value``.

        Equal values give equal hashes for the same builder.
        Raises ``TypeError`` for unhashable values.
        """
        return hash((self._seed, value)) & _U64_MASK