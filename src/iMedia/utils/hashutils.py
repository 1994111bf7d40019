"""Hashing utilities."""

from __future__ import annotations

import xxhash


def bytes_xxh3(data: bytes) -> str:
    """Return the XXH3 128-bit hash of *data*."""

    return xxhash.xxh3_128(data).hexdigest()
