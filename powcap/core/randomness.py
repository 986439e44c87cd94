"""Cryptographically secure hex material for salts, targets and tokens."""

from __future__ import annotations

import secrets

from powcap.exceptions import EntropyUnavailable


def random_hex(length: int) -> str:
    """Return exactly ``length`` random hex characters.

    Draws ``ceil(length / 2)`` bytes and truncates the encoding, so an odd
    length drops the low nibble of the last byte.
    """
    if length < 1:
        msg = f"length must be positive, got {length}"
        raise ValueError(msg)
    try:
        data = secrets.token_bytes((length + 1) // 2)
    except (OSError, NotImplementedError) as exc:
        msg = f"secure random source failed: {exc}"
        raise EntropyUnavailable(msg) from exc
    return data.hex()[:length]
