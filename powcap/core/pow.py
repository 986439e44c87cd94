"""Proof-of-work verification via SHA-256 hex prefix matching."""

from __future__ import annotations

import hashlib
from typing import Any


def sha256_hex(data: str) -> str:
    # Lone surrogates from JSON input hash as their raw code units instead of raising
    return hashlib.sha256(data.encode("utf-8", errors="surrogatepass")).hexdigest()


def candidate_to_str(value: Any) -> str:
    """Normalize a wire-level candidate to the decimal text a solver hashes.

    JSON clients may send the nonce as a string, an integer or a float.
    Whole floats must hash the same as the equivalent integer, so ``42``
    and ``42.0`` both become ``"42"``.
    """
    if isinstance(value, str):
        return value
    if isinstance(value, bool):  # bool is an int subclass
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return f"{value:.0f}"
    return str(value)


def verify_solution(salt: str, target: str, candidate: Any) -> bool:
    """Return True if ``sha256(salt + candidate)`` hex-encodes with ``target`` as prefix."""
    return sha256_hex(salt + candidate_to_str(candidate)).startswith(target)
