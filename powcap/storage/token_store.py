"""Issued verification tokens, keyed by ``id:sha256(secret)``."""

from __future__ import annotations

from collections.abc import Mapping

from powcap.core.pow import sha256_hex
from powcap.utils.timing import now_ms


def token_key(token_id: str, secret: str) -> str:
    """Build the stored key for a token; the plaintext secret is never kept."""
    return f"{token_id}:{sha256_hex(secret)}"


class InMemoryTokenStore:
    """Expiring mapping from hashed token key to expiry (epoch ms).

    Records are never updated in place, only inserted and deleted. Not
    thread-safe on its own; the owning ``Cap`` serializes access.
    """

    def __init__(self, tokens: Mapping[str, int] | None = None) -> None:
        self._tokens: dict[str, int] = dict(tokens or {})

    def __len__(self) -> int:
        return len(self._tokens)

    def __contains__(self, key: object) -> bool:
        return key in self._tokens

    def add(self, key: str, expires: int) -> None:
        self._tokens[key] = expires

    def consume(self, key: str, keep: bool = False) -> bool:
        """Return True if ``key`` is present, deleting it unless ``keep`` is set."""
        if key not in self._tokens:
            return False
        if not keep:
            del self._tokens[key]
        return True

    def sweep(self, now: int | None = None) -> bool:
        """Remove expired tokens. Returns True if anything was removed."""
        now = now_ms() if now is None else now
        expired = [k for k, expires in self._tokens.items() if expires < now]
        for k in expired:
            del self._tokens[k]
        return bool(expired)

    def replace(self, tokens: Mapping[str, int]) -> None:
        """Swap in a freshly loaded mapping."""
        self._tokens = dict(tokens)

    def to_dict(self) -> dict[str, int]:
        return dict(self._tokens)
