"""Short-lived storage for issued proof-of-work challenges."""

from __future__ import annotations

from typing import TYPE_CHECKING

from powcap.utils.timing import now_ms

if TYPE_CHECKING:
    from powcap.models.domain import ChallengeRecord


class InMemoryChallengeStore:
    """Stores challenge records keyed by challenge token with TTL expiry.

    Records are one-time-use: ``pop`` always deletes, whether or not the
    record is still live. Not thread-safe on its own; the owning ``Cap``
    serializes access.
    """

    def __init__(self) -> None:
        self._store: dict[str, ChallengeRecord] = {}

    def __len__(self) -> int:
        return len(self._store)

    def __contains__(self, token: object) -> bool:
        return token in self._store

    def add(self, record: ChallengeRecord) -> None:
        self._store[record.token] = record

    def pop(self, token: str, now: int | None = None) -> ChallengeRecord | None:
        """Retrieve and delete a record. Returns None if missing or expired."""
        record = self._store.pop(token, None)
        if record is None:
            return None
        if record.expires < (now_ms() if now is None else now):
            return None
        return record

    def sweep(self, now: int | None = None) -> int:
        """Remove expired records and return how many were dropped."""
        now = now_ms() if now is None else now
        expired = [k for k, record in self._store.items() if record.expires < now]
        for k in expired:
            del self._store[k]
        return len(expired)
