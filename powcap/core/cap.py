"""Session facade: challenge issuance, redemption, token validation and cleanup.

Every public operation takes the same exclusive lock for its full duration
(including the token file rewrite), sweeps expired state first, and only
then mutates anything. Challenge records are never persisted; tokens are
written through to the configured ``TokenPersistence`` after each change.
"""

from __future__ import annotations

import threading
from pathlib import Path
from typing import TYPE_CHECKING, Any

import structlog

from powcap.config.settings import DEFAULT_TOKENS_STORE
from powcap.core.pow import verify_solution
from powcap.core.randomness import random_hex
from powcap.exceptions import PersistenceError
from powcap.models.domain import (
    ChallengeConfig,
    ChallengePair,
    ChallengeRecord,
    ChallengeResponse,
    RedeemResponse,
    Solution,
    TokenConfig,
    ValidationResponse,
)
from powcap.storage.challenge_store import InMemoryChallengeStore
from powcap.storage.persistence import (
    JsonFileTokenPersistence,
    NullTokenPersistence,
    TokenPersistence,
    create_token_persistence,
)
from powcap.storage.token_store import InMemoryTokenStore, token_key
from powcap.types import RedeemMessage
from powcap.utils.timing import now_ms, timed

if TYPE_CHECKING:
    from collections.abc import Sequence

    from powcap.config.settings import Settings

logger = structlog.get_logger(__name__)

CHALLENGE_TOKEN_HEX_LENGTH = 50  # 25 bytes
TOKEN_SECRET_HEX_LENGTH = 30  # 15 bytes
TOKEN_ID_HEX_LENGTH = 16  # 8 bytes
TOKEN_EXPIRES_MS = 1_200_000  # 20 minutes


def _index_solutions(solutions: Sequence[Any]) -> dict[tuple[str, str], list[Any]]:
    """Group candidates by their exact ``(salt, target)``; malformed triples are skipped."""
    index: dict[tuple[str, str], list[Any]] = {}
    for entry in solutions:
        if not isinstance(entry, (list, tuple)) or len(entry) != 3:
            continue
        salt, target, candidate = entry
        if not isinstance(salt, str) or not isinstance(target, str):
            continue
        index.setdefault((salt, target), []).append(candidate)
    return index


class Cap:
    """Owns the challenge and token stores for the lifetime of the process."""

    def __init__(
        self,
        tokens_store_path: Path | str = DEFAULT_TOKENS_STORE,
        no_fs_state: bool = False,
        persistence: TokenPersistence | None = None,
    ) -> None:
        self._no_fs_state = no_fs_state
        if no_fs_state:
            self._persistence: TokenPersistence = NullTokenPersistence()
        else:
            self._persistence = persistence or JsonFileTokenPersistence(Path(tokens_store_path))
        self._challenges = InMemoryChallengeStore()
        self._tokens = InMemoryTokenStore()
        self._lock = threading.Lock()

        if not no_fs_state:
            self._load_tokens()

    @classmethod
    def from_settings(cls, settings: Settings) -> Cap:
        return cls(
            tokens_store_path=settings.tokens_store_path,
            no_fs_state=settings.no_fs_state,
            persistence=create_token_persistence(settings),
        )

    @property
    def persistence(self) -> TokenPersistence:
        return self._persistence

    @property
    def persistence_enabled(self) -> bool:
        return not self._no_fs_state

    def stats(self) -> dict[str, int]:
        """Return the number of live challenges and tokens."""
        with self._lock:
            return {"challenges": len(self._challenges), "tokens": len(self._tokens)}

    # --- Public operations ---

    def create_challenge(self, config: ChallengeConfig | None = None) -> ChallengeResponse:
        """Issue ``challenge_count`` random (salt, target) pairs.

        With ``store=False`` nothing is retained server-side and no token is
        returned. Raises EntropyUnavailable if the random source fails.
        """
        config = config or ChallengeConfig()

        with self._lock:
            tokens_changed = self._sweep()
            try:
                pairs = [
                    ChallengePair(
                        salt=random_hex(config.challenge_size * 2),
                        target=random_hex(config.challenge_difficulty * 2),
                    )
                    for _ in range(config.challenge_count)
                ]
                token = random_hex(CHALLENGE_TOKEN_HEX_LENGTH)
                expires = now_ms() + config.expires_ms

                if not config.store:
                    logger.debug("challenge_created", pairs=len(pairs), stored=False)
                    return ChallengeResponse(pairs=pairs, expires=expires)

                self._challenges.add(ChallengeRecord(pairs=pairs, expires=expires, token=token))
                logger.debug("challenge_created", pairs=len(pairs), stored=True)
                return ChallengeResponse(pairs=pairs, token=token, expires=expires)
            finally:
                if tokens_changed:
                    self._save_tokens()

    def redeem_challenge(self, solution: Solution | None) -> RedeemResponse:
        """Check a solution set and mint a verification token on full success.

        The challenge record is removed before it is checked, so a token can
        be redeemed at most once whatever the outcome.
        """
        if solution is None or not solution.token or not solution.solutions:
            return RedeemResponse(success=False, message=RedeemMessage.INVALID_BODY)

        with self._lock:
            tokens_changed = self._sweep()
            try:
                record = self._challenges.pop(solution.token)
                if record is None:
                    logger.info("challenge_redeem_failed", reason="expired")
                    return RedeemResponse(success=False, message=RedeemMessage.CHALLENGE_EXPIRED)

                candidates = _index_solutions(solution.solutions)
                for pair in record.pairs:
                    if not any(
                        verify_solution(pair.salt, pair.target, candidate)
                        for candidate in candidates.get((pair.salt, pair.target), ())
                    ):
                        logger.info("challenge_redeem_failed", reason="invalid_solution")
                        return RedeemResponse(success=False, message=RedeemMessage.INVALID_SOLUTION)

                secret = random_hex(TOKEN_SECRET_HEX_LENGTH)
                token_id = random_hex(TOKEN_ID_HEX_LENGTH)
                expires = now_ms() + TOKEN_EXPIRES_MS
                self._tokens.add(token_key(token_id, secret), expires)
                tokens_changed = True

                logger.info("challenge_redeemed", token_id=token_id, pairs=len(record.pairs))
                return RedeemResponse(success=True, token=f"{token_id}:{secret}", expires=expires)
            finally:
                if tokens_changed:
                    self._save_tokens()

    def validate_token(self, token: str, config: TokenConfig | None = None) -> ValidationResponse:
        """Check a verification token, consuming it unless ``keep_token`` is set.

        Malformed and unknown tokens both yield ``success=False``.
        """
        keep = config.keep_token if config else False

        with self._lock:
            tokens_changed = self._sweep()
            try:
                parts = token.split(":")
                if len(parts) != 2:
                    return ValidationResponse(success=False)

                token_id, secret = parts
                if not self._tokens.consume(token_key(token_id, secret), keep=keep):
                    return ValidationResponse(success=False)

                tokens_changed = True
                logger.info("token_validated", token_id=token_id, kept=keep)
                return ValidationResponse(success=True)
            finally:
                if tokens_changed:
                    self._save_tokens()

    def cleanup(self) -> None:
        """Sweep expired state and rewrite the token file if any token expired.

        Unlike the other operations, a failed write raises PersistenceError.
        """
        with self._lock:
            if self._sweep() and self.persistence_enabled:
                self._persistence.save(self._tokens.to_dict())
                logger.info("tokens_cleaned", remaining=len(self._tokens))

    # --- Internals (caller holds the lock) ---

    def _sweep(self) -> bool:
        now = now_ms()
        self._challenges.sweep(now)
        return self._tokens.sweep(now)

    def _load_tokens(self) -> None:
        self._tokens.replace(self._persistence.load())
        if self._tokens.sweep():
            self._save_tokens()
        logger.info("tokens_restored", count=len(self._tokens))

    def _save_tokens(self) -> None:
        """Write tokens through to persistence; failures are logged, never raised."""
        if not self.persistence_enabled:
            return
        try:
            with timed("tokens_save"):
                self._persistence.save(self._tokens.to_dict())
        except PersistenceError as exc:
            logger.warning("tokens_save_failed", error=str(exc))
