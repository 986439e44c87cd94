"""Application settings via Pydantic BaseSettings."""

from __future__ import annotations

from functools import lru_cache

from pydantic_settings import BaseSettings

from powcap.exceptions import ConfigError
from powcap.models.domain import ChallengeConfig, TokenConfig

DEFAULT_TOKENS_STORE = ".data/tokensList.json"


class Settings(BaseSettings):
    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    # Token persistence
    tokens_store_path: str = DEFAULT_TOKENS_STORE
    no_fs_state: bool = False  # Disables the tokens file entirely

    # Challenge defaults
    challenge_count: int = 50
    challenge_size: int = 32
    challenge_difficulty: int = 4
    challenge_expires_ms: int = 600_000
    challenge_store: bool = True

    # Validation
    keep_token: bool = False

    # Background cleanup
    cleanup_interval_seconds: float = 60.0

    # App
    host: str = "127.0.0.1"
    port: int = 8000
    debug: bool = False
    log_level: str = "INFO"
    allowed_origins: list[str] = ["http://localhost:8000"]

    def challenge_config(self) -> ChallengeConfig:
        """Build the per-call challenge configuration from these settings."""
        return ChallengeConfig(
            challenge_count=self.challenge_count,
            challenge_size=self.challenge_size,
            challenge_difficulty=self.challenge_difficulty,
            expires_ms=self.challenge_expires_ms,
            store=self.challenge_store,
        )

    def token_config(self) -> TokenConfig:
        return TokenConfig(keep_token=self.keep_token)


@lru_cache
def get_settings() -> Settings:
    """Return cached settings instance."""
    settings = Settings()
    if settings.cleanup_interval_seconds <= 0:
        msg = "CLEANUP_INTERVAL_SECONDS must be positive"
        raise ConfigError(msg)
    return settings
