"""Durable backing for the token store.

The facade only talks to the narrow ``TokenPersistence`` interface, so the
JSON file used by default can be swapped for another key-value sink.
"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from pathlib import Path
from typing import TYPE_CHECKING

import structlog

from powcap.exceptions import PersistenceError

if TYPE_CHECKING:
    from collections.abc import Mapping

    from powcap.config.settings import Settings

logger = structlog.get_logger(__name__)


class TokenPersistence(ABC):
    """Abstract base class for token store backends."""

    @abstractmethod
    def load(self) -> dict[str, int]:
        """Return the persisted ``key -> expires`` mapping. Never raises for bad content."""

    @abstractmethod
    def save(self, tokens: Mapping[str, int]) -> None:
        """Replace the persisted mapping. Raises PersistenceError on I/O failure."""


class NullTokenPersistence(TokenPersistence):
    """Backend used when file state is disabled; keeps nothing."""

    def load(self) -> dict[str, int]:
        return {}

    def save(self, tokens: Mapping[str, int]) -> None:
        return None


class JsonFileTokenPersistence(TokenPersistence):
    """Stores tokens as a single JSON object, rewritten wholesale on every save.

    Writes go to a sibling temp file that is then renamed over the target,
    so external readers never see a partially written file.
    """

    def __init__(self, path: Path | str) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> dict[str, int]:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            logger.warning("tokens_dir_create_failed", path=str(self._path.parent), error=str(exc))
            return {}

        try:
            raw = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            logger.info("tokens_file_missing", path=str(self._path))
            try:
                self._path.write_text("{}", encoding="utf-8")
            except OSError as exc:
                logger.warning("tokens_file_create_failed", path=str(self._path), error=str(exc))
            return {}
        except OSError as exc:
            logger.warning("tokens_file_read_failed", path=str(self._path), error=str(exc))
            return {}

        try:
            data = json.loads(raw)
        except ValueError as exc:
            logger.warning("tokens_file_corrupt", path=str(self._path), error=str(exc))
            return {}

        if not isinstance(data, dict) or not all(
            isinstance(k, str) and isinstance(v, int) and not isinstance(v, bool)
            for k, v in data.items()
        ):
            logger.warning(
                "tokens_file_corrupt", path=str(self._path), error="expected object of integers"
            )
            return {}

        logger.debug("tokens_loaded", path=str(self._path), count=len(data))
        return data

    def save(self, tokens: Mapping[str, int]) -> None:
        tmp_path = self._path.with_name(f"{self._path.name}.tmp")
        try:
            tmp_path.write_text(json.dumps(dict(tokens)), encoding="utf-8")
            tmp_path.replace(self._path)
        except (OSError, TypeError, ValueError) as exc:
            msg = f"failed to save tokens to {self._path}: {exc}"
            raise PersistenceError(msg) from exc
        logger.debug("tokens_saved", path=str(self._path), count=len(tokens))


def create_token_persistence(settings: Settings) -> TokenPersistence:
    """Factory: create the appropriate backend based on settings."""
    if settings.no_fs_state:
        return NullTokenPersistence()
    return JsonFileTokenPersistence(Path(settings.tokens_store_path).expanduser())
