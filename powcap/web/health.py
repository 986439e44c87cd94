"""Health check endpoint logic."""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

import structlog

from powcap.storage.persistence import JsonFileTokenPersistence

if TYPE_CHECKING:
    from powcap.core.cap import Cap
    from powcap.storage.persistence import TokenPersistence

logger = structlog.get_logger(__name__)

VERSION = "0.1.0"


def _persistence_status(persistence: TokenPersistence, enabled: bool) -> str:
    if not enabled:
        return "disabled"
    if isinstance(persistence, JsonFileTokenPersistence):
        target = persistence.path if persistence.path.exists() else persistence.path.parent
        if not os.access(target, os.W_OK):
            logger.warning("health_check_tokens_file_readonly", path=str(persistence.path))
            return "readonly"
    return "ok"


def check_health(cap: Cap) -> dict[str, object]:
    """Return service status with store sizes and token file writability."""
    persistence = _persistence_status(cap.persistence, cap.persistence_enabled)
    return {
        "status": "degraded" if persistence == "readonly" else "healthy",
        "version": VERSION,
        "persistence": persistence,
        **cap.stats(),
    }
