"""FastAPI dependency injection and shared state."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import Request

if TYPE_CHECKING:
    from powcap.config.settings import Settings
    from powcap.core.cap import Cap


def get_cap(request: Request) -> Cap:
    """The process-wide facade created by the app factory."""
    return request.app.state.cap


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings
