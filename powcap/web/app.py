"""FastAPI application factory."""

from __future__ import annotations

import asyncio
import contextlib
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from powcap.config.logging import setup_logging
from powcap.config.settings import Settings, get_settings
from powcap.core.cap import Cap
from powcap.web.health import VERSION, check_health
from powcap.web.middleware import RequestIDMiddleware
from powcap.web.routes.cap import router as cap_router
from powcap.worker.sweeper import CleanupWorker

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

logger = structlog.get_logger(__name__)


def create_app(cap: Cap | None = None, settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    The facade is built from settings unless one is passed in. Periodic
    cleanup runs for as long as the ASGI lifespan is active.
    """
    settings = settings or get_settings()
    setup_logging(log_level=settings.log_level, json_output=not settings.debug)
    cap = cap or Cap.from_settings(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        worker = CleanupWorker(app.state.cap, interval=settings.cleanup_interval_seconds)
        task = asyncio.create_task(worker.run())
        try:
            yield
        finally:
            worker.stop()
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
            # Flush anything that expired while the loop was sleeping
            await worker.sweep_once()

    app = FastAPI(
        title="powcap",
        description="Proof-of-work CAPTCHA challenges and verification tokens",
        version=VERSION,
        lifespan=lifespan,
    )
    app.state.cap = cap
    app.state.settings = settings

    # Middleware (order matters — last added runs first)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["Content-Type", "X-Request-ID"],
    )
    app.add_middleware(RequestIDMiddleware)

    app.include_router(cap_router)

    @app.get("/api/health")
    async def health_check(request: Request) -> dict[str, object]:
        return await asyncio.to_thread(check_health, request.app.state.cap)

    logger.info(
        "app_created",
        persistence=cap.persistence_enabled,
        tokens_store_path=settings.tokens_store_path,
    )
    return app
