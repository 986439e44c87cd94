"""Periodic expiry sweep for a running service."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import structlog

from powcap.exceptions import PersistenceError

if TYPE_CHECKING:
    from powcap.core.cap import Cap

logger = structlog.get_logger(__name__)


class CleanupWorker:
    """Calls ``Cap.cleanup`` every ``interval`` seconds until stopped.

    The facade is synchronous and holds its lock across file I/O, so each
    sweep runs in a worker thread to keep the event loop responsive.
    """

    def __init__(self, cap: Cap, interval: float = 60.0) -> None:
        self._cap = cap
        self._interval = interval
        self._running = True

    @property
    def running(self) -> bool:
        return self._running

    async def run(self) -> None:
        """Main sweep loop."""
        logger.info("cleanup_worker_started", interval=self._interval)

        while self._running:
            try:
                await asyncio.sleep(self._interval)
                await self.sweep_once()
            except asyncio.CancelledError:
                break
            except Exception:
                logger.exception("cleanup_worker_error")

        logger.info("cleanup_worker_stopped")

    async def sweep_once(self) -> bool:
        """Run a single cleanup pass. Returns False if the token file could not be written."""
        try:
            await asyncio.to_thread(self._cap.cleanup)
        except PersistenceError as exc:
            logger.warning("cleanup_persist_failed", error=str(exc))
            return False
        return True

    def stop(self) -> None:
        self._running = False
