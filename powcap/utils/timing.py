"""Clock and timing helpers."""

from __future__ import annotations

import time
from contextlib import contextmanager
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from collections.abc import Generator

logger = structlog.get_logger(__name__)


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds.

    Every expiry in the challenge and token stores is expressed on this clock.
    """
    return int(time.time() * 1000)


@contextmanager
def timed(label: str) -> Generator[dict[str, float], None, None]:
    """Context manager that measures elapsed wall-clock time.

    Usage::

        with timed("tokens_save") as t:
            persistence.save(tokens)
        print(t["elapsed"])  # seconds as float
    """
    result: dict[str, float] = {"elapsed": 0.0}
    start = time.monotonic()
    try:
        yield result
    finally:
        result["elapsed"] = time.monotonic() - start
        logger.debug("timed", label=label, elapsed_seconds=result["elapsed"])
