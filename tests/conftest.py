"""Shared test fixtures."""

from __future__ import annotations

from collections.abc import Callable
from itertools import count

import pytest
from httpx import ASGITransport, AsyncClient

from powcap.config.settings import Settings
from powcap.core.cap import Cap
from powcap.core.pow import verify_solution
from powcap.models.domain import ChallengeConfig
from powcap.web.app import create_app

Solver = Callable[[str, str], int]


def _solve(salt: str, target: str) -> int:
    """Brute-force the first integer nonce satisfying the pair."""
    for nonce in count():
        if verify_solution(salt, target, nonce):
            return nonce
    raise AssertionError("unreachable")


def _miss(salt: str, target: str) -> int:
    """Find an integer nonce that does NOT satisfy the pair."""
    for nonce in count():
        if not verify_solution(salt, target, nonce):
            return nonce
    raise AssertionError("unreachable")


@pytest.fixture()
def solve() -> Solver:
    return _solve


@pytest.fixture()
def miss() -> Solver:
    return _miss


@pytest.fixture()
def easy_config() -> ChallengeConfig:
    """Cheap challenges: 3 pairs with one-byte targets."""
    return ChallengeConfig(challenge_count=3, challenge_size=8, challenge_difficulty=1)


@pytest.fixture()
def memory_cap() -> Cap:
    return Cap(no_fs_state=True)


@pytest.fixture()
def settings() -> Settings:
    return Settings(
        no_fs_state=True,
        challenge_count=2,
        challenge_size=8,
        challenge_difficulty=1,
        debug=True,
    )


@pytest.fixture()
def app(memory_cap: Cap, settings: Settings):
    """Create a fresh app instance backed by an in-memory facade."""
    return create_app(cap=memory_cap, settings=settings)


@pytest.fixture()
async def client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
