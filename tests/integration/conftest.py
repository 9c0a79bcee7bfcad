"""
Shared fixtures for bbgold integration tests.

Provides:
 - GameSettings pointing at a throwaway SQLite file per test
 - A started GameService (seeded random source) and its StorageManager
 - Two funded players
"""

import random

import pytest
import pytest_asyncio

from bbgold.config import GameSettings
from bbgold.service import GameService


@pytest.fixture
def settings(tmp_path):
    return GameSettings(_env_file=None, db_path=str(tmp_path / "data" / "game.db"))


@pytest_asyncio.fixture
async def service(settings):
    svc = GameService(settings, rng=random.Random(1234))
    await svc.start()
    yield svc
    await svc.stop()


@pytest_asyncio.fixture
async def storage(service):
    return service.storage


@pytest_asyncio.fixture
async def players(service):
    """Two funded players: ``alice`` hides, ``bob`` hunts."""
    await service.open_account("alice")
    await service.open_account("bob")
    return "alice", "bob"
