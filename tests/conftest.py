"""Test configuration and fixtures.

This module provides pytest configuration and fixtures for the rating engine:
mock database and cache objects, a fakeredis-backed cache, an in-memory store
loaded with the reference catalog, and a controllable clock.
"""

from collections.abc import AsyncGenerator
from datetime import datetime, timedelta, timezone
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from fakeredis import FakeAsyncRedis

from policy_rating.core.cache import Cache, CacheConfig
from policy_rating.engine import RatingEngine
from policy_rating.storage.memory import InMemoryRatingStore
from policy_rating.storage.seed import load_reference_catalog

# Configure pytest-asyncio
pytest_plugins = ["pytest_asyncio"]

START_TIME = datetime(2025, 7, 1, 9, 0, tzinfo=timezone.utc)


class FakeClock:
    """Callable clock that tests move forward explicitly."""

    def __init__(self, now: datetime = START_TIME) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: Any) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock() -> FakeClock:
    """Clock starting at a fixed instant."""
    return FakeClock()


@pytest.fixture
def mock_db() -> MagicMock:
    """Create mock database connection for testing."""
    db = MagicMock()
    db.fetchval = AsyncMock(return_value=None)
    db.fetchrow = AsyncMock(return_value=None)
    db.fetch = AsyncMock(return_value=[])
    db.execute = AsyncMock(return_value=None)
    return db


@pytest.fixture
def mock_cache() -> MagicMock:
    """Create mock cache for testing."""
    cache = MagicMock()
    cache.get = AsyncMock(return_value=None)
    cache.set = AsyncMock(return_value=True)
    cache.delete = AsyncMock(return_value=True)
    cache.clear_pattern = AsyncMock(return_value=0)
    return cache


@pytest_asyncio.fixture
async def fake_cache() -> AsyncGenerator[Cache, None]:
    """Real ``Cache`` wrapper over an in-process fake Redis."""
    client = FakeAsyncRedis(decode_responses=True)
    cache = Cache(CacheConfig(url="redis://fake", default_ttl=60), redis_client=client)
    yield cache
    await cache.disconnect()


@pytest.fixture
def store() -> InMemoryRatingStore:
    """In-memory store holding the PA, HCP and DOMESTIC catalog."""
    return load_reference_catalog(InMemoryRatingStore())


@pytest.fixture
def engine(store: InMemoryRatingStore, clock: FakeClock) -> RatingEngine:
    """Services wired over the in-memory store and the fake clock."""
    return RatingEngine.from_store(store, clock=clock)
