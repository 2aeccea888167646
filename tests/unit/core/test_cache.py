"""Unit tests for the Redis cache wrapper."""

from datetime import timedelta

import pytest

from policy_rating.core.cache import Cache, CacheConfig


class TestCache:
    """Test JSON values, TTLs and pattern deletes against fake Redis."""

    async def test_json_round_trip(self, fake_cache):
        await fake_cache.set("catalog:packages:PA", [{"package_id": "PA_STANDARD"}])

        assert await fake_cache.get("catalog:packages:PA") == [
            {"package_id": "PA_STANDARD"}
        ]

    async def test_missing_key(self, fake_cache):
        assert await fake_cache.get("catalog:packages:NONE") is None

    async def test_default_ttl_applied(self, fake_cache):
        await fake_cache.set("catalog:factors:PA", [])

        ttl = await fake_cache._client().ttl("catalog:factors:PA")
        assert 0 < ttl <= 60

    async def test_explicit_ttl(self, fake_cache):
        await fake_cache.set("k", "v", ttl=timedelta(seconds=5))

        assert await fake_cache._client().ttl("k") <= 5

    async def test_clear_pattern(self, fake_cache):
        await fake_cache.set("catalog:packages:PA", [])
        await fake_cache.set("catalog:factors:PA", [])
        await fake_cache.set("catalog:packages:HCP", [])

        removed = await fake_cache.clear_pattern("catalog:*:PA")

        assert removed == 2
        assert await fake_cache.get("catalog:packages:HCP") == []

    async def test_delete(self, fake_cache):
        await fake_cache.set("k", "v")

        assert await fake_cache.delete("k") is True
        assert await fake_cache.delete("k") is False

    async def test_health_check(self, fake_cache):
        assert await fake_cache.health_check() is True

    async def test_not_connected(self):
        cache = Cache(CacheConfig(url="redis://localhost:6379/0"))

        assert not cache.is_connected
        assert await cache.health_check() is False
        with pytest.raises(RuntimeError, match="not connected"):
            await cache.get("k")
