"""
Tests for the Cache Store.

============================================================
PURPOSE
============================================================
Verify TTL semantics of the in-memory store and the
failure-swallowing behavior of SafeCache.

TEST PRINCIPLES:
- Time is driven by MockClock, never by sleeping
- A read at or after expiry is a miss
- Backend errors never reach the caller

============================================================
"""

import pickle
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from cache import create_cache
from cache.redis_store import RedisCacheStore
from cache.store import CacheEntry, InMemoryCacheStore, SafeCache
from core.clock import MockClock
from core.config import PipelineSettings


# ============================================================
# FIXTURES
# ============================================================

@pytest.fixture
def clock():
    return MockClock(datetime(2024, 6, 1, 12, 0, 0, tzinfo=timezone.utc))


@pytest.fixture
def store(clock):
    return InMemoryCacheStore(clock)


class ExplodingStore(InMemoryCacheStore):
    """Backend whose every operation fails."""

    async def get(self, key):
        raise ConnectionError("backend down")

    async def set(self, key, value, ttl_seconds):
        raise ConnectionError("backend down")

    async def delete(self, key):
        raise ConnectionError("backend down")

    async def clear(self):
        raise ConnectionError("backend down")

    async def close(self):
        raise ConnectionError("backend down")


# ============================================================
# CACHE ENTRY
# ============================================================

class TestCacheEntry:
    """Tests for CacheEntry."""

    def test_expired_exactly_at_expiry(self, clock):
        """An entry is expired at its expiry instant."""
        entry = CacheEntry(key="k", value=1, expires_at=clock.now())
        assert entry.is_expired(clock.now())
        assert entry.ttl_remaining(clock.now()) == 0.0


# ============================================================
# IN-MEMORY STORE
# ============================================================

class TestInMemoryCacheStore:
    """Tests for InMemoryCacheStore."""

    @pytest.mark.asyncio
    async def test_set_then_get_returns_value(self, store):
        """set followed immediately by get returns the value."""
        await store.set("risk:combined", {"total": 3}, 60)
        assert await store.get("risk:combined") == {"total": 3}

    @pytest.mark.asyncio
    async def test_get_returns_same_object(self, store):
        """Values are stored by reference."""
        value = {"profiles": []}
        await store.set("k", value, 60)
        assert await store.get("k") is value
        assert await store.get("k") is value

    @pytest.mark.asyncio
    async def test_miss_after_ttl(self, store, clock):
        """get at ttl seconds after set is a miss and evicts."""
        await store.set("k", "v", 30)
        clock.advance(29)
        assert await store.get("k") == "v"
        clock.advance(1)
        assert await store.get("k") is None
        assert len(store) == 0

    @pytest.mark.asyncio
    async def test_rewrite_sets_fresh_expiry(self, store, clock):
        """Each write computes expiry from now."""
        await store.set("k", "old", 10)
        clock.advance(8)
        await store.set("k", "new", 10)
        clock.advance(8)
        assert await store.get("k") == "new"

    @pytest.mark.asyncio
    async def test_none_and_non_positive_ttl_not_stored(self, store):
        """None is never stored; ttl <= 0 is a no-op."""
        await store.set("a", None, 60)
        await store.set("b", "v", 0)
        await store.set("c", "v", -5)
        assert len(store) == 0

    @pytest.mark.asyncio
    async def test_delete_and_clear(self, store):
        """delete removes one key, clear removes all."""
        await store.set("a", 1, 60)
        await store.set("b", 2, 60)
        await store.delete("a")
        assert await store.get("a") is None
        assert await store.get("b") == 2
        await store.clear()
        assert len(store) == 0

    @pytest.mark.asyncio
    async def test_purge_expired(self, store, clock):
        """purge_expired drops only expired entries."""
        await store.set("short", 1, 5)
        await store.set("long", 2, 500)
        clock.advance(10)
        assert store.purge_expired() == 1
        assert len(store) == 1

    @pytest.mark.asyncio
    async def test_stats_count_hits_and_misses(self, store):
        await store.set("k", 1, 60)
        await store.get("k")
        await store.get("missing")
        stats = store.get_stats()
        assert stats["hits"] == 1
        assert stats["misses"] == 1
        assert stats["entries"] == 1


# ============================================================
# SAFE CACHE
# ============================================================

class TestSafeCache:
    """Tests for SafeCache."""

    @pytest.mark.asyncio
    async def test_passes_through_healthy_backend(self, store):
        cache = SafeCache(store)
        await cache.set("k", "v", 60)
        assert await cache.get("k") == "v"
        assert cache.failure_count == 0

    @pytest.mark.asyncio
    async def test_backend_failure_on_read_is_miss(self):
        """A failing backend reads as a miss."""
        cache = SafeCache(ExplodingStore())
        assert await cache.get("k") is None
        assert cache.failure_count == 1

    @pytest.mark.asyncio
    async def test_backend_failure_on_write_is_swallowed(self):
        """Writes, deletes and clears never raise."""
        cache = SafeCache(ExplodingStore())
        await cache.set("k", "v", 60)
        await cache.delete("k")
        await cache.clear()
        await cache.close()
        assert cache.failure_count == 3


# ============================================================
# REDIS STORE
# ============================================================

class TestRedisCacheStore:
    """Tests for RedisCacheStore against a mocked client."""

    @pytest.mark.asyncio
    async def test_set_uses_prefixed_key_and_millisecond_ttl(self):
        client = MagicMock()
        client.psetex = AsyncMock()
        store = RedisCacheStore(client, prefix="test:")

        await store.set("risk:combined", {"a": 1}, 1.5)

        key, ttl_ms, payload = client.psetex.call_args.args
        assert key == "test:risk:combined"
        assert ttl_ms == 1500
        assert pickle.loads(payload) == {"a": 1}

    @pytest.mark.asyncio
    async def test_get_unpickles_and_misses(self):
        client = MagicMock()
        client.get = AsyncMock(side_effect=[pickle.dumps([1, 2]), None])
        store = RedisCacheStore(client)

        assert await store.get("k") == [1, 2]
        assert await store.get("k") is None

    @pytest.mark.asyncio
    async def test_none_not_written(self):
        client = MagicMock()
        client.psetex = AsyncMock()
        store = RedisCacheStore(client)

        await store.set("k", None, 60)
        client.psetex.assert_not_called()


# ============================================================
# FACTORY
# ============================================================

class TestCreateCache:
    """Tests for create_cache."""

    def test_memory_backend_by_default(self, clock):
        cache = create_cache(PipelineSettings(), clock)
        assert isinstance(cache, SafeCache)
        assert isinstance(cache.backend, InMemoryCacheStore)
