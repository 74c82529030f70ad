"""
Cache Package - TTL key/value store shared by all pipeline layers.

Quick Start:
    from cache import create_cache

    cache = create_cache(settings)          # SafeCache around memory or Redis
    await cache.set("risk:combined", report, 1800)
    report = await cache.get("risk:combined")   # None on miss/expiry/outage
"""

from typing import Optional

from cache.redis_store import RedisCacheStore
from cache.store import CacheEntry, CacheStore, InMemoryCacheStore, SafeCache
from core.clock import ClockProtocol
from core.config import PipelineSettings


def create_cache(
    settings: PipelineSettings,
    clock: Optional[ClockProtocol] = None,
) -> SafeCache:
    """Build the configured backend, wrapped so it never raises."""
    if settings.cache_backend == "redis":
        return SafeCache(RedisCacheStore.from_url(settings.redis_url))
    return SafeCache(InMemoryCacheStore(clock))


__all__ = [
    "CacheEntry",
    "CacheStore",
    "InMemoryCacheStore",
    "RedisCacheStore",
    "SafeCache",
    "create_cache",
]
