"""
Cache Store - Key/value store with per-entry time-to-live.

============================================================
PURPOSE
============================================================
Shared cache for every layer of the pipeline:
- indicator observations (per source, per entity)
- assembled entity profiles
- the global profile list and the combined report

============================================================
CONTRACT
============================================================
    get(key)                   -> value | None (miss)
    set(key, value, ttl)       -> None

- A read at or after an entry's expiry is a miss
- Every write computes a fresh expiry from "now"
- Writes replace the whole entry; readers see old or new, never partial
- None is the miss marker and is never stored

SafeCache turns backend failures into misses (reads) and logged
no-ops (writes). Components always talk to a SafeCache so the
pipeline stays correct, only slower, when the backend is down.

============================================================
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Optional

from core.clock import ClockFactory, ClockProtocol


logger = logging.getLogger(__name__)


# ============================================================
# CACHE ENTRY
# ============================================================

@dataclass(frozen=True)
class CacheEntry:
    """One cached value and the moment it stops being served."""
    key: str
    value: Any
    expires_at: datetime

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expires_at

    def ttl_remaining(self, now: datetime) -> float:
        return max(0.0, (self.expires_at - now).total_seconds())


# ============================================================
# ABSTRACT STORE
# ============================================================

class CacheStore(ABC):
    """Abstract cache backend."""

    @property
    def name(self) -> str:
        return self.__class__.__name__

    @abstractmethod
    async def get(self, key: str) -> Optional[Any]:
        """Return the cached value, or None on a miss."""
        pass

    @abstractmethod
    async def set(self, key: str, value: Any, ttl_seconds: float) -> None:
        """Store value under key for ttl_seconds."""
        pass

    @abstractmethod
    async def delete(self, key: str) -> None:
        pass

    @abstractmethod
    async def clear(self) -> None:
        pass

    async def close(self) -> None:
        """Release backend resources."""
        return None


# ============================================================
# IN-MEMORY STORE
# ============================================================

class InMemoryCacheStore(CacheStore):
    """
    Process-local cache backed by a dict.

    Values are stored by reference: repeated reads within the TTL
    return the identical object. Expired entries are evicted lazily
    on read and on purge_expired().
    """

    def __init__(self, clock: Optional[ClockProtocol] = None) -> None:
        self._clock = clock or ClockFactory.get_clock()
        self._entries: dict[str, CacheEntry] = {}
        self._hits = 0
        self._misses = 0

    async def get(self, key: str) -> Optional[Any]:
        entry = self._entries.get(key)
        if entry is None:
            self._misses += 1
            return None

        if entry.is_expired(self._clock.now()):
            # Only evict if nobody replaced it meanwhile
            if self._entries.get(key) is entry:
                del self._entries[key]
            self._misses += 1
            return None

        self._hits += 1
        return entry.value

    async def set(self, key: str, value: Any, ttl_seconds: float) -> None:
        if value is None or ttl_seconds <= 0:
            return
        expires_at = self._clock.now() + timedelta(seconds=ttl_seconds)
        self._entries[key] = CacheEntry(key=key, value=value, expires_at=expires_at)

    async def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    async def clear(self) -> None:
        self._entries.clear()

    def purge_expired(self) -> int:
        """Drop every expired entry. Returns how many were removed."""
        now = self._clock.now()
        expired = [k for k, e in self._entries.items() if e.is_expired(now)]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def __len__(self) -> int:
        return len(self._entries)

    def get_stats(self) -> dict[str, Any]:
        return {
            "backend": "memory",
            "entries": len(self._entries),
            "hits": self._hits,
            "misses": self._misses,
        }


# ============================================================
# FAILURE-SWALLOWING WRAPPER
# ============================================================

class SafeCache(CacheStore):
    """
    Wraps a backend so that no cache error ever reaches the caller.

    Usage:
        cache = SafeCache(RedisCacheStore.from_url(url))
        value = await cache.get("risk:combined")   # None if Redis is down
    """

    def __init__(self, backend: CacheStore) -> None:
        self._backend = backend
        self._failures = 0

    @property
    def backend(self) -> CacheStore:
        return self._backend

    @property
    def failure_count(self) -> int:
        return self._failures

    async def get(self, key: str) -> Optional[Any]:
        try:
            value = await self._backend.get(key)
        except Exception as e:
            self._failures += 1
            logger.warning(f"[Cache] get failed for {key} on {self._backend.name}: {e}")
            return None
        if value is not None:
            logger.debug(f"[Cache] hit {key}")
        return value

    async def set(self, key: str, value: Any, ttl_seconds: float) -> None:
        try:
            await self._backend.set(key, value, ttl_seconds)
        except Exception as e:
            self._failures += 1
            logger.warning(f"[Cache] set failed for {key} on {self._backend.name}: {e}")

    async def delete(self, key: str) -> None:
        try:
            await self._backend.delete(key)
        except Exception as e:
            self._failures += 1
            logger.warning(f"[Cache] delete failed for {key} on {self._backend.name}: {e}")

    async def clear(self) -> None:
        try:
            await self._backend.clear()
        except Exception as e:
            self._failures += 1
            logger.warning(f"[Cache] clear failed on {self._backend.name}: {e}")

    async def close(self) -> None:
        try:
            await self._backend.close()
        except Exception as e:
            logger.warning(f"[Cache] close failed on {self._backend.name}: {e}")

    def __repr__(self) -> str:
        return f"<SafeCache(backend={self._backend.name}, failures={self._failures})>"
