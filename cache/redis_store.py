"""
Redis Cache Store - Shared cache backend for multi-process deployments.

Values are pickled; expiry is delegated to Redis (PSETEX) so every
process sees the same TTL. Always wrap in SafeCache: this class lets
connection errors propagate.
"""

import logging
import pickle
from typing import Any, Optional

import redis.asyncio as aioredis

from cache.store import CacheStore


logger = logging.getLogger(__name__)


DEFAULT_PREFIX = "riskpipe:"


class RedisCacheStore(CacheStore):
    """Cache backend on redis.asyncio."""

    def __init__(
        self,
        client: "aioredis.Redis",
        prefix: str = DEFAULT_PREFIX,
    ) -> None:
        self._redis = client
        self._prefix = prefix

    @classmethod
    def from_url(cls, url: str, prefix: str = DEFAULT_PREFIX) -> "RedisCacheStore":
        client = aioredis.Redis.from_url(url, socket_timeout=2.0, socket_connect_timeout=2.0)
        logger.info(f"[RedisCache] Using {url.rsplit('@', 1)[-1]} with prefix {prefix!r}")
        return cls(client, prefix=prefix)

    def _key(self, key: str) -> str:
        return f"{self._prefix}{key}"

    async def get(self, key: str) -> Optional[Any]:
        raw = await self._redis.get(self._key(key))
        if raw is None:
            return None
        return pickle.loads(raw)

    async def set(self, key: str, value: Any, ttl_seconds: float) -> None:
        if value is None or ttl_seconds <= 0:
            return
        payload = pickle.dumps(value, protocol=pickle.HIGHEST_PROTOCOL)
        await self._redis.psetex(self._key(key), int(ttl_seconds * 1000), payload)

    async def delete(self, key: str) -> None:
        await self._redis.delete(self._key(key))

    async def clear(self) -> None:
        keys = [k async for k in self._redis.scan_iter(match=f"{self._prefix}*")]
        if keys:
            await self._redis.delete(*keys)

    async def close(self) -> None:
        await self._redis.aclose()
