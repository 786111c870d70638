"""Query cache backends for the configuration read views.

The cache is strictly derived data: a miss or a failed read only costs a
recomputation from the database.
"""

from __future__ import annotations

import logging
import pickle
import time
from typing import Any, Protocol

import redis.asyncio as redis
from redis.exceptions import RedisError

from motocat.cache.keys import CacheKey, CacheNamespace, InvalidationTarget
from motocat.config import CacheConfig

logger = logging.getLogger(__name__)


class QueryCache(Protocol):
    """What the engine needs from a cache."""

    async def get(self, key: CacheKey) -> Any | None: ...

    async def set(self, key: CacheKey, value: Any, ttl_seconds: int | None = None) -> None: ...

    async def invalidate(self, target: InvalidationTarget) -> int:
        """Drop one key, or every key in a namespace. Returns the number removed."""
        ...

    async def close(self) -> None:
        """Release backend connections."""
        ...


class InMemoryQueryCache:
    """Process-local cache with per-entry expiry."""

    def __init__(self, prefix: str = "motocat", ttl_seconds: int = 300):
        self.prefix = prefix
        self.ttl_seconds = ttl_seconds
        self._entries: dict[str, tuple[float, Any]] = {}

    async def get(self, key: CacheKey) -> Any | None:
        rendered = key.render(self.prefix)
        entry = self._entries.get(rendered)
        if entry is None:
            return None
        expires_at, value = entry
        if expires_at < time.monotonic():
            self._entries.pop(rendered, None)
            return None
        return value

    async def set(self, key: CacheKey, value: Any, ttl_seconds: int | None = None) -> None:
        ttl = self.ttl_seconds if ttl_seconds is None else ttl_seconds
        self._entries[key.render(self.prefix)] = (time.monotonic() + ttl, value)

    async def invalidate(self, target: InvalidationTarget) -> int:
        if isinstance(target, CacheNamespace):
            prefix = target.render(self.prefix)
            doomed = [k for k in self._entries if k.startswith(prefix)]
        else:
            rendered = target.render(self.prefix)
            doomed = [rendered] if rendered in self._entries else []

        for rendered in doomed:
            del self._entries[rendered]
        return len(doomed)

    def keys(self) -> list[str]:
        return sorted(self._entries)

    async def close(self) -> None:
        """Nothing to release; entries live in this process."""


class RedisQueryCache:
    """Redis-backed cache; values are pickled."""

    def __init__(
        self,
        client: redis.Redis,
        prefix: str = "motocat",
        ttl_seconds: int = 300,
    ):
        self.client = client
        self.prefix = prefix
        self.ttl_seconds = ttl_seconds

    @classmethod
    def from_url(cls, url: str, prefix: str = "motocat", ttl_seconds: int = 300) -> RedisQueryCache:
        client = redis.from_url(
            url,
            encoding="utf-8",
            decode_responses=False,  # We'll handle pickle serialization
        )
        return cls(client, prefix=prefix, ttl_seconds=ttl_seconds)

    async def get(self, key: CacheKey) -> Any | None:
        rendered = key.render(self.prefix)
        try:
            cached_bytes = await self.client.get(rendered)
            if cached_bytes:
                return pickle.loads(cached_bytes)
        except RedisError as exc:
            # Cache misses are acceptable
            logger.warning("Redis get error for key %s: %s", rendered, exc)
        return None

    async def set(self, key: CacheKey, value: Any, ttl_seconds: int | None = None) -> None:
        rendered = key.render(self.prefix)
        ttl = self.ttl_seconds if ttl_seconds is None else ttl_seconds
        try:
            await self.client.setex(rendered, ttl, pickle.dumps(value))
        except RedisError as exc:
            logger.warning("Redis set error for key %s: %s", rendered, exc)

    async def invalidate(self, target: InvalidationTarget) -> int:
        """Delete one key or a namespace.

        Namespace deletion walks SCAN instead of KEYS so a large keyspace does
        not block the server. Errors propagate to the caller.
        """
        if isinstance(target, CacheKey):
            return await self.client.delete(target.render(self.prefix))

        deleted = 0
        batch: list[bytes] = []
        async for name in self.client.scan_iter(match=target.render(self.prefix) + "*", count=500):
            batch.append(name)
            if len(batch) >= 500:
                deleted += await self.client.delete(*batch)
                batch = []
        if batch:
            deleted += await self.client.delete(*batch)
        return deleted

    async def close(self) -> None:
        await self.client.aclose()


def build_query_cache(config: CacheConfig) -> QueryCache:
    """Redis when enabled, otherwise the in-process cache."""
    if config.enabled:
        return RedisQueryCache.from_url(
            config.redis_url, prefix=config.key_prefix, ttl_seconds=config.ttl_seconds
        )
    return InMemoryQueryCache(prefix=config.key_prefix, ttl_seconds=config.ttl_seconds)
