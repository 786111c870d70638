"""Query cache and invalidation for the configuration read views."""

from motocat.cache.backends import (
    InMemoryQueryCache,
    QueryCache,
    RedisQueryCache,
    build_query_cache,
)
from motocat.cache.invalidation import CacheInvalidationCoordinator
from motocat.cache.keys import CacheKey, CacheNamespace

__all__ = [
    "CacheInvalidationCoordinator",
    "CacheKey",
    "CacheNamespace",
    "InMemoryQueryCache",
    "QueryCache",
    "RedisQueryCache",
    "build_query_cache",
]
