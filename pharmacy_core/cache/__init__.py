"""
Read-through TTL cache layer for the pharmacy store.
"""

from pharmacy_core.cache.cached_store import CachedInventoryStore
from pharmacy_core.cache.keys import (
    INVALIDATION_GROUPS,
    CacheKey,
    CacheNamespace,
    WriteTarget,
    namespace_prefix,
)
from pharmacy_core.cache.ttl_cache import CacheEntry, CacheStats, CacheSweeper, TTLCache

__all__ = [
    "CachedInventoryStore",
    "INVALIDATION_GROUPS",
    "CacheKey",
    "CacheNamespace",
    "WriteTarget",
    "namespace_prefix",
    "CacheEntry",
    "CacheStats",
    "CacheSweeper",
    "TTLCache",
]
