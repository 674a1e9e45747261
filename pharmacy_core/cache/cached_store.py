"""
P-MACS Core - Cached Inventory Store
====================================

Read-through TTL cache in front of ``CSVInventoryStore``.

Two levels:
1. Memory (TTLCache) - transient, reconstructible copies
2. Store (CSV files) - the single source of truth

Reads look up ``CacheKey(namespace, variant, args)``; on a miss they call the
store and keep the result for the namespace's TTL. Writes call the store and
then synchronously drop every namespace in their invalidation group, so the
next read after a completed write always sees the store's post-write state.

A read that was already fetching when a write invalidated its namespace does
not store its (possibly pre-write) result: each namespace carries a
generation counter that invalidation bumps.

The cache keeps its own deep copy of each result and hands out a fresh copy
on every hit, so callers may mutate what they receive without touching
what later readers see.
"""

from __future__ import annotations

import copy
import logging
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Sequence, TypeVar

from pharmacy_core.cache.keys import (
    INVALIDATION_GROUPS,
    CacheKey,
    CacheNamespace,
    WriteTarget,
    namespace_prefix,
)
from pharmacy_core.cache.ttl_cache import CacheSweeper, TTLCache
from pharmacy_core.config import CacheSettings, get_settings
from pharmacy_core.records.enrichment import DrugInfo, LocationSummary, UsageStats
from pharmacy_core.records.schemas import AccessLogEntry, InventoryItem, Transaction, UserAccount
from pharmacy_core.store.csv_store import (
    DEFAULT_ACCESS_LOG_LIMIT,
    DEFAULT_DRUG_HISTORY_DAYS,
    DEFAULT_USAGE_WINDOW_DAYS,
    CSVInventoryStore,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CachedInventoryStore:
    """
    Same async surface as ``CSVInventoryStore``, with cached reads.

    Use as an async context manager to run the background sweeper:

        async with CachedInventoryStore(store) as cached:
            items = await cached.load_inventory()
    """

    def __init__(
        self,
        store: CSVInventoryStore,
        settings: Optional[CacheSettings] = None,
        cache: Optional[TTLCache] = None,
    ):
        self.store = store
        self.settings = settings or get_settings().cache
        self.cache = cache or TTLCache()
        self.sweeper = CacheSweeper(self.cache, self.settings.sweep_interval_seconds)
        self._generations: Dict[CacheNamespace, int] = {ns: 0 for ns in CacheNamespace}

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def start(self) -> None:
        self.sweeper.start()

    async def stop(self) -> None:
        await self.sweeper.stop()

    async def __aenter__(self) -> "CachedInventoryStore":
        self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.stop()

    # ------------------------------------------------------------------
    # Core helpers
    # ------------------------------------------------------------------
    def _ttl(self, namespace: CacheNamespace) -> float:
        return self.settings.ttl_seconds(namespace.value)

    async def _get_cached(self, key: CacheKey, fetch: Callable[[], Awaitable[T]]) -> T:
        entry = self.cache.get(key)
        if entry is not None:
            logger.debug(f"Cache hit: {key}")
            return copy.deepcopy(entry.value)

        logger.debug(f"Cache miss: {key}")
        generation = self._generations[key.namespace]
        value = await fetch()
        if self._generations[key.namespace] == generation:
            self.cache.put(key, copy.deepcopy(value), self._ttl(key.namespace))
        else:
            logger.debug(f"Cache: {key} invalidated during fetch, not storing")
        return value

    def _invalidate(self, target: WriteTarget) -> None:
        for namespace in INVALIDATION_GROUPS[target]:
            self._generations[namespace] += 1
            self.cache.invalidate_prefix(namespace_prefix(namespace))

    def invalidate_namespace(self, namespace: CacheNamespace) -> int:
        self._generations[namespace] += 1
        return self.cache.invalidate_prefix(namespace_prefix(namespace))

    async def _write(self, target: WriteTarget, operation: Awaitable[T]) -> T:
        try:
            return await operation
        finally:
            self._invalidate(target)

    def clear_all_caches(self) -> None:
        for namespace in CacheNamespace:
            self._generations[namespace] += 1
        self.cache.clear()

    def get_cache_stats(self) -> Dict[str, Any]:
        return self.cache.describe()

    # ═══════════════════════════════════════════════════════════════════════
    # CACHED READS
    # ═══════════════════════════════════════════════════════════════════════

    async def load_inventory(self) -> List[InventoryItem]:
        return await self._get_cached(CacheKey(CacheNamespace.INVENTORY), self.store.load_inventory)

    async def load_transactions(self, days: Optional[int] = None) -> List[Transaction]:
        key = CacheKey(CacheNamespace.TRANSACTIONS, args=(days or "all",))
        return await self._get_cached(key, lambda: self.store.load_transactions(days))

    async def load_users(self) -> List[UserAccount]:
        return await self._get_cached(CacheKey(CacheNamespace.USERS), self.store.load_users)

    async def get_all_locations(self) -> List[LocationSummary]:
        return await self._get_cached(CacheKey(CacheNamespace.LOCATIONS), self.store.get_all_locations)

    async def get_expiring_items(self, days: int) -> List[DrugInfo]:
        key = CacheKey(CacheNamespace.EXPIRING, args=(days,))
        return await self._get_cached(key, lambda: self.store.get_expiring_items(days))

    async def get_expired_items(self) -> List[DrugInfo]:
        return await self._get_cached(CacheKey(CacheNamespace.EXPIRED), self.store.get_expired_items)

    async def get_low_stock_items(self) -> List[DrugInfo]:
        return await self._get_cached(CacheKey(CacheNamespace.LOW_STOCK), self.store.get_low_stock_items)

    # ═══════════════════════════════════════════════════════════════════════
    # PASS-THROUGH READS
    # ═══════════════════════════════════════════════════════════════════════

    async def search_inventory(self, drug_name: str) -> List[DrugInfo]:
        return await self.store.search_inventory(drug_name)

    async def get_inventory_by_location(self, location: str) -> List[DrugInfo]:
        return await self.store.get_inventory_by_location(location)

    async def get_user_by_id(self, emp_id: str) -> Optional[UserAccount]:
        return await self.store.get_user_by_id(emp_id)

    async def get_transactions_for_drug(
        self, drug_id: str, days: int = DEFAULT_DRUG_HISTORY_DAYS
    ) -> List[Transaction]:
        return await self.store.get_transactions_for_drug(drug_id, days)

    async def get_drug_usage_stats(
        self, drug_name: str, days: int = DEFAULT_USAGE_WINDOW_DAYS
    ) -> UsageStats:
        return await self.store.get_drug_usage_stats(drug_name, days)

    async def load_access_logs(self) -> List[AccessLogEntry]:
        return await self.store.load_access_logs()

    async def get_access_logs(self, limit: int = DEFAULT_ACCESS_LOG_LIMIT) -> List[AccessLogEntry]:
        return await self.store.get_access_logs(limit)

    # ═══════════════════════════════════════════════════════════════════════
    # WRITES (call through, then invalidate)
    # ═══════════════════════════════════════════════════════════════════════

    async def save_inventory(self, items: Sequence[InventoryItem]) -> None:
        await self._write(WriteTarget.INVENTORY, self.store.save_inventory(items))

    async def update_inventory_item(
        self,
        drug_id: str,
        updates: Mapping[str, Any],
        location: Optional[str] = None,
        batch_lot: Optional[str] = None,
    ) -> Optional[InventoryItem]:
        return await self._write(
            WriteTarget.INVENTORY,
            self.store.update_inventory_item(drug_id, updates, location=location, batch_lot=batch_lot),
        )

    async def save_users(self, users: Sequence[UserAccount]) -> None:
        await self._write(WriteTarget.USERS, self.store.save_users(users))

    async def update_user(self, emp_id: str, updates: Mapping[str, Any]) -> Optional[UserAccount]:
        return await self._write(WriteTarget.USERS, self.store.update_user(emp_id, updates))

    async def add_transaction(self, txn: Transaction) -> None:
        await self._write(WriteTarget.TRANSACTIONS, self.store.add_transaction(txn))

    async def add_access_log(self, entry: AccessLogEntry) -> None:
        await self._write(WriteTarget.ACCESS_LOGS, self.store.add_access_log(entry))
