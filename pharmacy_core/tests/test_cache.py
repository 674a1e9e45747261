"""
Tests for the TTL cache, the background sweeper and the cached store.

Run with: python -m pytest pharmacy_core/tests/test_cache.py -v
"""

import asyncio

import pytest

from pharmacy_core.cache import (
    INVALIDATION_GROUPS,
    CachedInventoryStore,
    CacheKey,
    CacheNamespace,
    CacheSweeper,
    TTLCache,
    WriteTarget,
    namespace_prefix,
)
from pharmacy_core.config import CacheSettings
from pharmacy_core.exceptions import ValidationError


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cached(populated_store, clock):
    return CachedInventoryStore(populated_store, settings=CacheSettings(), cache=TTLCache(clock=clock))


# ═══════════════════════════════════════════════════════════════════════════════
# KEYS
# ═══════════════════════════════════════════════════════════════════════════════

class TestCacheKey:

    def test_render_default_variant(self):
        assert CacheKey(CacheNamespace.INVENTORY).render() == "inventory:all"

    def test_render_with_args(self):
        assert CacheKey(CacheNamespace.EXPIRING, args=(30,)).render() == "expiring:all:30"

    def test_invalidation_prefix_is_namespace_scoped(self):
        assert CacheKey(CacheNamespace.LOW_STOCK).invalidation_prefix() == "lowStock:"

    def test_inventory_group_covers_derived_views(self):
        group = INVALIDATION_GROUPS[WriteTarget.INVENTORY]
        assert CacheNamespace.LOW_STOCK in group
        assert CacheNamespace.USERS not in group
        assert INVALIDATION_GROUPS[WriteTarget.ACCESS_LOGS] == frozenset()


# ═══════════════════════════════════════════════════════════════════════════════
# TTL CACHE
# ═══════════════════════════════════════════════════════════════════════════════

class TestTTLCache:

    def test_put_then_get(self, clock):
        cache = TTLCache(clock=clock)
        key = CacheKey(CacheNamespace.USERS)
        cache.put(key, ["alice"], ttl=60)
        assert cache.get(key).value == ["alice"]

    def test_entry_stale_at_exactly_ttl(self, clock):
        cache = TTLCache(clock=clock)
        key = CacheKey(CacheNamespace.USERS)
        cache.put(key, "v", ttl=60)
        clock.advance(59.9)
        assert cache.get(key) is not None
        clock.advance(0.1)
        assert cache.get(key) is None

    def test_invalidate_prefix_is_idempotent(self, clock):
        cache = TTLCache(clock=clock)
        cache.put(CacheKey(CacheNamespace.EXPIRING, args=(7,)), "a", ttl=60)
        cache.put(CacheKey(CacheNamespace.EXPIRING, args=(30,)), "b", ttl=60)
        assert cache.invalidate_prefix(namespace_prefix(CacheNamespace.EXPIRING)) == 2
        assert cache.invalidate_prefix(namespace_prefix(CacheNamespace.EXPIRING)) == 0
        assert len(cache) == 0

    def test_prefix_does_not_cross_namespaces(self, clock):
        cache = TTLCache(clock=clock)
        expiring = CacheKey(CacheNamespace.EXPIRING, args=(7,))
        expired = CacheKey(CacheNamespace.EXPIRED)
        cache.put(expiring, "a", ttl=60)
        cache.put(expired, "b", ttl=60)
        cache.invalidate_prefix(namespace_prefix(CacheNamespace.EXPIRED))
        assert expiring in cache
        assert expired not in cache

    def test_sweep_drops_only_stale_entries(self, clock):
        cache = TTLCache(clock=clock)
        short = CacheKey(CacheNamespace.TRANSACTIONS)
        long = CacheKey(CacheNamespace.USERS)
        cache.put(short, "t", ttl=120)
        cache.put(long, "u", ttl=600)
        clock.advance(300)
        assert cache.sweep() == 1
        assert cache.keys() == [long.render()]

    def test_stats_track_hits_and_misses(self, clock):
        cache = TTLCache(clock=clock)
        key = CacheKey(CacheNamespace.INVENTORY)
        cache.get(key)
        cache.put(key, 1, ttl=60)
        cache.get(key)
        stats = cache.describe()
        assert stats["hits"] == 1
        assert stats["misses"] == 1
        assert stats["hit_rate"] == pytest.approx(0.5)
        assert stats["keys"] == ["inventory:all"]

    def test_clear(self, clock):
        cache = TTLCache(clock=clock)
        cache.put(CacheKey(CacheNamespace.INVENTORY), 1, ttl=60)
        cache.clear()
        assert len(cache) == 0


class TestCacheSweeper:

    def test_sweeper_removes_stale_entries_and_stops(self, clock):
        cache = TTLCache(clock=clock)
        cache.put(CacheKey(CacheNamespace.INVENTORY), 1, ttl=1)
        clock.advance(5)
        sweeper = CacheSweeper(cache, interval_seconds=0.01)

        async def main():
            sweeper.start()
            assert sweeper.running
            await asyncio.sleep(0.05)
            await sweeper.stop()

        asyncio.run(main())
        assert len(cache) == 0
        assert not sweeper.running

    def test_stop_is_idempotent(self, clock):
        sweeper = CacheSweeper(TTLCache(clock=clock), interval_seconds=0.01)

        async def main():
            await sweeper.stop()
            sweeper.start()
            await sweeper.stop()
            await sweeper.stop()

        asyncio.run(main())
        assert not sweeper.running

    def test_context_manager_runs_sweeper(self, populated_store):
        cached = CachedInventoryStore(populated_store, settings=CacheSettings(sweep_interval_seconds=0.01))

        async def main():
            async with cached:
                running = cached.sweeper.running
            return running

        assert asyncio.run(main()) is True
        assert not cached.sweeper.running


# ═══════════════════════════════════════════════════════════════════════════════
# CACHED STORE
# ═══════════════════════════════════════════════════════════════════════════════

class TestReadThrough:

    def test_second_read_is_served_from_cache(self, cached):
        async def main():
            first = await cached.load_inventory()
            second = await cached.load_inventory()
            return first, second

        first, second = asyncio.run(main())
        assert first == second
        assert cached.get_cache_stats()["hits"] == 1

    def test_caller_mutation_does_not_leak_into_cache(self, cached, populated_store):
        async def main():
            items = await cached.load_inventory()
            items[0].qty_on_hand = 12345
            items.pop()
            return await cached.load_inventory(), await populated_store.load_inventory()

        from_cache, from_store = asyncio.run(main())
        assert from_cache == from_store
        assert [item.qty_on_hand for item in from_cache] == [50, 0, 4, 8, 7]

    def test_mutating_a_cached_view_does_not_leak(self, cached):
        async def main():
            low = await cached.get_low_stock_items()
            low.clear()
            return await cached.get_low_stock_items()

        assert [item.drug_id for item in asyncio.run(main())] == ["DRUG-002", "DRUG-003", "DRUG-005", "DRUG-004"]

    def test_out_of_band_write_visible_after_ttl(self, cached, populated_store, clock):
        async def qty_of_morphine():
            items = await cached.load_inventory()
            return next(item.qty_on_hand for item in items if item.drug_id == "DRUG-002")

        assert asyncio.run(qty_of_morphine()) == 0
        asyncio.run(populated_store.update_inventory_item("DRUG-002", {"qty_on_hand": 9}))
        assert asyncio.run(qty_of_morphine()) == 0

        clock.advance(CacheSettings().ttl_seconds("inventory"))
        assert asyncio.run(qty_of_morphine()) == 9

    def test_transaction_windows_cached_separately(self, cached):
        async def main():
            await cached.load_transactions()
            await cached.load_transactions(30)

        asyncio.run(main())
        assert set(cached.cache.keys()) == {"transactions:all:all", "transactions:all:30"}

    def test_failed_fetch_caches_nothing(self, cached, populated_store):
        populated_store.inventory.path.write_text(
            "drug_id,drug_name,location,qty_on_hand,expiry_date,batch_lot,safety_stock,avg_daily_use\n"
            "DRUG-001,Propofol,ICU-A,oops,2027-01-01,L1,5,1.0\n"
        )
        with pytest.raises(ValidationError):
            asyncio.run(cached.load_inventory())
        assert len(cached.cache) == 0

    def test_pass_through_reads_are_not_cached(self, cached):
        asyncio.run(cached.search_inventory("Propofol"))
        asyncio.run(cached.get_transactions_for_drug("DRUG-001"))
        assert len(cached.cache) == 0


class TestInvalidation:

    def _prime(self, cached):
        async def main():
            await cached.load_inventory()
            await cached.get_low_stock_items()
            await cached.get_expiring_items(30)
            await cached.get_all_locations()
            await cached.load_users()
            await cached.load_transactions()

        asyncio.run(main())

    def test_write_through_cache_is_visible_immediately(self, cached):
        async def main():
            await cached.load_inventory()
            await cached.update_inventory_item("DRUG-002", {"qty_on_hand": 40})
            return await cached.get_low_stock_items()

        low = asyncio.run(main())
        assert "DRUG-002" not in [item.drug_id for item in low]

    def test_inventory_write_drops_inventory_group_only(self, cached):
        self._prime(cached)
        asyncio.run(cached.update_inventory_item("DRUG-001", {"qty_on_hand": 1}))
        assert sorted(cached.cache.keys()) == ["transactions:all:all", "users:all"]

    def test_user_write_drops_users_only(self, cached):
        self._prime(cached)
        asyncio.run(cached.update_user("U001", {"unified_group": "ER"}))
        assert "users:all" not in cached.cache.keys()
        assert "inventory:all" in cached.cache.keys()

    def test_transaction_append_drops_transactions_only(self, cached, sample_transactions):
        self._prime(cached)
        new_txn = sample_transactions[0].model_copy(update={"txn_id": "T99"})
        asyncio.run(cached.add_transaction(new_txn))
        assert "transactions:all:all" not in cached.cache.keys()
        assert "inventory:all" in cached.cache.keys()
        assert len(asyncio.run(cached.load_transactions())) == 6

    def test_access_log_append_leaves_cache_intact(self, cached, sample_access_logs):
        self._prime(cached)
        before = sorted(cached.cache.keys())
        asyncio.run(cached.add_access_log(sample_access_logs[0]))
        assert sorted(cached.cache.keys()) == before

    def test_failed_write_still_invalidates(self, cached):
        self._prime(cached)
        with pytest.raises(ValidationError):
            asyncio.run(cached.update_inventory_item("DRUG-001", {"qty_on_hand": -1}))
        assert "inventory:all" not in cached.cache.keys()

    def test_clear_all_caches(self, cached):
        self._prime(cached)
        cached.clear_all_caches()
        assert len(cached.cache) == 0

    def test_read_racing_a_write_does_not_store_stale_value(self, cached, populated_store, monkeypatch):
        original_load = populated_store.load_inventory

        async def main():
            release = asyncio.Event()

            async def slow_load():
                items = await original_load()
                await release.wait()
                return items

            monkeypatch.setattr(populated_store, "load_inventory", slow_load)
            reader = asyncio.ensure_future(cached.load_inventory())
            await asyncio.sleep(0)

            await cached.update_inventory_item("DRUG-002", {"qty_on_hand": 33})
            release.set()
            stale = await reader

            monkeypatch.setattr(populated_store, "load_inventory", original_load)
            fresh = await cached.load_inventory()
            return stale, fresh

        stale, fresh = asyncio.run(main())
        assert next(i.qty_on_hand for i in stale if i.drug_id == "DRUG-002") == 0
        assert next(i.qty_on_hand for i in fresh if i.drug_id == "DRUG-002") == 33
