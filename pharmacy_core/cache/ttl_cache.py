"""
In-memory TTL cache with a background stale-entry sweep.

The key -> entry table is mutated by foreground reads (insert on miss),
foreground writes (prefix invalidation) and the sweeper (delete stale). All
three go through one re-entrant lock so a nested call can never observe or
leave the table half-updated.
"""

from __future__ import annotations

import asyncio
import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Generic, List, Optional, TypeVar

from pharmacy_core.cache.keys import CacheKey

logger = logging.getLogger(__name__)

V = TypeVar("V")


@dataclass
class CacheEntry(Generic[V]):
    """A cached value, when it was written, and how long it lives (seconds)."""
    value: V
    written_at: float
    ttl: float

    def age(self, now: float) -> float:
        return now - self.written_at

    def is_stale(self, now: float) -> bool:
        return self.age(now) >= self.ttl


@dataclass
class CacheStats:
    hits: int = 0
    misses: int = 0
    invalidations: int = 0
    expirations: int = 0

    def hit_rate(self) -> float:
        total = self.hits + self.misses
        return self.hits / total if total > 0 else 0.0


class TTLCache:
    """
    Key/entry table keyed by rendered ``CacheKey`` strings.

    Args:
        clock: Monotonic seconds source; injectable for tests
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self.clock = clock
        self._entries: Dict[str, CacheEntry[Any]] = {}
        self._lock = threading.RLock()
        self.stats = CacheStats()

    def get(self, key: CacheKey) -> Optional[CacheEntry[Any]]:
        """Live entry for ``key`` or None (stale entries count as misses)."""
        rendered = key.render()
        with self._lock:
            entry = self._entries.get(rendered)
            if entry is None or entry.is_stale(self.clock()):
                self.stats.misses += 1
                return None
            self.stats.hits += 1
            return entry

    def put(self, key: CacheKey, value: Any, ttl: float) -> CacheEntry[Any]:
        entry = CacheEntry(value=value, written_at=self.clock(), ttl=ttl)
        with self._lock:
            self._entries[key.render()] = entry
        return entry

    def invalidate(self, key: CacheKey) -> bool:
        with self._lock:
            return self._entries.pop(key.render(), None) is not None

    def invalidate_prefix(self, prefix: str) -> int:
        """Drop every key starting with ``prefix``. Idempotent."""
        with self._lock:
            doomed = [rendered for rendered in self._entries if rendered.startswith(prefix)]
            for rendered in doomed:
                del self._entries[rendered]
            self.stats.invalidations += len(doomed)
        if doomed:
            logger.debug(f"Cache: invalidated {len(doomed)} entries under '{prefix}'")
        return len(doomed)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def sweep(self) -> int:
        """Remove entries whose age >= their own TTL."""
        now = self.clock()
        with self._lock:
            stale = [rendered for rendered, entry in self._entries.items() if entry.is_stale(now)]
            for rendered in stale:
                del self._entries[rendered]
            self.stats.expirations += len(stale)
        if stale:
            logger.debug(f"Cache: swept {len(stale)} stale entries")
        return len(stale)

    def keys(self) -> List[str]:
        with self._lock:
            return list(self._entries)

    def describe(self) -> Dict[str, Any]:
        now = self.clock()
        with self._lock:
            entries = [
                {"key": rendered, "age": entry.age(now), "ttl": entry.ttl}
                for rendered, entry in self._entries.items()
            ]
        return {
            "size": len(entries),
            "keys": [e["key"] for e in entries],
            "entries": entries,
            "hits": self.stats.hits,
            "misses": self.stats.misses,
            "hit_rate": self.stats.hit_rate(),
        }

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: CacheKey) -> bool:
        with self._lock:
            return key.render() in self._entries


class CacheSweeper:
    """
    Periodic ``TTLCache.sweep`` on the running event loop.

    One loop task sleeps, sweeps, sleeps again, so two sweeps never overlap.
    ``stop()`` cancels the task and waits for it to finish.
    """

    def __init__(self, cache: TTLCache, interval_seconds: float):
        self.cache = cache
        self.interval_seconds = interval_seconds
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run())
        logger.info(f"Cache sweeper started (every {self.interval_seconds}s)")

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval_seconds)
            self.cache.sweep()

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.info("Cache sweeper stopped")
