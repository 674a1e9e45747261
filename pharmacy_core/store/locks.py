"""
Per-file mutual exclusion for the collection files.

Every read and every write against a path holds that path's lock for the
duration of its file-system work. Locks are ``asyncio.Lock`` objects, which
hand ownership to waiters in arrival order, so operations on one file are
totally ordered FIFO while different files never block each other.

An ``asyncio.Lock`` belongs to the event loop it was first used on, so the
table keeps one set of locks per running loop. A store can then serve
several ``asyncio.run`` calls in turn.
"""

from __future__ import annotations

import asyncio
import logging
import os
import weakref
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Dict, Optional, Union

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def _running_loop() -> Optional[asyncio.AbstractEventLoop]:
    try:
        return asyncio.get_running_loop()
    except RuntimeError:
        return None


class PathLockTable:
    """Lazily created lock per normalised file path and event loop."""

    def __init__(self) -> None:
        self._tables: "weakref.WeakKeyDictionary[asyncio.AbstractEventLoop, Dict[str, asyncio.Lock]]" = (
            weakref.WeakKeyDictionary()
        )

    @staticmethod
    def _normalise(path: PathLike) -> str:
        return os.path.abspath(os.fspath(path))

    def _locks(self) -> Dict[str, asyncio.Lock]:
        loop = _running_loop()
        if loop is None:
            return {}
        table = self._tables.get(loop)
        if table is None:
            table = {}
            self._tables[loop] = table
        return table

    def lock_for(self, path: PathLike) -> asyncio.Lock:
        """Lock for ``path`` on the running loop. Must be called inside a coroutine."""
        table = self._tables.setdefault(asyncio.get_running_loop(), {})
        key = self._normalise(path)
        lock = table.get(key)
        if lock is None:
            lock = asyncio.Lock()
            table[key] = lock
        return lock

    def is_locked(self, path: PathLike) -> bool:
        lock = self._locks().get(self._normalise(path))
        return lock is not None and lock.locked()

    @asynccontextmanager
    async def hold(self, path: PathLike) -> AsyncIterator[None]:
        """Scoped acquisition: released on every exit path, including errors."""
        lock = self.lock_for(path)
        async with lock:
            yield

    def __len__(self) -> int:
        return len(self._locks())
