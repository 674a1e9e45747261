"""
P-MACS Core - CSV Inventory Store
=================================

Durable storage of the four pharmacy collections, one CSV file each, under a
configurable root directory.

Layout:
    CSVInventoryStore
        ├─ inventory     (save_all + update-by-key, read-modify-write under lock)
        ├─ users         (save_all + update-by-key)
        ├─ transactions  (append-only)
        └─ access_logs   (append-only)

Every operation against a file holds that file's lock (see ``locks.py``).
The store performs no caching: derived views re-load the collection on every
call. Wrap it in ``CachedInventoryStore`` for read-heavy callers.
"""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, List, Mapping, Optional, Sequence, Type, TypeVar

from pydantic import ValidationError as PydanticValidationError

from pharmacy_core.config import StoreSettings, get_settings
from pharmacy_core.exceptions import ValidationError
from pharmacy_core.records.enrichment import DrugInfo, LocationSummary, UsageStats
from pharmacy_core.records.schemas import (
    AccessLogEntry,
    CsvRecord,
    InventoryItem,
    Transaction,
    UserAccount,
)
from pharmacy_core.store import views
from pharmacy_core.store.csv_files import CollectionFile
from pharmacy_core.store.locks import PathLockTable

logger = logging.getLogger(__name__)

R = TypeVar("R", bound=CsvRecord)

DEFAULT_DRUG_HISTORY_DAYS = 90
DEFAULT_USAGE_WINDOW_DAYS = 30
DEFAULT_ACCESS_LOG_LIMIT = 50


def _merge_record(model: Type[R], record: R, updates: Mapping[str, Any]) -> R:
    """Apply ``updates`` and re-validate the whole row."""
    merged = {**record.model_dump(), **dict(updates)}
    try:
        return model.model_validate(merged)
    except PydanticValidationError as exc:
        raise ValidationError(model.COLLECTION, None, str(exc)) from exc


class CSVInventoryStore:
    """
    Async CSV-backed store.

    Args:
        data_dir: Root directory for the collection files (defaults to settings)
        settings: Store settings (file names); defaults to ``get_settings().store``
        clock: Returns "now"; used only to build time windows and derived views
    """

    def __init__(
        self,
        data_dir: Optional[Path] = None,
        settings: Optional[StoreSettings] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        settings = settings or get_settings().store
        self.data_dir = Path(data_dir) if data_dir is not None else Path(settings.data_dir)
        self.clock = clock or datetime.now
        self.locks = PathLockTable()

        self.inventory = CollectionFile(self.data_dir / settings.inventory_file, InventoryItem, self.locks)
        self.users = CollectionFile(self.data_dir / settings.users_file, UserAccount, self.locks)
        self.transactions = CollectionFile(
            self.data_dir / settings.transactions_file, Transaction, self.locks
        )
        self.access_logs = CollectionFile(
            self.data_dir / settings.access_logs_file, AccessLogEntry, self.locks
        )

    def _now(self) -> datetime:
        return self.clock()

    async def ensure_directory(self) -> None:
        await self.inventory.ensure_directory()

    async def _update_by_key(
        self,
        collection: CollectionFile[R],
        matches: Callable[[R], bool],
        updates: Mapping[str, Any],
        description: str,
    ) -> Optional[R]:
        """Load -> find -> replace -> save_all, all under the collection's lock."""
        async with collection.locks.hold(collection.path):
            records = await collection.load_unlocked()
            index = next((i for i, record in enumerate(records) if matches(record)), None)
            if index is None:
                logger.info(f"{collection.collection}: no record for {description}")
                return None

            records[index] = _merge_record(collection.model, records[index], updates)
            await collection.save_all_unlocked(records)
            return records[index]

    # ═══════════════════════════════════════════════════════════════════════
    # INVENTORY
    # ═══════════════════════════════════════════════════════════════════════

    async def load_inventory(self) -> List[InventoryItem]:
        return await self.inventory.load()

    async def save_inventory(self, items: Sequence[InventoryItem]) -> None:
        await self.inventory.save_all(items)

    async def update_inventory_item(
        self,
        drug_id: str,
        updates: Mapping[str, Any],
        location: Optional[str] = None,
        batch_lot: Optional[str] = None,
    ) -> Optional[InventoryItem]:
        """
        Replace one inventory row with its updated version.

        ``location``/``batch_lot`` narrow the match to a single
        (drug_id, location, batch_lot) row; without them the first row for the
        drug is updated. Returns None when nothing matches.
        """
        def matches(item: InventoryItem) -> bool:
            return (
                item.drug_id == drug_id
                and (location is None or item.location == location)
                and (batch_lot is None or item.batch_lot == batch_lot)
            )

        return await self._update_by_key(self.inventory, matches, updates, f"drug_id={drug_id}")

    async def search_inventory(self, drug_name: str) -> List[DrugInfo]:
        return views.search_by_name(await self.load_inventory(), drug_name, self._now())

    async def get_inventory_by_location(self, location: str) -> List[DrugInfo]:
        return views.filter_by_location(await self.load_inventory(), location, self._now())

    async def get_all_locations(self) -> List[LocationSummary]:
        return views.summarize_locations(await self.load_inventory())

    async def get_expiring_items(self, days: int) -> List[DrugInfo]:
        return views.expiring_within(await self.load_inventory(), days, self._now())

    async def get_expired_items(self) -> List[DrugInfo]:
        return views.expired_only(await self.load_inventory(), self._now())

    async def get_low_stock_items(self) -> List[DrugInfo]:
        return views.low_stock_sorted(await self.load_inventory(), self._now())

    # ═══════════════════════════════════════════════════════════════════════
    # USERS
    # ═══════════════════════════════════════════════════════════════════════

    async def load_users(self) -> List[UserAccount]:
        return await self.users.load()

    async def save_users(self, users: Sequence[UserAccount]) -> None:
        await self.users.save_all(users)

    async def get_user_by_id(self, emp_id: str) -> Optional[UserAccount]:
        return next((user for user in await self.load_users() if user.emp_id == emp_id), None)

    async def update_user(self, emp_id: str, updates: Mapping[str, Any]) -> Optional[UserAccount]:
        return await self._update_by_key(
            self.users, lambda user: user.emp_id == emp_id, updates, f"emp_id={emp_id}"
        )

    # ═══════════════════════════════════════════════════════════════════════
    # TRANSACTIONS (append-only)
    # ═══════════════════════════════════════════════════════════════════════

    async def load_transactions(self, days: Optional[int] = None) -> List[Transaction]:
        """All transactions in file order, optionally only the trailing ``days``."""
        return views.transactions_since(await self.transactions.load(), days, self._now())

    async def add_transaction(self, txn: Transaction) -> None:
        await self.transactions.append(txn)

    async def get_transactions_for_drug(
        self, drug_id: str, days: int = DEFAULT_DRUG_HISTORY_DAYS
    ) -> List[Transaction]:
        return views.transactions_for_drug(await self.load_transactions(days), drug_id)

    async def get_drug_usage_stats(
        self, drug_name: str, days: int = DEFAULT_USAGE_WINDOW_DAYS
    ) -> UsageStats:
        return views.usage_stats(await self.load_transactions(days), drug_name, days)

    # ═══════════════════════════════════════════════════════════════════════
    # ACCESS LOGS (append-only)
    # ═══════════════════════════════════════════════════════════════════════

    async def load_access_logs(self) -> List[AccessLogEntry]:
        return await self.access_logs.load()

    async def add_access_log(self, entry: AccessLogEntry) -> None:
        await self.access_logs.append(entry)

    async def get_access_logs(self, limit: int = DEFAULT_ACCESS_LOG_LIMIT) -> List[AccessLogEntry]:
        """Most recent ``limit`` entries, newest first."""
        entries = await self.load_access_logs()
        if limit <= 0:
            return []
        return list(reversed(entries[-limit:]))

