"""
Derived read views over loaded collections.

Pure functions: they take already-loaded records plus an explicit ``now`` and
return enriched/filtered/sorted results. The store re-loads the collection
before every call; nothing here is cached.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Dict, Iterable, List, Optional, Sequence

from pharmacy_core.records.enrichment import (
    DrugInfo,
    LocationSummary,
    StockStatus,
    UsageStats,
    enrich_item,
)
from pharmacy_core.records.schemas import InventoryItem, Transaction, TransactionAction
from pharmacy_core.store.fuzzy import DEFAULT_MATCH_THRESHOLD, smart_drug_match


def enrich_all(items: Iterable[InventoryItem], now: datetime) -> List[DrugInfo]:
    return [enrich_item(item, now) for item in items]


def search_by_name(
    items: Sequence[InventoryItem],
    query: str,
    now: datetime,
    threshold: float = DEFAULT_MATCH_THRESHOLD,
) -> List[DrugInfo]:
    return enrich_all((item for item in items if smart_drug_match(query, item.drug_name, threshold)), now)


def filter_by_location(items: Sequence[InventoryItem], location: str, now: datetime) -> List[DrugInfo]:
    needle = location.lower()
    return enrich_all((item for item in items if needle in item.location.lower()), now)


def summarize_locations(items: Sequence[InventoryItem]) -> List[LocationSummary]:
    summaries: Dict[str, LocationSummary] = {}
    for item in items:
        summary = summaries.setdefault(item.location, LocationSummary(location=item.location))
        summary.item_count += 1
        summary.total_qty += item.qty_on_hand
        if item.qty_on_hand == 0:
            summary.stockout_count += 1
        if item.qty_on_hand < item.safety_stock:
            summary.low_stock_count += 1
    return sorted(summaries.values(), key=lambda s: s.location)


def expiring_within(items: Sequence[InventoryItem], days: int, now: datetime) -> List[DrugInfo]:
    """Items with 0 < days_remaining <= days, soonest first. Expired items excluded."""
    enriched = [info for info in enrich_all(items, now) if 0 < info.days_remaining <= days]
    return sorted(enriched, key=lambda info: info.days_remaining)


def expired_only(items: Sequence[InventoryItem], now: datetime) -> List[DrugInfo]:
    return [info for info in enrich_all(items, now) if info.status == StockStatus.EXPIRED]


def _stock_ratio(info: DrugInfo) -> float:
    if info.safety_stock <= 0:
        return float("inf")
    return info.qty_on_hand / info.safety_stock


def low_stock_sorted(items: Sequence[InventoryItem], now: datetime) -> List[DrugInfo]:
    """Items below safety stock: stockouts first, then by ascending qty/safety ratio."""
    below = [info for info in enrich_all(items, now) if info.qty_on_hand < info.safety_stock]
    return sorted(below, key=lambda info: (info.qty_on_hand != 0, _stock_ratio(info)))


def transactions_since(
    transactions: Sequence[Transaction],
    days: Optional[int],
    now: datetime,
) -> List[Transaction]:
    if not days:
        return list(transactions)
    cutoff = now - timedelta(days=days)
    return [txn for txn in transactions if txn.timestamp >= cutoff]


def transactions_for_drug(transactions: Sequence[Transaction], drug_id: str) -> List[Transaction]:
    needle = drug_id.lower()
    return [txn for txn in transactions if txn.drug_id == drug_id or needle in txn.drug_id.lower()]


def usage_stats(transactions: Sequence[Transaction], drug_name: str, days: int) -> UsageStats:
    """
    Aggregate a drug's movements over a window already applied to ``transactions``.

    USE quantities are stored negative; their magnitude counts as used.
    """
    needle = drug_name.lower()
    matching = [txn for txn in transactions if needle in txn.drug_id.lower()]

    total_used = sum(abs(txn.qty_change) for txn in matching if txn.action == TransactionAction.USE)
    total_received = sum(txn.qty_change for txn in matching if txn.action == TransactionAction.RECEIVE)

    return UsageStats(
        total_used=total_used,
        total_received=total_received,
        avg_daily_usage=total_used / days if days > 0 else 0.0,
        transaction_count=len(matching),
    )
