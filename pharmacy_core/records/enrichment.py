"""
Derived inventory views.

Status, days-to-expiry and handling category are computed on read and never
persisted. Every function takes ``now`` explicitly so callers (and tests) control
the clock.
"""

from __future__ import annotations

import math
from datetime import date, datetime, time
from enum import Enum
from typing import Optional, Tuple

from pydantic import BaseModel

from pharmacy_core.records.schemas import InventoryItem


class StockStatus(str, Enum):
    EXPIRED = "expired"
    STOCKOUT = "stockout"
    CRITICAL = "critical"
    LOW = "low"
    ADEQUATE = "adequate"


class DrugCategory(str, Enum):
    CONTROLLED = "controlled"
    REFRIGERATED = "refrigerated"
    HAZARDOUS = "hazardous"
    STANDARD = "standard"


CONTROLLED_SUBSTANCES: Tuple[str, ...] = (
    "Morphine",
    "Fentanyl",
    "Oxycodone",
    "Hydrocodone",
    "Diazepam",
    "Alprazolam",
    "Ketamine",
    "Codeine",
    "Methadone",
    "Hydromorphone",
)
REFRIGERATED_DRUGS: Tuple[str, ...] = ("INSULIN", "VACCINE", "EPINEPHRINE", "BIOLOGICS")
HAZARDOUS_DRUGS: Tuple[str, ...] = ("CHEMO", "CYTOTOXIC", "METHOTREXATE")

# Below this fraction of safety stock an item is critical rather than low
CRITICAL_STOCK_RATIO = 0.5

SECONDS_PER_DAY = 24 * 60 * 60


class DrugInfo(InventoryItem):
    """An inventory item together with its derived fields."""
    status: StockStatus
    days_remaining: int
    category: DrugCategory


class LocationSummary(BaseModel):
    location: str
    item_count: int = 0
    total_qty: int = 0
    stockout_count: int = 0
    low_stock_count: int = 0


class UsageStats(BaseModel):
    total_used: int = 0
    total_received: int = 0
    avg_daily_usage: float = 0.0
    transaction_count: int = 0


def _expiry_moment(expiry_date: date) -> datetime:
    return datetime.combine(expiry_date, time.min)


def _resolve_now(now: Optional[datetime]) -> datetime:
    return now if now is not None else datetime.now()


def determine_stock_status(
    qty: int,
    safety_stock: float,
    expiry_date: date,
    now: Optional[datetime] = None,
) -> StockStatus:
    """Expiry wins over quantity; then stockout, critical, low, adequate."""
    if _expiry_moment(expiry_date) < _resolve_now(now):
        return StockStatus.EXPIRED
    if qty == 0:
        return StockStatus.STOCKOUT
    if qty < safety_stock * CRITICAL_STOCK_RATIO:
        return StockStatus.CRITICAL
    if qty < safety_stock:
        return StockStatus.LOW
    return StockStatus.ADEQUATE


def calculate_days_remaining(expiry_date: date, now: Optional[datetime] = None) -> int:
    """ceil((expiry - now) in days). Negative once expired."""
    delta = _expiry_moment(expiry_date) - _resolve_now(now)
    return math.ceil(delta.total_seconds() / SECONDS_PER_DAY)


def determine_drug_category(drug_name: str) -> DrugCategory:
    upper_name = drug_name.upper()

    if any(cs.upper() in upper_name for cs in CONTROLLED_SUBSTANCES):
        return DrugCategory.CONTROLLED
    if any(rd in upper_name for rd in REFRIGERATED_DRUGS):
        return DrugCategory.REFRIGERATED
    if any(hd in upper_name for hd in HAZARDOUS_DRUGS):
        return DrugCategory.HAZARDOUS
    return DrugCategory.STANDARD


def enrich_item(item: InventoryItem, now: Optional[datetime] = None) -> DrugInfo:
    now = _resolve_now(now)
    return DrugInfo(
        **item.model_dump(),
        status=determine_stock_status(item.qty_on_hand, item.safety_stock, item.expiry_date, now),
        days_remaining=calculate_days_remaining(item.expiry_date, now),
        category=determine_drug_category(item.drug_name),
    )
