"""
Record schemas and derived views for the pharmacy collections.
"""

from pharmacy_core.records.schemas import (
    ROLE_PERMISSIONS,
    AccessLogEntry,
    CsvRecord,
    InventoryItem,
    Permission,
    Transaction,
    TransactionAction,
    UserAccount,
    UserRole,
    UserStatus,
    format_timestamp,
)
from pharmacy_core.records.enrichment import (
    CONTROLLED_SUBSTANCES,
    DrugCategory,
    DrugInfo,
    LocationSummary,
    StockStatus,
    UsageStats,
    calculate_days_remaining,
    determine_drug_category,
    determine_stock_status,
    enrich_item,
)

__all__ = [
    "ROLE_PERMISSIONS",
    "AccessLogEntry",
    "CsvRecord",
    "InventoryItem",
    "Permission",
    "Transaction",
    "TransactionAction",
    "UserAccount",
    "UserRole",
    "UserStatus",
    "format_timestamp",
    "CONTROLLED_SUBSTANCES",
    "DrugCategory",
    "DrugInfo",
    "LocationSummary",
    "StockStatus",
    "UsageStats",
    "calculate_days_remaining",
    "determine_drug_category",
    "determine_stock_status",
    "enrich_item",
]
