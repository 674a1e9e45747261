"""
P-MACS Core
===========

Inventory data store and forecast engine for the hospital pharmacy.

    store = CSVInventoryStore("./data")
    async with CachedInventoryStore(store) as cached:
        low = await cached.get_low_stock_items()
"""

from pharmacy_core.cache import CachedInventoryStore
from pharmacy_core.config import Settings, get_settings, reset_settings
from pharmacy_core.exceptions import NotFoundError, PharmacyCoreError, ValidationError
from pharmacy_core.forecasting import (
    calculate_detailed_trend,
    calculate_ewma,
    calculate_forecast_accuracy,
    calculate_linear_regression,
    calculate_safety_stock,
    calculate_std_dev,
    classify_abc_xyz,
    detect_seasonal_patterns,
    extract_daily_usage,
    generate_forecast,
    predict_stockout_date,
    remove_outliers,
)
from pharmacy_core.records import (
    AccessLogEntry,
    DrugInfo,
    InventoryItem,
    Transaction,
    TransactionAction,
    UserAccount,
)
from pharmacy_core.store import CSVInventoryStore

__version__ = "1.0.0"

__all__ = [
    "CachedInventoryStore",
    "CSVInventoryStore",
    "Settings",
    "get_settings",
    "reset_settings",
    "NotFoundError",
    "PharmacyCoreError",
    "ValidationError",
    "AccessLogEntry",
    "DrugInfo",
    "InventoryItem",
    "Transaction",
    "TransactionAction",
    "UserAccount",
    "calculate_detailed_trend",
    "calculate_ewma",
    "calculate_forecast_accuracy",
    "calculate_linear_regression",
    "calculate_safety_stock",
    "calculate_std_dev",
    "classify_abc_xyz",
    "detect_seasonal_patterns",
    "extract_daily_usage",
    "generate_forecast",
    "predict_stockout_date",
    "remove_outliers",
]
