"""
P-MACS Core - Settings
======================

Configuration for the data store and the cache layer.

Values come from the environment (optionally through a ``.env`` file) and fall
back to conservative defaults.

Usage:
    from pharmacy_core.config import get_settings

    settings = get_settings()
    settings.store.inventory_path

Environment variables:
    PMACS_DATA_DIR=./data
    PMACS_CACHE_SWEEP_SECONDS=60
    PMACS_CACHE_TTL_INVENTORY_MINUTES=5
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional

from dotenv import load_dotenv

# Load environment variables from .env if present
load_dotenv()

logger = logging.getLogger(__name__)

DATA_DIR_ENV = "PMACS_DATA_DIR"
SWEEP_SECONDS_ENV = "PMACS_CACHE_SWEEP_SECONDS"
TTL_ENV_TEMPLATE = "PMACS_CACHE_TTL_{namespace}_MINUTES"

DEFAULT_DATA_DIR = Path("./data")

# TTLs reflect how often each collection is written, not correctness
DEFAULT_TTL_MINUTES: Dict[str, float] = {
    "inventory": 5,
    "transactions": 2,
    "users": 10,
    "locations": 5,
    "expiring": 5,
    "expired": 5,
    "lowStock": 5,
}

DEFAULT_SWEEP_INTERVAL_SECONDS = 60.0


# ═══════════════════════════════════════════════════════════════════════════════
# SETTINGS
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass
class StoreSettings:
    """Where the four collection files live."""
    data_dir: Path = DEFAULT_DATA_DIR
    inventory_file: str = "inventory_master.csv"
    users_file: str = "user_access.csv"
    transactions_file: str = "transaction_logs.csv"
    access_logs_file: str = "access_logs.csv"

    @property
    def inventory_path(self) -> Path:
        return self.data_dir / self.inventory_file

    @property
    def users_path(self) -> Path:
        return self.data_dir / self.users_file

    @property
    def transactions_path(self) -> Path:
        return self.data_dir / self.transactions_file

    @property
    def access_logs_path(self) -> Path:
        return self.data_dir / self.access_logs_file


@dataclass
class CacheSettings:
    """
    Cache tuning.

    Attributes:
        ttl_minutes: TTL per cache namespace (minutes)
        sweep_interval_seconds: Period of the background stale-entry sweep
    """
    ttl_minutes: Dict[str, float] = field(default_factory=lambda: dict(DEFAULT_TTL_MINUTES))
    sweep_interval_seconds: float = DEFAULT_SWEEP_INTERVAL_SECONDS

    def ttl_seconds(self, namespace: str) -> float:
        return float(self.ttl_minutes.get(namespace, DEFAULT_TTL_MINUTES["inventory"])) * 60.0


@dataclass
class Settings:
    store: StoreSettings = field(default_factory=StoreSettings)
    cache: CacheSettings = field(default_factory=CacheSettings)


def _float_from_env(env_var: str, default: float) -> float:
    value = os.getenv(env_var)
    if not value:
        return default
    try:
        return float(value)
    except ValueError:
        logger.warning(f"Invalid value for {env_var}: {value}")
        return default


def load_settings_from_env() -> Settings:
    """Build settings from environment variables."""
    settings = Settings()

    data_dir = os.getenv(DATA_DIR_ENV)
    if data_dir:
        settings.store.data_dir = Path(data_dir)

    for namespace, default in DEFAULT_TTL_MINUTES.items():
        env_var = TTL_ENV_TEMPLATE.format(namespace=namespace.upper())
        settings.cache.ttl_minutes[namespace] = _float_from_env(env_var, default)

    settings.cache.sweep_interval_seconds = _float_from_env(
        SWEEP_SECONDS_ENV, DEFAULT_SWEEP_INTERVAL_SECONDS
    )
    return settings


_SETTINGS: Optional[Settings] = None


def get_settings() -> Settings:
    """Return the process-wide settings (loaded once)."""
    global _SETTINGS
    if _SETTINGS is None:
        _SETTINGS = load_settings_from_env()
    return _SETTINGS


def reset_settings() -> None:
    """Forget cached settings so the next call re-reads the environment."""
    global _SETTINGS
    _SETTINGS = None
