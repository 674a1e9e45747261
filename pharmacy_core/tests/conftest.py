"""
Shared fixtures for the pharmacy_core tests.
"""

import asyncio
from datetime import date, datetime

import pytest

from pharmacy_core.config import StoreSettings
from pharmacy_core.records import AccessLogEntry, InventoryItem, Transaction, UserAccount
from pharmacy_core.store import CSVInventoryStore

# Fixed "now" so derived views are deterministic
NOW = datetime(2026, 10, 19, 12, 0, 0)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def store(tmp_path):
    """Empty store rooted in a temporary directory with a fixed clock."""
    return CSVInventoryStore(
        data_dir=tmp_path,
        settings=StoreSettings(data_dir=tmp_path),
        clock=lambda: NOW,
    )


@pytest.fixture
def sample_inventory():
    """Five stock lines covering every stock status."""
    return [
        InventoryItem(
            drug_id="DRUG-001",
            drug_name="Propofol",
            location="ICU-A",
            qty_on_hand=50,
            expiry_date=date(2027, 6, 1),
            batch_lot="LOT-P1",
            safety_stock=20,
            avg_daily_use=5.0,
        ),
        InventoryItem(
            drug_id="DRUG-002",
            drug_name="Morphine 10mg",
            location="ICU-A",
            qty_on_hand=0,
            expiry_date=date(2027, 1, 1),
            batch_lot="LOT-M1",
            safety_stock=10,
            avg_daily_use=2.0,
        ),
        InventoryItem(
            drug_id="DRUG-003",
            drug_name="Insulin Glargine",
            location="Pharmacy-Fridge",
            qty_on_hand=4,
            expiry_date=date(2026, 10, 25),
            batch_lot="LOT-I1",
            safety_stock=10,
            avg_daily_use=1.5,
        ),
        InventoryItem(
            drug_id="DRUG-004",
            drug_name="Heparin",
            location="ER",
            qty_on_hand=8,
            expiry_date=date(2026, 10, 1),
            batch_lot="LOT-H1",
            safety_stock=10,
            avg_daily_use=1.0,
        ),
        InventoryItem(
            drug_id="DRUG-005",
            drug_name="Ceftriaxone",
            location="ER",
            qty_on_hand=7,
            expiry_date=date(2026, 11, 10),
            batch_lot="LOT-C1",
            safety_stock=10,
            avg_daily_use=0.5,
        ),
    ]


@pytest.fixture
def sample_users():
    return [
        UserAccount(
            emp_id="U001",
            role="Nurse",
            status="Active",
            name="Alex Reyes",
            password_hash="hash-1",
            unified_group="ICU",
            created_at=datetime(2026, 1, 5, 8, 0, 0),
        ),
        UserAccount(
            emp_id="U002",
            role="Pharmacist",
            status="Active",
            name="Sam Okafor",
            password_hash="hash-2",
            unified_group="Pharmacy",
            created_at=datetime(2026, 2, 1, 9, 30, 0),
            last_login=datetime(2026, 10, 18, 7, 45, 0),
        ),
    ]


@pytest.fixture
def sample_transactions():
    return [
        Transaction(
            txn_id="T1", timestamp=datetime(2026, 8, 1, 9, 0), user_id="U001",
            drug_id="DRUG-001", action="USE", qty_change=-2,
        ),
        Transaction(
            txn_id="T2", timestamp=datetime(2026, 10, 10, 14, 0), user_id="U002",
            drug_id="DRUG-001", action="RECEIVE", qty_change=20,
        ),
        Transaction(
            txn_id="T3", timestamp=datetime(2026, 10, 17, 10, 0), user_id="U001",
            drug_id="DRUG-001", action="USE", qty_change=-5,
        ),
        Transaction(
            txn_id="T4", timestamp=datetime(2026, 10, 18, 9, 0), user_id="U001",
            drug_id="DRUG-001", action="USE", qty_change=-3,
        ),
        Transaction(
            txn_id="T5", timestamp=datetime(2026, 10, 18, 11, 0), user_id="U001",
            drug_id="DRUG-002", action="USE", qty_change=-1,
        ),
    ]


@pytest.fixture
def sample_access_logs():
    return [
        AccessLogEntry(
            log_id=f"L{i}",
            timestamp=datetime(2026, 10, 19, 8, i),
            emp_id="U001",
            action="LOGIN",
            ip_address="10.0.0.5" if i % 2 == 0 else None,
        )
        for i in range(1, 6)
    ]


@pytest.fixture
def populated_store(store, sample_inventory, sample_users, sample_transactions):
    """Store with inventory, users and transactions on disk."""

    async def _populate():
        await store.save_inventory(sample_inventory)
        await store.save_users(sample_users)
        for txn in sample_transactions:
            await store.add_transaction(txn)

    asyncio.run(_populate())
    return store
