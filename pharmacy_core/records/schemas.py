"""
P-MACS Core - Record Schemas
============================

Pydantic models for the four persisted collections.

Field names match the CSV headers one-to-one so a row dict can be validated
directly. Every model knows how to render itself back into a row of strings
(``to_row``); derived/enriched fields are never part of a row.

Collections:
    inventory_master.csv  -> InventoryItem
    user_access.csv       -> UserAccount
    transaction_logs.csv  -> Transaction
    access_logs.csv       -> AccessLogEntry
"""

from __future__ import annotations

from datetime import date, datetime
from enum import Enum
from typing import Any, ClassVar, Dict, FrozenSet, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator


# ═══════════════════════════════════════════════════════════════════════════════
# ENUMS
# ═══════════════════════════════════════════════════════════════════════════════

class UserRole(str, Enum):
    NURSE = "Nurse"
    PHARMACIST = "Pharmacist"
    MASTER = "Master"


class UserStatus(str, Enum):
    ACTIVE = "Active"
    BLACKLISTED = "Blacklisted"


class Permission(str, Enum):
    READ = "read"
    UPDATE = "update"
    FORECAST = "forecast"
    ADMIN = "admin"


class TransactionAction(str, Enum):
    """Stock movement kinds. USE is recorded with a negative quantity."""
    USE = "USE"
    RECEIVE = "RECEIVE"
    TRANSFER = "TRANSFER"
    ADJUST = "ADJUST"
    WASTE = "WASTE"


ROLE_PERMISSIONS: Dict[UserRole, FrozenSet[Permission]] = {
    UserRole.NURSE: frozenset({Permission.READ}),
    UserRole.PHARMACIST: frozenset({Permission.READ, Permission.UPDATE, Permission.FORECAST}),
    UserRole.MASTER: frozenset(
        {Permission.READ, Permission.UPDATE, Permission.FORECAST, Permission.ADMIN}
    ),
}


# ═══════════════════════════════════════════════════════════════════════════════
# CELL HELPERS
# ═══════════════════════════════════════════════════════════════════════════════

def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and value.strip() == "":
        return None
    return value


def _strip(value: Any) -> Any:
    return value.strip() if isinstance(value, str) else value


def _to_local_naive(value: Optional[datetime]) -> Optional[datetime]:
    """Stored timestamps are naive local time; offset-aware input is converted."""
    if value is not None and value.tzinfo is not None:
        return value.astimezone().replace(tzinfo=None)
    return value


def format_timestamp(value: Optional[datetime]) -> str:
    """Render a timestamp the way it is stored (``YYYY-MM-DD HH:MM:SS``)."""
    if value is None:
        return ""
    return value.isoformat(sep=" ")


def _format_cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, Enum):
        return str(value.value)
    if isinstance(value, datetime):
        return format_timestamp(value)
    if isinstance(value, date):
        return value.isoformat()
    return str(value)


# ═══════════════════════════════════════════════════════════════════════════════
# BASE RECORD
# ═══════════════════════════════════════════════════════════════════════════════

class CsvRecord(BaseModel):
    """A record persisted as one row of a delimited collection file."""

    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")

    COLLECTION: ClassVar[str] = ""
    HEADERS: ClassVar[Tuple[str, ...]] = ()

    @classmethod
    def from_row(cls, row: Dict[str, Any]):
        return cls.model_validate(row)

    def to_row(self) -> Dict[str, str]:
        """Fixed-column-order row of strings. Only persisted columns."""
        return {column: _format_cell(getattr(self, column)) for column in self.HEADERS}


# ═══════════════════════════════════════════════════════════════════════════════
# INVENTORY (inventory_master.csv)
# ═══════════════════════════════════════════════════════════════════════════════

class InventoryItem(CsvRecord):
    """
    One stock line: a batch of a drug at a location.

    Uniqueness is on (drug_id, location, batch_lot); an update replaces the
    whole row.
    """

    COLLECTION: ClassVar[str] = "inventory"
    HEADERS: ClassVar[Tuple[str, ...]] = (
        "drug_id",
        "drug_name",
        "location",
        "qty_on_hand",
        "expiry_date",
        "batch_lot",
        "safety_stock",
        "avg_daily_use",
    )

    drug_id: str = Field(min_length=1)
    drug_name: str
    location: str
    qty_on_hand: int = Field(ge=0)
    expiry_date: date
    batch_lot: str
    safety_stock: int = Field(ge=0)
    avg_daily_use: float = Field(default=0.0, ge=0.0)

    @property
    def key(self) -> Tuple[str, str, str]:
        return (self.drug_id, self.location, self.batch_lot)


# ═══════════════════════════════════════════════════════════════════════════════
# USERS (user_access.csv)
# ═══════════════════════════════════════════════════════════════════════════════

class UserAccount(CsvRecord):
    """Staff account. ``emp_id`` is unique; the role fixes the permission set."""

    COLLECTION: ClassVar[str] = "users"
    HEADERS: ClassVar[Tuple[str, ...]] = (
        "emp_id",
        "role",
        "status",
        "name",
        "password_hash",
        "unified_group",
        "created_at",
        "last_login",
    )

    emp_id: str = Field(min_length=1)
    role: UserRole
    status: UserStatus = UserStatus.ACTIVE
    name: str
    password_hash: str
    unified_group: str = ""
    created_at: Optional[datetime] = None
    last_login: Optional[datetime] = None

    @field_validator("created_at", "last_login", mode="before")
    @classmethod
    def _coerce_timestamps(cls, value: Any) -> Any:
        return _strip(_blank_to_none(value))

    @field_validator("created_at", "last_login")
    @classmethod
    def _localise_timestamps(cls, value: Optional[datetime]) -> Optional[datetime]:
        return _to_local_naive(value)

    @property
    def permissions(self) -> FrozenSet[Permission]:
        return ROLE_PERMISSIONS[self.role]

    @property
    def is_active(self) -> bool:
        return self.status == UserStatus.ACTIVE

    def has_permission(self, permission: Permission) -> bool:
        return permission in self.permissions


# ═══════════════════════════════════════════════════════════════════════════════
# TRANSACTIONS (transaction_logs.csv) - append-only
# ═══════════════════════════════════════════════════════════════════════════════

class Transaction(CsvRecord):
    COLLECTION: ClassVar[str] = "transactions"
    HEADERS: ClassVar[Tuple[str, ...]] = (
        "txn_id",
        "timestamp",
        "user_id",
        "drug_id",
        "action",
        "qty_change",
    )

    txn_id: str = Field(min_length=1)
    timestamp: datetime
    user_id: str
    drug_id: str
    action: TransactionAction
    qty_change: int

    @field_validator("timestamp", mode="before")
    @classmethod
    def _coerce_timestamp(cls, value: Any) -> Any:
        return _strip(value)

    @field_validator("timestamp")
    @classmethod
    def _localise_timestamp(cls, value: datetime) -> datetime:
        return _to_local_naive(value)


# ═══════════════════════════════════════════════════════════════════════════════
# ACCESS LOG (access_logs.csv) - append-only
# ═══════════════════════════════════════════════════════════════════════════════

class AccessLogEntry(CsvRecord):
    COLLECTION: ClassVar[str] = "access_logs"
    HEADERS: ClassVar[Tuple[str, ...]] = (
        "log_id",
        "timestamp",
        "emp_id",
        "action",
        "ip_address",
        "details",
    )

    log_id: str = Field(min_length=1)
    timestamp: datetime
    emp_id: str
    action: str
    ip_address: Optional[str] = None
    details: Optional[str] = None

    @field_validator("timestamp", mode="before")
    @classmethod
    def _coerce_timestamp(cls, value: Any) -> Any:
        return _strip(value)

    @field_validator("timestamp")
    @classmethod
    def _localise_timestamp(cls, value: datetime) -> datetime:
        return _to_local_naive(value)

    @field_validator("ip_address", "details", mode="before")
    @classmethod
    def _blank_optional(cls, value: Any) -> Any:
        return _blank_to_none(value)
