"""
Typed cache keys.

A key is ``(namespace, variant, args)``. Its rendered form is
``namespace:variant[:arg...]`` and its invalidation prefix is ``namespace:``,
so dropping a namespace can never match a key from another namespace that
happens to share leading characters.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, FrozenSet, Hashable, Tuple


class CacheNamespace(str, Enum):
    INVENTORY = "inventory"
    LOCATIONS = "locations"
    EXPIRING = "expiring"
    EXPIRED = "expired"
    LOW_STOCK = "lowStock"
    TRANSACTIONS = "transactions"
    USERS = "users"


class WriteTarget(str, Enum):
    """Collections whose writes invalidate cached reads."""
    INVENTORY = "inventory"
    USERS = "users"
    TRANSACTIONS = "transactions"
    ACCESS_LOGS = "access_logs"


# Derived views are computed from the inventory collection, so they go with it
INVALIDATION_GROUPS: Dict[WriteTarget, FrozenSet[CacheNamespace]] = {
    WriteTarget.INVENTORY: frozenset(
        {
            CacheNamespace.INVENTORY,
            CacheNamespace.LOCATIONS,
            CacheNamespace.EXPIRING,
            CacheNamespace.EXPIRED,
            CacheNamespace.LOW_STOCK,
        }
    ),
    WriteTarget.USERS: frozenset({CacheNamespace.USERS}),
    WriteTarget.TRANSACTIONS: frozenset({CacheNamespace.TRANSACTIONS}),
    WriteTarget.ACCESS_LOGS: frozenset(),
}

ALL_VARIANT = "all"


@dataclass(frozen=True)
class CacheKey:
    namespace: CacheNamespace
    variant: str = ALL_VARIANT
    args: Tuple[Hashable, ...] = ()

    def render(self) -> str:
        parts = [self.namespace.value, self.variant, *(str(arg) for arg in self.args)]
        return ":".join(parts)

    def invalidation_prefix(self) -> str:
        return namespace_prefix(self.namespace)

    def __str__(self) -> str:
        return self.render()


def namespace_prefix(namespace: CacheNamespace) -> str:
    return f"{namespace.value}:"
