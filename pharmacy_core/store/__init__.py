"""
Persistent CSV store for the pharmacy collections.
"""

from pharmacy_core.store.csv_files import CollectionFile
from pharmacy_core.store.csv_store import CSVInventoryStore
from pharmacy_core.store.fuzzy import (
    levenshtein_distance,
    normalize_drug_name,
    similarity_ratio,
    smart_drug_match,
)
from pharmacy_core.store.locks import PathLockTable

__all__ = [
    "CollectionFile",
    "CSVInventoryStore",
    "PathLockTable",
    "levenshtein_distance",
    "normalize_drug_name",
    "similarity_ratio",
    "smart_drug_match",
]
