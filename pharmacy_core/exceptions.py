"""Error taxonomy for the pharmacy data store."""

from __future__ import annotations

from typing import Optional


class PharmacyCoreError(Exception):
    """Base class for all errors raised by pharmacy_core."""


class ValidationError(PharmacyCoreError):
    """
    A persisted row failed schema coercion.

    Raised by ``load()`` on the first bad row; the whole load is aborted so a
    single corrupt row cannot silently truncate a collection.
    """

    def __init__(self, collection: str, row_number: Optional[int], detail: str):
        self.collection = collection
        self.row_number = row_number
        self.detail = detail
        where = f" row {row_number}" if row_number is not None else ""
        super().__init__(f"Invalid {collection}{where}: {detail}")


class NotFoundError(PharmacyCoreError):
    """
    A keyed record does not exist.

    The store's update-by-key operations return ``None`` rather than raising;
    collaborators may raise this when they need an exception.
    """

    def __init__(self, collection: str, key: str):
        self.collection = collection
        self.key = key
        super().__init__(f"{collection} record not found: {key}")
