"""
Delimited-file persistence for one record collection.

Format:
    header row + data rows, fixed column order taken from the record schema.

Write discipline:
    save_all -> render everything to ``<file>.tmp`` then ``os.replace`` it over
                ``<file>``; readers only ever see the old or the new file.
    append   -> header row if the file is new, otherwise a single data row in
                append mode; prior rows are never rewritten.

Blocking file I/O runs in a worker thread (``asyncio.to_thread``) while the
caller holds the per-path lock, so the lock is held across the only
suspension points. Writers take the lock before their first await
(directory creation happens inside the locked section), so calls reach the
lock in the order they were issued.
"""

from __future__ import annotations

import asyncio
import csv
import logging
import os
from pathlib import Path
from typing import Generic, List, Sequence, Type, TypeVar

import pandas as pd
from pydantic import ValidationError as PydanticValidationError

from pharmacy_core.exceptions import ValidationError
from pharmacy_core.records.schemas import CsvRecord
from pharmacy_core.store.locks import PathLockTable

logger = logging.getLogger(__name__)

R = TypeVar("R", bound=CsvRecord)

TEMP_SUFFIX = ".tmp"


def _render_rows(records: Sequence[CsvRecord], headers: Sequence[str], header: bool) -> str:
    frame = pd.DataFrame([record.to_row() for record in records], columns=list(headers))
    return frame.to_csv(index=False, header=header, lineterminator="\n", quoting=csv.QUOTE_MINIMAL)


class CollectionFile(Generic[R]):
    """
    One collection on disk.

    Attributes:
        path: Target CSV file
        model: Record schema used to validate rows
        locks: Shared per-path lock table
    """

    def __init__(self, path: Path, model: Type[R], locks: PathLockTable):
        self.path = Path(path)
        self.model = model
        self.locks = locks

    @property
    def collection(self) -> str:
        return self.model.COLLECTION

    @property
    def headers(self) -> Sequence[str]:
        return self.model.HEADERS

    @property
    def temp_path(self) -> Path:
        return self.path.with_name(self.path.name + TEMP_SUFFIX)

    # ------------------------------------------------------------------
    # Public (locked) operations
    # ------------------------------------------------------------------
    async def ensure_directory(self) -> None:
        await asyncio.to_thread(self.path.parent.mkdir, parents=True, exist_ok=True)

    async def load(self) -> List[R]:
        async with self.locks.hold(self.path):
            return await self.load_unlocked()

    async def save_all(self, records: Sequence[R]) -> None:
        async with self.locks.hold(self.path):
            await self.save_all_unlocked(records)

    async def append(self, record: R) -> None:
        async with self.locks.hold(self.path):
            await asyncio.to_thread(self._append_sync, record)

    # ------------------------------------------------------------------
    # Unlocked variants, for callers already holding the path lock
    # ------------------------------------------------------------------
    async def load_unlocked(self) -> List[R]:
        return await asyncio.to_thread(self._load_sync)

    async def save_all_unlocked(self, records: Sequence[R]) -> None:
        await asyncio.to_thread(self._save_all_sync, list(records))

    # ------------------------------------------------------------------
    # Blocking internals
    # ------------------------------------------------------------------
    def _read_frame(self) -> pd.DataFrame:
        if not self.path.exists() or self.path.stat().st_size == 0:
            return pd.DataFrame(columns=list(self.headers))
        try:
            return pd.read_csv(
                self.path,
                dtype=str,
                keep_default_na=False,
                skip_blank_lines=True,
                skipinitialspace=True,
            )
        except pd.errors.EmptyDataError:
            return pd.DataFrame(columns=list(self.headers))
        except pd.errors.ParserError as exc:
            logger.warning(f"{self.collection}: malformed file {self.path}, aborting load")
            raise ValidationError(self.collection, None, str(exc)) from exc

    def _load_sync(self) -> List[R]:
        frame = self._read_frame()
        if frame.empty:
            logger.debug(f"{self.collection}: no rows at {self.path}")
            return []

        records: List[R] = []
        for row_number, row in enumerate(frame.to_dict(orient="records"), start=1):
            try:
                records.append(self.model.from_row(row))
            except PydanticValidationError as exc:
                logger.warning(f"{self.collection}: row {row_number} failed validation, aborting load")
                raise ValidationError(self.collection, row_number, str(exc)) from exc

        logger.debug(f"{self.collection}: loaded {len(records)} rows from {self.path}")
        return records

    def _save_all_sync(self, records: List[R]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        content = _render_rows(records, self.headers, header=True)
        temp_path = self.temp_path
        try:
            with open(temp_path, "w", encoding="utf-8", newline="") as handle:
                handle.write(content)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(temp_path, self.path)
        except BaseException:
            if temp_path.exists():
                try:
                    temp_path.unlink()
                except OSError as cleanup_exc:
                    logger.warning(f"Could not remove temp file {temp_path}: {cleanup_exc}")
            raise
        logger.debug(f"{self.collection}: saved {len(records)} rows to {self.path}")

    def _append_sync(self, record: R) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        is_new = not self.path.exists() or self.path.stat().st_size == 0
        content = _render_rows([record], self.headers, header=is_new)
        with open(self.path, "a", encoding="utf-8", newline="") as handle:
            handle.write(content)
            handle.flush()
        logger.debug(f"{self.collection}: appended 1 row to {self.path}")
