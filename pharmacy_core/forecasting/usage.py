"""
Daily usage series from the transaction log.
"""

from __future__ import annotations

from datetime import date, timedelta
from typing import Iterable, List

import pandas as pd

from pharmacy_core.records.schemas import Transaction, TransactionAction


def extract_daily_usage(transactions: Iterable[Transaction], days: int, today: date) -> List[float]:
    """
    Total |qty_change| of USE transactions per calendar day.

    Returns ``days`` values, oldest first, for the window ending on ``today``
    (inclusive). Days without usage are 0.
    """
    if days <= 0:
        return []

    window = pd.date_range(end=pd.Timestamp(today), periods=days, freq="D").date
    start = today - timedelta(days=days - 1)

    rows = [
        (txn.timestamp.date(), abs(txn.qty_change))
        for txn in transactions
        if txn.action == TransactionAction.USE and start <= txn.timestamp.date() <= today
    ]
    if not rows:
        return [0.0] * days

    df = pd.DataFrame(rows, columns=["day", "qty"])
    per_day = df.groupby("day")["qty"].sum()
    return [float(v) for v in per_day.reindex(window, fill_value=0).tolist()]
