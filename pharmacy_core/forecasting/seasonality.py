"""
Seasonality detection on a daily usage series.

Two candidate patterns, checked in order:

- weekly: average usage per weekday; score = std(weekday averages) / mean.
  Declared when score > 0.6.
- monthly: series split into thirds (early/mid/late); same score on the three
  averages. Declared when score > 0.5.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional, Sequence, Tuple

import numpy as np

from pharmacy_core.forecasting.constants import (
    MONTH_PERIOD_NAMES,
    MONTHLY_LOW_RATIO,
    MONTHLY_PEAK_RATIO,
    MONTHLY_SEASONALITY_THRESHOLD,
    WEEKDAY_NAMES,
    WEEKLY_LOW_RATIO,
    WEEKLY_PEAK_RATIO,
    WEEKLY_SEASONALITY_THRESHOLD,
)
from pharmacy_core.forecasting.statistics import calculate_std_dev


@dataclass
class SeasonalityResult:
    has_seasonality: bool = False
    pattern: str = "none"  # weekly | monthly | none
    peak_periods: List[str] = field(default_factory=list)
    low_periods: List[str] = field(default_factory=list)
    seasonality_score: float = 0.0


@dataclass
class _PatternScore:
    score: float
    peaks: List[str]
    lows: List[str]


def _score_groups(
    labelled_averages: Sequence[Tuple[str, float]], peak_ratio: float, low_ratio: float
) -> _PatternScore:
    averages = [avg for _, avg in labelled_averages]
    overall = float(np.mean(averages))
    score = calculate_std_dev(averages) / (overall or 1)
    return _PatternScore(
        score=score,
        peaks=[name for name, avg in labelled_averages if avg > overall * peak_ratio],
        lows=[name for name, avg in labelled_averages if avg < overall * low_ratio],
    )


def _weekly_pattern(values: np.ndarray, start_date: Optional[date]) -> _PatternScore:
    offset = start_date.weekday() if start_date is not None else 0
    weekdays = (np.arange(len(values)) + offset) % 7

    labelled = []
    for weekday in range(7):
        bucket = values[weekdays == weekday]
        labelled.append((WEEKDAY_NAMES[weekday], float(bucket.mean()) if bucket.size else 0.0))
    return _score_groups(labelled, WEEKLY_PEAK_RATIO, WEEKLY_LOW_RATIO)


def _monthly_pattern(values: np.ndarray) -> _PatternScore:
    period = len(values) // 3
    if period == 0:
        return _PatternScore(score=0.0, peaks=[], lows=[])

    thirds = (values[:period], values[period:2 * period], values[2 * period:])
    labelled = [(name, float(chunk.mean())) for name, chunk in zip(MONTH_PERIOD_NAMES, thirds)]
    return _score_groups(labelled, MONTHLY_PEAK_RATIO, MONTHLY_LOW_RATIO)


def detect_seasonal_patterns(
    daily_usage: Sequence[float], start_date: Optional[date] = None
) -> SeasonalityResult:
    """
    Args:
        daily_usage: Usage per day, oldest first
        start_date: Calendar date of ``daily_usage[0]``; labels weekday
            buckets. Without it the first value is treated as a Monday.
    """
    if len(daily_usage) == 0:
        return SeasonalityResult()

    values = np.asarray(daily_usage, dtype=float)

    weekly = _weekly_pattern(values, start_date)
    if weekly.score > WEEKLY_SEASONALITY_THRESHOLD:
        return SeasonalityResult(
            has_seasonality=True,
            pattern="weekly",
            peak_periods=weekly.peaks,
            low_periods=weekly.lows,
            seasonality_score=weekly.score,
        )

    monthly = _monthly_pattern(values)
    if monthly.score > MONTHLY_SEASONALITY_THRESHOLD:
        return SeasonalityResult(
            has_seasonality=True,
            pattern="monthly",
            peak_periods=monthly.peaks,
            low_periods=monthly.lows,
            seasonality_score=monthly.score,
        )

    return SeasonalityResult()
