"""
Statistical building blocks for demand forecasting.

Mathematical Formulation:
─────────────────────────
    EWMA:
        ewma[0] = x[0]
        ewma[i] = α * x[i] + (1 - α) * ewma[i-1]

    Linear regression (x = index):
        slope     = (n Σxy - Σx Σy) / (n Σx² - (Σx)²)
        intercept = (Σy - slope Σx) / n
        R²        = 1 - SS_res / SS_tot      (SS_tot = 0  ->  R² = 0)

    IQR outliers:
        fences = [Q1 - 1.5 IQR, Q3 + 1.5 IQR], Q1/Q3 at sorted indices
        floor(0.25 n) and floor(0.75 n)

All functions are pure and return sentinels (empty lists, zeros) for empty
input instead of raising.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import List, Sequence

import numpy as np

from pharmacy_core.forecasting.constants import (
    DEFAULT_EWMA_ALPHA,
    IQR_MULTIPLIER,
    MIN_OUTLIER_POINTS,
    OUTLIER_LOWER_PERCENTILE,
    OUTLIER_UPPER_PERCENTILE,
    SIGNIFICANT_TREND_PERCENT,
    SIGNIFICANT_TREND_R2,
)


# ═══════════════════════════════════════════════════════════════════════════════
# DATA STRUCTURES
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class RegressionResult:
    slope: float = 0.0
    intercept: float = 0.0
    r_squared: float = 0.0


@dataclass(frozen=True)
class TrendAnalysis:
    """
    Attributes:
        slope: Units per period
        intercept: Fitted value at index 0
        r_squared: Goodness of fit (0-1)
        trend_percent: Slope as a percentage of the mean
        has_significant_trend: R² > 0.5 and |trend_percent| > 5
    """
    slope: float = 0.0
    intercept: float = 0.0
    r_squared: float = 0.0
    trend_percent: float = 0.0
    has_significant_trend: bool = False


@dataclass
class OutlierResult:
    cleaned: List[float] = field(default_factory=list)
    outliers: List[float] = field(default_factory=list)


@dataclass(frozen=True)
class ForecastAccuracy:
    mae: float = 0.0
    rmse: float = 0.0
    mape: float = 0.0
    accuracy: float = 0.0


# ═══════════════════════════════════════════════════════════════════════════════
# FUNCTIONS
# ═══════════════════════════════════════════════════════════════════════════════

def calculate_ewma(data: Sequence[float], alpha: float = DEFAULT_EWMA_ALPHA) -> List[float]:
    if len(data) == 0:
        return []

    values = np.asarray(data, dtype=float)
    ewma = np.empty_like(values)
    ewma[0] = values[0]
    for i in range(1, len(values)):
        ewma[i] = alpha * values[i] + (1 - alpha) * ewma[i - 1]
    return ewma.tolist()


def calculate_linear_regression(values: Sequence[float]) -> RegressionResult:
    n = len(values)
    if n == 0:
        return RegressionResult()

    y = np.asarray(values, dtype=float)
    x = np.arange(n, dtype=float)

    sum_x = x.sum()
    sum_y = y.sum()
    sum_xy = (x * y).sum()
    sum_xx = (x * x).sum()

    denominator = n * sum_xx - sum_x * sum_x
    if denominator == 0:
        # A single point: flat line through it
        return RegressionResult(slope=0.0, intercept=float(sum_y / n), r_squared=0.0)

    slope = (n * sum_xy - sum_x * sum_y) / denominator
    intercept = (sum_y - slope * sum_x) / n

    mean_y = sum_y / n
    ss_total = float(((y - mean_y) ** 2).sum())
    ss_residual = float(((y - (intercept + slope * x)) ** 2).sum())
    r_squared = 1 - ss_residual / ss_total if ss_total > 0 else 0.0

    return RegressionResult(slope=float(slope), intercept=float(intercept), r_squared=float(r_squared))


def calculate_std_dev(values: Sequence[float]) -> float:
    """Population standard deviation."""
    if len(values) == 0:
        return 0.0
    return float(np.std(np.asarray(values, dtype=float)))


def remove_outliers(data: Sequence[float]) -> OutlierResult:
    """Split ``data`` into values inside the IQR fences and the rest, keeping order."""
    values = [float(v) for v in data]
    if len(values) < MIN_OUTLIER_POINTS:
        return OutlierResult(cleaned=values, outliers=[])

    ordered = sorted(values)
    q1 = ordered[math.floor(len(ordered) * OUTLIER_LOWER_PERCENTILE)]
    q3 = ordered[math.floor(len(ordered) * OUTLIER_UPPER_PERCENTILE)]
    iqr = q3 - q1
    lower_bound = q1 - IQR_MULTIPLIER * iqr
    upper_bound = q3 + IQR_MULTIPLIER * iqr

    result = OutlierResult()
    for value in values:
        if lower_bound <= value <= upper_bound:
            result.cleaned.append(value)
        else:
            result.outliers.append(value)
    return result


def calculate_detailed_trend(values: Sequence[float]) -> TrendAnalysis:
    if len(values) < 2:
        return TrendAnalysis()

    regression = calculate_linear_regression(values)
    mean_value = float(np.mean(np.asarray(values, dtype=float)))
    trend_percent = regression.slope / mean_value * 100 if mean_value > 0 else 0.0

    return TrendAnalysis(
        slope=regression.slope,
        intercept=regression.intercept,
        r_squared=regression.r_squared,
        trend_percent=trend_percent,
        has_significant_trend=(
            regression.r_squared > SIGNIFICANT_TREND_R2
            and abs(trend_percent) > SIGNIFICANT_TREND_PERCENT
        ),
    )


def calculate_forecast_accuracy(actual: Sequence[float], predicted: Sequence[float]) -> ForecastAccuracy:
    """MAE, RMSE, MAPE (over non-zero actuals) and accuracy = max(0, 100 - MAPE)."""
    if len(actual) == 0 or len(actual) != len(predicted):
        return ForecastAccuracy()

    a = np.asarray(actual, dtype=float)
    p = np.asarray(predicted, dtype=float)
    errors = a - p

    mae = float(np.mean(np.abs(errors)))
    rmse = float(np.sqrt(np.mean(errors ** 2)))

    mask = a != 0
    mape = float(np.mean(np.abs(errors[mask] / a[mask])) * 100) if np.any(mask) else 0.0

    return ForecastAccuracy(mae=mae, rmse=rmse, mape=mape, accuracy=max(0.0, 100 - mape))
