"""
Short-horizon demand forecast for a single drug.

Pipeline:
    1. Drop IQR outliers from the daily usage history
    2. Fit a linear trend; apply it only when R² > 0.3 (factor clamped to [0.7, 1.3])
    3. Base demand = last EWMA value (falls back to the stored average)
    4. Per day: base * day-of-week factor * trend factor, with a 90% interval
       whose half-width grows with sqrt(horizon)
    5. Compare total demand against stock on hand to get a status
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import date, timedelta
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

from pharmacy_core.forecasting.constants import (
    DAY_OF_WEEK_FACTORS,
    DEFAULT_FORECAST_DAYS,
    FORECAST_CI_Z,
    FORECAST_CONFIDENCE_LEVEL,
    MIN_CI_SPREAD,
    SAFETY_BUFFER_BASE_DAYS,
    SAFETY_BUFFER_CV_WEIGHT,
    TREND_FACTOR_BOUNDS,
    TREND_R2_THRESHOLD,
    TREND_SLOPE_WEIGHT,
    WEEKDAY_NAMES,
)
from pharmacy_core.forecasting.statistics import (
    calculate_ewma,
    calculate_linear_regression,
    calculate_std_dev,
    remove_outliers,
)

logger = logging.getLogger(__name__)


class ForecastStatus(str, Enum):
    CRITICAL = "critical"
    WARNING = "warning"
    ADEQUATE = "adequate"


@dataclass
class DailyForecast:
    day: date
    weekday: str
    predicted_usage: float
    lower_bound: float
    upper_bound: float
    remaining_stock: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": self.day.isoformat(),
            "weekday": self.weekday,
            "predicted_usage": round(self.predicted_usage, 2),
            "lower_bound": round(self.lower_bound, 2),
            "upper_bound": round(self.upper_bound, 2),
            "remaining_stock": round(self.remaining_stock, 2),
        }


@dataclass
class ForecastQuality:
    """Diagnostics of the history that fed the forecast."""
    data_points: int = 0
    outliers_removed: int = 0
    trend_r_squared: float = 0.0
    trend_applied: bool = False
    trend_factor: float = 1.0
    coefficient_of_variation: float = 0.0
    confidence_level: int = FORECAST_CONFIDENCE_LEVEL


@dataclass
class ForecastResult:
    drug_name: str
    current_stock: float
    base_daily_demand: float
    forecast_days: int
    daily: List[DailyForecast] = field(default_factory=list)
    total_predicted: float = 0.0
    stock_gap: float = 0.0
    safety_buffer: float = 0.0
    status: ForecastStatus = ForecastStatus.ADEQUATE
    days_of_coverage: Optional[int] = None
    recommendation: str = ""
    quality: ForecastQuality = field(default_factory=ForecastQuality)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "drug_name": self.drug_name,
            "current_stock": self.current_stock,
            "base_daily_demand": round(self.base_daily_demand, 2),
            "forecast_days": self.forecast_days,
            "daily": [d.to_dict() for d in self.daily],
            "total_predicted": round(self.total_predicted, 2),
            "stock_gap": round(self.stock_gap, 2),
            "safety_buffer": round(self.safety_buffer, 2),
            "status": self.status.value,
            "days_of_coverage": self.days_of_coverage,
            "recommendation": self.recommendation,
            "quality": {
                "data_points": self.quality.data_points,
                "outliers_removed": self.quality.outliers_removed,
                "trend_r_squared": round(self.quality.trend_r_squared, 3),
                "trend_applied": self.quality.trend_applied,
                "trend_factor": round(self.quality.trend_factor, 3),
                "coefficient_of_variation": round(self.quality.coefficient_of_variation, 3),
                "confidence_level": self.quality.confidence_level,
            },
        }


def _trend_factor(slope: float) -> float:
    low, high = TREND_FACTOR_BOUNDS
    return min(high, max(low, 1 + slope * TREND_SLOPE_WEIGHT))


def _recommendation(
    status: ForecastStatus, stock_gap: float, safety_buffer: float, days_of_coverage: Optional[int]
) -> str:
    if status == ForecastStatus.CRITICAL:
        return f"Urgent: order {math.ceil(abs(stock_gap))} units immediately to avoid stockout"
    if status == ForecastStatus.WARNING:
        return f"Order {math.ceil(safety_buffer - stock_gap)} units to maintain safety buffer"
    if days_of_coverage is None:
        return "No recent demand; no reorder needed"
    return f"Stock adequate for about {days_of_coverage} days"


def generate_forecast(
    drug_name: str,
    current_stock: float,
    avg_daily_use: float,
    daily_usage: Sequence[float],
    start_date: date,
    forecast_days: int = DEFAULT_FORECAST_DAYS,
) -> ForecastResult:
    """
    Forecast the next ``forecast_days`` days after ``start_date``.

    Args:
        drug_name: Label carried into the result
        current_stock: Units on hand now
        avg_daily_use: Stored average, used when history gives no signal
        daily_usage: Usage per day, oldest first (may be empty)
        start_date: Day the forecast is made; first forecast day is the next one
        forecast_days: Horizon length

    Returns:
        ForecastResult with one DailyForecast per horizon day
    """
    outlier_split = remove_outliers(daily_usage)
    cleaned = outlier_split.cleaned

    regression = calculate_linear_regression(cleaned)
    trend_applied = regression.r_squared > TREND_R2_THRESHOLD
    trend_factor = _trend_factor(regression.slope) if trend_applied else 1.0

    ewma = calculate_ewma(cleaned)
    base_demand = ewma[-1] if ewma and ewma[-1] > 0 else float(avg_daily_use)

    std_dev = calculate_std_dev(cleaned)
    cv = std_dev / base_demand if base_demand > 0 else 0.0

    daily: List[DailyForecast] = []
    remaining = float(current_stock)
    for i in range(forecast_days):
        day = start_date + timedelta(days=i + 1)
        predicted = base_demand * DAY_OF_WEEK_FACTORS[day.weekday()] * trend_factor
        spread = max(MIN_CI_SPREAD * predicted, FORECAST_CI_Z * std_dev * math.sqrt(i + 1))
        remaining -= predicted
        daily.append(
            DailyForecast(
                day=day,
                weekday=WEEKDAY_NAMES[day.weekday()],
                predicted_usage=predicted,
                lower_bound=max(0.0, predicted - spread),
                upper_bound=predicted + spread,
                remaining_stock=max(0.0, remaining),
            )
        )

    total_predicted = sum(d.predicted_usage for d in daily)
    stock_gap = current_stock - total_predicted
    safety_buffer = base_demand * (SAFETY_BUFFER_BASE_DAYS + cv * SAFETY_BUFFER_CV_WEIGHT)

    if stock_gap < 0:
        status = ForecastStatus.CRITICAL
    elif stock_gap < safety_buffer:
        status = ForecastStatus.WARNING
    else:
        status = ForecastStatus.ADEQUATE

    days_of_coverage = math.floor(current_stock / base_demand) if base_demand > 0 else None

    logger.debug(
        f"Forecast {drug_name}: base={base_demand:.2f} trend={trend_factor:.3f} "
        f"total={total_predicted:.2f} status={status.value}"
    )

    return ForecastResult(
        drug_name=drug_name,
        current_stock=current_stock,
        base_daily_demand=base_demand,
        forecast_days=forecast_days,
        daily=daily,
        total_predicted=total_predicted,
        stock_gap=stock_gap,
        safety_buffer=safety_buffer,
        status=status,
        days_of_coverage=days_of_coverage,
        recommendation=_recommendation(status, stock_gap, safety_buffer, days_of_coverage),
        quality=ForecastQuality(
            data_points=len(cleaned),
            outliers_removed=len(outlier_split.outliers),
            trend_r_squared=regression.r_squared,
            trend_applied=trend_applied,
            trend_factor=trend_factor,
            coefficient_of_variation=cv,
        ),
    )
