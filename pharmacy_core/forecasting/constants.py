"""
Tunable constants for the forecast engine.

Kept apart from the algorithms so they can be tested and tuned on their own.
"""

from __future__ import annotations

from typing import Dict, Tuple

# EWMA smoothing factor (weight of the newest observation)
DEFAULT_EWMA_ALPHA = 0.3

# IQR outlier fences: Q1 - k*IQR, Q3 + k*IQR
IQR_MULTIPLIER = 1.5
OUTLIER_LOWER_PERCENTILE = 0.25
OUTLIER_UPPER_PERCENTILE = 0.75
MIN_OUTLIER_POINTS = 4

# Service level -> z-score
SERVICE_LEVEL_Z_SCORES: Dict[float, float] = {
    0.90: 1.28,
    0.95: 1.65,
    0.98: 2.05,
    0.99: 2.33,
}
DEFAULT_SERVICE_LEVEL = 0.95
DEFAULT_Z_SCORE = 1.65

# Demand std-dev proxy when none is supplied: fraction of average daily use
FALLBACK_DEMAND_CV = 0.15

# Demand multiplier by weekday (Monday=0 ... Sunday=6, as date.weekday())
DAY_OF_WEEK_FACTORS: Dict[int, float] = {
    0: 1.15,
    1: 1.10,
    2: 1.05,
    3: 1.00,
    4: 0.95,
    5: 0.80,
    6: 0.75,
}
WEEKDAY_NAMES: Tuple[str, ...] = (
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
)

# Trend adjustment
TREND_R2_THRESHOLD = 0.3
TREND_SLOPE_WEIGHT = 0.1
TREND_FACTOR_BOUNDS: Tuple[float, float] = (0.7, 1.3)
SIGNIFICANT_TREND_R2 = 0.5
SIGNIFICANT_TREND_PERCENT = 5.0

# Forecast confidence interval (90% two-sided)
FORECAST_CI_Z = 1.645
FORECAST_CONFIDENCE_LEVEL = 90
MIN_CI_SPREAD = 0.15

# Warning buffer = base_demand * (BASE_DAYS + CV * CV_WEIGHT)
SAFETY_BUFFER_BASE_DAYS = 2.0
SAFETY_BUFFER_CV_WEIGHT = 2.0

DEFAULT_FORECAST_DAYS = 7
DEFAULT_HISTORY_DAYS = 30
STOCKOUT_HISTORY_DAYS = 14
SEASONALITY_HISTORY_DAYS = 90

# Seasonality
WEEKLY_SEASONALITY_THRESHOLD = 0.6
MONTHLY_SEASONALITY_THRESHOLD = 0.5
WEEKLY_PEAK_RATIO = 1.1
WEEKLY_LOW_RATIO = 0.9
MONTHLY_PEAK_RATIO = 1.15
MONTHLY_LOW_RATIO = 0.85
MONTH_PERIOD_NAMES: Tuple[str, ...] = ("Early month", "Mid month", "Late month")

# Stockout prediction confidence by number of underlying transactions
HIGH_CONFIDENCE_MIN_TRANSACTIONS = 10
MEDIUM_CONFIDENCE_MIN_TRANSACTIONS = 5

# ABC / XYZ percentile cut-offs
ABC_A_PERCENTILE = 0.2
ABC_B_PERCENTILE = 0.5
XYZ_X_PERCENTILE = 0.5
XYZ_Y_PERCENTILE = 0.8
