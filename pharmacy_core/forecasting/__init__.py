"""
Forecast engine: pure functions over daily usage series.
"""

from pharmacy_core.forecasting.classification import ABCXYZClass, classify_abc_xyz
from pharmacy_core.forecasting.forecast import (
    DailyForecast,
    ForecastQuality,
    ForecastResult,
    ForecastStatus,
    generate_forecast,
)
from pharmacy_core.forecasting.safety_stock import calculate_safety_stock, get_service_level_z
from pharmacy_core.forecasting.seasonality import SeasonalityResult, detect_seasonal_patterns
from pharmacy_core.forecasting.statistics import (
    ForecastAccuracy,
    OutlierResult,
    RegressionResult,
    TrendAnalysis,
    calculate_detailed_trend,
    calculate_ewma,
    calculate_forecast_accuracy,
    calculate_linear_regression,
    calculate_std_dev,
    remove_outliers,
)
from pharmacy_core.forecasting.stockout import (
    PredictionConfidence,
    StockoutPrediction,
    predict_stockout_date,
)
from pharmacy_core.forecasting.usage import extract_daily_usage

__all__ = [
    "ABCXYZClass",
    "classify_abc_xyz",
    "DailyForecast",
    "ForecastQuality",
    "ForecastResult",
    "ForecastStatus",
    "generate_forecast",
    "calculate_safety_stock",
    "get_service_level_z",
    "SeasonalityResult",
    "detect_seasonal_patterns",
    "ForecastAccuracy",
    "OutlierResult",
    "RegressionResult",
    "TrendAnalysis",
    "calculate_detailed_trend",
    "calculate_ewma",
    "calculate_forecast_accuracy",
    "calculate_linear_regression",
    "calculate_std_dev",
    "remove_outliers",
    "PredictionConfidence",
    "StockoutPrediction",
    "predict_stockout_date",
    "extract_daily_usage",
]
