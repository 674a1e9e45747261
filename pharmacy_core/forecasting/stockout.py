"""
Stockout date projection.

    adjusted_use = avg_daily_use * (1 + slope * 0.1)
    days         = floor(current_stock / adjusted_use)

``slope`` comes from a regression over the recent daily usage window.
Confidence reflects how many transactions back the estimate.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import date, timedelta
from enum import Enum
from typing import Any, Dict, Optional, Sequence

from pharmacy_core.forecasting.constants import (
    HIGH_CONFIDENCE_MIN_TRANSACTIONS,
    MEDIUM_CONFIDENCE_MIN_TRANSACTIONS,
    TREND_SLOPE_WEIGHT,
)
from pharmacy_core.forecasting.statistics import calculate_linear_regression

logger = logging.getLogger(__name__)


class PredictionConfidence(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


@dataclass(frozen=True)
class StockoutPrediction:
    stockout_date: Optional[date]
    days_until_stockout: Optional[int]
    confidence: PredictionConfidence

    def to_dict(self) -> Dict[str, Any]:
        return {
            "stockout_date": self.stockout_date.isoformat() if self.stockout_date else None,
            "days_until_stockout": self.days_until_stockout,
            "confidence": self.confidence.value,
        }


def _confidence(transaction_count: int) -> PredictionConfidence:
    if transaction_count > HIGH_CONFIDENCE_MIN_TRANSACTIONS:
        return PredictionConfidence.HIGH
    if transaction_count > MEDIUM_CONFIDENCE_MIN_TRANSACTIONS:
        return PredictionConfidence.MEDIUM
    return PredictionConfidence.LOW


def predict_stockout_date(
    current_stock: float,
    avg_daily_use: float,
    recent_daily_usage: Sequence[float],
    transaction_count: int,
    today: date,
) -> StockoutPrediction:
    if current_stock <= 0:
        return StockoutPrediction(today, 0, PredictionConfidence.HIGH)

    if avg_daily_use <= 0:
        return StockoutPrediction(None, None, PredictionConfidence.LOW)

    slope = calculate_linear_regression(recent_daily_usage).slope
    adjusted_use = avg_daily_use * (1 + slope * TREND_SLOPE_WEIGHT)
    if adjusted_use <= 0:
        logger.debug(f"Trend-adjusted daily use {adjusted_use:.3f} <= 0, no stockout projected")
        return StockoutPrediction(None, None, PredictionConfidence.LOW)

    days = math.floor(current_stock / adjusted_use)
    return StockoutPrediction(today + timedelta(days=days), days, _confidence(transaction_count))
