"""
Safety stock sizing.

    SS = ceil(z * σ_d * sqrt(L))

    z   = z-score for the service level (lookup table)
    σ_d = std dev of daily demand; 0.15 * avg daily use when not supplied
    L   = replenishment lead time (days)
"""

from __future__ import annotations

import logging
import math
from typing import Optional

from pharmacy_core.forecasting.constants import (
    DEFAULT_SERVICE_LEVEL,
    DEFAULT_Z_SCORE,
    FALLBACK_DEMAND_CV,
    SERVICE_LEVEL_Z_SCORES,
)

logger = logging.getLogger(__name__)


def get_service_level_z(service_level: float) -> float:
    """z-score for a tabulated service level; unknown levels use the 95% value."""
    z = SERVICE_LEVEL_Z_SCORES.get(round(service_level, 2))
    if z is None:
        logger.debug(f"Service level {service_level} not tabulated, using z={DEFAULT_Z_SCORE}")
        return DEFAULT_Z_SCORE
    return z


def calculate_safety_stock(
    avg_daily_use: float,
    lead_time_days: float,
    service_level: float = DEFAULT_SERVICE_LEVEL,
    demand_std_dev: Optional[float] = None,
) -> int:
    if lead_time_days <= 0:
        return 0

    std_dev = demand_std_dev if demand_std_dev is not None else avg_daily_use * FALLBACK_DEMAND_CV
    if std_dev <= 0:
        return 0

    z = get_service_level_z(service_level)
    return int(math.ceil(z * std_dev * math.sqrt(lead_time_days)))
