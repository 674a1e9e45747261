"""
ABC / XYZ inventory classification.

ABC ranks a drug by consumption value against its peers (A = top 20%,
B = next 30%, C = rest). XYZ ranks demand variability (X = most stable 50%,
Y = next 30%, Z = most erratic).
"""

from __future__ import annotations

import bisect
from dataclasses import dataclass
from typing import Sequence

from pharmacy_core.forecasting.constants import (
    ABC_A_PERCENTILE,
    ABC_B_PERCENTILE,
    XYZ_X_PERCENTILE,
    XYZ_Y_PERCENTILE,
)


@dataclass(frozen=True)
class ABCXYZClass:
    abc_class: str
    xyz_class: str

    @property
    def category(self) -> str:
        return f"{self.abc_class}{self.xyz_class}"


def classify_abc_xyz(
    total_value: float,
    demand_variability: float,
    all_values: Sequence[float],
    all_variabilities: Sequence[float],
) -> ABCXYZClass:
    """
    Classify one drug against the population it belongs to.

    Value percentile is the share of peers with a strictly higher value;
    variability percentile is the share of peers strictly less variable.
    An empty population classifies as AX.

    Ranks are counted, not searched for, so a value or variability outside
    the population range still lands at the matching end: a variability
    above every peer classifies Z and a value above every peer classifies A.    """
    values = sorted(all_values)
    higher = len(values) - bisect.bisect_right(values, total_value)
    value_percentile = higher / len(values) if values else 0.0

    if value_percentile <= ABC_A_PERCENTILE:
        abc = "A"
    elif value_percentile <= ABC_B_PERCENTILE:
        abc = "B"
    else:
        abc = "C"

    variabilities = sorted(all_variabilities)
    lower = bisect.bisect_left(variabilities, demand_variability)
    variability_percentile = lower / len(variabilities) if variabilities else 0.0

    if variability_percentile <= XYZ_X_PERCENTILE:
        xyz = "X"
    elif variability_percentile <= XYZ_Y_PERCENTILE:
        xyz = "Y"
    else:
        xyz = "Z"

    return ABCXYZClass(abc_class=abc, xyz_class=xyz)
