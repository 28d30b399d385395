# src/ta_trend/features/trend.py
"""
Trend labeling utilities

Maps a fitted slope to a trend label using a flat-zone threshold.
"""

from __future__ import annotations

from enum import Enum


class Trend(str, Enum):
    """Dominant direction of a segment."""
    INCREASING = "increasing"
    DECREASING = "decreasing"
    FLAT = "flat"
    UNKNOWN = "unknown"     # only for input shorter than the minimum segment length


def classify(slope: float, min_slope: float) -> Trend:
    """
    Label a slope: above +min_slope is increasing, below -min_slope is
    decreasing, anything in between (inclusive) is flat.
    """
    if slope > min_slope:
        return Trend.INCREASING
    if slope < -min_slope:
        return Trend.DECREASING
    return Trend.FLAT


def trend_sign(trend: Trend) -> int:
    """+1 / -1 for directional trends, 0 for flat and unknown."""
    if trend is Trend.INCREASING:
        return 1
    if trend is Trend.DECREASING:
        return -1
    return 0


__all__ = ["Trend", "classify", "trend_sign"]
