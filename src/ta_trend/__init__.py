# src/ta_trend/__init__.py
from __future__ import annotations

# -------- Errors --------
from .exceptions import TrendError, InvalidArgumentError

# -------- Regression --------
from .features.regression import (
    RegressionStats,
    calculate_stats,
    predict,
    predict_values,
)

# -------- Trend labels --------
from .features.trend import Trend, classify, trend_sign

# -------- Segmentation --------
from .features.segments import (
    SegmentationConfig,
    Segment,
    SegmentationResult,
    segment_by_trends,
    run_segmentation,
    segments_to_frame,
    segment_frame,
)

__all__ = [
    # Errors
    "TrendError", "InvalidArgumentError",

    # Regression
    "RegressionStats", "calculate_stats", "predict", "predict_values",

    # Trend labels
    "Trend", "classify", "trend_sign",

    # Segmentation
    "SegmentationConfig", "Segment", "SegmentationResult",
    "segment_by_trends", "run_segmentation", "segments_to_frame", "segment_frame",
]
__version__ = "0.1.0"
