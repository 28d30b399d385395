from .regression import (
    RegressionStats,
    calculate_stats,
    predict,
    predict_values,
)

from .trend import Trend, classify, trend_sign

from .segments import (
    SegmentationConfig,
    Segment,
    SegmentationResult,
    segment_by_trends,
    run_segmentation,
    segments_to_frame,
    segment_frame,
)
