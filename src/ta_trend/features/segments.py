# src/ta_trend/features/segments.py
"""
Trend-segment builder

Cuts a price series into contiguous segments, each with a fitted trend line,
a trend label, the fit quality (R^2) and a channel width (largest absolute
distance of a price from the line).

Two passes:

1. Growth, left to right. A chunk starting at `s` seeds the window
   [s, s + min_segment_length - 1] and grows one index at a time while it is
   shorter than preferred_segment_length, or while the points left over would
   be too few to seed another chunk. Growth stops at the first step whose
   trend opposes the chunk's first non-flat trend (increasing <-> decreasing).
2. Refinement. A chunk whose fit is below min_r_squared is split in two at the
   point minimizing the summed squared residuals of both halves (each half at
   least min_segment_length long); halves are refined the same way.

Split points depend only on the data and the lengths, so a looser
min_r_squared keeps a subset of the boundaries of a stricter one. An optional
max_segments cap folds everything past the cap into the last segment.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from typing import Optional, Sequence

import numpy as np
import pandas as pd

from ..exceptions import InvalidArgumentError
from .regression import RegressionStats, calculate_stats, predict_values
from .trend import Trend, classify, trend_sign

logger = logging.getLogger(__name__)


# =============================================================================
# Configuration / value types
# =============================================================================

@dataclass(frozen=True)
class SegmentationConfig:
    """
    Thresholds for the segment builder.

    Attributes:
        min_segment_length: Points needed to seed a segment; shorter input
            collapses into a single unknown segment
        preferred_segment_length: Length a chunk grows to before it may close
            on its own (it closes earlier on a trend reversal)
        min_r_squared: Lowest fit quality (0..1) a segment keeps without
            being split further
        min_slope: Slope magnitude at or below which a window is flat
        max_segments: Optional cap on the number of emitted segments
    """
    min_segment_length: int = 5
    preferred_segment_length: int = 10
    min_r_squared: float = 0.6
    min_slope: float = 0.01
    max_segments: Optional[int] = None

    def __post_init__(self):
        """Validate configuration."""
        if self.min_segment_length < 1:
            raise InvalidArgumentError("min_segment_length must be >= 1")
        if self.preferred_segment_length < 1:
            raise InvalidArgumentError("preferred_segment_length must be >= 1")
        if not np.isfinite(self.min_r_squared) or not 0.0 <= self.min_r_squared <= 1.0:
            raise InvalidArgumentError("min_r_squared must be within [0, 1]")
        if not np.isfinite(self.min_slope) or self.min_slope < 0.0:
            raise InvalidArgumentError("min_slope must be a finite value >= 0")
        if self.max_segments is not None and self.max_segments < 1:
            raise InvalidArgumentError("max_segments must be >= 1 when set")

@dataclass(frozen=True)
class Segment:
    """
    One contiguous trend segment, inclusive on both ends.

    `slope` / `intercept` describe the fitted line in absolute series indices,
    i.e. the line value at index i is `intercept + slope * i`.
    """
    start_idx: int
    end_idx: int
    trend: Trend
    r_squared: float
    channel_width: float
    slope: float = 0.0
    intercept: float = 0.0

    @property
    def length(self) -> int:
        return self.end_idx - self.start_idx + 1

    def to_dict(self) -> dict:
        d = asdict(self)
        d["trend"] = self.trend.value
        return d


@dataclass
class SegmentationResult:
    """
    Outcome of `run_segmentation`.

    Attributes:
        success: Whether segmentation completed
        segments: Full partition of the input (empty if failed)
        error: Error message (None if succeeded)
    """
    success: bool
    segments: list[Segment] = field(default_factory=list)
    error: Optional[str] = None


# =============================================================================
# Internal helpers
# =============================================================================

def _as_series(data) -> np.ndarray:
    try:
        values = np.asarray(data, dtype=np.float64)
    except (TypeError, ValueError) as exc:
        raise InvalidArgumentError(f"price series is not numeric: {exc}") from exc
    if values.ndim != 1:
        raise InvalidArgumentError(f"price series must be one-dimensional, got shape {values.shape}")
    if values.size == 0:
        raise InvalidArgumentError("price series is empty")
    if not np.isfinite(values).all():
        bad = int(np.flatnonzero(~np.isfinite(values))[0])
        raise InvalidArgumentError(f"price series has a non-finite value at index {bad}")
    return values


def _fit_window(values: np.ndarray, start: int, end: int) -> RegressionStats:
    x = np.arange(start, end + 1, dtype=np.float64)
    return calculate_stats(x, values[start:end + 1])


def _channel_width(values: np.ndarray, start: int, end: int, stats: RegressionStats) -> float:
    x = np.arange(start, end + 1, dtype=np.float64)
    deviation = np.abs(values[start:end + 1] - predict_values(x, stats.intercept, stats.slope))
    return float(deviation.max())


def _unknown_segment(n: int) -> Segment:
    return Segment(
        start_idx=0,
        end_idx=n - 1,
        trend=Trend.UNKNOWN,
        r_squared=0.0,
        channel_width=0.0,
    )


def _window_sse(sums: dict, lo, hi):
    """Residual sum of squares of the OLS line over [lo, hi) from prefix sums."""
    n = sums["n"][hi] - sums["n"][lo]
    sx = sums["x"][hi] - sums["x"][lo]
    sy = sums["y"][hi] - sums["y"][lo]
    vxx = sums["xx"][hi] - sums["xx"][lo] - sx * sx / n
    vxy = sums["xy"][hi] - sums["xy"][lo] - sx * sy / n
    vyy = sums["yy"][hi] - sums["yy"][lo] - sy * sy / n
    explained = np.divide(vxy * vxy, vxx, out=np.zeros_like(vyy), where=vxx > 0)
    return np.maximum(vyy - explained, 0.0)


def _best_split(values: np.ndarray, start: int, end: int, min_len: int) -> Optional[int]:
    """
    Last index of the left half of the cheapest two-way split of [start, end],
    or None when the window cannot hold two halves of `min_len` points.
    Ties go to the leftmost split.
    """
    length = end - start + 1
    if length < 2 * min_len:
        return None

    x = np.arange(length, dtype=np.float64)
    y = values[start:end + 1] - values[start:end + 1].mean()

    def _cum(a):
        return np.concatenate(([0.0], np.cumsum(a)))

    sums = {
        "n": _cum(np.ones(length)),
        "x": _cum(x),
        "y": _cum(y),
        "xx": _cum(x * x),
        "xy": _cum(x * y),
        "yy": _cum(y * y),
    }
    left_lengths = np.arange(min_len, length - min_len + 1)
    cost = _window_sse(sums, 0, left_lengths) + _window_sse(sums, left_lengths, length)
    return start + int(left_lengths[int(np.argmin(cost))]) - 1


def _grow_chunks(values: np.ndarray, cfg: SegmentationConfig) -> list[tuple[int, int]]:
    n = values.size
    seed_len = cfg.min_segment_length
    preferred = max(cfg.preferred_segment_length, seed_len)

    chunks: list[tuple[int, int]] = []
    start = 0
    while start < n:
        end = min(start + seed_len - 1, n - 1)
        direction = trend_sign(classify(_fit_window(values, start, end).slope, cfg.min_slope))

        while end + 1 < n and (end - start + 1 < preferred or n - 1 - end < seed_len):
            candidate = _fit_window(values, start, end + 1)
            step = trend_sign(classify(candidate.slope, cfg.min_slope))
            if direction * step < 0:
                break
            end += 1
            direction = direction or step

        chunks.append((start, end))
        start = end + 1
    return chunks


def _refine(values: np.ndarray, start: int, end: int, cfg: SegmentationConfig) -> list[tuple[int, int]]:
    spans: list[tuple[int, int]] = []
    stack = [(start, end)]
    while stack:
        lo, hi = stack.pop()
        split = None
        if _fit_window(values, lo, hi).r_squared < cfg.min_r_squared:
            split = _best_split(values, lo, hi, cfg.min_segment_length)
        if split is None:
            spans.append((lo, hi))
        else:
            # right first so the left half is popped next
            stack.append((split + 1, hi))
            stack.append((lo, split))
    return spans


def _make_segment(values: np.ndarray, start: int, end: int, min_slope: float) -> Segment:
    stats = _fit_window(values, start, end)
    return Segment(
        start_idx=start,
        end_idx=end,
        trend=classify(stats.slope, min_slope),
        r_squared=stats.r_squared,
        channel_width=_channel_width(values, start, end, stats),
        slope=stats.slope,
        intercept=stats.intercept,
    )


# =============================================================================
# Public API
# =============================================================================

def segment_by_trends(
    data: Sequence[float] | np.ndarray,
    config: Optional[SegmentationConfig] = None,
) -> list[Segment]:
    """
    Partition a price series into trend segments.

    Parameters
    ----------
    data : sequence of float
        Ordered price values (one per sample). Not modified.
    config : SegmentationConfig, optional
        Thresholds; defaults to `SegmentationConfig()`.

    Returns
    -------
    list[Segment]
        Ordered, gap-free segments covering indices 0..len(data)-1. Input
        shorter than `min_segment_length` yields one unknown segment.

    Raises
    ------
    InvalidArgumentError
        If data is empty, not one-dimensional, or holds non-finite values.
    """
    cfg = config or SegmentationConfig()
    values = _as_series(data)
    n = values.size

    if n < cfg.min_segment_length:
        logger.info(
            f"Series of {n} points is shorter than min_segment_length={cfg.min_segment_length}; "
            "returning a single unknown segment"
        )
        return [_unknown_segment(n)]

    spans: list[tuple[int, int]] = []
    for start, end in _grow_chunks(values, cfg):
        spans.extend(_refine(values, start, end, cfg))

    if cfg.max_segments is not None and len(spans) > cfg.max_segments:
        logger.info(f"Capping {len(spans)} segments at max_segments={cfg.max_segments}")
        keep = cfg.max_segments - 1
        spans = spans[:keep] + [(spans[keep][0], n - 1)]

    segments: list[Segment] = []
    for start, end in spans:
        segment = _make_segment(values, start, end, cfg.min_slope)
        logger.debug(
            f"segment {len(segments)}: [{start}, {end}] {segment.trend.value} "
            f"r2={segment.r_squared:.4f} width={segment.channel_width:.4f}"
        )
        segments.append(segment)

    logger.info(f"Segmented {n} points into {len(segments)} segments")
    return segments


def run_segmentation(
    data: Sequence[float] | np.ndarray,
    config: Optional[SegmentationConfig] = None,
) -> SegmentationResult:
    """
    `segment_by_trends` with invalid input reported as a failed result
    instead of an exception.
    """
    try:
        segments = segment_by_trends(data, config)
    except InvalidArgumentError as exc:
        logger.warning(f"Segmentation rejected input: {exc}")
        return SegmentationResult(success=False, error=str(exc))
    return SegmentationResult(success=True, segments=segments)


def segments_to_frame(
    segments: Sequence[Segment],
    index: Optional[Sequence] = None,
) -> pd.DataFrame:
    """
    Tabulate segments, one row each.

    Parameters
    ----------
    segments : sequence of Segment
    index : sequence, optional
        Labels aligned with the segmented series (e.g. timestamps). When given,
        `start_time` / `end_time` columns are added.

    Returns
    -------
    pd.DataFrame
        Columns: seg_id, trend, start_idx, end_idx, seg_len, r_squared,
        channel_width, slope, intercept (+ start_time, end_time).
    """
    cols = [
        "seg_id", "trend", "start_idx", "end_idx", "seg_len",
        "r_squared", "channel_width", "slope", "intercept",
    ]
    rows = [
        {
            "seg_id": i,
            "trend": seg.trend.value,
            "start_idx": seg.start_idx,
            "end_idx": seg.end_idx,
            "seg_len": seg.length,
            "r_squared": seg.r_squared,
            "channel_width": seg.channel_width,
            "slope": seg.slope,
            "intercept": seg.intercept,
        }
        for i, seg in enumerate(segments)
    ]
    segs = pd.DataFrame(rows, columns=cols)

    if index is not None:
        labels = pd.Index(index)
        segs["start_time"] = labels[segs["start_idx"].to_numpy()]
        segs["end_time"] = labels[segs["end_idx"].to_numpy()]
    return segs


def segment_frame(
    df: pd.DataFrame,
    price_col: str = "close",
    timestamp_col: str | None = None,
    config: Optional[SegmentationConfig] = None,
) -> pd.DataFrame:
    """
    Segment one price column of a DataFrame.

    Rows are taken in their current order. If `timestamp_col` is present its
    values become the segment start/end times.
    """
    if price_col not in df:
        raise KeyError(f"DataFrame must include '{price_col}'.")

    segments = segment_by_trends(df[price_col].to_numpy(dtype=np.float64), config)
    index = df[timestamp_col] if timestamp_col and timestamp_col in df else None
    return segments_to_frame(segments, index=index)


__all__ = [
    "SegmentationConfig",
    "Segment",
    "SegmentationResult",
    "segment_by_trends",
    "run_segmentation",
    "segments_to_frame",
    "segment_frame",
]
