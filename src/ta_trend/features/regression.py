# src/ta_trend/features/regression.py
"""
Ordinary-least-squares regression helpers

Fits a straight line to an (x, y) sample and evaluates it. The segment builder
passes absolute sample indices as x, so a fitted line can be drawn straight
onto the original series with `predict` / `predict_values`.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from ..exceptions import InvalidArgumentError


@dataclass(frozen=True)
class RegressionStats:
    """
    Statistics of a least-squares line fit.

    Attributes:
        slope: Slope of the fitted line (value units per index step)
        intercept: Value of the fitted line at x = 0
        r_squared: Coefficient of determination, clipped to [0, 1]
        residual_std: Sample standard deviation of residuals (0.0 for n <= 2)
    """
    slope: float
    intercept: float
    r_squared: float
    residual_std: float = 0.0


def _as_vector(values, name: str) -> np.ndarray:
    arr = np.asarray(values, dtype=np.float64)
    if arr.ndim != 1:
        raise InvalidArgumentError(f"{name} must be one-dimensional, got shape {arr.shape}")
    return arr


def predict(intercept: float, slope: float, x: float) -> float:
    """Value of the line `intercept + slope * x`."""
    return intercept + slope * x


def predict_values(x, intercept: float, slope: float) -> np.ndarray:
    """Vectorized `predict` over an array of x values."""
    return intercept + slope * np.asarray(x, dtype=np.float64)


def calculate_stats(x, y) -> RegressionStats:
    """
    Fit y = intercept + slope * x by least squares.

    Parameters
    ----------
    x, y : array-like of float
        Equal-length, non-empty, finite samples. x must vary unless a single
        point is given.

    Returns
    -------
    RegressionStats
        A single point yields a horizontal line through it (slope 0,
        r_squared 1). A constant y yields r_squared 1.

    Raises
    ------
    InvalidArgumentError
        On empty or mismatched inputs, non-finite values, or constant x.
    """
    xs = _as_vector(x, "x")
    ys = _as_vector(y, "y")
    if xs.size != ys.size:
        raise InvalidArgumentError(f"x and y lengths differ: {xs.size} != {ys.size}")
    if xs.size == 0:
        raise InvalidArgumentError("cannot fit a line to an empty sample")
    if not (np.isfinite(xs).all() and np.isfinite(ys).all()):
        raise InvalidArgumentError("x and y must contain only finite values")

    n = xs.size
    if n == 1:
        return RegressionStats(slope=0.0, intercept=float(ys[0]), r_squared=1.0)

    mean_x = xs.mean()
    mean_y = ys.mean()
    dx = xs - mean_x
    dy = ys - mean_y
    sxx = float(np.dot(dx, dx))
    if sxx == 0.0:
        raise InvalidArgumentError("x has zero variance")

    # constant y: exact horizontal line, no rounding from the mean
    if np.ptp(ys) == 0.0:
        return RegressionStats(slope=0.0, intercept=float(ys[0]), r_squared=1.0)

    slope = float(np.dot(dx, dy)) / sxx
    intercept = float(mean_y - slope * mean_x)

    residuals = ys - predict_values(xs, intercept, slope)
    ss_res = float(np.dot(residuals, residuals))
    ss_tot = float(np.dot(dy, dy))
    if ss_tot == 0.0:
        r_squared = 1.0
    else:
        r_squared = min(1.0, max(0.0, 1.0 - ss_res / ss_tot))

    residual_std = float(np.std(residuals, ddof=1)) if n > 2 else 0.0
    return RegressionStats(
        slope=slope,
        intercept=intercept,
        r_squared=r_squared,
        residual_std=residual_std,
    )


__all__ = ["RegressionStats", "calculate_stats", "predict", "predict_values"]
