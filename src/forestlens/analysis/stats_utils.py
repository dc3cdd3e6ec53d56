"""Numeric routines used by the view engine and the dataset summaries.

Centralized helper functions for:
- Ordinary least squares fit of a metric against year
- Pearson correlation between two parallel value arrays
- Arithmetic mean
- Qualitative labels for slopes and correlation coefficients

All functions are pure: inputs are never modified and nothing is cached.
"""

import logging
from typing import Sequence, Tuple

import numpy as np

from forestlens.errors import InsufficientDataError

__all__ = [
    'linear_regression',
    'linear_regression_slope',
    'pearson_correlation',
    'pearson_correlation_checked',
    'mean',
    'trend_direction',
    'correlation_strength',
]

logger = logging.getLogger(__name__)


# ============================================================================
# REGRESSION
# ============================================================================

def linear_regression(xs: Sequence[float], ys: Sequence[float]) -> Tuple[float, float]:
    """Ordinary least squares fit ``y = slope * x + intercept``.

    Uses the closed form

        slope = (n*Sxy - Sx*Sy) / (n*Sxx - Sx**2)
        intercept = (Sy - slope*Sx) / n

    Parameters
    ----------
    xs : sequence of float
        Independent values (years).
    ys : sequence of float
        Dependent values, parallel to ``xs``.

    Returns
    -------
    slope, intercept : float

    Raises
    ------
    InsufficientDataError
        If fewer than 2 points are given, the arrays differ in length, or all
        ``xs`` are equal (vertical line, slope undefined).

    Examples
    --------
    >>> linear_regression([2013, 2014, 2015], [0.0, 1.0, 2.0])
    (1.0, -2013.0)
    """
    x = np.asarray(xs, dtype=float)
    y = np.asarray(ys, dtype=float)
    if x.size != y.size:
        raise InsufficientDataError(
            f"Regression needs parallel arrays, got {x.size} xs and {y.size} ys"
        )
    n = x.size
    if n < 2:
        raise InsufficientDataError(f"Regression needs at least 2 points, got {n}")

    sum_x = x.sum()
    sum_y = y.sum()
    sum_xy = (x * y).sum()
    sum_xx = (x * x).sum()

    denominator = n * sum_xx - sum_x * sum_x
    if denominator == 0:
        raise InsufficientDataError("Regression undefined: all x values are equal")

    slope = (n * sum_xy - sum_x * sum_y) / denominator
    intercept = (sum_y - slope * sum_x) / n
    return float(slope), float(intercept)


def linear_regression_slope(xs: Sequence[float], ys: Sequence[float]) -> float:
    """Slope of the OLS fit of ``ys`` against ``xs``. See ``linear_regression``."""
    slope, _ = linear_regression(xs, ys)
    return slope


# ============================================================================
# CORRELATION
# ============================================================================

def pearson_correlation_checked(xs: Sequence[float], ys: Sequence[float]) -> Tuple[float, bool]:
    """Pearson correlation plus whether it is defined.

    Returns
    -------
    r : float
        Correlation coefficient, or 0.0 when undefined.
    defined : bool
        False when fewer than 2 points exist or either array has zero
        variance. In that case ``r`` is 0.0 by convention.

    Raises
    ------
    ValueError
        If the arrays differ in length.
    """
    x = np.asarray(xs, dtype=float)
    y = np.asarray(ys, dtype=float)
    if x.size != y.size:
        raise ValueError(
            f"Correlation needs parallel arrays, got {x.size} xs and {y.size} ys"
        )
    if x.size < 2:
        return 0.0, False

    # Zero variance on either side
    if np.ptp(x) == 0 or np.ptp(y) == 0:
        return 0.0, False

    dx = x - x.mean()
    dy = y - y.mean()
    r = (dx * dy).sum() / np.sqrt((dx * dx).sum() * (dy * dy).sum())
    # Rounding can push |r| marginally past 1
    return float(np.clip(r, -1.0, 1.0)), True


def pearson_correlation(xs: Sequence[float], ys: Sequence[float]) -> float:
    """Pearson correlation coefficient of two parallel arrays.

    Returns 0.0 (not an error) for fewer than 2 points or a zero
    denominator. Use ``pearson_correlation_checked`` to tell that case apart
    from a genuine zero correlation.

    Examples
    --------
    >>> pearson_correlation([1, 2, 3, 4], [2, 4, 6, 8])
    1.0
    >>> pearson_correlation([1], [2])
    0.0
    """
    r, _ = pearson_correlation_checked(xs, ys)
    return r


# ============================================================================
# SUMMARY STATISTICS
# ============================================================================

def mean(values: Sequence[float]) -> float:
    """Arithmetic mean.

    Raises
    ------
    InsufficientDataError
        If ``values`` is empty.
    """
    arr = np.asarray(values, dtype=float)
    if arr.size == 0:
        raise InsufficientDataError("Mean of empty sequence")
    return float(arr.mean())


def trend_direction(slope: float, increasing_threshold: float = 0.5,
                    decreasing_threshold: float = -0.5) -> str:
    """Classify a slope as "increasing", "decreasing", or "stable".

    Both thresholds are exclusive.
    """
    if slope > increasing_threshold:
        return "increasing"
    if slope < decreasing_threshold:
        return "decreasing"
    return "stable"


def correlation_strength(r: float, strong_threshold: float = 0.7,
                         moderate_threshold: float = 0.3) -> str:
    """Qualitative band for a correlation coefficient.

    ``|r| > strong_threshold`` is strong, ``|r| > moderate_threshold`` is
    moderate, anything else is weak. Strong and moderate carry the sign.

    Examples
    --------
    >>> correlation_strength(0.85)
    'strong positive'
    >>> correlation_strength(-0.4)
    'moderate negative'
    >>> correlation_strength(0.1)
    'weak'
    """
    magnitude = abs(r)
    if magnitude > strong_threshold:
        band = "strong"
    elif magnitude > moderate_threshold:
        band = "moderate"
    else:
        return "weak"
    return f"{band} {'positive' if r > 0 else 'negative'}"
