"""
Evaporation Line Regression
===========================

Least-squares lines in dual-isotope space (δ¹⁸O on x, δ²H on y) and their
intersections with reference meteoric water lines.
"""

from dataclasses import dataclass
from typing import Sequence, Tuple

import numpy as np

from model_errors import DegenerateGeometryError, DegenerateRegressionError, InvalidParameterError


Line = Tuple[float, float]  # (slope, intercept)


@dataclass(frozen=True)
class MeteoricWaterLine:
    """δ²H = slope * δ¹⁸O + intercept."""
    slope: float
    intercept: float

    def evaluate(self, d18O):
        return self.slope * np.asarray(d18O, dtype=float) + self.intercept

    def as_line(self) -> Line:
        return (self.slope, self.intercept)


# Craig (1961)
GLOBAL_METEORIC_WATER_LINE = MeteoricWaterLine(slope=8.0, intercept=10.0)

# GNIP long-term weighted average suggested for the default monthly dataset
DEFAULT_LOCAL_METEORIC_WATER_LINE = MeteoricWaterLine(slope=7.45, intercept=2.12)


def fit_line(xs: Sequence[float], ys: Sequence[float]) -> Line:
    """
    Ordinary least-squares line through (xs, ys).

    Args:
        xs: Abscissae (typically δ¹⁸O)
        ys: Ordinates (typically δ²H)

    Returns:
        (slope, intercept)

    Raises:
        InvalidParameterError: If lengths differ or values are not finite
        DegenerateRegressionError: If fewer than 2 distinct x values
    """
    x = np.asarray(xs, dtype=float)
    y = np.asarray(ys, dtype=float)

    if x.shape != y.shape or x.ndim != 1:
        raise InvalidParameterError(
            f"x and y must be 1-D sequences of equal length, got {x.shape} and {y.shape}")
    if not (np.all(np.isfinite(x)) and np.all(np.isfinite(y))):
        raise InvalidParameterError("Regression input contains non-finite values")
    if np.unique(x).size < 2:
        raise DegenerateRegressionError(
            f"At least 2 distinct x values are required, got {np.unique(x).size}")

    slope, intercept = np.polyfit(x, y, 1)
    return float(slope), float(intercept)


def evaluate_line(line: Line, xs) -> np.ndarray:
    slope, intercept = line
    return slope * np.asarray(xs, dtype=float) + intercept


def intersection(line1: Line, line2: Line) -> Tuple[float, float]:
    """
    Intersection point of two lines given as (slope, intercept).

    Raises:
        DegenerateGeometryError: If the lines are parallel
    """
    m1, b1 = line1
    m2, b2 = line2
    if m1 == m2:
        raise DegenerateGeometryError(
            f"Lines are parallel (slope {m1}), no intersection")

    x = (b1 - b2) / (m2 - m1)
    return float(x), float(m1 * x + b1)
