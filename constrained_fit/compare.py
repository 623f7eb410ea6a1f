"""
Comparison operations over sample points.

  - RESIDUALS find where a fit departs from the data: y - f(x)
  - MSE collapses them into the single score every fit is ranked by
  - PERCENTILE ZONES split x-sorted samples into contiguous ranges used
    to draw one representative point per range

Points are always normalised into an (n, 2) float array first.
"""

import numpy as np
from numbers import Real
from typing import Callable, List

from .errors import InputValidationError


def as_points(points, name: str = "points") -> np.ndarray:
    """Validate (x, y) pairs and return them as an (n, 2) float array."""
    if points is None or isinstance(points, (str, bytes)):
        raise InputValidationError(f"'{name}' expects a sequence of (x, y) pairs.")
    if isinstance(points, np.ndarray):
        rows = points
    else:
        try:
            rows = list(points)
        except TypeError as exc:
            raise InputValidationError(
                f"'{name}' expects a sequence of (x, y) pairs. "
                f"Found {type(points).__name__} instead."
            ) from exc

    result = np.empty((len(rows), 2), dtype=float)
    for i, row in enumerate(rows):
        try:
            x, y = row
        except (TypeError, ValueError) as exc:
            raise InputValidationError(
                f"{name}[{i}] is expected to be an (x, y) pair. Found {row!r} instead."
            ) from exc
        for j, v in enumerate((x, y)):
            if isinstance(v, bool) or not isinstance(v, (Real, np.number)):
                raise InputValidationError(
                    f"{name}[{i}][{j}] is expected to be a number. "
                    f"Found {type(v).__name__} instead."
                )
            if not np.isfinite(v):
                raise InputValidationError(
                    f"{name}[{i}][{j}] is expected to be finite. Found {v!r} instead."
                )
        result[i] = (x, y)
    return result


def predict(evaluator: Callable, xs: np.ndarray) -> np.ndarray:
    """Evaluate point by point so scalar-only components work too."""
    return np.array([evaluator(x) for x in xs], dtype=float)


def residuals(points: np.ndarray, evaluator: Callable) -> np.ndarray:
    """Signed deviation of the data from the fit."""
    return points[:, 1] - predict(evaluator, points[:, 0])


def mean_squared_error(points: np.ndarray, evaluator: Callable) -> float:
    """MSE of the evaluator against every point."""
    if len(points) == 0:
        return 0.0
    diff = residuals(points, evaluator)
    return float(np.mean(diff ** 2))


def sort_by_x(points: np.ndarray) -> np.ndarray:
    """Stable sort on x; ties keep their input order."""
    return points[np.argsort(points[:, 0], kind="stable")]


def percentile_zones(sorted_points: np.ndarray, size: int) -> List[np.ndarray]:
    """Split x-sorted points into `size` contiguous zones.

    Zone k holds the points whose x lies between the 100*(k-1)/size and
    100*k/size percentiles (upper bound inclusive). Heavily repeated x
    values can leave a zone empty; in that case the points are split into
    `size` equal-count chunks instead.
    """
    xs = sorted_points[:, 0]
    bounds = np.percentile(xs, [100.0 * k / size for k in range(1, size + 1)])
    # side="right" makes each upper bound inclusive.
    edges = np.searchsorted(xs, bounds, side="right")
    edges[-1] = len(xs)
    starts = np.concatenate(([0], edges[:-1]))

    zones = [sorted_points[start:end] for start, end in zip(starts, edges)]
    if any(len(zone) == 0 for zone in zones):
        return np.array_split(sorted_points, size)
    return zones
