"""
Exact solver — coefficients from exactly as many samples as unknowns.

Builds the square design matrix A[i][j] = components[j](x_i) from the
first N points (N = number of components) and solves A c = Y. Extra
points beyond the first N are ignored.
"""

import numpy as np
from typing import Callable, Optional, Sequence

from . import linalg
from .basis import validate_components
from .compare import as_points
from .errors import InputValidationError, MissingPointsError, SingularMatrixError, SingularSystemError


def design_matrix(points: np.ndarray, components: Sequence[Callable]) -> np.ndarray:
    """A[i][j] = components[j](x_i), with every entry checked to be a finite number."""
    A = np.empty((len(points), len(components)))
    for i, x in enumerate(points[:, 0]):
        for j, component in enumerate(components):
            try:
                value = float(component(x))
            except (TypeError, ValueError) as exc:
                raise InputValidationError(
                    f"Function in components[{j}] is expected to return a number. "
                    f"It failed at x={x!r}."
                ) from exc
            if not np.isfinite(value):
                raise InputValidationError(
                    f"Function in components[{j}] returned {value!r} at x={x!r}."
                )
            A[i, j] = value
    return A


def solve_exact(
    points,
    components: Sequence[Callable],
    resolve_coefficients: Optional[Callable] = None,
) -> np.ndarray:
    """Solve the square system built from the first len(components) points.

    Args:
        points: (x, y) pairs, at least as many as components
        components: basis to solve for (possibly a reduced one)
        resolve_coefficients: optional expansion applied to the solution,
            e.g. ReducedSystem.resolve_coefficients

    Returns:
        1-D coefficient array in basis order.
    """
    components = validate_components(components)
    points = as_points(points)
    size = len(components)
    if len(points) < size:
        raise MissingPointsError(
            f"Not enough points. Resolving a system of {size} components requires "
            f"at least {size} points. Found {len(points)} instead."
        )

    if size == 0:
        coefficients = np.zeros(0)
    else:
        sample = points[:size]
        A = design_matrix(sample, components)
        try:
            coefficients = linalg.solve(A, sample[:, 1])
        except SingularMatrixError as exc:
            raise SingularSystemError(
                f"The {size} points are not linearly independent. "
                f"The QR decomposition cannot provide a unique solution."
            ) from exc

    if resolve_coefficients is not None:
        coefficients = resolve_coefficients(coefficients)
    return np.asarray(coefficients, dtype=float)
