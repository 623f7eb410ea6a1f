"""
regress — fit y = f(x) as a weighted sum of basis functions.

Dispatches on a single flag:
  - exact=True  (default): solve the square system built from exactly as
    many points as unknowns and return the coefficient vector
  - exact=False: approximate least squares by gradient descent over exact
    fits and return a Fit

Both regimes honour point constraints (the fit passes through them) and
slope constraints (its derivative takes the given values), which are
eliminated from the system before anything is solved.

Usage:
    coefficients = regress([(0, 4), (3, 19)])            # [5., 4.]
    fit = regress(points, deg=3, exact=False, rng=7)
    fit.evaluate(2.5), fit.error, fit.symbolic_repr()
"""

import logging
import numpy as np
from collections.abc import Mapping
from dataclasses import replace
from typing import Callable, List, Optional, Sequence, Tuple, Union

from .basis import derivative_basis, polynomial_basis, validate_components
from .compare import as_points
from .descent import GradientDescentOptimizer
from .errors import InputValidationError, InvalidConstraintError, RegressionError
from .exact import solve_exact
from .reduction import constraint_points, reduce_constraints
from .types import Fit, RegressionConfig, SlopeConstraints

logger = logging.getLogger(__name__)


def _build_config(config: Optional[RegressionConfig], options: dict) -> RegressionConfig:
    if config is None:
        config = RegressionConfig()
    elif not isinstance(config, RegressionConfig):
        raise InputValidationError(
            f"'config' must be a RegressionConfig. Found {type(config).__name__} instead."
        )
    try:
        return replace(config, **options)
    except TypeError as exc:
        raise InputValidationError(f"Unknown regression option. {exc}") from exc


def _basis(config: RegressionConfig) -> List[Callable]:
    if config.components is None:
        return polynomial_basis(config.deg)
    components = validate_components(config.components)
    if not components:
        raise InputValidationError("'components' must contain at least one function.")
    return components


def _slope_constraints(config: RegressionConfig) -> Tuple[Optional[Sequence[Callable]], np.ndarray]:
    """(derivative basis, slopes) from whatever form the caller used."""
    slope_config = config.slope_constraints
    if slope_config is None:
        return None, ()
    if isinstance(slope_config, Mapping):
        unknown = set(slope_config) - {"components", "slopes"}
        if unknown:
            raise InvalidConstraintError(
                f"Unknown 'slope_constraints' keys: {', '.join(sorted(unknown))}."
            )
        slope_config = SlopeConstraints(
            slopes=slope_config.get("slopes", ()),
            components=slope_config.get("components"),
        )
    elif not isinstance(slope_config, SlopeConstraints):
        raise InvalidConstraintError(
            "'slope_constraints' must be a SlopeConstraints or a mapping with "
            f"'components' and 'slopes'. Found {type(slope_config).__name__} instead."
        )

    slopes = constraint_points(slope_config.slopes, "slope_constraints.slopes")
    if not len(slopes):
        return None, ()
    components = slope_config.components
    if components is None:
        if config.components is not None:
            raise InvalidConstraintError(
                "'slope_constraints.components' is required when 'components' is custom."
            )
        components = derivative_basis(config.deg)
    return components, slopes


def _regress(points, config: RegressionConfig) -> Union[np.ndarray, Fit]:
    points = as_points(points)
    if len(points) == 0:
        raise InputValidationError("Missing required 'points' argument.")
    if config.on_fit is not None and not callable(config.on_fit):
        raise InputValidationError("'on_fit' must be callable.")

    components = _basis(config)
    slope_components, slopes = _slope_constraints(config)
    point_constraints = constraint_points(config.point_constraints, "point_constraints")

    logger.debug(
        "Fitting %d points with %d components (exact=%s, %d point / %d slope constraints)",
        len(points), len(components), config.exact, len(point_constraints), len(slopes),
    )

    if not config.exact:
        optimizer = GradientDescentOptimizer(
            epochs=config.epochs,
            init_epochs=config.init_epochs,
            learning_rate=config.learning_rate,
            rng=config.rng,
        )
        return optimizer.fit(
            points,
            components,
            point_constraints=point_constraints,
            slope_components=slope_components,
            slopes=slopes,
            on_fit=config.on_fit,
        )

    if len(point_constraints) or len(slopes):
        system = reduce_constraints(components, point_constraints, slope_components, slopes)
        coefficients = solve_exact(
            system.remap(points), system.components, system.resolve_coefficients
        )
        free = system.size
    else:
        coefficients = solve_exact(points, components)
        free = len(components)
    logger.info(
        "Exact fit of %d components (%d solved from points)", len(components), free
    )
    return coefficients


def regress(points, config: Optional[RegressionConfig] = None, **options) -> Union[np.ndarray, Fit]:
    """Fit the basis to (x, y) points.

    Args:
        points: sequence of (x, y) pairs
        config: optional RegressionConfig; keyword options override it
        **options: any RegressionConfig field (deg, components, exact,
            point_constraints, slope_constraints, epochs, init_epochs,
            learning_rate, on_fit, rng)

    Returns:
        The coefficient vector when exact, otherwise a Fit.
    """
    config = _build_config(config, options)
    try:
        return _regress(points, config)
    except RegressionError as exc:
        raise type(exc)(f"Failed to compute nonlinear regression. {exc}") from exc


class Regressor:
    """Reusable regression settings.

    Usage:
        model = Regressor(deg=2, exact=False, rng=0)
        fit = model.fit(points)
    """

    def __init__(self, config: Optional[RegressionConfig] = None, **options):
        self.config = _build_config(config, options)

    def fit(self, points, **options) -> Union[np.ndarray, Fit]:
        """Run regress with the stored settings, optionally overridden."""
        return regress(points, self.config, **options)

    def __repr__(self):
        return f"Regressor({self.config!r})"
