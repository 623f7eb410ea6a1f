"""
Gradient descent over exact fits — approximate least squares for
over-determined systems.

There is no analytic gradient here. The optimizer keeps the two best
fits it has seen and steps along the line joining them:

  1. Random restarts: split the x-sorted samples into one percentile
     zone per unknown, draw one point per zone, solve exactly, score the
     result by MSE over every sample. Keep the best two.
  2. Refinement: delta = learning_rate * (second - best). Try best + delta,
     then best - delta. An improvement is promoted to best and resets the
     learning rate; anything else decays it.
  3. Stop after `epochs` iterations or once delta vanishes.

Exact constraints are eliminated up front (see reduction.py) so the
search runs in the reduced space and never breaks them. Candidates are
still ranked by the error of their full-basis expansion over the original
samples, which is the error `on_fit` reports.
"""

import logging
import numpy as np
from dataclasses import dataclass
from numbers import Integral, Real
from typing import Callable, Optional, Sequence, Tuple, Union

from .basis import evaluate, validate_components
from .compare import as_points, mean_squared_error, percentile_zones, sort_by_x
from .errors import InputValidationError, MissingPointsError, SingularSystemError
from .exact import solve_exact
from .linalg import norm
from .reduction import ReducedSystem, constraint_points, reduce_constraints
from .types import Fit, is_zero

logger = logging.getLogger(__name__)

SECOND_FIT_SCALE = 1.05


def decay_learning_rate(learning_rate: float) -> float:
    """Coarse steps while large, finer ones as it shrinks, floor at 0.01."""
    if learning_rate > 0.2:
        learning_rate -= 0.1
    elif learning_rate > 0.05:
        learning_rate -= 0.05
    elif learning_rate > 0.01:
        learning_rate -= 0.01
    return round(learning_rate, 2)


def _check_count(value, name: str, minimum: int) -> None:
    if isinstance(value, bool) or not isinstance(value, Integral) or value < minimum:
        raise InputValidationError(
            f"'{name}' must be an integer >= {minimum}. Found {value!r} instead."
        )


@dataclass(frozen=True, eq=False)
class _Candidate:
    """A point of the search: reduced coefficients and their full-basis fit."""

    coefficients: np.ndarray
    fit: Fit

    @property
    def error(self) -> float:
        return self.fit.error


class GradientDescentOptimizer:
    """Approximate fit by randomized restarts plus adaptive line steps."""

    def __init__(
        self,
        epochs: int = 50,
        init_epochs: int = 5,
        learning_rate: float = 0.5,
        rng: Union[None, int, np.random.Generator] = None,
    ):
        _check_count(epochs, "epochs", 0)
        _check_count(init_epochs, "init_epochs", 1)
        if (
            isinstance(learning_rate, bool)
            or not isinstance(learning_rate, Real)
            or not np.isfinite(learning_rate)
            or not learning_rate > 0
        ):
            raise InputValidationError(
                f"'learning_rate' must be a positive number. Found {learning_rate!r} instead."
            )
        self.epochs = epochs
        self.init_epochs = init_epochs
        self.learning_rate = learning_rate
        self.rng = rng

    # --- Public entry point ---

    def fit(
        self,
        points,
        components: Sequence[Callable],
        point_constraints=(),
        slope_components: Optional[Sequence[Callable]] = None,
        slopes=(),
        on_fit: Optional[Callable[[Fit, int], None]] = None,
    ) -> Fit:
        """Best approximate fit of `components` to `points`.

        `on_fit(fit, epoch)` is called with the best restart (epoch 0) and
        then after every strict improvement.
        """
        components = tuple(validate_components(components))
        if not components:
            raise InputValidationError("'components' must contain at least one function.")
        points = as_points(points)
        if len(points) == 0:
            raise InputValidationError("Missing required 'points' argument.")
        point_constraints = constraint_points(point_constraints, "point_constraints")
        slopes = constraint_points(slopes, "slope_constraints.slopes")
        rng = np.random.default_rng(self.rng)

        system: Optional[ReducedSystem] = None
        work_points, work_components = points, components
        if len(point_constraints) or len(slopes):
            system = reduce_constraints(components, point_constraints, slope_components, slopes)
            work_points, work_components = system.remap(points), system.components
            if system.is_resolved:
                coefficients = solve_exact(work_points, (), system.resolve_coefficients)
                fit = self._score(coefficients, points, components)
                logger.info(
                    "Constraints determine all %d coefficients; error=%g",
                    len(components), fit.error,
                )
                return fit

        size = len(work_components)
        if len(work_points) < size:
            raise MissingPointsError(
                f"Not enough points. Fitting {size} free components requires at least "
                f"{size} points. Found {len(work_points)} instead."
            )

        def score(coefficients) -> _Candidate:
            coefficients = np.asarray(coefficients, dtype=float)
            full = coefficients if system is None else system.resolve_coefficients(coefficients)
            return _Candidate(coefficients, self._score(full, points, components))

        best, second = self._initialize(work_points, work_components, rng, score)
        if on_fit is not None:
            on_fit(best.fit, 0)

        best, epochs_run = self._refine(best, second, score, on_fit)

        logger.info(
            "Gradient descent over %d components stopped at epoch %d; error=%g",
            size, epochs_run, best.error,
        )
        return best.fit

    # --- Random restarts ---

    def _initialize(
        self,
        points: np.ndarray,
        components: Tuple[Callable, ...],
        rng: np.random.Generator,
        score: Callable[[np.ndarray], _Candidate],
    ) -> Tuple[_Candidate, _Candidate]:
        """Best and second-best exact fits over percentile-stratified samples."""
        size = len(components)
        zones = percentile_zones(sort_by_x(points), size)

        best: Optional[_Candidate] = None
        second: Optional[_Candidate] = None
        for attempt in range(self.init_epochs):
            sample = np.array([zone[rng.integers(len(zone))] for zone in zones])
            try:
                coefficients = solve_exact(sample, components)
            except SingularSystemError:
                logger.debug("Restart %d drew a singular sample; skipped", attempt)
                continue
            candidate = score(coefficients)
            if best is None or candidate.error < best.error:
                if best is not None:
                    second = best
                best = candidate
            elif (
                (second is None or candidate.error < second.error)
                and not np.allclose(best.coefficients, candidate.coefficients)
            ):
                second = candidate

        if best is None:
            raise SingularSystemError(
                f"None of the {self.init_epochs} random samples produced an independent "
                f"system of {size} points."
            )
        if second is None:
            second = score(best.coefficients * SECOND_FIT_SCALE)
        logger.debug("Best restart error=%g, second=%g", best.error, second.error)
        return best, second

    # --- Refinement ---

    def _refine(self, best, second, score, on_fit) -> Tuple[_Candidate, int]:
        learning_rate = self.learning_rate
        epoch = 0
        for epoch in range(1, self.epochs + 1):
            delta = learning_rate * (second.coefficients - best.coefficients)
            if is_zero(norm(delta)):
                logger.debug("Step vanished at epoch %d", epoch)
                break

            candidate = score(best.coefficients + delta)
            if candidate.error > best.error:
                opposite = score(best.coefficients - delta)
                if opposite.error < candidate.error:
                    candidate = opposite

            if candidate.error < best.error:
                second, best = best, candidate
                learning_rate = self.learning_rate
                if on_fit is not None:
                    on_fit(best.fit, epoch)
            else:
                learning_rate = decay_learning_rate(learning_rate)
                if candidate.error < second.error:
                    second = candidate
                logger.debug("Epoch %d: no improvement, learning rate -> %g", epoch, learning_rate)
        return best, epoch

    # --- Helpers ---

    @staticmethod
    def _score(coefficients, points, components) -> Fit:
        evaluator = evaluate(components, coefficients)
        return Fit(
            error=mean_squared_error(points, evaluator),
            coefficients=np.asarray(coefficients, dtype=float),
            components=components,
            evaluator=evaluator,
        )
