"""
Constraint reduction — removing one basis dimension per exact constraint.

A point (x, y) the fit must pass through pins the LAST coefficient to
the others:

    c[N-1] = y/p + sum(K[i] * c[i]),   p = f[N-1](x),   K[i] = -f[i](x)/p

Substituting it back folds the last component into the others,

    f'[i](x) = f[i](x) + K[i] * f[N-1](x)

and shifts every sample by the part of the fit that is now known:

    y' = y - (y/p) * f[N-1](x)

Each elimination is recorded as an EliminationStep. A ReducedSystem
replays its steps forward to remap samples into the reduced space and in
reverse to expand solved coefficients back to the original basis.

Slope constraints run the same elimination on the derivative basis and
fold the non-constant part of the primary basis with the same K.
"""

import logging
import numpy as np
from dataclasses import dataclass, replace
from typing import Callable, List, Optional, Sequence, Tuple

from .basis import validate_components
from .compare import as_points, predict
from .errors import (
    InputValidationError,
    InvalidConstraintError,
    OverdeterminedConstraintError,
    UnstableSystemError,
)
from .types import is_zero

logger = logging.getLogger(__name__)


class FoldedComponent:
    """f(x) = base(x) + k * pivot(x)"""

    def __init__(self, base: Callable, k: float, pivot: Callable):
        self.base = base
        self.k = k
        self.pivot = pivot

    def __call__(self, x):
        return self.base(x) + self.k * self.pivot(x)

    def __repr__(self):
        return f"({self.base!r} + {self.k:g}*{self.pivot!r})"


@dataclass(frozen=True)
class EliminationStep:
    """One eliminated dimension: the folding vector K and the pinned value y/p."""

    k: np.ndarray
    new_y: float
    eliminated: Callable

    def fold(self, components: Sequence[Callable]) -> List[Callable]:
        return [
            FoldedComponent(component, float(k), self.eliminated)
            for component, k in zip(components[:-1], self.k)
        ]

    def remap_point(self, x: float, y: float) -> float:
        return y - self.new_y * self.eliminated(x)

    def expand(self, coefficients: np.ndarray) -> np.ndarray:
        """Append the eliminated coefficient to the reduced ones."""
        last = self.new_y + float(np.dot(coefficients, self.k))
        return np.append(coefficients, last)


def eliminate(components: Sequence[Callable], point: Tuple[float, float]) -> EliminationStep:
    """Eliminate the last component of `components` through `point`."""
    if len(components) == 0:
        raise InputValidationError("Cannot eliminate a dimension from an empty basis.")
    x, y = point
    values = np.empty(len(components))
    for i, component in enumerate(components):
        try:
            values[i] = float(component(x))
        except (TypeError, ValueError) as exc:
            raise InputValidationError(
                f"Function in components[{i}] is expected to return a number at x={x!r}."
            ) from exc
        if not np.isfinite(values[i]):
            raise InputValidationError(
                f"Function in components[{i}] returned {values[i]!r} at x={x!r}."
            )

    pivot = values[-1]
    if is_zero(pivot):
        raise UnstableSystemError(
            f"Cannot eliminate components[{len(components) - 1}] through point ({x!r}, {y!r}): "
            f"it evaluates to {pivot!r} there, which is too close to zero."
        )
    step = EliminationStep(k=-values[:-1] / pivot, new_y=y / pivot, eliminated=components[-1])
    logger.debug(
        "Eliminated dimension %d through (%g, %g): pivot=%g new_y=%g",
        len(components) - 1, x, y, pivot, step.new_y,
    )
    return step


@dataclass(frozen=True)
class ReducedSystem:
    """A basis shrunk by exact constraints, plus the way back.

    `slope_steps` were applied first, to the leading non-constant
    components only; the trailing `passthrough` components are untouched
    by them. `steps` were applied afterwards to the whole folded basis.
    """

    components: Tuple[Callable, ...]
    steps: Tuple[EliminationStep, ...] = ()
    slope_steps: Tuple[EliminationStep, ...] = ()
    passthrough: int = 0

    @property
    def size(self) -> int:
        return len(self.components)

    @property
    def is_resolved(self) -> bool:
        """True when the constraints alone determine every coefficient."""
        return len(self.components) == 0

    def remap(self, points) -> np.ndarray:
        """Move samples into the reduced space, steps in elimination order."""
        remapped = as_points(points)
        xs = remapped[:, 0]
        for step in self.slope_steps + self.steps:
            remapped[:, 1] -= step.new_y * predict(step.eliminated, xs)
        return remapped

    def resolve_coefficients(self, coefficients) -> np.ndarray:
        """Expand reduced coefficients to the full basis, steps in reverse."""
        try:
            coeffs = np.asarray(coefficients, dtype=float).ravel()
        except (TypeError, ValueError) as exc:
            raise InputValidationError("Reduced coefficients must all be numbers.") from exc
        if len(coeffs) != self.size:
            raise InputValidationError(
                f"Expected {self.size} reduced coefficients. Found {len(coeffs)} instead."
            )
        if not np.all(np.isfinite(coeffs)):
            raise InputValidationError("Reduced coefficients must all be finite numbers.")

        for step in reversed(self.steps):
            coeffs = step.expand(coeffs)
        if self.slope_steps:
            split = len(coeffs) - self.passthrough
            head, tail = coeffs[:split], coeffs[split:]
            for step in reversed(self.slope_steps):
                head = step.expand(head)
            coeffs = np.concatenate((head, tail))
        return coeffs


def reduce(components: Sequence[Callable], point: Tuple[float, float]) -> ReducedSystem:
    """Eliminate a single dimension of `components` through `point`."""
    components = validate_components(components)
    if not components:
        raise InputValidationError("'components' must contain at least one function.")
    (x, y), = as_points([point], "point")
    step = eliminate(components, (x, y))
    return ReducedSystem(components=tuple(step.fold(components)), steps=(step,))


def constraint_points(constraints, name: str) -> np.ndarray:
    """(x, y) constraint pairs as an (n, 2) array; None means no constraints."""
    try:
        return as_points(() if constraints is None else constraints, name)
    except InputValidationError as exc:
        raise InvalidConstraintError(str(exc)) from exc


def reduce_constraints(
    components: Sequence[Callable],
    point_constraints=(),
    slope_components: Optional[Sequence[Callable]] = None,
    slopes=(),
) -> ReducedSystem:
    """Eliminate one dimension per slope constraint, then per point constraint.

    Constraints are applied in input order. Each constraint is first
    remapped through the eliminations that precede it.
    """
    primary = validate_components(components)
    points = constraint_points(point_constraints, "point_constraints")
    slope_points = constraint_points(slopes, "slope_constraints.slopes")

    slope_steps: List[EliminationStep] = []
    passthrough = 0
    if len(slope_points):
        if slope_components is None:
            raise InvalidConstraintError(
                "Slope constraints require 'slope_constraints.components'."
            )
        derivative = validate_components(slope_components, "slope_constraints.components")
        if len(derivative) > len(primary):
            raise InvalidConstraintError(
                f"The derivative basis ({len(derivative)} functions) cannot be larger "
                f"than the primary basis ({len(primary)} functions)."
            )
        if len(slope_points) > len(derivative):
            raise OverdeterminedConstraintError(
                f"{len(slope_points)} slope constraints cannot be satisfied by a "
                f"derivative basis of {len(derivative)} functions."
            )
        passthrough = len(primary) - len(derivative)
        prefix, tail = primary[:len(derivative)], primary[len(derivative):]
        derivative_steps: List[EliminationStep] = []
        for x, slope in slope_points:
            for prior in derivative_steps:
                slope = prior.remap_point(x, slope)
            step = eliminate(derivative, (x, slope))
            primary_step = replace(step, eliminated=prefix[-1])
            derivative = step.fold(derivative)
            prefix = primary_step.fold(prefix)
            derivative_steps.append(step)
            slope_steps.append(primary_step)
        primary = prefix + tail

    if len(points) > len(primary):
        raise OverdeterminedConstraintError(
            f"{len(points)} point constraints cannot be satisfied by a basis of "
            f"{len(primary)} free functions."
        )
    steps: List[EliminationStep] = []
    for x, y in points:
        for prior in slope_steps + steps:
            y = prior.remap_point(x, y)
        step = eliminate(primary, (x, y))
        primary = step.fold(primary)
        steps.append(step)

    logger.debug(
        "Reduced basis by %d slope and %d point constraints to %d components",
        len(slope_steps), len(steps), len(primary),
    )
    return ReducedSystem(
        components=tuple(primary),
        steps=tuple(steps),
        slope_steps=tuple(slope_steps),
        passthrough=passthrough,
    )
