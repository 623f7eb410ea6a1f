"""
Shared data structures for the constrained regression engine.

Fit is what every regression returns.
SlopeConstraints pairs a derivative basis with the slopes it must honour.
RegressionConfig carries every recognised option and its default.
"""

import numpy as np
from dataclasses import dataclass, field
from typing import Callable, Optional, Sequence, Tuple, Union

from .basis import symbolic_repr

# Any magnitude at or below this is treated as zero.
EPSILON = 1 / (2 * 10 ** 8)


def is_zero(value: float) -> bool:
    return abs(value) <= EPSILON


@dataclass(frozen=True, eq=False)
class Fit:
    """An approximate fit over the full, unreduced basis."""

    error: float  # MSE over the full original point set
    coefficients: np.ndarray
    components: Tuple[Callable, ...]
    evaluator: Callable = field(repr=False)

    def evaluate(self, x):
        return self.evaluator(x)

    def symbolic_repr(self) -> str:
        return symbolic_repr(self.components, self.coefficients)


@dataclass(frozen=True)
class SlopeConstraints:
    """Derivative basis plus the (x, dy/dx) pairs the fit must satisfy.

    When `components` is None the derivative of the monomial basis
    implied by the regression degree is used.
    """

    slopes: Sequence[Tuple[float, float]] = ()
    components: Optional[Sequence[Callable]] = None


@dataclass
class RegressionConfig:
    """Recognised options of `regress`, with their defaults."""

    deg: int = 1
    components: Optional[Sequence[Callable]] = None  # overrides deg
    exact: bool = True
    point_constraints: Sequence[Tuple[float, float]] = ()
    slope_constraints: Optional[SlopeConstraints] = None
    epochs: int = 50
    init_epochs: int = 5
    learning_rate: float = 0.5
    on_fit: Optional[Callable[[Fit, int], None]] = None
    rng: Union[None, int, np.random.Generator] = None
