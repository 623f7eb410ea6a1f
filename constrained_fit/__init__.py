"""
constrained_fit — fit y = f(x) as a weighted sum of basis functions.

Exact constraints (points the fit passes through, slopes its derivative
takes) are eliminated one dimension at a time. What is left is either
solved exactly or refined by gradient descent over exact fits.
"""

import logging

from .types import EPSILON, Fit, RegressionConfig, SlopeConstraints, is_zero
from .errors import (
    RegressionError,
    InputValidationError,
    MissingPointsError,
    InvalidConstraintError,
    UnstableSystemError,
    SingularSystemError,
    OverdeterminedConstraintError,
    SingularMatrixError,
)
from .basis import Term, polynomial_basis, derivative_basis, evaluate, symbolic_repr
from .reduction import EliminationStep, ReducedSystem, reduce, reduce_constraints
from .exact import solve_exact
from .descent import GradientDescentOptimizer
from .regression import Regressor, regress

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "EPSILON",
    "is_zero",
    "Fit",
    "RegressionConfig",
    "SlopeConstraints",
    "RegressionError",
    "InputValidationError",
    "MissingPointsError",
    "InvalidConstraintError",
    "UnstableSystemError",
    "SingularSystemError",
    "OverdeterminedConstraintError",
    "SingularMatrixError",
    "Term",
    "polynomial_basis",
    "derivative_basis",
    "evaluate",
    "symbolic_repr",
    "EliminationStep",
    "ReducedSystem",
    "reduce",
    "reduce_constraints",
    "solve_exact",
    "GradientDescentOptimizer",
    "Regressor",
    "regress",
]
