"""
Error taxonomy of the regression engine.

Every error raised on purpose derives from RegressionError, so callers can
catch the whole family at once. SingularMatrixError belongs to the linear
solver and is translated into SingularSystemError by the exact solver.
"""


class RegressionError(Exception):
    """Base class for every failure raised by constrained_fit."""
    pass


class InputValidationError(RegressionError, ValueError):
    """Malformed or missing arguments, non-numeric values, wrong lengths."""
    pass


class MissingPointsError(InputValidationError):
    """Fewer points than unknown coefficients."""
    pass


class InvalidConstraintError(InputValidationError):
    """A point or slope constraint entry is malformed."""
    pass


class UnstableSystemError(RegressionError, ArithmeticError):
    """The eliminated basis function evaluates to (near) zero at the constraint."""
    pass


class SingularSystemError(RegressionError, ArithmeticError):
    """The sampled points do not determine the basis coefficients uniquely."""
    pass


class OverdeterminedConstraintError(RegressionError):
    """More exact constraints than free dimensions in the basis."""
    pass


class SingularMatrixError(ArithmeticError):
    """A pivot of the triangular factor is (near) zero."""
    pass
