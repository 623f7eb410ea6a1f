"""
Basis functions — the model family a regression fits coefficients for.

A basis is an ordered sequence of scalar functions; position in the
sequence is the coefficient index. Any callable works as a component.
The canonical monomial basis is ordered from the highest power down to
the constant term, which always comes last:

    degree 2  ->  [x^2, x, 1]
    derivative ->  [2*x, 1]

The derivative basis drops the constant term, so its i-th component is
the derivative of the i-th component of the primary basis.
"""

import numpy as np
from typing import Callable, List, Sequence

from .errors import InputValidationError


class Term:
    """f(x) = scale * x^power, usable on scalars and numpy arrays."""

    def __init__(self, power: int, scale: float = 1.0):
        self.power = power
        self.scale = scale

    def __call__(self, x):
        if self.power == 0:
            # Keep the output shape of x for arrays.
            if np.ndim(x):
                return np.full(np.shape(x), self.scale, dtype=float)
            return float(self.scale)
        return self.scale * x ** self.power

    def derivative(self) -> "Term":
        return Term(self.power - 1, self.scale * self.power)

    def __eq__(self, other):
        return (
            isinstance(other, Term)
            and self.power == other.power
            and self.scale == other.scale
        )

    def __hash__(self):
        return hash((self.power, self.scale))

    def __repr__(self):
        if self.power == 0:
            return f"{self.scale:g}"
        var = "x" if self.power == 1 else f"x^{self.power}"
        if self.scale == 1:
            return var
        return f"{self.scale:g}*{var}"


def polynomial_basis(degree: int) -> List[Term]:
    """degree + 1 components: [x^degree, ..., x, 1]."""
    if not isinstance(degree, (int, np.integer)) or isinstance(degree, bool) or degree < 0:
        raise InputValidationError(
            f"Polynomial degree must be a non-negative integer. Found {degree!r} instead."
        )
    return [Term(power) for power in range(degree, -1, -1)]


def derivative_basis(degree: int) -> List[Term]:
    """First derivative of each non-constant term of polynomial_basis(degree)."""
    return [term.derivative() for term in polynomial_basis(degree)[:-1]]


def validate_components(components: Sequence[Callable], name: str = "components") -> List[Callable]:
    """Return components as a list, rejecting anything that is not callable."""
    if components is None or isinstance(components, (str, bytes)):
        raise InputValidationError(f"'{name}' expects a sequence of functions.")
    try:
        components = list(components)
    except TypeError as exc:
        raise InputValidationError(
            f"'{name}' expects a sequence of functions. Found {type(components).__name__} instead."
        ) from exc
    for i, component in enumerate(components):
        if not callable(component):
            raise InputValidationError(
                f"'{name}' expects a sequence of functions. "
                f"Found type {type(component).__name__} in '{name}[{i}]'."
            )
    return components


def evaluate(components: Sequence[Callable], coefficients) -> Callable:
    """Return x -> sum(coefficients[i] * components[i](x))."""
    components = tuple(validate_components(components))
    coeffs = np.asarray(coefficients, dtype=float).ravel()
    if len(coeffs) != len(components):
        raise InputValidationError(
            f"Expected {len(components)} coefficients to evaluate the basis. "
            f"Found {len(coeffs)} instead."
        )

    def evaluator(x):
        total = 0.0
        for c, component in zip(coeffs, components):
            total = total + c * component(x)
        return total

    return evaluator


def symbolic_repr(components: Sequence[Callable], coefficients) -> str:
    """Human-readable formula, e.g. '5.0000*x + 4.0000'."""
    parts = []
    for c, component in zip(np.asarray(coefficients, dtype=float).ravel(), components):
        if isinstance(component, Term) and component.power == 0:
            parts.append(f"{c * component.scale:.4f}")
        else:
            label = repr(component) if isinstance(component, Term) else getattr(
                component, "__name__", repr(component)
            )
            parts.append(f"{c:.4f}*{label}")
    return " + ".join(parts)
