"""
Linear solver for square systems A c = Y.

QR-decomposes A with numpy, then back-substitutes R c = Q^T Y. Any
diagonal entry of R at or below EPSILON means the system has no unique
solution and raises SingularMatrixError.
"""

import numpy as np
from typing import Tuple

from .errors import InputValidationError, SingularMatrixError
from .types import is_zero


def _as_matrix(data, name: str) -> np.ndarray:
    try:
        matrix = np.asarray(data, dtype=float)
    except (TypeError, ValueError) as exc:
        raise InputValidationError(f"'{name}' must be a numeric grid.") from exc
    if matrix.ndim != 2 or matrix.size == 0:
        raise InputValidationError(
            f"'{name}' must be a non-empty 2-D grid. Found shape {matrix.shape} instead."
        )
    return matrix


def _as_column(data, name: str) -> np.ndarray:
    try:
        column = np.asarray(data, dtype=float)
    except (TypeError, ValueError) as exc:
        raise InputValidationError(f"'{name}' must be numeric.") from exc
    if column.ndim == 2 and column.shape[1] == 1:
        column = column[:, 0]
    if column.ndim != 1 or column.size == 0:
        raise InputValidationError(
            f"'{name}' must be a non-empty column vector. Found shape {column.shape} instead."
        )
    return column


def qr(data) -> Tuple[np.ndarray, np.ndarray]:
    """Householder QR: returns (Q, R) with Q orthonormal and R upper triangular."""
    matrix = _as_matrix(data, "data")
    return np.linalg.qr(matrix, mode="complete")


def backward(upper, y) -> np.ndarray:
    """Solve U c = y for square upper triangular U by back-substitution."""
    U = _as_matrix(upper, "upper")
    Y = _as_column(y, "y")
    size = U.shape[0]
    if U.shape != (size, size) or not np.allclose(np.tril(U, -1), 0.0):
        raise InputValidationError("Back-substitution expects a square upper triangular matrix.")
    if len(Y) != size:
        raise InputValidationError(
            f"Incompatible sizes. The upper triangular matrix (size {size}) "
            f"does not match the vector y (length {len(Y)})."
        )
    for i in range(size):
        if is_zero(U[i, i]):
            raise SingularMatrixError(
                f"Diagonal entry R[{i}][{i}] is zero; the system has no unique solution."
            )

    coefficients = np.zeros(size)
    for i in range(size - 1, -1, -1):
        summation = np.dot(U[i, i + 1:], coefficients[i + 1:])
        coefficients[i] = (Y[i] - summation) / U[i, i]
    return coefficients


def solve(A, Y) -> np.ndarray:
    """Coefficients c of the square system A c = Y."""
    matrix = _as_matrix(A, "A")
    rows, cols = matrix.shape
    if rows != cols:
        raise InputValidationError(f"'A' must be square. Found shape {matrix.shape} instead.")
    column = _as_column(Y, "Y")
    if len(column) != rows:
        raise InputValidationError(
            f"'Y' must have {rows} entries to match 'A'. Found {len(column)} instead."
        )
    Q, R = qr(matrix)
    return backward(R, Q.T @ column)


def norm(vector) -> float:
    """Euclidean norm of a vector."""
    return float(np.linalg.norm(np.asarray(vector, dtype=float).ravel()))
