'''
Matrix helpers for state space estimation.

The stability of a single-source-of-error model is governed by its discount
matrix ``D = F - g w'``: forecasts forget their initial states, and the model is
invertible, when every eigenvalue of ``D`` lies inside the unit circle. The
functions here build that matrix, measure its spectral radius and convert
between stacked parameter vectors and matrices (column-major, so that a stacked
transition block reads down each column in turn).
'''

import logging
from typing import Optional

import numpy as np
from scipy import linalg

from ..core.exceptions import DimensionError
from ..core.types import Matrix, Vector

logger = logging.getLogger("ssoe.utils.matrix_ops")


def discount_matrix(measurement: Vector, transition: Matrix, persistence: Vector) -> Matrix:
    """
    Compute the discount matrix ``F - g w'``.

    Args:
        measurement: Measurement vector w of length k
        transition: Transition matrix F of shape (k, k)
        persistence: Persistence vector g of length k

    Returns:
        Discount matrix of shape (k, k)

    Raises:
        DimensionError: If the shapes are inconsistent
    """
    measurement = np.asarray(measurement, dtype=float).ravel()
    persistence = np.asarray(persistence, dtype=float).ravel()
    transition = np.atleast_2d(np.asarray(transition, dtype=float))
    k = measurement.shape[0]
    if transition.shape != (k, k) or persistence.shape[0] != k:
        raise DimensionError(
            "Measurement, transition and persistence do not conform",
            array_name="transition",
            expected_shape=(k, k),
            actual_shape=transition.shape,
            details=f"persistence has {persistence.shape[0]} elements, measurement has {k}"
        )
    return transition - np.outer(persistence, measurement)


def spectral_radius(matrix: Matrix) -> float:
    """
    Largest absolute eigenvalue of a square matrix.

    Returns ``inf`` for matrices containing non-finite entries instead of
    raising, so the result can be compared against a threshold directly.
    """
    matrix = np.atleast_2d(np.asarray(matrix, dtype=float))
    if matrix.size == 0:
        return 0.0
    if not np.all(np.isfinite(matrix)):
        return np.inf
    eigenvalues = linalg.eigvals(matrix, check_finite=False)
    return float(np.max(np.abs(eigenvalues)))


def is_stable(measurement: Vector,
              transition: Matrix,
              persistence: Vector,
              tolerance: float = 1e-10) -> bool:
    """Whether the discount matrix has spectral radius at most ``1 + tolerance``."""
    radius = spectral_radius(discount_matrix(measurement, transition, persistence))
    return radius <= 1.0 + tolerance


def vec_to_matrix(vector: Vector, rows: int, cols: Optional[int] = None) -> Matrix:
    """
    Reshape a stacked vector into a matrix, filling column by column.

    Raises:
        DimensionError: If the vector does not have ``rows * cols`` elements
    """
    cols = rows if cols is None else cols
    vector = np.asarray(vector, dtype=float).ravel()
    if vector.shape[0] != rows * cols:
        raise DimensionError(
            "Vector length does not match the requested matrix shape",
            array_name="vector",
            expected_shape=rows * cols,
            actual_shape=vector.shape[0]
        )
    return vector.reshape((rows, cols), order='F')


def matrix_to_vec(matrix: Matrix) -> Vector:
    """Stack the columns of a matrix into a vector (inverse of :func:`vec_to_matrix`)."""
    return np.asarray(matrix, dtype=float).ravel(order='F')
