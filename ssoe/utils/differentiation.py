'''
Numerical differentiation.

Two-sided finite-difference Hessians, used to compute the observed Fisher
information of fitted models from their log-likelihood.
'''

import logging
from typing import Callable, Optional, Tuple

import numpy as np

from ..core.exceptions import raise_dimension_error, warn_numeric
from ..core.types import Matrix, Vector

logger = logging.getLogger("ssoe.utils.differentiation")


def _step_sizes(x: Vector, epsilon: Optional[float]) -> Vector:
    if epsilon is not None:
        return np.full(x.shape[0], float(epsilon))
    eps = np.finfo(float).eps
    return np.power(eps, 1 / 3) * np.maximum(np.abs(x), 1e-2)


def hessian_2sided(func: Callable[..., float],
                   x: Vector,
                   epsilon: Optional[float] = None,
                   args: Tuple = ()) -> Matrix:
    """
    Compute the two-sided numerical Hessian of a scalar function.

    Diagonal and off-diagonal elements use

        d2f/dxi2    ~ [f(x + 2h_i e_i) - 2f(x) + f(x - 2h_i e_i)] / (4 h_i^2)
        d2f/dxidxj  ~ [f(x + h_i e_i + h_j e_j) - f(x + h_i e_i - h_j e_j)
                       - f(x - h_i e_i + h_j e_j) + f(x - h_i e_i - h_j e_j)] / (4 h_i h_j)

    Args:
        func: Function to differentiate, taking a vector and returning a scalar
        x: Point at which to compute the Hessian
        epsilon: Common step size; by default each coordinate uses
            ``eps**(1/3) * max(|x_i|, 0.01)``
        args: Additional arguments passed to ``func``

    Returns:
        Hessian matrix of shape (n, n). Entries whose evaluations were not
        finite are NaN, with a warning.

    Raises:
        DimensionError: If x is not a 1D array

    Examples:
        >>> import numpy as np
        >>> from ssoe.utils.differentiation import hessian_2sided
        >>> def f(x): return x[0]**2 + 3 * x[0] * x[1]
        >>> H = hessian_2sided(f, np.array([1.0, 2.0]))
        >>> bool(np.allclose(H, [[2.0, 3.0], [3.0, 0.0]], atol=1e-3))
        True
    """
    x = np.asarray(x, dtype=float)
    if x.ndim != 1:
        raise_dimension_error(
            "Input must be a 1D vector",
            array_name="x",
            expected_shape="(n,)",
            actual_shape=x.shape
        )

    n = x.shape[0]
    h = _step_sizes(x, epsilon)
    hess = np.zeros((n, n), dtype=float)
    centre = float(func(x, *args))

    def shifted(i: int, si: float, j: Optional[int] = None, sj: float = 0.0) -> float:
        point = x.copy()
        point[i] += si * h[i]
        if j is not None:
            point[j] += sj * h[j]
        return float(func(point, *args))

    for i in range(n):
        hess[i, i] = (shifted(i, 2.0) - 2.0 * centre + shifted(i, -2.0)) / (4.0 * h[i] ** 2)
        for j in range(i):
            value = (shifted(i, 1.0, j, 1.0) - shifted(i, 1.0, j, -1.0)
                     - shifted(i, -1.0, j, 1.0) + shifted(i, -1.0, j, -1.0)) / (4.0 * h[i] * h[j])
            hess[i, j] = value
            hess[j, i] = value

    if not np.all(np.isfinite(hess)):
        warn_numeric(
            "Hessian contains non-finite entries",
            operation="hessian_2sided",
            issue="function not finite near the evaluation point"
        )
        hess[~np.isfinite(hess)] = np.nan

    logger.debug(f"Computed {n}x{n} Hessian")
    return hess
