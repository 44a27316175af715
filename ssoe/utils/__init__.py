"""
SSOE Toolbox Utilities Module

Helpers used by the models: forecast accuracy measures, numerical
differentiation and the matrix operations behind the stability checks.
"""

import logging

# Set up module-level logger
logger = logging.getLogger("ssoe.utils")

from .accuracy import (
    accuracy,
    cbias,
    ham,
    hm,
    mae,
    mape,
    mase,
    mpe,
    mre,
    mse,
    rel_ame,
    rel_mae,
    rel_mse,
    sce,
    smape,
    smse,
    spis,
)
from .differentiation import hessian_2sided
from .matrix_ops import discount_matrix, is_stable, matrix_to_vec, spectral_radius, vec_to_matrix

__all__ = [
    "accuracy", "mae", "mse", "mre", "mpe", "mape", "smape", "mase", "smse", "spis", "sce",
    "rel_mae", "rel_mse", "rel_ame", "hm", "ham", "cbias",
    "hessian_2sided",
    "discount_matrix", "spectral_radius", "is_stable", "vec_to_matrix", "matrix_to_vec",
]
