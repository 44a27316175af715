# ssoe/core/types.py

"""
Core type aliases and closed option sets for the SSOE Toolbox.

Every textual option accepted by a model configuration (cost function,
information criterion, bounds regime, ...) is a ``str``-valued :class:`Enum`.
Strings are parsed once with ``from_string`` when a configuration is built; the
engine only ever sees enum members.
"""

from enum import Enum
from typing import Callable, Tuple, TypeVar, Union

import numpy as np
import pandas as pd

from .exceptions import ParameterError

T = TypeVar('T')  # Generic type
R = TypeVar('R')  # Result type
D = TypeVar('D')  # Data type

# NumPy array type aliases
Vector = np.ndarray  # 1D array
Matrix = np.ndarray  # 2D array
ParameterVector = np.ndarray  # Flat vector of estimated parameters
StateMatrix = np.ndarray  # (n + maxlag) x n_components state history
ErrorMatrix = np.ndarray  # n x h matrix of multi-step in-sample errors

TimeSeriesData = Union[np.ndarray, pd.Series, list]
ExogenousData = Union[np.ndarray, pd.Series, pd.DataFrame]

ObjectiveFunction = Callable[[np.ndarray], float]


class _OptionEnum(str, Enum):
    """String enumeration with case-insensitive parsing."""

    @classmethod
    def from_string(cls, value):
        """Convert a string (or an existing member) to an enum member.

        Args:
            value: String representation of the option

        Returns:
            The corresponding enum member

        Raises:
            ParameterError: If the string does not match any member
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            for member in cls:
                if member.value.lower() == value.lower():
                    return member
        valid = [m.value for m in cls]
        raise ParameterError(
            f"Invalid {cls.__name__} value: {value!r}. Valid values are: {', '.join(valid)}",
            param_name=cls.__name__,
            param_value=value,
            constraint=f"one of {valid}"
        )


class ErrorType(_OptionEnum):
    """Error term of the model: additive or multiplicative."""
    ADDITIVE = "A"
    MULTIPLICATIVE = "M"


class CostType(_OptionEnum):
    """Scalar reductions of the in-sample errors used for estimation."""
    MSE = "MSE"
    MAE = "MAE"
    HAM = "HAM"  # half absolute moment, mean of sqrt|e|
    MSEH = "MSEh"
    TMSE = "TMSE"
    GTMSE = "GTMSE"
    MSCE = "MSCE"

    @property
    def is_multistep(self) -> bool:
        return self in (CostType.MSEH, CostType.TMSE, CostType.GTMSE, CostType.MSCE)


class InformationCriterion(_OptionEnum):
    """Information criteria available for model selection."""
    AIC = "AIC"
    AICC = "AICc"
    BIC = "BIC"
    BICC = "BICc"


class BoundsType(_OptionEnum):
    """How the parameter space is constrained during estimation."""
    NONE = "none"
    RESTRICTED = "restricted"
    ADMISSIBLE = "admissible"


class InitialType(_OptionEnum):
    """Source of the initial state window."""
    OPTIMAL = "optimal"
    BACKCASTING = "backcasting"
    PROVIDED = "provided"


class IntervalType(_OptionEnum):
    """Prediction interval construction."""
    NONE = "none"
    PARAMETRIC = "parametric"
    SEMIPARAMETRIC = "semiparametric"
    NONPARAMETRIC = "nonparametric"


class OccurrenceType(_OptionEnum):
    """Occurrence submodels for series with zero-valued observations."""
    NONE = "none"
    AUTO = "auto"
    FIXED = "fixed"
    INTERVAL = "interval"
    PROBABILITY = "probability"
    SBA = "sba"
    LOGISTIC = "logistic"

    @property
    def n_parameters(self) -> int:
        """Number of parameters the occurrence submodel adds."""
        if self in (OccurrenceType.NONE, OccurrenceType.AUTO):
            return 0
        if self is OccurrenceType.FIXED:
            return 1
        return 2


# Order in which occurrence variants are tried by automatic selection.
OCCURRENCE_TRIAL_ORDER: Tuple[OccurrenceType, ...] = (
    OccurrenceType.NONE,
    OccurrenceType.FIXED,
    OccurrenceType.INTERVAL,
    OccurrenceType.PROBABILITY,
    OccurrenceType.SBA,
    OccurrenceType.LOGISTIC,
)
