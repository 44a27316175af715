"""
Input validation helpers for the SSOE Toolbox.

The functions here convert user inputs to plain NumPy arrays and raise the
toolbox's own exceptions for anything that cannot be estimated on. They are
called once, at the boundary; the estimation engine assumes validated input.
"""

import logging
from typing import Optional, Sequence, Union

import numpy as np
import pandas as pd

from .exceptions import (
    DataError, raise_data_error, raise_dimension_error, raise_parameter_error
)
from .types import ExogenousData, TimeSeriesData

logger = logging.getLogger("ssoe.core.validation")


def validate_series(
    data: TimeSeriesData,
    min_length: int = 1,
    data_name: str = "y"
) -> np.ndarray:
    """Validate a univariate time series and return it as a float vector.

    Args:
        data: Series to validate (array, list or pandas Series)
        min_length: Minimum required length
        data_name: Name of the data for error messages

    Returns:
        np.ndarray: One-dimensional float64 copy of the data

    Raises:
        TypeError: If data is not array-like
        DataError: If data is not one-dimensional, too short, or not finite
    """
    if data is None:
        raise TypeError(f"{data_name} cannot be None")
    if isinstance(data, pd.DataFrame):
        if data.shape[1] != 1:
            raise_data_error(
                f"{data_name} must be univariate, got {data.shape[1]} columns",
                data_name=data_name,
                issue="multiple columns"
            )
        data = data.iloc[:, 0]
    if isinstance(data, pd.Series):
        values = data.to_numpy(dtype=float)
    elif isinstance(data, (np.ndarray, list, tuple)):
        try:
            values = np.asarray(data, dtype=float)
        except (TypeError, ValueError) as e:
            raise DataError(
                f"{data_name} could not be converted to a numeric array",
                data_name=data_name,
                issue=str(e)
            ) from e
    else:
        raise TypeError(
            f"{data_name} must be a NumPy array, list or Pandas Series, "
            f"got {type(data).__name__}"
        )

    values = np.squeeze(values) if values.ndim > 1 else values
    if values.ndim != 1:
        raise_data_error(
            f"{data_name} must be one-dimensional, got shape {values.shape}",
            data_name=data_name,
            issue="not one-dimensional"
        )

    if values.shape[0] < min_length:
        raise_data_error(
            f"{data_name} is too short (length {values.shape[0]}), minimum required length is {min_length}",
            data_name=data_name,
            issue=f"insufficient length: {values.shape[0]} < {min_length}"
        )

    if np.isnan(values).any():
        raise_data_error(
            f"{data_name} contains NaN values",
            data_name=data_name,
            issue="contains NaN values",
            index=int(np.flatnonzero(np.isnan(values))[0])
        )
    if np.isinf(values).any():
        raise_data_error(
            f"{data_name} contains infinite values",
            data_name=data_name,
            issue="contains infinite values",
            index=int(np.flatnonzero(np.isinf(values))[0])
        )

    return values.copy()


def validate_exogenous(
    data: Optional[ExogenousData],
    data_name: str = "xreg"
) -> Optional[np.ndarray]:
    """Validate exogenous regressors and return them as a 2-D float array.

    A one-dimensional input is treated as a single regressor.

    Raises:
        DataError: If the regressors contain NaN or infinite values
    """
    if data is None:
        return None
    if isinstance(data, (pd.Series, pd.DataFrame)):
        values = data.to_numpy(dtype=float)
    else:
        values = np.asarray(data, dtype=float)

    if values.ndim == 1:
        values = values[:, np.newaxis]
    if values.ndim != 2:
        raise_data_error(
            f"{data_name} must be one- or two-dimensional, got shape {values.shape}",
            data_name=data_name,
            issue="invalid dimensions"
        )
    if not np.all(np.isfinite(values)):
        raise_data_error(
            f"{data_name} contains NaN or infinite values",
            data_name=data_name,
            issue="non-finite values"
        )
    return values.copy()


def validate_positive_integers(
    values: Union[int, Sequence[int]],
    param_name: str
) -> np.ndarray:
    """Validate a scalar or sequence of positive integers (orders, lags).

    Raises:
        ParameterError: If any value is not a positive integer or the sequence is empty
    """
    array = np.atleast_1d(np.asarray(values))
    if array.size == 0:
        raise_parameter_error(
            f"{param_name} must not be empty",
            param_name=param_name,
            param_value=values,
            constraint="non-empty"
        )
    if not np.issubdtype(array.dtype, np.number) or np.any(array != np.round(array)) or np.any(array < 1):
        raise_parameter_error(
            f"{param_name} must contain positive integers, got {values}",
            param_name=param_name,
            param_value=values,
            constraint="positive integers"
        )
    return array.astype(np.int64)


def validate_matching_length(
    first: np.ndarray,
    second: np.ndarray,
    first_name: str,
    second_name: str
) -> None:
    """Raise a DimensionError if two vectors differ in length."""
    if len(first) != len(second):
        raise_dimension_error(
            f"Lengths of {first_name} and {second_name} differ",
            array_name=second_name,
            expected_shape=len(first),
            actual_shape=len(second),
            details=f"{first_name} has {len(first)} values, {second_name} has {len(second)}"
        )
