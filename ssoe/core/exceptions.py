'''
Exception and warning hierarchy for the SSOE Toolbox.

Every error raised by the toolbox derives from :class:`SSOEError` and every
warning from :class:`SSOEWarning`. Both carry an optional ``details`` string and
a ``context`` dictionary that are folded into the rendered message together with
the source location of the raise, so that a traceback from deep inside an
estimation run still says which parameter or array was at fault.

Estimation itself is designed not to raise on numerical trouble: non-finite
costs are replaced by a sentinel, unstable fits and degenerate samples produce
:class:`ModelWarning`. Exceptions are reserved for invalid configuration and
invalid data, which are detected before any optimization starts.
'''

import inspect
import warnings
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union


def _format_message(message: str,
                    details: Optional[str],
                    context: Optional[Dict[str, Any]],
                    depth: int = 2) -> str:
    """Render a message with its details, context and caller location."""
    full_message = message
    if details:
        full_message += f"\n\nDetails: {details}"

    if context:
        context_str = "\n".join(f"  {k}: {v}" for k, v in context.items())
        full_message += f"\n\nContext:\n{context_str}"

    frame = inspect.currentframe()
    try:
        for _ in range(depth):
            if frame is None:
                break
            frame = frame.f_back
        if frame is not None:
            caller_info = inspect.getframeinfo(frame)
            full_message += f"\n\nLocation: {Path(caller_info.filename).name}:{caller_info.lineno}"
    finally:
        del frame  # Avoid reference cycles

    return full_message


class SSOEError(Exception):
    """Base exception class for all SSOE Toolbox errors.

    Attributes:
        message: The error message
        details: Additional details about the error
        context: Dictionary containing contextual information about the error
    """

    def __init__(self,
                 message: str,
                 details: Optional[str] = None,
                 context: Optional[Dict[str, Any]] = None) -> None:
        self.message = message
        self.details = details
        self.context = context or {}
        super().__init__(_format_message(message, details, context, depth=3))


class ParameterError(SSOEError):
    """Raised when a configuration value or parameter violates a constraint.

    Attributes:
        param_name: The name of the offending parameter
        param_value: The invalid value
        constraint: Description of the violated constraint
    """

    def __init__(self,
                 message: str,
                 param_name: Optional[str] = None,
                 param_value: Optional[Any] = None,
                 constraint: Optional[str] = None,
                 details: Optional[str] = None,
                 context: Optional[Dict[str, Any]] = None) -> None:
        self.param_name = param_name
        self.param_value = param_value
        self.constraint = constraint

        context_dict = context or {}
        if param_name:
            context_dict["Parameter"] = param_name
        if param_value is not None:
            context_dict["Value"] = param_value
        if constraint:
            context_dict["Constraint"] = constraint

        super().__init__(message, details, context_dict)


class DimensionError(SSOEError):
    """Raised when array lengths or shapes are incompatible.

    Attributes:
        array_name: The name of the array
        expected_shape: The expected shape or length
        actual_shape: The shape or length actually received
    """

    def __init__(self,
                 message: str,
                 array_name: Optional[str] = None,
                 expected_shape: Optional[Union[Tuple[int, ...], int, str]] = None,
                 actual_shape: Optional[Union[Tuple[int, ...], int]] = None,
                 details: Optional[str] = None,
                 context: Optional[Dict[str, Any]] = None) -> None:
        self.array_name = array_name
        self.expected_shape = expected_shape
        self.actual_shape = actual_shape

        context_dict = context or {}
        if array_name:
            context_dict["Array"] = array_name
        if expected_shape is not None:
            context_dict["Expected"] = expected_shape
        if actual_shape is not None:
            context_dict["Actual"] = actual_shape

        super().__init__(message, details, context_dict)


class DataError(SSOEError):
    """Raised when input data is unsuitable for the requested operation.

    Attributes:
        data_name: The name of the data
        issue: Description of the problem
        index: Location where the problem was detected
    """

    def __init__(self,
                 message: str,
                 data_name: Optional[str] = None,
                 issue: Optional[str] = None,
                 index: Optional[Union[int, Tuple[int, ...], str]] = None,
                 details: Optional[str] = None,
                 context: Optional[Dict[str, Any]] = None) -> None:
        self.data_name = data_name
        self.issue = issue
        self.index = index

        context_dict = context or {}
        if data_name:
            context_dict["Data"] = data_name
        if issue:
            context_dict["Issue"] = issue
        if index is not None:
            context_dict["Index"] = index

        super().__init__(message, details, context_dict)


class ModelSpecificationError(SSOEError):
    """Raised when orders, lags or model type do not describe a valid model.

    Attributes:
        model_type: The model being specified
        parameter: The specification entry at fault
        value: Its value
    """

    def __init__(self,
                 message: str,
                 model_type: Optional[str] = None,
                 parameter: Optional[str] = None,
                 value: Optional[Any] = None,
                 details: Optional[str] = None,
                 context: Optional[Dict[str, Any]] = None) -> None:
        self.model_type = model_type
        self.parameter = parameter
        self.value = value

        context_dict = context or {}
        if model_type:
            context_dict["Model Type"] = model_type
        if parameter:
            context_dict["Parameter"] = parameter
        if value is not None:
            context_dict["Value"] = value

        super().__init__(message, details, context_dict)


class EstimationError(SSOEError):
    """Raised when estimation cannot produce any usable result."""

    def __init__(self,
                 message: str,
                 model_type: Optional[str] = None,
                 issue: Optional[str] = None,
                 details: Optional[str] = None,
                 context: Optional[Dict[str, Any]] = None) -> None:
        self.model_type = model_type
        self.issue = issue

        context_dict = context or {}
        if model_type:
            context_dict["Model Type"] = model_type
        if issue:
            context_dict["Issue"] = issue

        super().__init__(message, details, context_dict)


class ForecastError(SSOEError):
    """Raised when a forecast cannot be produced for the requested horizon."""

    def __init__(self,
                 message: str,
                 horizon: Optional[int] = None,
                 details: Optional[str] = None,
                 context: Optional[Dict[str, Any]] = None) -> None:
        self.horizon = horizon

        context_dict = context or {}
        if horizon is not None:
            context_dict["Horizon"] = horizon

        super().__init__(message, details, context_dict)


class ConfigurationError(SSOEError):
    """Raised for unknown or invalid toolbox configuration settings.

    Attributes:
        setting: The configuration key
        value: The rejected value
        issue: Description of the problem
    """

    def __init__(self,
                 message: str,
                 setting: Optional[str] = None,
                 value: Optional[Any] = None,
                 issue: Optional[str] = None,
                 details: Optional[str] = None,
                 context: Optional[Dict[str, Any]] = None) -> None:
        self.setting = setting
        self.value = value
        self.issue = issue

        context_dict = context or {}
        if setting:
            context_dict["Setting"] = setting
        if value is not None:
            context_dict["Value"] = value
        if issue:
            context_dict["Issue"] = issue

        super().__init__(message, details, context_dict)


class NotFittedError(SSOEError):
    """Raised when an operation requires a fitted model."""

    def __init__(self,
                 message: str,
                 model_type: Optional[str] = None,
                 operation: Optional[str] = None,
                 details: Optional[str] = None,
                 context: Optional[Dict[str, Any]] = None) -> None:
        self.model_type = model_type
        self.operation = operation

        context_dict = context or {}
        if model_type:
            context_dict["Model Type"] = model_type
        if operation:
            context_dict["Operation"] = operation

        super().__init__(message, details, context_dict)


class SSOEWarning(Warning):
    """Base warning class for all SSOE Toolbox warnings."""

    def __init__(self,
                 message: str,
                 details: Optional[str] = None,
                 context: Optional[Dict[str, Any]] = None) -> None:
        self.message = message
        self.details = details
        self.context = context or {}
        super().__init__(_format_message(message, details, context, depth=3))


class ConvergenceWarning(SSOEWarning):
    """Warning issued when an optimizer stops without reporting success.

    Attributes:
        iterations: Number of function evaluations used
        tolerance: Tolerance in effect
    """

    def __init__(self,
                 message: str,
                 iterations: Optional[int] = None,
                 tolerance: Optional[float] = None,
                 details: Optional[str] = None,
                 context: Optional[Dict[str, Any]] = None) -> None:
        self.iterations = iterations
        self.tolerance = tolerance

        context_dict = context or {}
        if iterations is not None:
            context_dict["Evaluations"] = iterations
        if tolerance is not None:
            context_dict["Tolerance"] = tolerance

        super().__init__(message, details, context_dict)


class NumericWarning(SSOEWarning):
    """Warning for numerical degeneracy that does not stop estimation."""

    def __init__(self,
                 message: str,
                 operation: Optional[str] = None,
                 issue: Optional[str] = None,
                 details: Optional[str] = None,
                 context: Optional[Dict[str, Any]] = None) -> None:
        self.operation = operation
        self.issue = issue

        context_dict = context or {}
        if operation:
            context_dict["Operation"] = operation
        if issue:
            context_dict["Issue"] = issue

        super().__init__(message, details, context_dict)


class ModelWarning(SSOEWarning):
    """Warning for model issues that still allow a result to be returned.

    Used for unstable estimated models, degenerate-sample fallbacks and
    dropped user-provided values.

    Attributes:
        model_type: The model concerned
        issue: Description of the problem
        parameter: The parameter involved, if any
        value: Its value
    """

    def __init__(self,
                 message: str,
                 model_type: Optional[str] = None,
                 issue: Optional[str] = None,
                 parameter: Optional[str] = None,
                 value: Optional[Any] = None,
                 details: Optional[str] = None,
                 context: Optional[Dict[str, Any]] = None) -> None:
        self.model_type = model_type
        self.issue = issue
        self.parameter = parameter
        self.value = value

        context_dict = context or {}
        if model_type:
            context_dict["Model Type"] = model_type
        if issue:
            context_dict["Issue"] = issue
        if parameter:
            context_dict["Parameter"] = parameter
        if value is not None:
            context_dict["Value"] = value

        super().__init__(message, details, context_dict)


def raise_parameter_error(message: str,
                          param_name: Optional[str] = None,
                          param_value: Optional[Any] = None,
                          constraint: Optional[str] = None,
                          details: Optional[str] = None) -> None:
    """Raise a ParameterError with consistent formatting."""
    raise ParameterError(message, param_name, param_value, constraint, details)


def raise_dimension_error(message: str,
                          array_name: Optional[str] = None,
                          expected_shape: Optional[Union[Tuple[int, ...], int, str]] = None,
                          actual_shape: Optional[Union[Tuple[int, ...], int]] = None,
                          details: Optional[str] = None) -> None:
    """Raise a DimensionError with consistent formatting."""
    raise DimensionError(message, array_name, expected_shape, actual_shape, details)


def raise_data_error(message: str,
                     data_name: Optional[str] = None,
                     issue: Optional[str] = None,
                     index: Optional[Union[int, Tuple[int, ...], str]] = None,
                     details: Optional[str] = None) -> None:
    """Raise a DataError with consistent formatting."""
    raise DataError(message, data_name, issue, index, details)


def raise_not_fitted_error(message: str,
                           model_type: Optional[str] = None,
                           operation: Optional[str] = None) -> None:
    """Raise a NotFittedError with consistent formatting."""
    raise NotFittedError(message, model_type, operation)


def warn_convergence(message: str,
                     iterations: Optional[int] = None,
                     tolerance: Optional[float] = None,
                     details: Optional[str] = None) -> None:
    """Issue a ConvergenceWarning."""
    warnings.warn(ConvergenceWarning(message, iterations, tolerance, details), stacklevel=2)


def warn_numeric(message: str,
                 operation: Optional[str] = None,
                 issue: Optional[str] = None,
                 details: Optional[str] = None) -> None:
    """Issue a NumericWarning."""
    warnings.warn(NumericWarning(message, operation, issue, details), stacklevel=2)


def warn_model(message: str,
               model_type: Optional[str] = None,
               issue: Optional[str] = None,
               parameter: Optional[str] = None,
               value: Optional[Any] = None,
               details: Optional[str] = None) -> None:
    """Issue a ModelWarning."""
    warnings.warn(ModelWarning(message, model_type, issue, parameter, value, details),
                  stacklevel=2)
