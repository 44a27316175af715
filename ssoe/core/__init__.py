"""
SSOE Toolbox Core Module

Foundations shared by every model: the exception and warning hierarchy, the
layered configuration, closed option enums and type aliases, input validation
and the abstract model base class.
"""

import logging

# Set up module-level logger
logger = logging.getLogger("ssoe.core")

from .base import ModelBase
from .config import (
    ConfigManager,
    LoggingConfig,
    ModelsConfig,
    NumericalConfig,
    SSOEConfig,
    get_config,
    get_config_manager,
    get_models_config,
    get_numerical_config,
    reset_config,
    set_config,
)
from .exceptions import (
    ConfigurationError,
    ConvergenceWarning,
    DataError,
    DimensionError,
    EstimationError,
    ForecastError,
    ModelSpecificationError,
    ModelWarning,
    NotFittedError,
    NumericWarning,
    ParameterError,
    SSOEError,
    SSOEWarning,
)
from .types import (
    OCCURRENCE_TRIAL_ORDER,
    BoundsType,
    CostType,
    ErrorType,
    InformationCriterion,
    InitialType,
    IntervalType,
    OccurrenceType,
)
from .validation import (
    validate_exogenous,
    validate_matching_length,
    validate_positive_integers,
    validate_series,
)

__all__ = [
    "ModelBase",
    "ConfigManager", "SSOEConfig", "NumericalConfig", "ModelsConfig", "LoggingConfig",
    "get_config", "set_config", "reset_config", "get_config_manager",
    "get_numerical_config", "get_models_config",
    "SSOEError", "ParameterError", "DimensionError", "DataError", "ModelSpecificationError",
    "EstimationError", "ForecastError", "ConfigurationError", "NotFittedError",
    "SSOEWarning", "ConvergenceWarning", "NumericWarning", "ModelWarning",
    "ErrorType", "CostType", "InformationCriterion", "BoundsType", "InitialType",
    "IntervalType", "OccurrenceType", "OCCURRENCE_TRIAL_ORDER",
    "validate_series", "validate_exogenous", "validate_positive_integers",
    "validate_matching_length",
]
