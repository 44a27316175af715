# ssoe/__init__.py
"""
SSOE Toolbox - single-source-of-error state space models for Python

Linear Gaussian state space models with a single source of error, estimated by
bounded derivative-free optimization of configurable (including multi-step)
cost functions. The toolbox provides:

- The General Univariate Model (GUM) with any combination of orders and lags
- Simple exponential smoothing, used as a fallback for very short samples
- Occurrence models and automatic selection for intermittent series
- Exogenous regressors with optional coefficient updating
- Parametric, semiparametric and nonparametric prediction intervals
- Forecast accuracy measures for holdout evaluation
"""

import logging
from typing import Union

# Set up package-wide logger
logger = logging.getLogger("ssoe")
logger.setLevel(logging.WARNING)
_handler = logging.StreamHandler()
_handler.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))
logger.addHandler(_handler)

from .version import __version__, get_version_info

from . import core
from . import models
from . import utils

from .core.config import get_config, reset_config, set_config
from .core.exceptions import (
    DataError, DimensionError, ModelSpecificationError, NotFittedError, ParameterError,
    SSOEError, SSOEWarning
)
from .models.state_space import GUM, GUMConfig, GUMResult, SimpleExponentialSmoothing
from .utils.accuracy import accuracy


def get_version() -> str:
    """
    Return the version of the SSOE Toolbox.

    Returns:
        str: Version string in format MAJOR.MINOR.PATCH
    """
    return __version__


def set_log_level(level: Union[str, int]) -> None:
    """
    Set the logging level of the toolbox.

    Args:
        level: Logging level, either as string ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL')
              or as an integer constant from the logging module
    """
    if isinstance(level, str):
        level = getattr(logging, level.upper())
    logger.setLevel(level)
    logger.info(f"Log level set to {logging.getLevelName(level)}")


__all__ = [
    "GUM",
    "GUMConfig",
    "GUMResult",
    "SimpleExponentialSmoothing",
    "accuracy",
    "get_config",
    "set_config",
    "reset_config",
    "get_version",
    "get_version_info",
    "set_log_level",
    "SSOEError",
    "SSOEWarning",
    "ParameterError",
    "DimensionError",
    "DataError",
    "ModelSpecificationError",
    "NotFittedError",
    "__version__",
]
