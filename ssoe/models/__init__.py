"""
SSOE Toolbox Models Module

State space models sharing one estimation engine.
"""

import logging

# Set up module-level logger
logger = logging.getLogger("ssoe.models")

from . import state_space
from .state_space import GUM, GUMConfig, GUMResult, SimpleExponentialSmoothing

__all__ = ["state_space", "GUM", "GUMConfig", "GUMResult", "SimpleExponentialSmoothing"]
