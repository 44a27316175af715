"""
Single-source-of-error state space models.

The estimation engine is split into small components passed an explicit
:class:`EstimationContext`: the numba state recursion, the parameter layout and
bounds, the cost function, the two-phase optimizer, the information criteria,
the occurrence models with their selector, the exogenous adapter and the
forecaster. :class:`GUM` orchestrates them.
"""

import logging

logger = logging.getLogger("ssoe.models.state_space")

from .bounds import BoundsAssembler, ParameterLayout, PreviousFit
from .cost import SENTINEL, CostFunction, reduce_errors, run_recursion
from .forecast import Forecaster, ForecastOutput, mixture_quantile
from .gum import GUM, GUMConfig, SimpleExponentialSmoothing
from .information import InformationCriteria, gaussian_loglikelihood, information_criteria
from .occurrence import IntermittencySelector, OccurrenceModel, fit_occurrence, select_variant
from .optimizer import (
    BoundedMinimizer, MinimizerResult, NelderMeadMinimizer, PowellMinimizer, TwoPhaseOptimizer
)
from .results import ExogenousResult, GUMResult, ParameterCount
from .structure import EstimationContext, ModelSpec, ProvidedBlocks
from .xreg import ExogenousAdapter

__all__ = [
    "GUM", "GUMConfig", "GUMResult", "SimpleExponentialSmoothing",
    "ModelSpec", "EstimationContext", "ProvidedBlocks",
    "BoundsAssembler", "ParameterLayout", "PreviousFit",
    "CostFunction", "run_recursion", "reduce_errors", "SENTINEL",
    "BoundedMinimizer", "MinimizerResult", "PowellMinimizer", "NelderMeadMinimizer",
    "TwoPhaseOptimizer",
    "InformationCriteria", "information_criteria", "gaussian_loglikelihood",
    "OccurrenceModel", "IntermittencySelector", "fit_occurrence", "select_variant",
    "Forecaster", "ForecastOutput", "mixture_quantile",
    "ExogenousAdapter", "ExogenousResult", "ParameterCount",
]
