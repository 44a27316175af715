"""
Occurrence models for intermittent series and their selection.

A series with zero-valued observations is modelled as the product of an
occurrence indicator and a magnitude. The occurrence submodels here produce the
probability that an observation occurs; the magnitude model is estimated on the
occurring observations only. :class:`IntermittencySelector` fits the magnitude
model under every occurrence variant and keeps the one with the lowest
information criterion.

Occurrence variants and their parameter counts:

- ``none``: every observation occurs, no parameters
- ``fixed``: constant probability, one parameter
- ``interval``: Croston's method, demand intervals smoothed exponentially
- ``probability``: the indicator itself smoothed exponentially (TSB)
- ``sba``: interval model with the Syntetos-Boylan bias correction
- ``logistic``: exponentially smoothed latent level behind a logistic link

The smoothed variants estimate a smoothing parameter and an initial value by
maximizing the Bernoulli likelihood.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

import numpy as np
from scipy import optimize

from ...core.exceptions import ParameterError
from ...core.types import OCCURRENCE_TRIAL_ORDER, InformationCriterion, OccurrenceType
from ._numba_core import (
    INTERVAL_KERNEL, LOGISTIC_KERNEL, PROBABILITY_KERNEL, SBA_KERNEL, occurrence_recursion
)
from .information import InformationCriteria

logger = logging.getLogger("ssoe.models.state_space.occurrence")

_KERNELS = {
    OccurrenceType.INTERVAL: INTERVAL_KERNEL,
    OccurrenceType.SBA: SBA_KERNEL,
    OccurrenceType.PROBABILITY: PROBABILITY_KERNEL,
    OccurrenceType.LOGISTIC: LOGISTIC_KERNEL,
}


@dataclass
class OccurrenceModel:
    """
    A fitted occurrence submodel.

    Attributes:
        variant: Occurrence variant
        indicator: Occurrence indicator used to gate the errors (n,)
        fitted: In-sample occurrence probabilities (n,)
        forecast: Probabilities over the forecast horizon (h,)
        n_parameters: Parameters contributed to the model count
        loglikelihood: Bernoulli log-likelihood of the indicator
        parameters: Estimated smoothing parameter and initial value
    """
    variant: OccurrenceType
    indicator: np.ndarray
    fitted: np.ndarray
    forecast: np.ndarray
    n_parameters: int
    loglikelihood: float
    parameters: Dict[str, float] = field(default_factory=dict)

    @property
    def is_intermittent(self) -> bool:
        return self.variant is not OccurrenceType.NONE


def bernoulli_loglikelihood(probabilities: np.ndarray,
                            occurring: np.ndarray,
                            floor: float = 1e-10) -> float:
    """Log-likelihood of an occurrence indicator given probabilities."""
    p = np.clip(probabilities, floor, 1.0 - floor)
    observed = occurring != 0
    return float(np.sum(np.log(p[observed])) + np.sum(np.log(1.0 - p[~observed])))


def _starting_values(variant: OccurrenceType, occurring: np.ndarray, floor: float):
    n = occurring.shape[0]
    share = float(np.clip(np.mean(occurring), floor, 1.0 - floor))
    if variant in (OccurrenceType.INTERVAL, OccurrenceType.SBA):
        return np.array([0.1, 1.0 / share]), [(0.0, 1.0), (1.0, float(max(n, 1)))]
    if variant is OccurrenceType.PROBABILITY:
        return np.array([0.1, share]), [(0.0, 1.0), (floor, 1.0 - floor)]
    logit = float(np.log(share / (1.0 - share)))
    return np.array([0.1, logit]), [(0.0, 1.0), (-25.0, 25.0)]


def fit_occurrence(variant: OccurrenceType,
                   occurring: np.ndarray,
                   horizon: int,
                   floor: float = 1e-10) -> OccurrenceModel:
    """
    Fit an occurrence submodel to an occurrence indicator.

    Args:
        variant: Occurrence variant, not ``auto``
        occurring: Occurrence indicator, non-zero where the series is non-zero
        horizon: Forecast horizon
        floor: Probability clip used in the likelihood

    Returns:
        OccurrenceModel: The fitted submodel

    Raises:
        ParameterError: If ``variant`` is ``auto``
    """
    variant = OccurrenceType.from_string(variant)
    indicator = (np.asarray(occurring) != 0).astype(np.float64)
    n = indicator.shape[0]
    horizon = max(int(horizon), 0)

    if variant is OccurrenceType.AUTO:
        raise ParameterError(
            "The automatic occurrence option selects a variant and cannot be fitted directly",
            param_name="intermittent",
            param_value=variant.value,
            constraint="a concrete occurrence variant"
        )

    if variant is OccurrenceType.NONE:
        ones = np.ones(n)
        return OccurrenceModel(variant=variant, indicator=ones, fitted=ones,
                               forecast=np.ones(horizon), n_parameters=0,
                               loglikelihood=0.0)

    if variant is OccurrenceType.FIXED:
        share = float(np.mean(indicator)) if n > 0 else 1.0
        fitted = np.full(n, share)
        return OccurrenceModel(variant=variant, indicator=indicator, fitted=fitted,
                               forecast=np.full(horizon, share), n_parameters=1,
                               loglikelihood=bernoulli_loglikelihood(fitted, indicator, floor),
                               parameters={"probability": share})

    kernel = _KERNELS[variant]

    def negative_loglikelihood(x: np.ndarray) -> float:
        probabilities, _ = occurrence_recursion(indicator, x[0], x[1], kernel)
        with np.errstate(all='ignore'):
            value = -bernoulli_loglikelihood(probabilities, indicator, floor)
        return value if np.isfinite(value) else 1e100

    x0, bounds = _starting_values(variant, indicator, floor)
    result = optimize.minimize(negative_loglikelihood, x0, method="L-BFGS-B", bounds=bounds)
    alpha, initial = float(result.x[0]), float(result.x[1])
    logger.debug(f"Occurrence model {variant.value}: alpha={alpha:.4f}, initial={initial:.4f}")

    probabilities, last = occurrence_recursion(indicator, alpha, initial, kernel)
    probabilities = np.clip(probabilities, 0.0, 1.0)
    last = float(np.clip(last, 0.0, 1.0))
    return OccurrenceModel(
        variant=variant,
        indicator=indicator,
        fitted=probabilities,
        forecast=np.full(horizon, last),
        n_parameters=variant.n_parameters,
        loglikelihood=bernoulli_loglikelihood(probabilities, indicator, floor),
        parameters={"alpha": alpha, "initial": initial},
    )


def select_variant(costs: Sequence[float], criteria: Sequence[float]) -> int:
    """
    Index of the winning occurrence variant.

    NaN costs and criteria count as 1e100. When a cost is exactly zero and all
    intermittent variants reach zero cost, the first variant (``none``) is
    excluded. Ties go to the earliest variant.
    """
    costs = np.asarray(costs, dtype=float)
    values = np.asarray(criteria, dtype=float).copy()
    costs = np.where(np.isnan(costs), 1e100, costs)
    values = np.where(np.isnan(values), 1e100, values)
    if np.any(costs == 0) and costs.shape[0] > 1 and np.all(costs[1:] == 0):
        values[0] = np.inf
    return int(np.argmin(values))


@dataclass
class OccurrenceTrial:
    """
    Estimation of the magnitude model under one occurrence variant.

    Attributes:
        occurrence: The occurrence submodel
        cost: Achieved cost of the magnitude model
        criteria: Information criteria of the combined model
        payload: Whatever the estimation routine needs to keep for the winner
    """
    occurrence: OccurrenceModel
    cost: float
    criteria: InformationCriteria
    payload: Any = None


class IntermittencySelector:
    """
    Try every occurrence variant and keep the best by information criterion.

    Args:
        criterion: Information criterion used for selection
        variants: Variants in trial order
    """

    def __init__(self,
                 criterion: InformationCriterion = InformationCriterion.AICC,
                 variants: Sequence[OccurrenceType] = OCCURRENCE_TRIAL_ORDER) -> None:
        self.criterion = InformationCriterion.from_string(criterion)
        self.variants = tuple(OccurrenceType.from_string(v) for v in variants)

    def select(self,
               evaluate: Callable[[OccurrenceType], OccurrenceTrial],
               occurring: Optional[np.ndarray] = None) -> Tuple[OccurrenceTrial, List[OccurrenceTrial]]:
        """
        Run every variant and return the winner with all trials.

        If ``occurring`` shows no zero observations only ``none`` is evaluated.

        Args:
            evaluate: Estimates the magnitude model under a variant
            occurring: Occurrence indicator of the series

        Returns:
            Tuple[OccurrenceTrial, List[OccurrenceTrial]]: Winner and all trials
        """
        variants = self.variants
        if occurring is not None and np.all(np.asarray(occurring) != 0):
            variants = (OccurrenceType.NONE,)

        trials = []
        for variant in variants:
            trial = evaluate(variant)
            logger.debug(f"Occurrence variant {variant.value}: cost={trial.cost:.6g}, "
                         f"{self.criterion.value}={trial.criteria.get(self.criterion):.6g}")
            trials.append(trial)

        index = select_variant([t.cost for t in trials],
                               [t.criteria.get(self.criterion) for t in trials])
        logger.info(f"Selected occurrence variant: {trials[index].occurrence.variant.value}")
        return trials[index], trials
