"""
Log-likelihood and information criteria.

The log-likelihood is obtained in closed form from the achieved cost under the
Gaussian assumption, with a term per cost type; occurrence models add their
Bernoulli log-likelihood and multiplicative models the Jacobian of the log
transform. Information criteria then follow the usual definitions, with the
small-sample corrected variants guarded against a non-positive denominator.
"""

import logging
from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional

import numpy as np

from ...core.exceptions import warn_numeric
from ...core.types import CostType, InformationCriterion

logger = logging.getLogger("ssoe.models.state_space.information")

_LOG_2PI_E = np.log(2 * np.pi * np.e)


def gaussian_loglikelihood(cost: float, cost_type: CostType, nobs: int, horizon: int = 1) -> float:
    """
    Log-likelihood implied by a cost value.

    Args:
        cost: Achieved value of the cost function
        cost_type: Cost function that produced it
        nobs: Number of occurring observations
        horizon: Horizon of multi-step costs

    Returns:
        float: Log-likelihood of the magnitude model
    """
    n = float(nobs)
    with np.errstate(divide='ignore', invalid='ignore'):
        if cost_type in (CostType.MSE, CostType.MSEH, CostType.MSCE):
            return -n / 2 * (_LOG_2PI_E + np.log(cost))
        if cost_type is CostType.MAE:
            return -n * (np.log(2 * np.e) + np.log(cost))
        if cost_type is CostType.HAM:
            return -2 * n * (1 + np.log(cost))
        if cost_type is CostType.TMSE:
            return -n * horizon / 2 * (_LOG_2PI_E + np.log(cost / horizon))
        # GTMSE already holds the sum of log variances
        return -n / 2 * (horizon * _LOG_2PI_E + cost)


def check_parameter_budget(nobs: int, nparams: int) -> bool:
    """Whether the corrected criteria are defined, i.e. ``nobs - nparams - 1 > 0``."""
    return nobs - nparams - 1 > 0


@dataclass
class InformationCriteria:
    """
    Information criteria of a fitted model.

    Attributes:
        aic: Akaike Information Criterion
        aicc: Corrected AIC
        bic: Bayesian Information Criterion
        bicc: Corrected BIC
        loglikelihood: Log-likelihood value
        nobs: Number of observations
        nparams: Number of parameters, including the variance
        model_name: Name of the model (optional)
    """
    aic: float
    aicc: float
    bic: float
    bicc: float
    loglikelihood: float
    nobs: int
    nparams: int
    model_name: Optional[str] = None

    def get(self, criterion: InformationCriterion) -> float:
        """Value of one criterion."""
        criterion = InformationCriterion.from_string(criterion)
        return {
            InformationCriterion.AIC: self.aic,
            InformationCriterion.AICC: self.aicc,
            InformationCriterion.BIC: self.bic,
            InformationCriterion.BICC: self.bicc,
        }[criterion]

    def __str__(self) -> str:
        model_str = f"Model: {self.model_name}\n" if self.model_name else ""
        return (
            f"{model_str}"
            f"Information Criteria (nobs={self.nobs}, nparams={self.nparams}):\n"
            f"  AIC:  {self.aic:.6f}\n"
            f"  AICc: {self.aicc:.6f}\n"
            f"  BIC:  {self.bic:.6f}\n"
            f"  BICc: {self.bicc:.6f}\n"
            f"  Log-likelihood: {self.loglikelihood:.6f}"
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def information_criteria(loglikelihood: float,
                         nobs: int,
                         nparams: int,
                         model_name: Optional[str] = None) -> InformationCriteria:
    """
    Calculate AIC, AICc, BIC and BICc.

    The corrected criteria are ``+inf`` with a warning when
    ``nobs - nparams - 1`` is not positive.

    Args:
        loglikelihood: Log-likelihood of the model
        nobs: Number of observations
        nparams: Number of parameters
        model_name: Name of the model (optional)

    Returns:
        InformationCriteria: The criteria values

    Examples:
        >>> ic = information_criteria(-100.0, 100, 5)
        >>> ic.aic
        210.0
    """
    k = float(nparams)
    n = float(nobs)
    aic = 2 * k - 2 * loglikelihood
    bic = k * np.log(n) - 2 * loglikelihood

    if check_parameter_budget(nobs, nparams):
        aicc = aic + 2 * k * (k + 1) / (n - k - 1)
        bicc = k * np.log(n) * n / (n - k - 1) - 2 * loglikelihood
    else:
        warn_numeric(
            "Too few observations for the corrected information criteria",
            operation="information_criteria",
            issue=f"nobs - nparams - 1 = {nobs - nparams - 1}",
            details="AICc and BICc are reported as infinite"
        )
        aicc = np.inf
        bicc = np.inf

    return InformationCriteria(
        aic=float(aic),
        aicc=float(aicc),
        bic=float(bic),
        bicc=float(bicc),
        loglikelihood=float(loglikelihood),
        nobs=int(nobs),
        nparams=int(nparams),
        model_name=model_name,
    )
