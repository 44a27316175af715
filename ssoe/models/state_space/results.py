"""
Result records of fitted state space models.
"""

import logging
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Optional

import numpy as np
import pandas as pd

from ...core.types import CostType, InformationCriterion
from .information import InformationCriteria
from .occurrence import OccurrenceModel

logger = logging.getLogger("ssoe.models.state_space.results")


@dataclass
class ParameterCount:
    """
    Number of estimated and provided values, by group.

    The variance is always estimated and counts as one parameter.
    """
    states_estimated: int = 0
    states_provided: int = 0
    exogenous_estimated: int = 0
    exogenous_provided: int = 0
    occurrence_estimated: int = 0
    variance_estimated: int = 1

    @property
    def estimated(self) -> int:
        """Parameter count used by the information criteria."""
        return (self.states_estimated + self.exogenous_estimated
                + self.occurrence_estimated + self.variance_estimated)

    @property
    def provided(self) -> int:
        return self.states_provided + self.exogenous_provided

    def to_frame(self) -> pd.DataFrame:
        """Table of estimated and provided counts per group."""
        return pd.DataFrame(
            {
                "Estimated": [self.states_estimated, self.exogenous_estimated,
                              self.occurrence_estimated, self.variance_estimated, self.estimated],
                "Provided": [self.states_provided, self.exogenous_provided, 0, 0, self.provided],
            },
            index=["States", "Exogenous", "Occurrence", "Variance", "All"],
        )


@dataclass
class ExogenousResult:
    """
    Exogenous part of a fitted model.

    Attributes:
        names: Regressor names
        initial: Initial coefficients
        transition: Coefficient transition matrix
        persistence: Coefficient persistence vector
        coefficients: Coefficient path (n + maxlag, m)
        updated: Whether the coefficients were updated over time
    """
    names: list
    initial: np.ndarray
    transition: np.ndarray
    persistence: np.ndarray
    coefficients: np.ndarray
    updated: bool = False


@dataclass
class GUMResult:
    """
    Fitted general univariate model.

    Attributes:
        model: Model name, e.g. ``GUM(1[1],1[12])``
        orders: Orders of the components
        lags: Lags of the components
        error_type: "A" or "M"
        states: State matrix including the initial window
        measurement: Measurement vector
        transition: Transition matrix
        persistence: Persistence vector
        initial_window: Initial state window (maxlag, k)
        initial_type: How the initial window was obtained
        fitted: In-sample fitted values
        forecast: Point forecasts
        lower: Lower interval bounds, None without intervals
        upper: Upper interval bounds, None without intervals
        residuals: One-step in-sample errors (working scale)
        errors: Multi-step in-sample error matrix (n, h)
        s2: Error variance
        n_param: Parameter counts
        criteria: Information criteria
        loglikelihood: Log-likelihood
        cost: Final value of the cost function
        cost_type: Cost function used
        criterion: Criterion used for selection
        occurrence: Occurrence submodel
        y: In-sample series
        holdout: Withheld observations, None without holdout
        accuracy: Holdout accuracy measures, None without holdout
        exogenous: Exogenous part, None without regressors
        level: Interval coverage
        intervals: Interval type
        cumulative: Whether the forecast is cumulative
        fisher_information: Observed Fisher information, if requested
        fallback: Whether the model was replaced by the degenerate-sample fallback
        elapsed: Estimation time in seconds
    """
    model: str
    orders: tuple
    lags: tuple
    error_type: str
    states: np.ndarray
    measurement: np.ndarray
    transition: np.ndarray
    persistence: np.ndarray
    initial_window: np.ndarray
    initial_type: str
    fitted: np.ndarray
    forecast: np.ndarray
    lower: Optional[np.ndarray]
    upper: Optional[np.ndarray]
    residuals: np.ndarray
    errors: np.ndarray
    s2: float
    n_param: ParameterCount
    criteria: InformationCriteria
    loglikelihood: float
    cost: float
    cost_type: CostType
    criterion: InformationCriterion
    occurrence: OccurrenceModel
    y: np.ndarray
    holdout: Optional[np.ndarray] = None
    accuracy: Optional[pd.Series] = None
    exogenous: Optional[ExogenousResult] = None
    level: float = 0.95
    intervals: str = "none"
    cumulative: bool = False
    fisher_information: Optional[np.ndarray] = None
    fallback: bool = False
    elapsed: float = 0.0
    trials: Dict[str, float] = field(default_factory=dict)

    @property
    def ic(self) -> float:
        """Value of the selection criterion."""
        return self.criteria.get(self.criterion)

    def forecast_frame(self) -> pd.DataFrame:
        """Forecasts and interval bounds as a DataFrame indexed by horizon."""
        frame = pd.DataFrame({"forecast": self.forecast},
                             index=pd.RangeIndex(1, len(self.forecast) + 1, name="h"))
        if self.lower is not None:
            frame["lower"] = self.lower
            frame["upper"] = self.upper
        return frame

    def summary(self) -> str:
        """Text summary of the fitted model."""
        lines = [
            f"Model estimated: {self.model}",
            f"Persistence vector g: {np.round(self.persistence, 4)}",
            f"Cost function type: {self.cost_type.value}; Cost function value: {self.cost:.6g}",
            f"Residual variance: {self.s2:.6g}",
            f"Number of estimated parameters: {self.n_param.estimated}",
            str(self.criteria),
        ]
        if self.occurrence.is_intermittent:
            lines.append(f"Intermittent model type: {self.occurrence.variant.value}")
        if self.fallback:
            lines.append("Fallback model used: sample too small for the requested model")
        if self.accuracy is not None:
            lines.append("Holdout accuracy:\n" + self.accuracy.round(4).to_string())
        return "\n".join(lines)

    def __str__(self) -> str:
        return self.summary()

    def to_dict(self) -> Dict[str, Any]:
        """Convert the result to a dictionary."""
        result = asdict(self)
        if self.accuracy is not None:
            result["accuracy"] = self.accuracy.to_dict()
        return result
