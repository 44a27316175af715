"""
Point forecasts and prediction intervals.

The point forecast continues the fitted recursion without error feedback.
Interval bounds are quantiles of the forecast distribution built in the working
scale and transformed back for multiplicative models, so those are log-normal:

- parametric: normal quantiles with variance ``s2 * sum_{i<=j} c_i^2``, where
  ``c_i`` is the impulse response of the fitted model
- semiparametric: normal quantiles with the mean squared in-sample error of each
  horizon
- nonparametric: empirical quantiles of the in-sample errors of each horizon

Horizons without enough in-sample errors fall back to the parametric variance.
For intermittent models the point forecast is multiplied by the occurrence
probability and bounds are quantiles of the zero-inflated mixture.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Optional

import numpy as np
from scipy import stats

from ...core.exceptions import raise_parameter_error
from ...core.types import IntervalType
from ._numba_core import forecast_recursion, impulse_response
from .bounds import DecodedParameters
from .structure import ModelSpec

logger = logging.getLogger("ssoe.models.state_space.forecast")


@dataclass
class ForecastOutput:
    """
    Forecast of a fitted model.

    Attributes:
        mean: Point forecasts (one value in cumulative mode)
        lower: Lower interval bounds, None without intervals
        upper: Upper interval bounds, None without intervals
        level: Interval coverage
        intervals: Interval type
        cumulative: Whether the horizon was summed
    """
    mean: np.ndarray
    lower: Optional[np.ndarray]
    upper: Optional[np.ndarray]
    level: float
    intervals: IntervalType
    cumulative: bool


def mixture_quantile(q: float, probability: float,
                     magnitude_quantile: Callable[[float], float]) -> float:
    """
    Quantile ``q`` of a variable that is zero with probability ``1 - p``.

    Returns zero when ``q <= 1 - p``, otherwise the magnitude quantile at
    ``(q - (1 - p)) / p``.
    """
    if q <= 1.0 - probability:
        return 0.0
    return magnitude_quantile((q - (1.0 - probability)) / probability)


class Forecaster:
    """
    Extrapolate a fitted state space model.

    Args:
        spec: Model structure
        params: Fitted model matrices
        states: Final state matrix of the fit
        xstates: Final exogenous states of the fit
        s2: Error variance
        error_matrix: In-sample multi-step errors (n, h)
        occurring: Mask of occurring observations
    """

    def __init__(self,
                 spec: ModelSpec,
                 params: DecodedParameters,
                 states: np.ndarray,
                 xstates: np.ndarray,
                 s2: float,
                 error_matrix: np.ndarray,
                 occurring: np.ndarray) -> None:
        self.spec = spec
        self.params = params
        self.states = states
        self.xstates = xstates
        self.s2 = float(s2)
        self.error_matrix = error_matrix
        self.occurring = np.asarray(occurring, dtype=bool)

    def point(self, horizon: int, xreg_future: Optional[np.ndarray] = None) -> np.ndarray:
        """Point forecasts in the working (log for multiplicative) scale."""
        m = self.xstates.shape[1]
        if xreg_future is None:
            xreg_future = np.zeros((horizon, m))
        window = np.ascontiguousarray(self.states[-self.spec.maxlag:, :])
        return forecast_recursion(window, self.params.measurement, self.params.transition,
                                  self.spec.component_lags, horizon,
                                  np.ascontiguousarray(xreg_future, dtype=float),
                                  np.ascontiguousarray(self.xstates[-1, :]),
                                  self.params.transition_x)

    def response(self, horizon: int) -> np.ndarray:
        """Impulse response coefficients ``c_0 .. c_{h-1}``, with ``c_0 = 1``."""
        return impulse_response(self.params.measurement, self.params.transition,
                                self.params.persistence, self.spec.component_lags, horizon)

    def parametric_variance(self, horizon: int, cumulative: bool = False) -> np.ndarray:
        """Forecast error variance per horizon, or of the cumulative sum."""
        c = self.response(horizon)
        if cumulative:
            return np.array([self.s2 * np.sum(np.cumsum(c) ** 2)])
        return self.s2 * np.cumsum(c ** 2)

    def step_errors(self, step: int) -> np.ndarray:
        """Finite in-sample errors of ``step + 1``-ahead forecasts of occurring observations."""
        n = self.error_matrix.shape[0]
        if step >= self.error_matrix.shape[1] or step >= n:
            return np.zeros(0)
        column = self.error_matrix[:n - step, step][self.occurring[step:]]
        return column[np.isfinite(column)]

    def cumulative_errors(self, horizon: int) -> np.ndarray:
        """
        In-sample errors of the sum over ``horizon`` steps, complete origins only.

        Entries whose target is a non-occurring observation count as zero, as
        in the MSCE loss.
        """
        n = self.error_matrix.shape[0]
        if horizon > self.error_matrix.shape[1] or horizon > n:
            return np.zeros(0)
        complete = n - horizon + 1
        block = np.zeros((complete, horizon))
        for step in range(horizon):
            block[:, step] = np.where(self.occurring[step:step + complete],
                                      self.error_matrix[:complete, step], 0.0)
        sums = np.sum(block, axis=1)
        return sums[np.isfinite(sums)]

    @staticmethod
    def _quantile(centre: float, q: float, intervals: IntervalType,
                  variance: float, errors: np.ndarray) -> float:
        if q <= 0.0:
            return -np.inf
        if q >= 1.0:
            return np.inf
        if intervals is IntervalType.PARAMETRIC or errors.shape[0] < 2:
            return centre + stats.norm.ppf(q) * np.sqrt(variance)
        if intervals is IntervalType.SEMIPARAMETRIC:
            return centre + stats.norm.ppf(q) * np.sqrt(np.mean(errors ** 2))
        return centre + float(np.quantile(errors, q))

    def forecast(self,
                 horizon: int,
                 intervals: IntervalType = IntervalType.PARAMETRIC,
                 level: float = 0.95,
                 cumulative: bool = False,
                 xreg_future: Optional[np.ndarray] = None,
                 probability: Optional[np.ndarray] = None) -> ForecastOutput:
        """
        Produce point forecasts and intervals.

        Args:
            horizon: Number of steps ahead, at least one
            intervals: Interval type
            level: Interval coverage in (0, 1)
            cumulative: Sum the horizon into a single value
            xreg_future: Exogenous regressors for the horizon
            probability: Occurrence probabilities for the horizon, ones if None

        Returns:
            ForecastOutput: Point forecasts and bounds

        Raises:
            ParameterError: If the horizon or the level is invalid
        """
        intervals = IntervalType.from_string(intervals)
        if horizon < 1:
            raise_parameter_error("Forecast horizon must be at least 1",
                                  param_name="h", param_value=horizon, constraint=">= 1")
        if not 0 < level < 1:
            raise_parameter_error("Interval level must lie in (0, 1)",
                                  param_name="level", param_value=level, constraint="0 < level < 1")

        probability = np.ones(horizon) if probability is None else np.asarray(probability, dtype=float)
        multiplicative = self.spec.is_multiplicative
        working = self.point(horizon, xreg_future)
        with np.errstate(over='ignore'):
            magnitude = np.exp(working) if multiplicative else working
        mean = magnitude * probability
        if cumulative:
            mean = np.array([np.sum(mean)])

        if intervals is IntervalType.NONE:
            return ForecastOutput(mean=mean, lower=None, upper=None, level=level,
                                  intervals=intervals, cumulative=cumulative)

        tails = ((1.0 - level) / 2.0, (1.0 + level) / 2.0)
        variance = self.parametric_variance(horizon)

        def magnitude_quantile(step: int, q: float) -> float:
            value = self._quantile(working[step], q, intervals, variance[step], self.step_errors(step))
            with np.errstate(over='ignore'):
                return float(np.exp(value)) if multiplicative else value

        if cumulative:
            if multiplicative:
                # Sum of the per-step log-normal bounds
                bounds = [sum(magnitude_quantile(j, q) for j in range(horizon)) for q in tails]
            else:
                total_variance = self.parametric_variance(horizon, cumulative=True)[0]
                errors = self.cumulative_errors(horizon)
                bounds = [self._quantile(float(np.sum(working)), q, intervals, total_variance, errors)
                          for q in tails]
            share = float(np.mean(probability))
            lower, upper = (np.array([b * share]) for b in bounds)
            return ForecastOutput(mean=mean, lower=lower, upper=upper, level=level,
                                  intervals=intervals, cumulative=cumulative)

        lower = np.empty(horizon)
        upper = np.empty(horizon)
        for j in range(horizon):
            if probability[j] < 1.0:
                lower[j] = mixture_quantile(tails[0], probability[j], lambda q: magnitude_quantile(j, q))
                upper[j] = mixture_quantile(tails[1], probability[j], lambda q: magnitude_quantile(j, q))
            else:
                lower[j] = magnitude_quantile(j, tails[0])
                upper[j] = magnitude_quantile(j, tails[1])

        return ForecastOutput(mean=mean, lower=lower, upper=upper, level=level,
                              intervals=intervals, cumulative=cumulative)
