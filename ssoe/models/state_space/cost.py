"""
Cost function of the estimation engine.

:class:`CostFunction` decodes a parameter vector, runs the state recursion and
reduces the in-sample errors to a scalar loss. Any non-finite loss is replaced
by a fixed sentinel so the optimizer sees a very poor point instead of an
exception. Under admissible bounds, points whose discount matrix has a spectral
radius above ``1 + tolerance`` are rejected before the recursion runs, with a
penalty that grows with the radius.
"""

import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np

from ...core.types import BoundsType, CostType, InitialType
from ...utils.matrix_ops import discount_matrix, spectral_radius
from ._numba_core import backcast_recursion, fit_recursion, masked_mean, multistep_errors
from .bounds import BoundsAssembler, DecodedParameters
from .structure import EstimationContext

logger = logging.getLogger("ssoe.models.state_space.cost")

SENTINEL = 1e100


@dataclass
class RecursionOutput:
    """
    Output of one pass of the state recursion.

    Attributes:
        fitted: In-sample fitted values (working scale)
        errors: One-step errors multiplied by the occurrence indicator
        states: Full state matrix including the initial window
        xstates: Exogenous coefficient states
        error_matrix: Multi-step errors (n, h); column 0 is ``y - fitted``
        initial_window: Initial window actually used (after backcasting)
    """
    fitted: np.ndarray
    errors: np.ndarray
    states: np.ndarray
    xstates: np.ndarray
    error_matrix: np.ndarray
    initial_window: np.ndarray


def run_recursion(context: EstimationContext,
                  params: DecodedParameters,
                  horizon: int = 1) -> RecursionOutput:
    """
    Run the state recursion over the sample of an estimation context.

    Args:
        context: Estimation context
        params: Decoded model matrices
        horizon: Number of columns of the multi-step error matrix

    Returns:
        RecursionOutput: Fitted values, errors and states
    """
    spec = context.spec
    n = context.n_obs
    maxlag = spec.maxlag
    lags = spec.component_lags

    states = np.zeros((n + maxlag, spec.n_components))
    states[:maxlag, :] = params.initial_window
    xstates = np.zeros((n + maxlag, context.n_exogenous))
    xstates[:maxlag, :] = params.initial_x

    if context.initial_type is InitialType.BACKCASTING:
        fitted, errors = backcast_recursion(
            states, params.measurement, params.transition, params.persistence,
            context.y, context.occurrence, lags, context.xreg, xstates,
            params.transition_x, params.persistence_x, context.backcast_loops)
    else:
        fitted, errors = fit_recursion(
            states, params.measurement, params.transition, params.persistence,
            context.y, context.occurrence, lags, context.xreg, xstates,
            params.transition_x, params.persistence_x)

    if horizon > 1:
        error_matrix = multistep_errors(
            states, params.measurement, params.transition, context.y, fitted,
            lags, horizon, context.xreg, xstates, params.transition_x)
    else:
        error_matrix = (context.y - fitted)[:, np.newaxis]

    return RecursionOutput(
        fitted=fitted,
        errors=errors,
        states=states,
        xstates=xstates,
        error_matrix=error_matrix,
        initial_window=states[:maxlag, :].copy(),
    )


def _step_mask(occurring: np.ndarray, step: int) -> np.ndarray:
    """Mask of rows whose ``step``-ahead target is an occurring observation."""
    n = occurring.shape[0]
    mask = np.zeros(n, dtype=np.bool_)
    if step < n:
        mask[:n - step] = occurring[step:]
    return mask


def reduce_errors(cost_type: CostType,
                  errors: np.ndarray,
                  error_matrix: np.ndarray,
                  occurring: np.ndarray) -> float:
    """
    Reduce in-sample errors to a scalar loss.

    Means are taken over occurring observations. Multi-step losses read the
    columns of ``error_matrix``, using only origins whose target lies inside
    the sample.
    """
    if cost_type is CostType.MSE:
        return masked_mean(errors ** 2, occurring)
    if cost_type is CostType.MAE:
        return masked_mean(np.abs(errors), occurring)
    if cost_type is CostType.HAM:
        return masked_mean(np.sqrt(np.abs(errors)), occurring)

    horizon = error_matrix.shape[1]
    if cost_type is CostType.MSEH:
        step = horizon - 1
        return masked_mean(error_matrix[:, step] ** 2, _step_mask(occurring, step))

    column_means = np.array([
        masked_mean(error_matrix[:, step] ** 2, _step_mask(occurring, step))
        for step in range(horizon)
    ])
    if cost_type is CostType.TMSE:
        return float(np.sum(column_means))
    if cost_type is CostType.GTMSE:
        return float(np.sum(np.log(column_means)))

    # MSCE: squared sum of the gated errors over origins with a full horizon
    complete = error_matrix.shape[0] - horizon + 1
    if complete < 1:
        return np.nan
    gated = np.zeros((complete, horizon))
    for step in range(horizon):
        mask = _step_mask(occurring, step)[:complete]
        gated[:, step] = np.where(mask, error_matrix[:complete, step], 0.0)
    return float(np.mean(np.sum(gated, axis=1) ** 2))


class CostFunction:
    """
    Objective minimized during estimation.

    Calling the instance with a parameter vector returns the loss of the
    context's cost type, the sentinel for non-finite losses, or a radius-scaled
    sentinel for inadmissible points under admissible bounds.

    Attributes:
        context: Estimation context
        assembler: Bounds assembler used for decoding
        n_evaluations: Number of calls made so far
    """

    def __init__(self,
                 context: EstimationContext,
                 assembler: Optional[BoundsAssembler] = None) -> None:
        self.context = context
        self.assembler = assembler or BoundsAssembler(context)
        self.n_evaluations = 0

    @property
    def sentinel(self) -> float:
        return self.context.sentinel

    def admissibility_penalty(self, params: DecodedParameters) -> Optional[float]:
        """Penalty for an inadmissible point, or None if the point is admissible."""
        radius = spectral_radius(discount_matrix(params.measurement, params.transition,
                                                 params.persistence))
        if radius <= 1.0 + self.context.stability_tolerance:
            return None
        penalty = self.sentinel * radius
        return penalty if np.isfinite(penalty) else self.sentinel

    def evaluate(self, params: DecodedParameters) -> float:
        """Loss of already decoded parameters."""
        self.n_evaluations += 1
        if self.context.spec.bounds is BoundsType.ADMISSIBLE:
            penalty = self.admissibility_penalty(params)
            if penalty is not None:
                return penalty

        with np.errstate(all='ignore'):
            output = run_recursion(self.context, params, self.context.loss_horizon)
            value = reduce_errors(self.context.cost_type, output.errors,
                                  output.error_matrix, self.context.occurring)

        if not np.isfinite(value):
            return self.sentinel
        return float(value)

    def __call__(self, vector: np.ndarray) -> float:
        return self.evaluate(self.assembler.decode(vector))
