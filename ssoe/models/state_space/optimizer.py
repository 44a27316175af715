"""
Two-phase bounded derivative-free minimization.

The estimation engine only relies on the :class:`BoundedMinimizer` protocol: an
objective, a starting point, box bounds, an evaluation budget and a relative
tolerance go in; a point and its objective value come out. The default policy,
:class:`TwoPhaseOptimizer`, runs a direction-set search (Powell) followed by a
simplex refinement (Nelder-Mead) started from the first phase's solution, with
a fifth of the budget and a hundredth of the tolerance, and keeps the second
phase only if it did not make the objective worse.

Both phases are deterministic, so repeated estimation on the same input gives
identical results.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Optional, Protocol

import numpy as np
from scipy import optimize

from ...core.exceptions import warn_convergence

logger = logging.getLogger("ssoe.models.state_space.optimizer")


@dataclass
class MinimizerResult:
    """
    Outcome of one bounded minimization.

    Attributes:
        x: Best point found
        fun: Objective value at ``x``
        nfev: Number of objective evaluations
        success: Whether the minimizer reported convergence
        message: Message from the minimizer
    """
    x: np.ndarray
    fun: float
    nfev: int = 0
    success: bool = True
    message: str = ""


class BoundedMinimizer(Protocol):
    """Interface of a bounded minimizer usable by :class:`TwoPhaseOptimizer`."""

    def minimize(self,
                 objective: Callable[[np.ndarray], float],
                 x0: np.ndarray,
                 lower: np.ndarray,
                 upper: np.ndarray,
                 maxeval: int,
                 xtol_rel: float) -> MinimizerResult:
        """Minimize ``objective`` inside ``[lower, upper]`` starting from ``x0``."""
        ...


def _scipy_bounds(lower: np.ndarray, upper: np.ndarray) -> Optional[optimize.Bounds]:
    if np.all(np.isneginf(lower)) and np.all(np.isposinf(upper)):
        return None
    return optimize.Bounds(lower, upper)


class PowellMinimizer:
    """Direction-set pattern search (``scipy.optimize`` Powell) with box bounds."""

    name = "Powell"

    def minimize(self, objective, x0, lower, upper, maxeval, xtol_rel) -> MinimizerResult:
        result = optimize.minimize(
            objective,
            x0,
            method="Powell",
            bounds=_scipy_bounds(lower, upper),
            options={"maxfev": int(maxeval), "xtol": xtol_rel, "ftol": xtol_rel},
        )
        return MinimizerResult(x=np.atleast_1d(result.x), fun=float(result.fun),
                               nfev=int(result.nfev), success=bool(result.success),
                               message=str(result.message))


class NelderMeadMinimizer:
    """Simplex refinement (``scipy.optimize`` Nelder-Mead) with box bounds."""

    name = "Nelder-Mead"

    def minimize(self, objective, x0, lower, upper, maxeval, xtol_rel) -> MinimizerResult:
        result = optimize.minimize(
            objective,
            x0,
            method="Nelder-Mead",
            bounds=_scipy_bounds(lower, upper),
            options={"maxfev": int(maxeval), "xatol": xtol_rel, "fatol": xtol_rel},
        )
        return MinimizerResult(x=np.atleast_1d(result.x), fun=float(result.fun),
                               nfev=int(result.nfev), success=bool(result.success),
                               message=str(result.message))


class _TrackedObjective:
    """Objective wrapper remembering the best point evaluated."""

    def __init__(self, objective: Callable[[np.ndarray], float]) -> None:
        self.objective = objective
        self.best_x: Optional[np.ndarray] = None
        self.best_fun = np.inf
        self.calls = 0

    def __call__(self, x: np.ndarray) -> float:
        value = float(self.objective(x))
        self.calls += 1
        if value < self.best_fun:
            self.best_fun = value
            self.best_x = np.array(x, dtype=float, copy=True)
        return value


@dataclass
class OptimizationOutcome:
    """
    Result of the two-phase policy.

    Attributes:
        x: Accepted solution
        fun: Objective value at the solution
        nfev: Evaluations over both phases
        phase: Name of the phase whose solution was accepted
    """
    x: np.ndarray
    fun: float
    nfev: int
    phase: str


class TwoPhaseOptimizer:
    """
    Pattern search followed by simplex refinement.

    Args:
        first: Minimizer of the first phase, Powell by default
        second: Minimizer of the second phase, Nelder-Mead by default
        maxeval: Evaluation budget of the first phase; the second gets a fifth
        xtol_rel: Tolerance of the first phase; the second uses a hundredth
        sentinel: Objective value marking a degenerate point
    """

    def __init__(self,
                 first: Optional[BoundedMinimizer] = None,
                 second: Optional[BoundedMinimizer] = None,
                 maxeval: int = 5000,
                 xtol_rel: float = 1e-8,
                 sentinel: float = 1e100) -> None:
        self.first = first if first is not None else PowellMinimizer()
        self.second = second if second is not None else NelderMeadMinimizer()
        self.maxeval = int(maxeval)
        self.xtol_rel = float(xtol_rel)
        self.sentinel = sentinel

    def run(self,
            objective: Callable[[np.ndarray], float],
            x0: np.ndarray,
            lower: np.ndarray,
            upper: np.ndarray) -> OptimizationOutcome:
        """
        Minimize ``objective`` over the box ``[lower, upper]``.

        With an empty starting vector the objective is evaluated once and no
        minimizer is called.
        """
        x0 = np.asarray(x0, dtype=float)
        if x0.size == 0:
            return OptimizationOutcome(x=x0, fun=float(objective(x0)), nfev=1, phase="none")

        tracked = _TrackedObjective(objective)
        x0 = np.clip(x0, lower, upper)

        phase1 = self.first.minimize(tracked, x0, lower, upper, self.maxeval, self.xtol_rel)
        logger.debug(f"Phase 1 finished: objective={phase1.fun:.6g}, nfev={phase1.nfev}")

        phase2 = self.second.minimize(tracked, np.clip(phase1.x, lower, upper), lower, upper,
                                      max(1, self.maxeval // 5), self.xtol_rel / 100)
        logger.debug(f"Phase 2 finished: objective={phase2.fun:.6g}, nfev={phase2.nfev}")

        if phase2.fun <= phase1.fun:
            accepted, phase = phase2, "second"
        else:
            accepted, phase = phase1, "first"
        x, fun = np.asarray(accepted.x, dtype=float), float(accepted.fun)

        # Minimizers may report a point other than the best one they evaluated.
        if tracked.best_x is not None and tracked.best_fun < fun:
            x, fun = tracked.best_x, tracked.best_fun

        if fun >= self.sentinel:
            warn_convergence(
                "Every evaluated parameter point was degenerate",
                iterations=tracked.calls,
                tolerance=self.xtol_rel,
                details="The objective never fell below the sentinel value"
            )

        return OptimizationOutcome(x=x, fun=fun, nfev=tracked.calls, phase=phase)
