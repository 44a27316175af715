"""
Model structure and the per-run estimation context.

:class:`ModelSpec` describes the component layout of a model (orders and lags)
together with its error type and bounds regime. :class:`EstimationContext`
bundles everything one estimation run needs: the working series, the
occurrence weights, the parameter layout and the provided blocks. The context
is created once per run and passed explicitly to the bounds assembler, the cost
function and the optimizer; nothing is shared between runs.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional, Sequence, Tuple, Union

import numpy as np

from ...core.exceptions import ModelSpecificationError
from ...core.types import BoundsType, CostType, ErrorType, InitialType
from ...core.validation import validate_positive_integers

logger = logging.getLogger("ssoe.models.state_space.structure")


@dataclass(frozen=True)
class ModelSpec:
    """
    Component layout of a general univariate state space model.

    ``orders[i]`` components share the lag ``lags[i]``. Lags are kept sorted in
    ascending order with orders permuted consistently.

    Attributes:
        orders: Number of components per lag
        lags: Lag of each group of components
        error_type: Additive or multiplicative error
        bounds: Bounds regime used during estimation
    """
    orders: Tuple[int, ...]
    lags: Tuple[int, ...]
    error_type: ErrorType = ErrorType.ADDITIVE
    bounds: BoundsType = BoundsType.RESTRICTED

    @classmethod
    def create(cls,
               orders: Union[int, Sequence[int]],
               lags: Union[int, Sequence[int]],
               error_type: Union[str, ErrorType] = ErrorType.ADDITIVE,
               bounds: Union[str, BoundsType] = BoundsType.RESTRICTED) -> 'ModelSpec':
        """Validate and normalize orders and lags.

        Raises:
            ParameterError: If orders or lags are not positive integers
            ModelSpecificationError: If orders and lags differ in length
        """
        orders_array = validate_positive_integers(orders, "orders")
        lags_array = validate_positive_integers(lags, "lags")
        if orders_array.shape[0] != lags_array.shape[0]:
            raise ModelSpecificationError(
                "orders and lags must have the same length",
                model_type="GUM",
                parameter="orders",
                value=list(orders_array),
                details=f"{orders_array.shape[0]} orders for {lags_array.shape[0]} lags"
            )

        permutation = np.argsort(lags_array, kind="stable")
        return cls(
            orders=tuple(int(o) for o in orders_array[permutation]),
            lags=tuple(int(lag) for lag in lags_array[permutation]),
            error_type=ErrorType.from_string(error_type),
            bounds=BoundsType.from_string(bounds),
        )

    @property
    def component_lags(self) -> np.ndarray:
        """Lag of every individual component."""
        return np.repeat(np.asarray(self.lags, dtype=np.int64),
                         np.asarray(self.orders, dtype=np.int64))

    @property
    def n_components(self) -> int:
        return int(sum(self.orders))

    @property
    def maxlag(self) -> int:
        return int(max(self.lags))

    @property
    def n_initial(self) -> int:
        """Number of initial state values, ``orders . lags``."""
        return int(np.dot(self.orders, self.lags))

    @property
    def is_multiplicative(self) -> bool:
        return self.error_type is ErrorType.MULTIPLICATIVE

    def describe(self) -> str:
        """Short description such as ``1[1],1[12]``."""
        return ",".join(f"{o}[{lag}]" for o, lag in zip(self.orders, self.lags))


@dataclass
class ProvidedBlocks:
    """
    Parameter blocks fixed by the user or by a previous fit.

    Any block left as None is estimated.
    """
    measurement: Optional[np.ndarray] = None
    transition: Optional[np.ndarray] = None
    persistence: Optional[np.ndarray] = None
    initial_window: Optional[np.ndarray] = None
    initial_x: Optional[np.ndarray] = None
    transition_x: Optional[np.ndarray] = None
    persistence_x: Optional[np.ndarray] = None


@dataclass
class EstimationContext:
    """
    Everything a single estimation run needs.

    Attributes:
        spec: Model structure
        y: Working series, in log space on occurring periods for multiplicative models
        occurrence: Occurrence indicator multiplying the errors (1 observed, 0 not)
        cost_type: Loss minimized during estimation
        horizon: Horizon of multi-step losses
        initial_type: Source of the initial window
        provided: Fixed parameter blocks
        xreg: In-sample exogenous regressors (n, m), m may be zero
        update_x: Whether exogenous coefficients evolve over time
        frequency: Seasonal frequency of the series
        sentinel: Cost returned for non-finite or inadmissible points
        stability_tolerance: Allowed excess of the spectral radius over one
        backcast_loops: Forward/backward passes used by backcasting
        seed_window: Initial window built from the series, used as starting
            values and under backcasting
        seed_x: Initial exogenous coefficients from least squares
        persistence_bounds: Box for persistence values, unbounded when None
    """
    spec: ModelSpec
    y: np.ndarray
    occurrence: np.ndarray
    cost_type: CostType = CostType.MSE
    horizon: int = 1
    initial_type: InitialType = InitialType.OPTIMAL
    provided: ProvidedBlocks = field(default_factory=ProvidedBlocks)
    xreg: Optional[np.ndarray] = None
    update_x: bool = False
    frequency: int = 1
    sentinel: float = 1e100
    stability_tolerance: float = 1e-10
    backcast_loops: int = 2
    seed_window: Optional[np.ndarray] = None
    seed_x: Optional[np.ndarray] = None
    persistence_bounds: Optional[Tuple[float, float]] = None

    def __post_init__(self) -> None:
        self.y = np.ascontiguousarray(self.y, dtype=np.float64)
        self.occurrence = np.ascontiguousarray(self.occurrence, dtype=np.float64)
        if self.xreg is None:
            self.xreg = np.zeros((self.y.shape[0], 0))
        self.xreg = np.ascontiguousarray(self.xreg, dtype=np.float64)

    @property
    def n_obs(self) -> int:
        return int(self.y.shape[0])

    @property
    def n_occurring(self) -> int:
        """Number of observations with non-zero occurrence weight."""
        return int(np.count_nonzero(self.occurrence))

    @property
    def n_exogenous(self) -> int:
        return int(self.xreg.shape[1])

    @property
    def occurring(self) -> np.ndarray:
        return self.occurrence != 0

    @property
    def loss_horizon(self) -> int:
        """Horizon needed by the cost function, one for one-step losses."""
        return self.horizon if self.cost_type.is_multistep else 1
