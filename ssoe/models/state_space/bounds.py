"""
Parameter vector layout, starting values and box bounds.

The optimizer works on one flat vector made of the estimated blocks, always in
the order

    measurement (k), transition (k*k, column-major), persistence (k),
    initial states (orders . lags), initial exogenous coefficients (m),
    exogenous transition (m*m), exogenous persistence (m)

Blocks that are provided (by the user or by a :class:`PreviousFit`) are not part
of the vector. :class:`BoundsAssembler` builds the starting vector and its
bounds for a given :class:`EstimationContext`, and decodes any vector of the
same layout back into model matrices.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

import numpy as np

from ...core.exceptions import ParameterError
from ...core.types import BoundsType, ErrorType, InitialType, OccurrenceType
from ...utils.matrix_ops import matrix_to_vec, vec_to_matrix
from .structure import EstimationContext, ProvidedBlocks

logger = logging.getLogger("ssoe.models.state_space.bounds")

BLOCK_ORDER = ("measurement", "transition", "persistence", "initial",
               "initial_x", "transition_x", "persistence_x")


@dataclass(frozen=True)
class ParameterLayout:
    """
    Which blocks are estimated and how large each one is.

    Attributes:
        n_components: Number of state components k
        n_initial: Number of initial state values
        n_exogenous: Number of exogenous variables m
        estimated: Mapping of block name to its estimated flag
    """
    n_components: int
    n_initial: int
    n_exogenous: int
    estimated: Tuple[Tuple[str, bool], ...]

    @classmethod
    def from_context(cls, context: EstimationContext) -> 'ParameterLayout':
        provided = context.provided
        has_x = context.n_exogenous > 0
        flags = {
            "measurement": provided.measurement is None,
            "transition": provided.transition is None,
            "persistence": provided.persistence is None,
            "initial": (context.initial_type is InitialType.OPTIMAL
                        and provided.initial_window is None),
            "initial_x": has_x and provided.initial_x is None,
            "transition_x": has_x and context.update_x and provided.transition_x is None,
            "persistence_x": has_x and context.update_x and provided.persistence_x is None,
        }
        return cls(
            n_components=context.spec.n_components,
            n_initial=context.spec.n_initial,
            n_exogenous=context.n_exogenous,
            estimated=tuple((name, flags[name]) for name in BLOCK_ORDER),
        )

    def is_estimated(self, block: str) -> bool:
        return dict(self.estimated)[block]

    def block_size(self, block: str) -> int:
        k, m = self.n_components, self.n_exogenous
        return {
            "measurement": k,
            "transition": k * k,
            "persistence": k,
            "initial": self.n_initial,
            "initial_x": m,
            "transition_x": m * m,
            "persistence_x": m,
        }[block]

    @property
    def blocks(self) -> List[Tuple[str, int]]:
        """Estimated blocks and their sizes, in vector order."""
        return [(name, self.block_size(name)) for name, flag in self.estimated if flag]

    @property
    def size(self) -> int:
        return sum(size for _, size in self.blocks)

    @property
    def n_state_parameters(self) -> int:
        """Estimated values belonging to the state equations."""
        return sum(size for name, size in self.blocks if not name.endswith("_x"))

    @property
    def n_exogenous_parameters(self) -> int:
        return sum(size for name, size in self.blocks if name.endswith("_x"))

    def split(self, vector: np.ndarray) -> Dict[str, np.ndarray]:
        """
        Slice a parameter vector into its blocks.

        Raises:
            ParameterError: If the vector length differs from the layout size
        """
        vector = np.asarray(vector, dtype=float).ravel()
        if vector.shape[0] != self.size:
            raise ParameterError(
                f"Parameter vector has {vector.shape[0]} values, the model estimates {self.size}",
                param_name="parameters",
                param_value=vector.shape[0],
                constraint=f"length == {self.size}"
            )
        blocks = {}
        start = 0
        for name, size in self.blocks:
            blocks[name] = vector[start:start + size]
            start += size
        return blocks

    def join(self, blocks: Dict[str, np.ndarray]) -> np.ndarray:
        """Concatenate estimated blocks into a vector (inverse of :meth:`split`)."""
        parts = [np.asarray(blocks[name], dtype=float).ravel(order='F')
                 for name, _ in self.blocks]
        if not parts:
            return np.zeros(0)
        return np.concatenate(parts)


@dataclass
class DecodedParameters:
    """Model matrices decoded from a parameter vector and the provided blocks."""
    measurement: np.ndarray
    transition: np.ndarray
    persistence: np.ndarray
    initial_window: np.ndarray
    initial_x: np.ndarray
    transition_x: np.ndarray
    persistence_x: np.ndarray


@dataclass
class PreviousFit:
    """
    A previously estimated model reused as a fully provided model.

    Every block is fixed; only the error variance is estimated when a
    :class:`PreviousFit` is passed to a model.
    """
    orders: Tuple[int, ...]
    lags: Tuple[int, ...]
    error_type: ErrorType
    measurement: np.ndarray
    transition: np.ndarray
    persistence: np.ndarray
    initial_window: np.ndarray
    initial_x: Optional[np.ndarray] = None
    transition_x: Optional[np.ndarray] = None
    persistence_x: Optional[np.ndarray] = None
    occurrence: OccurrenceType = OccurrenceType.NONE

    @classmethod
    def from_result(cls, result: Any) -> 'PreviousFit':
        """Build from a fitted result record."""
        exogenous = result.exogenous
        return cls(
            orders=tuple(result.orders),
            lags=tuple(result.lags),
            error_type=ErrorType.from_string(result.error_type),
            measurement=np.array(result.measurement, dtype=float),
            transition=np.array(result.transition, dtype=float),
            persistence=np.array(result.persistence, dtype=float),
            initial_window=np.array(result.initial_window, dtype=float),
            initial_x=None if exogenous is None else np.array(exogenous.initial, dtype=float),
            transition_x=None if exogenous is None else np.array(exogenous.transition, dtype=float),
            persistence_x=None if exogenous is None else np.array(exogenous.persistence, dtype=float),
            occurrence=result.occurrence.variant,
        )

    def to_provided(self) -> ProvidedBlocks:
        return ProvidedBlocks(
            measurement=self.measurement,
            transition=self.transition,
            persistence=self.persistence,
            initial_window=self.initial_window,
            initial_x=self.initial_x,
            transition_x=self.transition_x,
            persistence_x=self.persistence_x,
        )


def initial_seed(y: np.ndarray, occurring: np.ndarray, frequency: int, n_values: int) -> np.ndarray:
    """
    Starting values for the initial states.

    A straight line is fitted to the first ``min(max(12, frequency), n)``
    occurring observations; its intercept and slope are the first two values and
    the remaining ones are the early occurring observations, padded with the
    last one when the sample is too short.

    Args:
        y: Working series
        occurring: Boolean mask of occurring observations
        frequency: Seasonal frequency
        n_values: Number of initial values required (``orders . lags``)

    Returns:
        np.ndarray: Seed values of length ``n_values``
    """
    observed = y[occurring]
    if observed.shape[0] == 0:
        observed = np.zeros(1)
    window = min(max(12, frequency), observed.shape[0])
    head = observed[:window]
    index = np.arange(1, window + 1, dtype=float)
    if window > 1:
        slope = np.cov(head, index)[0, 1] / np.var(index, ddof=1)
    else:
        slope = 0.0
    intercept = head.mean() - slope * (index.mean() - 1.0)

    values = [intercept]
    if n_values > 1:
        values.append(slope)
    if n_values > 2:
        tail = observed[:n_values - 2]
        if tail.shape[0] < n_values - 2:
            tail = np.concatenate([tail, np.repeat(observed[-1], n_values - 2 - tail.shape[0])])
        values.extend(tail)
    return np.asarray(values[:n_values], dtype=float)


def window_from_values(values: np.ndarray, component_lags: np.ndarray, maxlag: int) -> np.ndarray:
    """
    Place ``orders . lags`` initial values into a ``maxlag x k`` window.

    Component ``j`` takes ``component_lags[j]`` consecutive values, written to the
    last rows of its column; earlier rows repeat them periodically.
    """
    values = np.asarray(values, dtype=float).ravel()
    k = component_lags.shape[0]
    window = np.zeros((maxlag, k))
    start = 0
    for j, lag in enumerate(component_lags):
        lag = int(lag)
        block = values[start:start + lag]
        start += lag
        for row in range(maxlag):
            window[row, j] = block[(row - (maxlag - lag)) % lag]
    return window


def values_from_window(window: np.ndarray, component_lags: np.ndarray) -> np.ndarray:
    """Extract the ``orders . lags`` initial values from a window."""
    maxlag = window.shape[0]
    parts = [window[maxlag - int(lag):, j] for j, lag in enumerate(component_lags)]
    return np.concatenate(parts)


class BoundsAssembler:
    """
    Build and decode the parameter vector for one estimation context.

    Starting values: measurement and transition 1, persistence 0.1, initial
    states from :func:`initial_seed`, exogenous coefficients from least squares,
    exogenous transition the identity and exogenous persistence 0.

    Bounds: measurement and transition in [0, 1] under restricted bounds and
    unbounded otherwise; exogenous transition in [0, 1]; everything else
    unbounded unless the context fixes a persistence box. Admissibility is not
    a box constraint and is checked by the cost function.
    """

    def __init__(self, context: EstimationContext) -> None:
        self.context = context
        self.layout = ParameterLayout.from_context(context)

    def initial_guess(self) -> np.ndarray:
        context = self.context
        k = self.layout.n_components
        m = self.layout.n_exogenous
        persistence = np.full(k, 0.1)
        if context.persistence_bounds is not None:
            persistence = np.clip(persistence, *context.persistence_bounds)
        blocks = {
            "measurement": np.ones(k),
            "transition": np.ones(k * k),
            "persistence": persistence,
            "initial": values_from_window(context.seed_window, context.spec.component_lags),
            "initial_x": context.seed_x if context.seed_x is not None else np.zeros(m),
            "transition_x": matrix_to_vec(np.eye(m)),
            "persistence_x": np.zeros(m),
        }
        return self.layout.join(blocks)

    def bounds(self) -> Tuple[np.ndarray, np.ndarray]:
        """Lower and upper bound vectors aligned with :meth:`initial_guess`."""
        restricted = self.context.spec.bounds is BoundsType.RESTRICTED
        persistence_box = self.context.persistence_bounds or (-np.inf, np.inf)
        lower: List[np.ndarray] = []
        upper: List[np.ndarray] = []
        for name, size in self.layout.blocks:
            if name in ("measurement", "transition") and restricted:
                low, high = 0.0, 1.0
            elif name == "transition_x":
                low, high = 0.0, 1.0
            elif name == "persistence":
                low, high = persistence_box
            else:
                low, high = -np.inf, np.inf
            lower.append(np.full(size, low))
            upper.append(np.full(size, high))
        if not lower:
            return np.zeros(0), np.zeros(0)
        return np.concatenate(lower), np.concatenate(upper)

    def assemble(self) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        """Starting vector clipped into its bounds, with the bounds."""
        lower, upper = self.bounds()
        x0 = np.clip(self.initial_guess(), lower, upper)
        return x0, lower, upper

    def decode(self, vector: np.ndarray) -> DecodedParameters:
        """
        Rebuild the model matrices from a parameter vector.

        Raises:
            ParameterError: If the vector length does not match the layout
        """
        blocks = self.layout.split(vector)
        provided = self.context.provided
        spec = self.context.spec
        k = self.layout.n_components
        m = self.layout.n_exogenous

        def pick(name: str, fixed: Optional[np.ndarray]) -> Optional[np.ndarray]:
            return blocks[name] if name in blocks else fixed

        measurement = np.ascontiguousarray(pick("measurement", provided.measurement), dtype=float)
        transition = vec_to_matrix(pick("transition", matrix_to_vec(provided.transition)
                                        if provided.transition is not None else None), k)
        persistence = np.ascontiguousarray(pick("persistence", provided.persistence), dtype=float)

        if "initial" in blocks:
            window = window_from_values(blocks["initial"], spec.component_lags, spec.maxlag)
        elif provided.initial_window is not None:
            window = np.array(provided.initial_window, dtype=float)
        else:
            window = np.array(self.context.seed_window, dtype=float)

        if m == 0:
            initial_x = np.zeros(0)
            transition_x = np.zeros((0, 0))
            persistence_x = np.zeros(0)
        else:
            initial_x = pick("initial_x", provided.initial_x)
            if initial_x is None:
                initial_x = self.context.seed_x
            if self.context.update_x:
                fx = pick("transition_x", matrix_to_vec(provided.transition_x)
                          if provided.transition_x is not None else None)
                transition_x = vec_to_matrix(fx, m)
                persistence_x = pick("persistence_x", provided.persistence_x)
            else:
                transition_x = np.eye(m)
                persistence_x = np.zeros(m)

        return DecodedParameters(
            measurement=measurement,
            transition=np.ascontiguousarray(transition),
            persistence=persistence,
            initial_window=np.ascontiguousarray(window),
            initial_x=np.ascontiguousarray(initial_x, dtype=float),
            transition_x=np.ascontiguousarray(transition_x, dtype=float),
            persistence_x=np.ascontiguousarray(persistence_x, dtype=float),
        )
