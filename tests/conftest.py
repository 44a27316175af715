'''
Pytest configuration and fixtures for the SSOE Toolbox test suite.

Provides seeded series generators shared by the test modules and resets the
process-wide configuration around every test.
'''

import numpy as np
import pandas as pd
import pytest

from ssoe.core.config import reset_config
from ssoe.core.types import BoundsType, CostType, ErrorType, InitialType
from ssoe.models.state_space.bounds import initial_seed, window_from_values
from ssoe.models.state_space.structure import EstimationContext, ModelSpec, ProvidedBlocks


@pytest.fixture(autouse=True)
def default_config():
    """Start and finish every test with the built-in configuration."""
    reset_config()
    yield
    reset_config()


# ---- Series Fixtures ----

@pytest.fixture
def rng() -> np.random.Generator:
    """Provide a seeded random number generator for reproducible tests."""
    return np.random.default_rng(42)


@pytest.fixture
def level_series(rng: np.random.Generator) -> np.ndarray:
    """50 noisy observations around a slowly drifting level near 100."""
    level = 100 + np.cumsum(rng.normal(0, 0.3, 50))
    return level + rng.normal(0, 1, 50)


@pytest.fixture
def trend_series(rng: np.random.Generator) -> np.ndarray:
    """A positive series with a local trend, 80 observations."""
    t = np.arange(80)
    return 50 + 0.5 * t + np.cumsum(rng.normal(0, 0.5, 80)) + rng.normal(0, 1, 80)


@pytest.fixture
def seasonal_series(rng: np.random.Generator) -> np.ndarray:
    """Quarterly seasonal series, 60 observations."""
    t = np.arange(60)
    pattern = np.array([5.0, -2.0, -6.0, 3.0])
    return 200 + pattern[t % 4] + rng.normal(0, 1, 60)


@pytest.fixture
def intermittent_series(rng: np.random.Generator) -> np.ndarray:
    """Demand occurring about 40% of the time with positive sizes."""
    occurs = rng.uniform(size=80) < 0.4
    occurs[:2] = True
    sizes = rng.poisson(5, 80) + 1.0
    return np.where(occurs, sizes, 0.0)


@pytest.fixture
def level_pandas(level_series: np.ndarray) -> pd.Series:
    """The level series with a monthly DatetimeIndex."""
    index = pd.date_range(start="2020-01-01", periods=level_series.shape[0], freq="MS")
    return pd.Series(level_series, index=index, name="demand")


# ---- Engine Fixtures ----

def build_context(y: np.ndarray,
                  orders=(1,),
                  lags=(1,),
                  cost_type: CostType = CostType.MSE,
                  bounds: BoundsType = BoundsType.NONE,
                  horizon: int = 1,
                  provided: ProvidedBlocks = None,
                  initial_type: InitialType = InitialType.OPTIMAL,
                  occurrence: np.ndarray = None,
                  xreg: np.ndarray = None) -> EstimationContext:
    """Estimation context for a series with a seed window built from the data."""
    spec = ModelSpec.create(orders, lags, ErrorType.ADDITIVE, bounds)
    y = np.asarray(y, dtype=float)
    occurrence = np.ones(y.shape[0]) if occurrence is None else occurrence
    seed = initial_seed(y, occurrence != 0, 1, spec.n_initial)
    return EstimationContext(
        spec=spec,
        y=y,
        occurrence=occurrence,
        cost_type=cost_type,
        horizon=horizon,
        initial_type=initial_type,
        provided=provided if provided is not None else ProvidedBlocks(),
        xreg=xreg,
        seed_window=window_from_values(seed, spec.component_lags, spec.maxlag),
        seed_x=None if xreg is None else np.zeros(xreg.shape[1]),
    )


@pytest.fixture
def context_factory():
    """Factory building estimation contexts, see :func:`build_context`."""
    return build_context
