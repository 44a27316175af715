# tests/test_gum.py

"""
End-to-end tests of the General Univariate Model.

Models are fitted on the seeded series from conftest with a small evaluation
budget; assertions cover the structure of the result, warnings and errors
rather than exact parameter values.
"""

import logging

import numpy as np
import pandas as pd
import pytest
from numpy.testing import assert_allclose

from ssoe.core.config import set_config
from ssoe.core.exceptions import (
    DataError, EstimationError, ForecastError, ModelSpecificationError, ModelWarning,
    NotFittedError, ParameterError
)
from ssoe.core.types import CostType, InitialType, OccurrenceType
from ssoe.models.state_space import GUM, GUMConfig, GUMResult, SimpleExponentialSmoothing
from ssoe.models.state_space.bounds import PreviousFit

FAST = {"maxeval": 1000}


class TestGUMConfig:
    """Tests for configuration parsing and validation."""

    def test_defaults_from_configuration(self):
        config = GUMConfig()
        assert config.h == 10
        assert config.cost_function is CostType.MSE
        assert config.initial is InitialType.OPTIMAL
        set_config("models", "horizon", 7)
        set_config("models", "cost_function", "MAE")
        config = GUMConfig()
        assert config.h == 7
        assert config.cost_function is CostType.MAE

    def test_lags_are_sorted(self):
        config = GUMConfig(orders=[1, 2], lags=[12, 1])
        assert config.orders == (2, 1)
        assert config.lags == (1, 12)

    @pytest.mark.parametrize("kwargs", [
        {"h": 0},
        {"h": 2.5},
        {"level": 1.0},
        {"maxeval": 0},
        {"xtol_rel": 0.0},
        {"cost_function": "MSE2"},
        {"intermittent": "sometimes"},
        {"initial": "provided"},
    ])
    def test_invalid_options(self, kwargs):
        with pytest.raises(ParameterError):
            GUMConfig(**kwargs)

    def test_orders_and_lags_must_match(self):
        with pytest.raises(ModelSpecificationError):
            GUMConfig(orders=[1, 1], lags=[1])

    def test_initial_values_imply_provided(self):
        assert GUMConfig(initial_values=[100.0]).initial is InitialType.PROVIDED

    def test_keyword_overrides(self):
        model = GUM(GUMConfig(h=4), h=6)
        assert model.config.h == 6


class TestGUMEstimation:
    """Tests for fitting and the fitted result."""

    def test_local_level_scenario(self, level_series):
        model = GUM(orders=[1], lags=[1], cost_function="MSE", bounds="admissible", h=10,
                    holdout=False, transition=[[1.0]], **FAST)
        result = model.fit(level_series)
        assert isinstance(result, GUMResult)
        assert result.forecast.shape == (10,)
        assert np.all(np.isfinite(result.forecast))
        assert result.n_param.estimated == 4
        assert 0.0 <= result.persistence[0] <= 1.0
        assert result.model == "GUM(1[1])"

    def test_result_contents(self, level_series):
        result = GUM(h=5, **FAST).fit(level_series)
        n = level_series.shape[0]
        assert result.fitted.shape == (n,)
        assert result.residuals.shape == (n,)
        assert result.errors.shape == (n, 5)
        assert result.states.shape == (n + 1, 1)
        assert result.n_param.states_estimated == 4
        assert result.n_param.estimated == 5
        assert result.s2 > 0
        assert result.ic == result.criteria.aicc
        assert np.all(result.lower < result.forecast)
        assert np.all(result.forecast < result.upper)
        assert "Model estimated: GUM(1[1])" in result.summary()
        assert result.trials == {"none": result.ic}

    def test_pandas_input(self, level_pandas):
        result = GUM(h=3, **FAST).fit(level_pandas)
        assert result.forecast.shape == (3,)

    def test_seasonal_model(self, seasonal_series):
        result = GUM(orders=[1, 1], lags=[4, 1], h=8, **FAST).fit(seasonal_series, frequency=4)
        assert result.model == "GUM(1[1],1[4])"
        assert result.states.shape == (64, 2)
        assert result.initial_window.shape == (4, 2)
        assert np.all(np.isfinite(result.forecast))

    def test_multistep_cost(self, level_series):
        result = GUM(cost_function="TMSE", h=3, **FAST).fit(level_series)
        assert result.cost_type is CostType.TMSE
        assert np.isfinite(result.loglikelihood)

    def test_deterministic(self, level_series):
        first = GUM(h=5, **FAST).fit(level_series)
        second = GUM(h=5, **FAST).fit(level_series.copy())
        assert np.array_equal(first.forecast, second.forecast)
        assert np.array_equal(first.persistence, second.persistence)

    def test_backcasting(self, level_series):
        result = GUM(initial="backcasting", h=5, **FAST).fit(level_series)
        assert result.n_param.states_estimated == 3
        assert result.initial_type == "backcasting"

    def test_seasonal_backcasting(self, seasonal_series):
        result = GUM(orders=[1, 1], lags=[1, 4], initial="backcasting", h=4,
                     **FAST).fit(seasonal_series)
        level = result.initial_window[:, 0]
        # The lag-1 column repeats the single backcasted level
        assert np.allclose(level, level[-1])
        assert np.all(np.isfinite(result.forecast))

    def test_provided_initial_values(self, level_series):
        result = GUM(initial_values=[100.0], h=5, **FAST).fit(level_series)
        assert result.initial_type == "provided"
        assert result.n_param.states_provided == 1
        assert result.initial_window[0, 0] == 100.0

    def test_previous_fit(self, level_series):
        first = GUM(h=5, **FAST).fit(level_series)
        second = GUM(previous_fit=first, h=5).fit(level_series)
        assert second.n_param.estimated == 1
        assert second.n_param.states_provided == 4
        assert_allclose(second.forecast, first.forecast)

    def test_previous_fit_record(self, level_series):
        first = GUM(h=5, **FAST).fit(level_series)
        record = PreviousFit.from_result(first)
        config = GUMConfig(previous_fit=record, h=5)
        assert config.initial is InitialType.PROVIDED
        assert config.orders == (1,)

    def test_fisher_information(self, level_series):
        result = GUM(h=5, fisher_information=True, **FAST).fit(level_series)
        information = result.fisher_information
        assert information.shape == (4, 4)
        assert_allclose(information, information.T)

    def test_logging(self, level_series, caplog):
        model = GUM(h=3, **FAST)
        with caplog.at_level(logging.INFO, logger="ssoe"):
            model.fit(level_series)
        assert any("Estimated GUM(1[1])" in message for message in caplog.messages)


class TestGUMHoldout:
    """Tests for holdout evaluation and cumulative forecasts."""

    def test_holdout_accuracy(self, level_series):
        result = GUM(h=5, holdout=True, **FAST).fit(level_series)
        assert result.y.shape == (45,)
        assert result.holdout.shape == (5,)
        assert isinstance(result.accuracy, pd.Series)
        assert result.accuracy["MAE"] >= 0

    def test_cumulative(self, level_series):
        result = GUM(h=5, holdout=True, cumulative=True, **FAST).fit(level_series)
        assert result.forecast.shape == (1,)
        assert result.lower[0] < result.forecast[0] < result.upper[0]
        assert result.accuracy["MAE"] == pytest.approx(
            abs(np.sum(result.holdout) - result.forecast[0]))
        naive = 5 * result.y[-1]
        assert result.accuracy["RelMAE"] == pytest.approx(
            abs(np.sum(result.holdout) - result.forecast[0]) / abs(np.sum(result.holdout) - naive))

    def test_holdout_needs_enough_data(self):
        with pytest.raises(DataError):
            GUM(h=5, holdout=True).fit(np.arange(1.0, 5.0))


class TestGUMIntermittent:
    """Tests for occurrence models."""

    def test_auto_without_zeros(self, level_series):
        result = GUM(intermittent="auto", h=5, **FAST).fit(level_series)
        assert result.occurrence.variant is OccurrenceType.NONE
        assert list(result.trials) == ["none"]

    def test_auto_selects_lowest_criterion(self, intermittent_series):
        result = GUM(intermittent="auto", h=5, maxeval=300).fit(intermittent_series)
        assert list(result.trials) == ["none", "fixed", "interval", "probability", "sba",
                                       "logistic"]
        assert result.ic == min(result.trials.values())
        assert result.trials[result.occurrence.variant.value] == result.ic

    def test_fixed_occurrence(self, intermittent_series):
        result = GUM(intermittent="fixed", h=5, **FAST).fit(intermittent_series)
        share = np.mean(intermittent_series != 0)
        assert result.model == "iGUM(1[1])"
        assert result.n_param.occurrence_estimated == 1
        assert_allclose(result.occurrence.fitted, share)
        assert_allclose(result.occurrence.forecast, np.full(5, share))
        assert np.all(result.lower >= 0)

    def test_multiplicative_auto_skips_none(self, intermittent_series):
        result = GUM(error_type="M", intermittent="auto", h=5, maxeval=300).fit(intermittent_series)
        assert "none" not in result.trials
        assert len(result.trials) == 5
        assert result.model.startswith("MiGUM")
        assert np.all(result.forecast >= 0)

    def test_all_zero_series(self):
        with pytest.raises(DataError):
            GUM(intermittent="fixed").fit(np.zeros(20))


class TestGUMMultiplicative:
    """Tests for multiplicative error models."""

    def test_positive_series(self, level_series):
        result = GUM(error_type="M", h=5, **FAST).fit(level_series)
        assert result.model == "MGUM(1[1])"
        assert result.error_type == "M"
        assert np.all(result.forecast > 0)
        assert np.all(result.fitted > 0)
        assert np.all(result.lower > 0)

    def test_negative_values(self, level_series):
        y = level_series.copy()
        y[3] = -1.0
        with pytest.raises(DataError):
            GUM(error_type="M").fit(y)

    def test_zeros_without_occurrence(self, level_series):
        y = level_series.copy()
        y[3] = 0.0
        with pytest.raises(DataError):
            GUM(error_type="M").fit(y)


class TestGUMExogenous:
    """Tests for models with regressors."""

    @pytest.fixture
    def regression(self, rng):
        x = rng.normal(size=60)
        y = 50 + 3.0 * x[:50] + rng.normal(0, 0.5, 50)
        return y, x

    def test_gumx(self, regression):
        y, x = regression
        model = GUM(h=10, **FAST)
        result = model.fit(y, xreg=x)
        assert result.model == "GUMX(1[1])"
        assert result.exogenous.names == ["x1"]
        assert result.n_param.exogenous_estimated == 1
        assert result.exogenous.coefficients.shape == (51, 1)
        assert np.all(np.isfinite(result.forecast))

    def test_updated_coefficients(self, regression):
        y, x = regression
        result = GUM(h=10, update_x=True, **FAST).fit(y, xreg=pd.DataFrame({"price": x}))
        assert result.exogenous.names == ["price"]
        assert result.exogenous.updated
        assert result.n_param.exogenous_estimated == 3

    def test_forecast_beyond_regressors(self, regression):
        y, x = regression
        model = GUM(h=10, **FAST)
        model.fit(y, xreg=x)
        assert model.forecast(h=5).shape[0] == 5
        with pytest.raises(ForecastError):
            model.forecast(h=12)

    def test_too_few_rows(self, regression):
        y, x = regression
        with pytest.raises(DataError):
            GUM(h=10).fit(y, xreg=x[:40])


class TestGUMProvidedParameters:
    """Tests for user supplied parameters."""

    def test_wrong_parameter_vector(self, level_series):
        with pytest.raises(ParameterError):
            GUM(provided_parameters=[0.5, 0.5], **FAST).fit(level_series)

    def test_starting_vector(self, level_series):
        result = GUM(provided_parameters=[1.0, 1.0, 0.2, 100.0], h=5, **FAST).fit(level_series)
        assert np.all(np.isfinite(result.forecast))

    def test_wrong_block_length_is_ignored(self, level_series):
        with pytest.warns(ModelWarning, match="Wrong length"):
            result = GUM(measurement=[1.0, 1.0], h=5, **FAST).fit(level_series)
        assert result.n_param.states_provided == 0

    def test_unstable_model_warning(self, level_series):
        model = GUM(bounds="none", measurement=[1.0], transition=[[1.0]], persistence=[2.5],
                    h=5, **FAST)
        with pytest.warns(ModelWarning, match="Unstable model"):
            result = model.fit(level_series)
        assert result.n_param.states_estimated == 1

    def test_diverging_model_raises(self, level_series):
        model = GUM(bounds="none", measurement=[1.0], transition=[[1e200]], persistence=[1.0],
                    h=5, **FAST)
        with pytest.raises(EstimationError, match="diverges"):
            model.fit(level_series)
        with pytest.raises(NotFittedError):
            model.results


class TestGUMFallback:
    """Tests for the degenerate-sample fallback."""

    def test_short_series(self):
        model = GUM(orders=[2], lags=[1], h=4, **FAST)
        with pytest.warns(ModelWarning, match="Not enough observations"):
            result = model.fit(np.array([10.0, 12.0, 11.0]))
        assert result.fallback
        assert result.forecast.shape == (4,)
        assert result.orders == (1,)
        assert model.fitted
        assert model.forecast().shape[0] == 4

    def test_fallback_keeps_error_type(self):
        with pytest.warns(ModelWarning):
            result = GUM(orders=[3], lags=[1], error_type="M", h=2, **FAST).fit(
                np.array([10.0, 12.0, 11.0, 13.0]))
        assert result.fallback
        assert result.error_type == "M"


class TestForecastInterface:
    """Tests for forecasting from a fitted model."""

    def test_not_fitted(self):
        model = GUM()
        with pytest.raises(NotFittedError):
            model.forecast()
        with pytest.raises(NotFittedError):
            _ = model.results

    def test_stored_and_new_forecasts(self, level_series):
        model = GUM(h=5, **FAST)
        result = model.fit(level_series)
        stored = model.forecast()
        assert list(stored.columns) == ["forecast", "lower", "upper"]
        assert_allclose(stored["forecast"].to_numpy(), result.forecast)
        longer = model.forecast(h=8)
        assert longer.shape[0] == 8
        assert_allclose(longer["forecast"].to_numpy()[:5], result.forecast)
        points = model.forecast(h=3, intervals="none")
        assert list(points.columns) == ["forecast"]

    def test_invalid_horizon(self, level_series):
        model = GUM(h=5, **FAST)
        model.fit(level_series)
        with pytest.raises(ParameterError):
            model.forecast(h=0)


class TestSimpleExponentialSmoothing:
    """Tests for the fixed-structure smoothing model."""

    def test_persistence_in_unit_interval(self, level_series):
        model = SimpleExponentialSmoothing(h=5, **FAST)
        result = model.fit(level_series)
        assert model.name == "SES"
        assert 0.0 <= result.persistence[0] <= 1.0
        assert_allclose(result.measurement, [1.0])
        assert_allclose(result.transition, [[1.0]])
        assert result.n_param.estimated == 3
        assert result.model == "GUM(1[1])"
        assert_allclose(result.forecast, np.full(5, result.forecast[0]))

    def test_structure_cannot_be_overridden(self):
        model = SimpleExponentialSmoothing(orders=[2], lags=[1])
        assert model.config.orders == (1,)
