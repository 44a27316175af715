# tests/test_state_space.py

"""
Tests for the components of the state space estimation engine.

Each component is exercised on its own through an explicit estimation context:
the state recursion, the parameter layout, the cost function, the two-phase
optimizer, the information criteria, the occurrence models, the exogenous
adapter and the forecaster.
"""

import warnings

import numpy as np
import pytest
from hypothesis import HealthCheck, given, settings, strategies as st
from numpy.testing import assert_allclose
from scipy import stats

from ssoe.core.exceptions import (
    ConvergenceWarning, DataError, ModelSpecificationError, ModelWarning, NumericWarning,
    ParameterError
)
from ssoe.core.types import (
    OCCURRENCE_TRIAL_ORDER, BoundsType, CostType, ErrorType, InitialType, IntervalType,
    OccurrenceType
)
from ssoe.models.state_space._numba_core import impulse_response
from ssoe.models.state_space.bounds import (
    BLOCK_ORDER, BoundsAssembler, DecodedParameters, ParameterLayout, values_from_window,
    window_from_values
)
from ssoe.models.state_space.cost import (
    SENTINEL, CostFunction, reduce_errors, run_recursion
)
from ssoe.models.state_space.forecast import Forecaster, mixture_quantile
from ssoe.models.state_space.information import (
    check_parameter_budget, gaussian_loglikelihood, information_criteria
)
from ssoe.models.state_space.occurrence import (
    IntermittencySelector, OccurrenceTrial, bernoulli_loglikelihood, fit_occurrence,
    select_variant
)
from ssoe.models.state_space.optimizer import MinimizerResult, TwoPhaseOptimizer
from ssoe.models.state_space.structure import ModelSpec, ProvidedBlocks
from ssoe.models.state_space.xreg import ExogenousAdapter
from tests.conftest import build_context


def ses_parameters(alpha: float, level: float) -> DecodedParameters:
    """Matrices of simple exponential smoothing."""
    return DecodedParameters(
        measurement=np.ones(1),
        transition=np.ones((1, 1)),
        persistence=np.array([alpha]),
        initial_window=np.array([[level]]),
        initial_x=np.zeros(0),
        transition_x=np.zeros((0, 0)),
        persistence_x=np.zeros(0),
    )


class TestModelSpec:
    """Tests for the model structure."""

    def test_lags_are_sorted(self):
        spec = ModelSpec.create([1, 2], [12, 1])
        assert spec.orders == (2, 1)
        assert spec.lags == (1, 12)
        assert spec.component_lags.tolist() == [1, 1, 12]
        assert spec.n_components == 3
        assert spec.maxlag == 12
        assert spec.n_initial == 14
        assert spec.describe() == "2[1],1[12]"

    def test_scalar_arguments(self):
        spec = ModelSpec.create(2, 1, "M", "admissible")
        assert spec.orders == (2,)
        assert spec.is_multiplicative
        assert spec.bounds is BoundsType.ADMISSIBLE

    def test_length_mismatch(self):
        with pytest.raises(ModelSpecificationError):
            ModelSpec.create([1, 1], [1])

    def test_invalid_orders(self):
        with pytest.raises(ParameterError):
            ModelSpec.create([0], [1])


class TestRecursion:
    """Tests for the state recursion."""

    def test_simple_exponential_smoothing(self):
        context = build_context(np.array([1.0, 2.0, 3.0]))
        output = run_recursion(context, ses_parameters(0.5, 0.0))
        assert_allclose(output.fitted, [0.0, 0.5, 1.25])
        assert_allclose(output.errors, [1.0, 1.5, 1.75])
        assert_allclose(output.states[:, 0], [0.0, 0.5, 1.25, 2.125])
        assert output.states.shape == (4, 1)

    def test_non_occurring_errors_are_gated(self):
        context = build_context(np.array([1.0, 0.0, 3.0]), occurrence=np.array([1.0, 0.0, 1.0]))
        output = run_recursion(context, ses_parameters(0.5, 0.0))
        assert output.errors[1] == 0.0
        assert output.states[2, 0] == output.states[1, 0]

    def test_bit_identical_on_repeat(self, level_series):
        context = build_context(level_series, orders=(2,), lags=(1,))
        assembler = BoundsAssembler(context)
        params = assembler.decode(assembler.initial_guess())
        first = run_recursion(context, params, horizon=3)
        second = run_recursion(build_context(level_series.copy(), orders=(2,), lags=(1,)),
                               params, horizon=3)
        assert np.array_equal(first.fitted, second.fitted)
        assert np.array_equal(first.states, second.states)
        assert np.array_equal(first.error_matrix, second.error_matrix, equal_nan=True)

    def test_multistep_error_matrix(self, level_series):
        context = build_context(level_series)
        output = run_recursion(context, ses_parameters(0.3, 100.0), horizon=3)
        n = level_series.shape[0]
        assert output.error_matrix.shape == (n, 3)
        assert_allclose(output.error_matrix[:, 0], level_series - output.fitted)
        assert np.isnan(output.error_matrix[-1, 1])
        assert np.isnan(output.error_matrix[-2, 2])
        # SES forecasts are flat, so the two-step error uses the same level as one-step
        assert output.error_matrix[0, 1] == pytest.approx(level_series[1] - output.fitted[0])

    def test_backcasting_replaces_window(self, level_series):
        context = build_context(level_series, initial_type=InitialType.BACKCASTING)
        output = run_recursion(context, ses_parameters(0.3, 0.0))
        assert output.initial_window[0, 0] != 0.0
        assert np.all(np.isfinite(output.fitted))

    @staticmethod
    def _unit_gain_parameters(measurement, persistence, maxlag):
        k = len(measurement)
        return DecodedParameters(
            measurement=np.array(measurement, dtype=float),
            transition=np.eye(k),
            persistence=np.array(persistence, dtype=float),
            initial_window=np.zeros((maxlag, k)),
            initial_x=np.zeros(0),
            transition_x=np.zeros((0, 0)),
            persistence_x=np.zeros(0),
        )

    def test_backcasting_ignores_unused_seasonal_component(self):
        y = np.arange(40.0)
        level_only = run_recursion(
            build_context(y, initial_type=InitialType.BACKCASTING),
            self._unit_gain_parameters([1.0], [1.0], 1))
        with_seasonal = run_recursion(
            build_context(y, orders=(1, 1), lags=(1, 12), initial_type=InitialType.BACKCASTING),
            self._unit_gain_parameters([1.0, 0.0], [1.0, 0.0], 12))
        # A level with unit gain backcasts to the first observation
        assert level_only.fitted[0] == pytest.approx(0.0)
        assert_allclose(with_seasonal.fitted, level_only.fitted)
        assert with_seasonal.initial_window[-1, 0] == pytest.approx(0.0)

    def test_backcasting_shorter_seasonal_lag(self):
        y = np.tile([5.0, -2.0, -6.0, 3.0], 10)
        context = build_context(y, orders=(1, 1), lags=(4, 12),
                                initial_type=InitialType.BACKCASTING)
        output = run_recursion(context, self._unit_gain_parameters([1.0, 0.0], [1.0, 0.0], 12))
        # The lag-4 window must hold the first season in order
        assert_allclose(output.initial_window[-4:, 0], y[:4])
        assert_allclose(output.initial_window[:4, 0], y[:4])
        assert_allclose(output.fitted, y)

    def test_impulse_response_local_trend(self):
        response = impulse_response(np.ones(2), np.array([[1.0, 1.0], [0.0, 1.0]]),
                                    np.array([0.4, 0.1]), np.array([1, 1], dtype=np.int64), 5)
        assert_allclose(response, [1.0, 0.5, 0.6, 0.7, 0.8])


class TestParameterLayout:
    """Tests for the parameter vector layout and its starting values."""

    def test_block_order(self, level_series):
        xreg = np.arange(level_series.shape[0], dtype=float)[:, np.newaxis]
        context = build_context(level_series, xreg=xreg)
        context.update_x = True
        layout = ParameterLayout.from_context(context)
        assert [name for name, _ in layout.blocks] == list(BLOCK_ORDER)
        assert layout.size == 1 + 1 + 1 + 1 + 1 + 1 + 1
        assert layout.n_state_parameters == 4
        assert layout.n_exogenous_parameters == 3

    def test_provided_blocks_are_excluded(self, level_series):
        provided = ProvidedBlocks(measurement=np.ones(1), transition=np.ones((1, 1)))
        context = build_context(level_series, provided=provided)
        layout = ParameterLayout.from_context(context)
        assert [name for name, _ in layout.blocks] == ["persistence", "initial"]

    def test_backcasting_excludes_initial_states(self, level_series):
        context = build_context(level_series, orders=(1, 1), lags=(1, 4),
                                initial_type=InitialType.BACKCASTING)
        layout = ParameterLayout.from_context(context)
        assert not layout.is_estimated("initial")
        assert layout.size == 2 + 4 + 2

    @given(orders=st.lists(st.integers(min_value=1, max_value=2), min_size=1, max_size=2),
           data=st.data())
    @settings(max_examples=25, deadline=None,
              suppress_health_check=[HealthCheck.function_scoped_fixture])
    def test_split_join_inverse(self, orders, data):
        lags = data.draw(st.lists(st.integers(min_value=1, max_value=4),
                                  min_size=len(orders), max_size=len(orders)))
        context = build_context(np.linspace(1.0, 2.0, 20), orders=orders, lags=lags)
        layout = ParameterLayout.from_context(context)
        vector = np.arange(layout.size, dtype=float) / 7.0
        assert_allclose(layout.join(layout.split(vector)), vector)

    @given(lags=st.lists(st.integers(min_value=1, max_value=6), min_size=1, max_size=3))
    @settings(max_examples=25, deadline=None,
              suppress_health_check=[HealthCheck.function_scoped_fixture])
    def test_window_values_inverse(self, lags):
        component_lags = np.asarray(lags, dtype=np.int64)
        values = np.arange(int(component_lags.sum()), dtype=float) + 1.0
        window = window_from_values(values, component_lags, int(component_lags.max()))
        assert window.shape == (int(component_lags.max()), len(lags))
        assert_allclose(values_from_window(window, component_lags), values)

    def test_wrong_vector_length(self, level_series):
        assembler = BoundsAssembler(build_context(level_series))
        with pytest.raises(ParameterError):
            assembler.decode(np.zeros(assembler.layout.size + 1))

    def test_starting_values_and_bounds(self, level_series):
        context = build_context(level_series, bounds=BoundsType.RESTRICTED)
        context.persistence_bounds = (0.0, 1.0)
        x0, lower, upper = BoundsAssembler(context).assemble()
        assert_allclose(x0[:3], [1.0, 1.0, 0.1])
        assert_allclose(lower[:3], [0.0, 0.0, 0.0])
        assert_allclose(upper[:3], [1.0, 1.0, 1.0])
        assert np.isneginf(lower[3]) and np.isposinf(upper[3])

    def test_unrestricted_bounds(self, level_series):
        lower, upper = BoundsAssembler(build_context(level_series, bounds=BoundsType.NONE)).bounds()
        assert np.all(np.isneginf(lower))
        assert np.all(np.isposinf(upper))

    def test_transition_is_column_major(self, level_series):
        context = build_context(level_series, orders=(2,), lags=(1,))
        assembler = BoundsAssembler(context)
        vector = assembler.initial_guess()
        vector[2:6] = [1.0, 2.0, 3.0, 4.0]
        decoded = assembler.decode(vector)
        assert_allclose(decoded.transition, [[1.0, 3.0], [2.0, 4.0]])


class TestCostFunction:
    """Tests for the loss reductions and the sentinel handling."""

    def test_reductions(self):
        errors = np.array([1.0, -3.0])
        matrix = np.array([[1.0, 2.0], [-3.0, np.nan]])
        occurring = np.ones(2, dtype=bool)
        assert reduce_errors(CostType.MSE, errors, matrix, occurring) == pytest.approx(5.0)
        assert reduce_errors(CostType.MAE, errors, matrix, occurring) == pytest.approx(2.0)
        assert reduce_errors(CostType.HAM, errors, matrix, occurring) == pytest.approx(
            (1.0 + np.sqrt(3.0)) / 2)
        assert reduce_errors(CostType.MSEH, errors, matrix, occurring) == pytest.approx(4.0)
        assert reduce_errors(CostType.TMSE, errors, matrix, occurring) == pytest.approx(9.0)
        assert reduce_errors(CostType.GTMSE, errors, matrix, occurring) == pytest.approx(
            np.log(5.0) + np.log(4.0))
        assert reduce_errors(CostType.MSCE, errors, matrix, occurring) == pytest.approx(9.0)

    def test_tmse_with_one_step_equals_mse(self, level_series):
        mse = CostFunction(build_context(level_series, cost_type=CostType.MSE))
        tmse = CostFunction(build_context(level_series, cost_type=CostType.TMSE, horizon=1))
        x0, _, _ = mse.assembler.assemble()
        assert tmse(x0) == pytest.approx(mse(x0), rel=1e-12)

    def test_overflow_returns_sentinel(self, level_series):
        provided = ProvidedBlocks(measurement=np.ones(1), transition=np.array([[1e200]]))
        cost = CostFunction(build_context(level_series, provided=provided))
        x0, _, _ = cost.assembler.assemble()
        assert cost(x0) == SENTINEL

    def test_admissibility_penalty(self, level_series):
        provided = ProvidedBlocks(measurement=np.ones(1), transition=np.ones((1, 1)),
                                  persistence=np.array([3.0]))
        cost = CostFunction(build_context(level_series, provided=provided,
                                          bounds=BoundsType.ADMISSIBLE))
        assert cost(np.array([100.0])) == pytest.approx(2e100)

    def test_admissible_point_is_evaluated(self, level_series):
        provided = ProvidedBlocks(measurement=np.ones(1), transition=np.ones((1, 1)),
                                  persistence=np.array([0.3]))
        cost = CostFunction(build_context(level_series, provided=provided,
                                          bounds=BoundsType.ADMISSIBLE))
        value = cost(np.array([100.0]))
        assert 0 < value < SENTINEL
        assert cost.n_evaluations == 1

    def test_deterministic(self, level_series):
        cost = CostFunction(build_context(level_series, orders=(1, 1), lags=(1, 4)))
        x0, _, _ = cost.assembler.assemble()
        assert cost(x0) == cost(x0.copy())


class _StubMinimizer:
    """Minimizer returning a preset value and recording its arguments."""

    def __init__(self, fun: float, shift: float) -> None:
        self.fun = fun
        self.shift = shift
        self.calls = []

    def minimize(self, objective, x0, lower, upper, maxeval, xtol_rel):
        self.calls.append({"x0": np.array(x0), "maxeval": maxeval, "xtol_rel": xtol_rel})
        return MinimizerResult(x=np.asarray(x0) + self.shift, fun=self.fun, nfev=0)


class TestTwoPhaseOptimizer:
    """Tests for the two-phase minimization policy."""

    def test_second_phase_budget_and_tolerance(self):
        first, second = _StubMinimizer(2.0, 0.1), _StubMinimizer(1.0, 0.1)
        optimizer = TwoPhaseOptimizer(first, second, maxeval=1000, xtol_rel=1e-6)
        outcome = optimizer.run(lambda x: 0.0, np.zeros(2), np.full(2, -5.0), np.full(2, 5.0))
        assert first.calls[0]["maxeval"] == 1000
        assert first.calls[0]["xtol_rel"] == 1e-6
        assert second.calls[0]["maxeval"] == 200
        assert second.calls[0]["xtol_rel"] == pytest.approx(1e-8)
        assert_allclose(second.calls[0]["x0"], [0.1, 0.1])
        assert outcome.phase == "second"
        assert outcome.fun == 1.0
        assert_allclose(outcome.x, [0.2, 0.2])

    def test_worse_second_phase_is_discarded(self):
        optimizer = TwoPhaseOptimizer(_StubMinimizer(1.0, 0.1), _StubMinimizer(3.0, 0.1))
        outcome = optimizer.run(lambda x: 0.0, np.zeros(1), np.full(1, -5.0), np.full(1, 5.0))
        assert outcome.phase == "first"
        assert outcome.fun == 1.0
        assert_allclose(outcome.x, [0.1])

    def test_equal_second_phase_is_kept(self):
        optimizer = TwoPhaseOptimizer(_StubMinimizer(1.0, 0.1), _StubMinimizer(1.0, 0.1))
        outcome = optimizer.run(lambda x: 0.0, np.zeros(1), np.full(1, -5.0), np.full(1, 5.0))
        assert outcome.phase == "second"

    def test_bounded_quadratic(self):
        optimizer = TwoPhaseOptimizer(maxeval=2000, xtol_rel=1e-8)
        outcome = optimizer.run(lambda x: float(np.sum((x - 0.3) ** 2)), np.array([0.9, 0.1]),
                                np.zeros(2), np.ones(2))
        assert_allclose(outcome.x, [0.3, 0.3], atol=1e-3)
        assert outcome.nfev > 0

    def test_partially_degenerate_objective(self):
        def objective(x):
            if x[0] > 0.8:
                return SENTINEL
            return float(np.sum((x - 0.5) ** 2))

        with warnings.catch_warnings():
            warnings.simplefilter("error", ConvergenceWarning)
            outcome = TwoPhaseOptimizer(maxeval=1000).run(objective, np.array([0.7, 0.7]),
                                                          np.zeros(2), np.ones(2))
        assert outcome.fun < SENTINEL
        assert outcome.x[0] <= 0.8

    def test_fully_degenerate_objective_warns(self):
        with pytest.warns(ConvergenceWarning):
            outcome = TwoPhaseOptimizer(maxeval=50).run(lambda x: SENTINEL, np.array([0.5]),
                                                        np.zeros(1), np.ones(1))
        assert outcome.fun == SENTINEL

    def test_empty_vector(self):
        outcome = TwoPhaseOptimizer().run(lambda x: 4.0, np.zeros(0), np.zeros(0), np.zeros(0))
        assert outcome.nfev == 1
        assert outcome.fun == 4.0
        assert outcome.phase == "none"


class TestInformationCriteria:
    """Tests for likelihoods and information criteria."""

    def test_aic_example(self):
        ic = information_criteria(-100.0, 100, 5)
        assert ic.aic == pytest.approx(210.0)
        assert ic.bic == pytest.approx(5 * np.log(100) + 200)
        assert ic.aicc == pytest.approx(210.0 + 60.0 / 94.0)
        assert ic.bicc == pytest.approx(5 * np.log(100) * 100 / 94 + 200)

    @given(loglikelihood=st.floats(min_value=-1e4, max_value=1e4),
           nobs=st.integers(min_value=20, max_value=500),
           nparams=st.integers(min_value=1, max_value=10))
    @settings(max_examples=50, deadline=None,
              suppress_health_check=[HealthCheck.function_scoped_fixture])
    def test_one_more_parameter(self, loglikelihood, nobs, nparams):
        smaller = information_criteria(loglikelihood, nobs, nparams)
        larger = information_criteria(loglikelihood, nobs, nparams + 1)
        assert larger.aic - smaller.aic == pytest.approx(2.0, abs=1e-8)
        assert larger.bic - smaller.bic == pytest.approx(np.log(nobs), abs=1e-8)
        assert larger.aicc > smaller.aicc

    def test_corrected_criteria_without_budget(self):
        assert not check_parameter_budget(5, 4)
        with pytest.warns(NumericWarning):
            ic = information_criteria(-10.0, 5, 4)
        assert ic.aicc == np.inf
        assert ic.bicc == np.inf
        assert np.isfinite(ic.aic)

    def test_gaussian_loglikelihood(self):
        assert gaussian_loglikelihood(1.0, CostType.MSE, 10) == pytest.approx(
            -5 * np.log(2 * np.pi * np.e))
        assert gaussian_loglikelihood(1.0, CostType.MAE, 10) == pytest.approx(
            -10 * np.log(2 * np.e))
        assert gaussian_loglikelihood(1.0, CostType.HAM, 10) == pytest.approx(-20.0)
        assert gaussian_loglikelihood(2.0, CostType.TMSE, 10, horizon=2) == pytest.approx(
            gaussian_loglikelihood(1.0, CostType.MSE, 10) * 2)

    def test_criterion_lookup(self):
        ic = information_criteria(-50.0, 40, 3, model_name="GUM(1[1])")
        assert ic.get("BIC") == ic.bic
        assert "GUM(1[1])" in str(ic)
        assert ic.to_dict()["nparams"] == 3


class TestOccurrence:
    """Tests for the occurrence submodels and their selection."""

    def test_none(self):
        model = fit_occurrence(OccurrenceType.NONE, np.array([1.0, 0.0, 1.0]), 4)
        assert model.n_parameters == 0
        assert model.loglikelihood == 0.0
        assert_allclose(model.forecast, np.ones(4))
        assert not model.is_intermittent

    def test_fixed(self):
        occurring = np.array([1.0, 0.0, 1.0, 1.0])
        model = fit_occurrence("fixed", occurring, 3)
        assert_allclose(model.fitted, np.full(4, 0.75))
        assert_allclose(model.forecast, np.full(3, 0.75))
        assert model.n_parameters == 1
        assert model.loglikelihood == pytest.approx(3 * np.log(0.75) + np.log(0.25))

    @pytest.mark.parametrize("variant", [OccurrenceType.INTERVAL, OccurrenceType.PROBABILITY,
                                         OccurrenceType.SBA, OccurrenceType.LOGISTIC])
    def test_smoothed_variants(self, variant, intermittent_series):
        model = fit_occurrence(variant, intermittent_series, 6)
        assert model.n_parameters == 2
        assert model.fitted.shape == intermittent_series.shape
        assert np.all((model.fitted >= 0) & (model.fitted <= 1))
        assert model.forecast.shape == (6,)
        assert np.isfinite(model.loglikelihood)
        assert set(model.parameters) == {"alpha", "initial"}
        assert 0.0 <= model.parameters["alpha"] <= 1.0

    def test_auto_cannot_be_fitted(self):
        with pytest.raises(ParameterError):
            fit_occurrence(OccurrenceType.AUTO, np.ones(5), 1)

    def test_bernoulli_loglikelihood_clips(self):
        value = bernoulli_loglikelihood(np.array([1.0, 0.0]), np.array([0.0, 1.0]))
        assert np.isfinite(value)

    def test_select_first_on_ties(self):
        assert select_variant([1.0, 1.0, 1.0], [5.0, 5.0, 5.0]) == 0

    def test_select_nan_counts_as_large(self):
        assert select_variant([1.0, np.nan, 1.0], [np.nan, 3.0, 4.0]) == 1

    def test_zero_cost_excludes_first(self):
        assert select_variant([0.0, 0.0, 0.0], [1.0, 2.0, 3.0]) == 1
        assert select_variant([0.0, 1.0, 0.0], [1.0, 2.0, 3.0]) == 0

    @staticmethod
    def _evaluate(criteria_by_variant, seen):
        def evaluate(variant):
            seen.append(variant)
            model = fit_occurrence(variant, np.array([1.0, 0.0, 1.0, 1.0]), 1)
            ic = information_criteria(criteria_by_variant.get(variant, -10.0), 40, 2)
            return OccurrenceTrial(occurrence=model, cost=1.0, criteria=ic, payload=variant)
        return evaluate

    def test_selector_without_zeros(self):
        seen = []
        winner, trials = IntermittencySelector("AIC").select(self._evaluate({}, seen), np.ones(10))
        assert seen == [OccurrenceType.NONE]
        assert len(trials) == 1
        assert winner.payload is OccurrenceType.NONE

    def test_selector_picks_lowest_criterion(self):
        seen = []
        loglikelihoods = {OccurrenceType.PROBABILITY: 5.0}
        winner, trials = IntermittencySelector("AIC").select(
            self._evaluate(loglikelihoods, seen), np.array([1.0, 0.0, 1.0]))
        assert seen == list(OCCURRENCE_TRIAL_ORDER)
        assert len(trials) == 6
        assert winner.payload is OccurrenceType.PROBABILITY


class TestExogenousAdapter:
    """Tests for regressor alignment."""

    def test_split_and_coefficients(self, rng):
        x = rng.normal(size=30)
        y = 3.0 + 2.0 * x[:25] + rng.normal(0, 0.01, 25)
        adapter = ExogenousAdapter(x, 25, 5)
        assert adapter.insample.shape == (25, 1)
        assert adapter.future.shape == (5, 1)
        assert adapter.names == ["x1"]
        assert adapter.initial_coefficients(y)[0] == pytest.approx(2.0, abs=0.05)

    def test_short_rows_are_padded(self):
        x = np.arange(12.0)
        with pytest.warns(ModelWarning):
            adapter = ExogenousAdapter(x, 10, 5)
        assert_allclose(adapter.future[:, 0], [10.0, 11.0, 11.0, 11.0, 11.0])

    def test_too_few_rows(self):
        with pytest.raises(DataError):
            ExogenousAdapter(np.arange(5.0), 10, 1)

    def test_parameter_count(self):
        x = np.ones((20, 2))
        assert ExogenousAdapter(x, 15, 5).n_parameters() == 2
        assert ExogenousAdapter(x, 15, 5, update=True).n_parameters() == 2 + 4 + 2
        provided = ProvidedBlocks(initial_x=np.zeros(2), persistence_x=np.zeros(2))
        assert ExogenousAdapter(x, 15, 5).n_parameters(provided) == 0
        assert ExogenousAdapter(x, 15, 5, update=True).n_parameters(provided) == 4


class TestForecaster:
    """Tests for point forecasts and intervals."""

    @staticmethod
    def _forecaster(alpha=0.4, s2=2.0, error_type=ErrorType.ADDITIVE, n=20):
        spec = ModelSpec.create(1, 1, error_type)
        states = np.full((n + 1, 1), 10.0)
        return Forecaster(spec, ses_parameters(alpha, 10.0), states, np.zeros((n + 1, 0)), s2,
                          np.zeros((n, 1)), np.ones(n, dtype=bool))

    def test_flat_point_forecast(self):
        output = self._forecaster().forecast(5, intervals=IntervalType.NONE)
        assert_allclose(output.mean, np.full(5, 10.0))
        assert output.lower is None and output.upper is None

    def test_parametric_variance(self):
        forecaster = self._forecaster(alpha=0.4, s2=2.0)
        h = np.arange(1, 6)
        assert_allclose(forecaster.parametric_variance(5), 2.0 * (1 + (h - 1) * 0.16))
        output = forecaster.forecast(5, intervals="parametric", level=0.95)
        z = stats.norm.ppf(0.975)
        assert_allclose(output.upper - output.mean, z * np.sqrt(2.0 * (1 + (h - 1) * 0.16)))
        assert np.all(output.lower < output.mean)

    def test_cumulative(self):
        forecaster = self._forecaster(alpha=0.4, s2=1.0)
        output = forecaster.forecast(3, intervals="parametric", cumulative=True)
        assert output.mean.shape == (1,)
        assert output.mean[0] == pytest.approx(30.0)
        variance = np.sum(np.cumsum([1.0, 0.4, 0.4]) ** 2)
        assert output.upper[0] - 30.0 == pytest.approx(stats.norm.ppf(0.975) * np.sqrt(variance))

    def test_cumulative_errors_skip_non_occurring_targets(self):
        spec = ModelSpec.create(1, 1)
        error_matrix = np.array([[1.0, 2.0], [5.0, 3.0], [1.0, 1.0], [2.0, np.nan]])
        occurring = np.array([True, False, True, True])
        forecaster = Forecaster(spec, ses_parameters(0.4, 10.0), np.full((5, 1), 10.0),
                                np.zeros((5, 0)), 1.0, error_matrix, occurring)
        assert_allclose(forecaster.cumulative_errors(2), [1.0, 3.0, 2.0])
        assert_allclose(forecaster.step_errors(1), [3.0, 1.0])

    def test_multiplicative_is_lognormal(self):
        output = self._forecaster(s2=0.01, error_type=ErrorType.MULTIPLICATIVE).forecast(
            2, intervals="parametric")
        assert_allclose(output.mean, np.full(2, np.exp(10.0)))
        assert np.all(output.lower > 0)
        assert output.upper[0] / output.mean[0] == pytest.approx(
            np.exp(stats.norm.ppf(0.975) * 0.1))

    def test_intermittent_mixture(self):
        output = self._forecaster().forecast(3, intervals="parametric",
                                             probability=np.full(3, 0.5))
        assert_allclose(output.mean, np.full(3, 5.0))
        assert_allclose(output.lower, np.zeros(3))
        assert np.all(output.upper > 10.0)

    def test_invalid_arguments(self):
        forecaster = self._forecaster()
        with pytest.raises(ParameterError):
            forecaster.forecast(0)
        with pytest.raises(ParameterError):
            forecaster.forecast(3, level=1.5)

    def test_mixture_quantile(self):
        assert mixture_quantile(0.3, 0.5, lambda q: 10.0 * q) == 0.0
        assert mixture_quantile(0.75, 0.5, lambda q: 10.0 * q) == pytest.approx(5.0)
        assert mixture_quantile(0.5, 1.0, lambda q: 10.0 * q) == pytest.approx(5.0)
