# tests/test_utils.py

"""
Tests for the SSOE Toolbox utilities: forecast accuracy measures, numerical
differentiation and matrix operations.
"""

import warnings

import numpy as np
import pandas as pd
import pytest
from hypothesis import HealthCheck, given, settings, strategies as st
from numpy.testing import assert_allclose

from ssoe.core.exceptions import DimensionError
from ssoe.utils.accuracy import (
    accuracy, cbias, ham, hm, mae, mape, mase, mpe, mre, mse, rel_ame, rel_mae, rel_mse,
    sce, smape, smse, spis
)
from ssoe.utils.differentiation import hessian_2sided
from ssoe.utils.matrix_ops import (
    discount_matrix, is_stable, matrix_to_vec, spectral_radius, vec_to_matrix
)


class TestAccuracyMeasures:
    """Tests for individual error measures."""

    @pytest.fixture
    def pair(self):
        actual = np.array([10.0, 12.0, 8.0, 11.0])
        forecast = np.array([9.0, 12.0, 10.0, 10.0])
        return actual, forecast

    def test_basic_measures(self, pair):
        actual, forecast = pair
        assert mae(actual, forecast) == pytest.approx(1.0)
        assert mse(actual, forecast) == pytest.approx(1.5)
        assert mpe(actual, forecast) == pytest.approx(np.mean([0.1, 0.0, -0.25, 1 / 11]))
        assert mape(actual, forecast) == pytest.approx(np.mean([0.1, 0.0, 0.25, 1 / 11]))
        assert smape(actual, forecast) == pytest.approx(
            np.mean(2 * np.abs(actual - forecast) / (actual + forecast)))

    def test_scaled_measures(self, pair):
        actual, forecast = pair
        assert mase(actual, forecast, 2.0) == pytest.approx(0.5)
        assert smse(actual, forecast, 3.0) == pytest.approx(0.5)
        assert sce(actual, forecast, 2.0) == pytest.approx(0.0)
        assert spis(actual, forecast, 1.0) == pytest.approx(np.sum(np.cumsum(forecast - actual)))

    def test_relative_measures(self, pair):
        actual, forecast = pair
        benchmark = np.full(4, 11.0)
        assert rel_mae(actual, forecast, benchmark) == pytest.approx(1.0 / 1.25)
        assert rel_mse(actual, forecast, benchmark) == pytest.approx(1.5 / 2.75)
        assert rel_ame(actual, forecast, forecast) == 1.0
        assert rel_mae(actual, forecast, forecast) == 1.0

    def test_half_moments(self):
        symmetric = np.array([-1.0, 1.0, -4.0, 4.0])
        assert ham(symmetric, 0.0) == pytest.approx(1.5)
        assert cbias(symmetric, 0.0) == pytest.approx(0.0, abs=1e-12)
        assert cbias(np.array([1.0, 2.0, 3.0]), 0.0) == pytest.approx(1.0)
        assert cbias(np.array([-1.0, -2.0]), 0.0) == pytest.approx(-1.0)
        assert hm(np.array([4.0]), 0.0) == pytest.approx(2.0)
        assert mre(np.array([1.0]), np.array([5.0])) == pytest.approx(2j)

    def test_missing_values_are_skipped(self):
        assert mae([1.0, np.nan, 3.0], [2.0, 2.0, 2.0]) == pytest.approx(1.0)

    def test_rounding(self, pair):
        actual, forecast = pair
        assert mpe(actual, forecast, digits=2) == round(mpe(actual, forecast), 2)

    @pytest.mark.parametrize("measure", [mae, mse, mpe, mape, smape])
    def test_length_mismatch(self, measure):
        with pytest.raises(DimensionError):
            measure(np.ones(3), np.ones(4))

    def test_relative_length_mismatch(self):
        with pytest.raises(DimensionError):
            rel_mae(np.ones(3), np.ones(3), np.ones(2))


class TestAccuracySummary:
    """Tests for the holdout accuracy table."""

    def test_measures_present(self):
        actual = np.array([5.0, 6.0, 7.0, 6.0, 8.0])
        holdout = np.array([8.0, 9.0])
        result = accuracy(holdout, np.array([7.5, 8.5]), actual)
        assert isinstance(result, pd.Series)
        assert list(result.index) == ["MAE", "MSE", "MPE", "MAPE", "MASE", "sMAE", "sMSE",
                                      "sCE", "RelMAE", "RelMSE", "RelAME", "cbias", "sPIS"]
        assert result["MAE"] == pytest.approx(0.5)
        assert result["MASE"] == pytest.approx(0.5 / np.mean(np.abs(np.diff(actual))))
        assert result["sMAE"] == pytest.approx(0.5 / np.mean(actual))

    def test_naive_benchmark(self):
        actual = np.array([1.0, 2.0, 3.0])
        result = accuracy(np.array([3.0, 3.0]), np.array([3.0, 3.0]), actual)
        assert result["RelMAE"] == 1.0

    def test_cumulative_benchmark(self):
        actual = np.array([1.0, 2.0, 3.0])
        # A three-step sum against a naive benchmark of 3 + 3 + 3
        result = accuracy(np.array([8.0]), np.array([10.0]), actual, benchmark_steps=3)
        assert result["RelMAE"] == pytest.approx(2.0)
        assert result["RelMSE"] == pytest.approx(4.0)

    def test_single_observation_has_no_naive_scale(self):
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            result = accuracy(np.array([2.0]), np.array([1.5]), np.array([1.0]))
        assert np.isnan(result["MASE"])
        assert result["MAE"] == pytest.approx(0.5)

    def test_mismatch_raises_immediately(self):
        with pytest.raises(DimensionError):
            accuracy(np.ones(3), np.ones(2), np.ones(10))


class TestDifferentiation:
    """Tests for the numerical Hessian."""

    def test_quadratic(self):
        matrix = np.array([[2.0, 0.5], [0.5, 1.0]])

        def f(x):
            return 0.5 * x @ matrix @ x

        assert_allclose(hessian_2sided(f, np.array([0.3, -1.2])), matrix, atol=1e-3)

    def test_args_are_passed(self):
        def f(x, scale):
            return scale * np.sum(x ** 2)

        assert_allclose(hessian_2sided(f, np.array([1.0]), args=(3.0,)), [[6.0]], atol=1e-3)

    def test_rejects_matrices(self):
        with pytest.raises(DimensionError):
            hessian_2sided(lambda x: 0.0, np.ones((2, 2)))


class TestMatrixOps:
    """Tests for the matrix helpers behind stability checks."""

    def test_discount_matrix(self):
        w = np.array([1.0, 1.0])
        F = np.array([[1.0, 1.0], [0.0, 1.0]])
        g = np.array([0.3, 0.1])
        assert_allclose(discount_matrix(w, F, g), F - np.outer(g, w))

    def test_discount_matrix_shapes(self):
        with pytest.raises(DimensionError):
            discount_matrix(np.ones(2), np.eye(3), np.ones(2))

    def test_spectral_radius(self):
        assert spectral_radius(np.diag([0.5, -2.0])) == pytest.approx(2.0)
        assert spectral_radius(np.array([[np.nan]])) == np.inf
        assert spectral_radius(np.zeros((0, 0))) == 0.0

    def test_is_stable(self):
        one = np.ones(1)
        assert is_stable(one, np.eye(1), np.array([0.5]))
        assert is_stable(one, np.eye(1), np.array([2.0]))
        assert not is_stable(one, np.eye(1), np.array([2.5]))
        assert not is_stable(one, np.eye(1), np.array([-0.1]))

    @given(rows=st.integers(min_value=1, max_value=5), cols=st.integers(min_value=1, max_value=5))
    @settings(max_examples=20, deadline=None,
              suppress_health_check=[HealthCheck.function_scoped_fixture])
    def test_vec_roundtrip(self, rows, cols):
        matrix = np.arange(rows * cols, dtype=float).reshape(rows, cols)
        vector = matrix_to_vec(matrix)
        assert_allclose(vector[:rows], matrix[:, 0])
        assert_allclose(vec_to_matrix(vector, rows, cols), matrix)

    def test_vec_to_matrix_length(self):
        with pytest.raises(DimensionError):
            vec_to_matrix(np.ones(5), 2)
