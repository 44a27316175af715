'''
Forecast accuracy measures.

Error measures comparing forecasts with held-out observations, including the
scaled and relative measures used for intermittent series, and the half-moment
statistics ``hm``, ``ham`` and ``cbias``. Every measure compares vectors of
equal length and raises :class:`~ssoe.core.exceptions.DimensionError` when they
differ; missing values are skipped in the means.

:func:`accuracy` gathers the standard set reported for a holdout sample, using
the last in-sample observation as the naive benchmark and scales derived from
the in-sample series.
'''

import logging
from typing import Optional, Sequence, Union

import numpy as np
import pandas as pd

from ..core.validation import validate_matching_length

logger = logging.getLogger("ssoe.utils.accuracy")

ArrayLike = Union[np.ndarray, pd.Series, Sequence[float]]


def _vectors(actual: ArrayLike, forecast: ArrayLike, benchmark: Optional[ArrayLike] = None):
    actual = np.asarray(actual, dtype=float).ravel()
    forecast = np.asarray(forecast, dtype=float).ravel()
    validate_matching_length(actual, forecast, "actual", "forecast")
    if benchmark is None:
        return actual, forecast
    benchmark = np.asarray(benchmark, dtype=float).ravel()
    validate_matching_length(actual, benchmark, "actual", "benchmark")
    return actual, forecast, benchmark


def _round(value, digits: Optional[int]):
    return value if digits is None else np.round(value, digits)


def mae(actual: ArrayLike, forecast: ArrayLike, digits: Optional[int] = None) -> float:
    """Mean Absolute Error."""
    actual, forecast = _vectors(actual, forecast)
    return _round(float(np.nanmean(np.abs(actual - forecast))), digits)


def mse(actual: ArrayLike, forecast: ArrayLike, digits: Optional[int] = None) -> float:
    """Mean Squared Error."""
    actual, forecast = _vectors(actual, forecast)
    return _round(float(np.nanmean((actual - forecast) ** 2)), digits)


def mre(actual: ArrayLike, forecast: ArrayLike, digits: Optional[int] = None) -> complex:
    """Mean Root Error, the mean of complex square roots of the errors."""
    actual, forecast = _vectors(actual, forecast)
    errors = (actual - forecast).astype(complex)
    errors = errors[~np.isnan(errors.real)]
    return _round(complex(np.mean(np.sqrt(errors))), digits)


def mpe(actual: ArrayLike, forecast: ArrayLike, digits: Optional[int] = None) -> float:
    """Mean Percentage Error."""
    actual, forecast = _vectors(actual, forecast)
    with np.errstate(divide='ignore', invalid='ignore'):
        return _round(float(np.nanmean((actual - forecast) / actual)), digits)


def mape(actual: ArrayLike, forecast: ArrayLike, digits: Optional[int] = None) -> float:
    """Mean Absolute Percentage Error."""
    actual, forecast = _vectors(actual, forecast)
    with np.errstate(divide='ignore', invalid='ignore'):
        return _round(float(np.nanmean(np.abs((actual - forecast) / actual))), digits)


def smape(actual: ArrayLike, forecast: ArrayLike, digits: Optional[int] = None) -> float:
    """Symmetric Mean Absolute Percentage Error."""
    actual, forecast = _vectors(actual, forecast)
    with np.errstate(divide='ignore', invalid='ignore'):
        ratio = 2 * np.abs(actual - forecast) / (np.abs(actual) + np.abs(forecast))
    return _round(float(np.nanmean(ratio)), digits)


def mase(actual: ArrayLike, forecast: ArrayLike, scale: float, digits: Optional[int] = None) -> float:
    """Mean Absolute Error divided by ``scale``, usually the in-sample MAE of a naive method."""
    actual, forecast = _vectors(actual, forecast)
    return _round(float(np.nanmean(np.abs(actual - forecast)) / scale), digits)


def smse(actual: ArrayLike, forecast: ArrayLike, scale: float, digits: Optional[int] = None) -> float:
    """Mean Squared Error divided by ``scale``; the scale should itself be squared."""
    actual, forecast = _vectors(actual, forecast)
    return _round(float(np.nanmean((actual - forecast) ** 2) / scale), digits)


def spis(actual: ArrayLike, forecast: ArrayLike, scale: float, digits: Optional[int] = None) -> float:
    """Scaled Periods-In-Stock."""
    actual, forecast = _vectors(actual, forecast)
    return _round(float(np.sum(np.cumsum(forecast - actual)) / scale), digits)


def sce(actual: ArrayLike, forecast: ArrayLike, scale: float, digits: Optional[int] = None) -> float:
    """Scaled Cumulative Error."""
    actual, forecast = _vectors(actual, forecast)
    return _round(float(np.sum(forecast - actual) / scale), digits)


def rel_mae(actual: ArrayLike, forecast: ArrayLike, benchmark: ArrayLike,
            digits: Optional[int] = None) -> float:
    """MAE relative to the MAE of a benchmark forecast; 1 when the forecasts coincide."""
    actual, forecast, benchmark = _vectors(actual, forecast, benchmark)
    if np.all(forecast == benchmark):
        return 1.0
    return _round(float(np.nanmean(np.abs(actual - forecast))
                        / np.nanmean(np.abs(actual - benchmark))), digits)


def rel_mse(actual: ArrayLike, forecast: ArrayLike, benchmark: ArrayLike,
            digits: Optional[int] = None) -> float:
    """MSE relative to the MSE of a benchmark forecast."""
    actual, forecast, benchmark = _vectors(actual, forecast, benchmark)
    if np.all(forecast == benchmark):
        return 1.0
    return _round(float(np.nanmean((actual - forecast) ** 2)
                        / np.nanmean((actual - benchmark) ** 2)), digits)


def rel_ame(actual: ArrayLike, forecast: ArrayLike, benchmark: ArrayLike,
            digits: Optional[int] = None) -> float:
    """Absolute mean error relative to that of a benchmark forecast."""
    actual, forecast, benchmark = _vectors(actual, forecast, benchmark)
    if np.all(forecast == benchmark):
        return 1.0
    return _round(float(np.abs(np.nanmean(actual - forecast))
                        / np.abs(np.nanmean(actual - benchmark))), digits)


def hm(x: ArrayLike, centre: Optional[float] = None, digits: Optional[int] = None) -> complex:
    """Half moment of ``x`` around ``centre`` (the mean by default)."""
    x = np.asarray(x, dtype=float).ravel()
    x = x[~np.isnan(x)]
    centre = np.mean(x) if centre is None else centre
    return _round(complex(np.mean(np.sqrt((x - centre).astype(complex)))), digits)


def ham(x: ArrayLike, centre: Optional[float] = None, digits: Optional[int] = None) -> float:
    """Half absolute moment of ``x`` around ``centre``."""
    x = np.asarray(x, dtype=float).ravel()
    x = x[~np.isnan(x)]
    centre = np.mean(x) if centre is None else centre
    return _round(float(np.mean(np.sqrt(np.abs(x - centre)))), digits)


def cbias(x: ArrayLike, centre: Optional[float] = None, digits: Optional[int] = None) -> float:
    """
    Bias coefficient based on the half moment.

    Zero for symmetric errors, approaching 1 when every error is positive and
    -1 when every error is negative.
    """
    return _round(float(1 - np.angle(hm(x, centre)) / (np.pi / 4)), digits)


def accuracy(holdout: ArrayLike,
             forecast: ArrayLike,
             actual: ArrayLike,
             digits: Optional[int] = None,
             benchmark_steps: int = 1) -> pd.Series:
    """
    Standard accuracy measures of a forecast against a holdout sample.

    Args:
        holdout: Held-out observations
        forecast: Forecasts of the holdout
        actual: In-sample observations, used for the benchmark and the scales
        digits: Rounding, none by default
        benchmark_steps: Number of steps each holdout value sums over; the naive
            benchmark repeats the last observation that many times

    Returns:
        pd.Series: MAE, MSE, MPE, MAPE, MASE, sMAE, sMSE, sCE, RelMAE, RelMSE,
        RelAME, cbias and sPIS

    Raises:
        DimensionError: If holdout and forecast differ in length
    """
    holdout, forecast = _vectors(holdout, forecast)
    actual = np.asarray(actual, dtype=float).ravel()
    benchmark = np.repeat(actual[-1] * benchmark_steps, holdout.shape[0])
    naive_scale = np.mean(np.abs(np.diff(actual))) if actual.shape[0] > 1 else np.nan
    nonzero_scale = np.mean(np.abs(actual[actual != 0])) if np.any(actual != 0) else np.nan

    with np.errstate(divide='ignore', invalid='ignore'):
        measures = {
            "MAE": mae(holdout, forecast, digits),
            "MSE": mse(holdout, forecast, digits),
            "MPE": mpe(holdout, forecast, digits),
            "MAPE": mape(holdout, forecast, digits),
            "MASE": mase(holdout, forecast, naive_scale, digits),
            "sMAE": mase(holdout, forecast, np.mean(np.abs(actual)), digits),
            "sMSE": smse(holdout, forecast, nonzero_scale ** 2, digits),
            "sCE": sce(holdout, forecast, nonzero_scale, digits),
            "RelMAE": rel_mae(holdout, forecast, benchmark, digits),
            "RelMSE": rel_mse(holdout, forecast, benchmark, digits),
            "RelAME": rel_ame(holdout, forecast, benchmark, digits),
            "cbias": cbias(holdout - forecast, 0.0, digits),
            "sPIS": spis(holdout, forecast, nonzero_scale, digits),
        }
    return pd.Series(measures, dtype=float)
