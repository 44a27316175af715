"""
Numba-accelerated recursions for single-source-of-error state space models.

The model propagated here is

    y_t = w' v_{t-l} + x_t' a_{t-1} + e_t
    v_t = F v_{t-l} + g e_t
    a_t = F_X a_{t-1} + g_X e_t / x_t

where ``v_{t-l}`` takes component ``j`` from ``lags[j]`` periods back. States are
stored in a ``(n + maxlag) x k`` matrix whose first ``maxlag`` rows are the
initial window; row ``t + maxlag`` holds the state after observation ``t``.
Exogenous states use the same row convention with a lag of one.

All functions operate in place on preallocated arrays and never raise on
degenerate input: overflow and invalid operations surface as NaN or Inf in the
outputs and are handled by the cost function.
"""

import logging
from typing import Tuple

import numpy as np
from numba import jit

logger = logging.getLogger("ssoe.models.state_space._numba_core")


@jit(nopython=True, cache=True)
def fit_recursion(states: np.ndarray,
                  measurement: np.ndarray,
                  transition: np.ndarray,
                  persistence: np.ndarray,
                  y: np.ndarray,
                  occurrence: np.ndarray,
                  lags: np.ndarray,
                  xreg: np.ndarray,
                  xstates: np.ndarray,
                  transition_x: np.ndarray,
                  persistence_x: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """
    Run the state recursion over the sample, filling ``states`` and ``xstates``.

    Args:
        states: State matrix with a populated initial window, updated in place
        measurement: Measurement vector w (k,)
        transition: Transition matrix F (k, k)
        persistence: Persistence vector g (k,)
        y: Observations (n,), already in log space for multiplicative models
        occurrence: Occurrence indicator (n,), errors are multiplied by it
        lags: Lag of each component (k,)
        xreg: Exogenous regressors (n, m), m may be zero
        xstates: Exogenous coefficient states (n + maxlag, m), updated in place
        transition_x: Exogenous transition matrix (m, m)
        persistence_x: Exogenous persistence vector (m,)

    Returns:
        Tuple[np.ndarray, np.ndarray]: Fitted values and gated one-step errors
    """
    n = y.shape[0]
    k = measurement.shape[0]
    m = xreg.shape[1]
    maxlag = states.shape[0] - n
    fitted = np.zeros(n)
    errors = np.zeros(n)
    lagged = np.zeros(k)

    for t in range(n):
        row = t + maxlag
        for j in range(k):
            lagged[j] = states[row - lags[j], j]

        yhat = 0.0
        for j in range(k):
            yhat += measurement[j] * lagged[j]
        for i in range(m):
            yhat += xreg[t, i] * xstates[row - 1, i]
        fitted[t] = yhat

        e = occurrence[t] * (y[t] - yhat)
        errors[t] = e

        for j in range(k):
            value = persistence[j] * e
            for l in range(k):
                value += transition[j, l] * lagged[l]
            states[row, j] = value

        for i in range(m):
            value = 0.0
            for l in range(m):
                value += transition_x[i, l] * xstates[row - 1, l]
            if xreg[t, i] != 0.0:
                value += persistence_x[i] * e / xreg[t, i]
            xstates[row, i] = value

    return fitted, errors


@jit(nopython=True, cache=True)
def forecast_recursion(window: np.ndarray,
                       measurement: np.ndarray,
                       transition: np.ndarray,
                       lags: np.ndarray,
                       horizon: int,
                       xreg: np.ndarray,
                       xstate: np.ndarray,
                       transition_x: np.ndarray) -> np.ndarray:
    """
    Continue the recursion without error feedback.

    Args:
        window: The last ``maxlag`` rows of the state matrix
        measurement: Measurement vector w
        transition: Transition matrix F
        lags: Lag of each component
        horizon: Number of steps ahead
        xreg: Exogenous regressors for the horizon (horizon, m)
        xstate: Exogenous coefficients at the forecast origin (m,)
        transition_x: Exogenous transition matrix

    Returns:
        np.ndarray: Point forecasts (horizon,)
    """
    maxlag = window.shape[0]
    k = measurement.shape[0]
    m = xstate.shape[0]
    path = np.zeros((maxlag + horizon, k))
    path[:maxlag, :] = window
    a = xstate.copy()
    a_next = np.zeros(m)
    lagged = np.zeros(k)
    forecasts = np.zeros(horizon)

    for s in range(horizon):
        row = s + maxlag
        for j in range(k):
            lagged[j] = path[row - lags[j], j]

        yhat = 0.0
        for j in range(k):
            yhat += measurement[j] * lagged[j]
        # a_{t-1} multiplies x_t, so the first step uses the origin coefficients
        for i in range(m):
            yhat += xreg[s, i] * a[i]
        forecasts[s] = yhat

        for j in range(k):
            value = 0.0
            for l in range(k):
                value += transition[j, l] * lagged[l]
            path[row, j] = value
        for i in range(m):
            a_next[i] = 0.0
            for l in range(m):
                a_next[i] += transition_x[i, l] * a[l]
        for i in range(m):
            a[i] = a_next[i]

    return forecasts


@jit(nopython=True, cache=True)
def multistep_errors(states: np.ndarray,
                     measurement: np.ndarray,
                     transition: np.ndarray,
                     y: np.ndarray,
                     fitted: np.ndarray,
                     lags: np.ndarray,
                     horizon: int,
                     xreg: np.ndarray,
                     xstates: np.ndarray,
                     transition_x: np.ndarray) -> np.ndarray:
    """
    Compute the matrix of in-sample 1..h step ahead forecast errors.

    Row ``t`` holds the errors of forecasts made with information up to
    ``t - 1`` for observations ``t .. t + h - 1``. Entries beyond the sample
    are NaN. The first column is the one-step residual ``y - fitted``.

    Returns:
        np.ndarray: Error matrix (n, horizon)
    """
    n = y.shape[0]
    maxlag = states.shape[0] - n
    errors = np.full((n, horizon), np.nan)

    for t in range(n):
        errors[t, 0] = y[t] - fitted[t]
        steps = min(horizon, n - t)
        if steps < 2:
            continue
        window = states[t:t + maxlag, :]
        path = forecast_recursion(window, measurement, transition, lags, steps,
                                  xreg[t:t + steps, :], xstates[t + maxlag - 1, :],
                                  transition_x)
        for j in range(1, steps):
            errors[t, j] = y[t + j] - path[j]

    return errors


@jit(nopython=True, cache=True)
def reversed_window(source: np.ndarray,
                    target: np.ndarray,
                    lags: np.ndarray,
                    maxlag: int) -> None:
    """
    Fill the initial window of ``target`` with the terminal states of ``source``
    in reversed time.

    Component ``j`` with lag ``l`` reads window row ``maxlag - l + i`` as the
    state ``i`` observations before the end of ``source``. Rows above that block
    repeat it with period ``l``, as in ``window_from_values``.
    """
    total = source.shape[0]
    for j in range(lags.shape[0]):
        lag = lags[j]
        for row in range(maxlag):
            # (row - (maxlag - lag)) mod lag, kept non-negative
            i = (row + (lag - 1) * maxlag) % lag
            target[row, j] = source[total - 1 - i, j]


@jit(nopython=True, cache=True)
def backcast_recursion(states: np.ndarray,
                       measurement: np.ndarray,
                       transition: np.ndarray,
                       persistence: np.ndarray,
                       y: np.ndarray,
                       occurrence: np.ndarray,
                       lags: np.ndarray,
                       xreg: np.ndarray,
                       xstates: np.ndarray,
                       transition_x: np.ndarray,
                       persistence_x: np.ndarray,
                       loops: int) -> Tuple[np.ndarray, np.ndarray]:
    """
    Refine the initial window by alternating forward and backward passes.

    Each loop runs the recursion forward over the sample and then backward over
    the reversed sample, starting from the reversed terminal states. The
    backward pass's terminal states, reversed again, become the new initial
    window. A final forward pass produces the returned fit.

    Returns:
        Tuple[np.ndarray, np.ndarray]: Fitted values and gated one-step errors
    """
    n = y.shape[0]
    maxlag = states.shape[0] - n
    total = n + maxlag
    reverse_states = np.zeros_like(states)
    reverse_xstates = np.zeros_like(xstates)
    y_rev = y[::-1].copy()
    o_rev = occurrence[::-1].copy()
    xreg_rev = xreg[::-1, :].copy()

    for _ in range(loops):
        fit_recursion(states, measurement, transition, persistence, y, occurrence,
                      lags, xreg, xstates, transition_x, persistence_x)
        reversed_window(states, reverse_states, lags, maxlag)
        for i in range(maxlag):
            reverse_xstates[i, :] = xstates[total - 1, :]
        fit_recursion(reverse_states, measurement, transition, persistence, y_rev,
                      o_rev, lags, xreg_rev, reverse_xstates, transition_x,
                      persistence_x)
        reversed_window(reverse_states, states, lags, maxlag)

    return fit_recursion(states, measurement, transition, persistence, y, occurrence,
                         lags, xreg, xstates, transition_x, persistence_x)


@jit(nopython=True, cache=True)
def impulse_response(measurement: np.ndarray,
                     transition: np.ndarray,
                     persistence: np.ndarray,
                     lags: np.ndarray,
                     horizon: int) -> np.ndarray:
    """
    Response of the observation to a unit error, h steps after it occurs.

    The first element is the direct effect (always one); element ``i`` is the
    coefficient of ``e_{t+1}`` in the forecast error of ``y_{t+1+i}``.

    Returns:
        np.ndarray: Response coefficients (horizon,)
    """
    k = measurement.shape[0]
    maxlag = 0
    for j in range(k):
        if lags[j] > maxlag:
            maxlag = lags[j]
    path = np.zeros((maxlag + horizon, k))
    lagged = np.zeros(k)
    response = np.zeros(horizon)
    response[0] = 1.0

    for j in range(k):
        path[maxlag, j] = persistence[j]

    for s in range(1, horizon):
        row = s + maxlag
        for j in range(k):
            lagged[j] = path[row - lags[j], j]
        value = 0.0
        for j in range(k):
            value += measurement[j] * lagged[j]
        response[s] = value
        for j in range(k):
            state = 0.0
            for l in range(k):
                state += transition[j, l] * lagged[l]
            path[row, j] = state

    return response


@jit(nopython=True, cache=True)
def masked_mean(values: np.ndarray, mask: np.ndarray) -> float:
    """Mean of ``values`` over entries where ``mask`` is true; non-finite values propagate."""
    total = 0.0
    count = 0
    for i in range(values.shape[0]):
        if mask[i]:
            total += values[i]
            count += 1
    if count == 0:
        return np.nan
    return total / count


# Occurrence recursion kernels
INTERVAL_KERNEL = 0
SBA_KERNEL = 1
PROBABILITY_KERNEL = 2
LOGISTIC_KERNEL = 3


@jit(nopython=True, cache=True)
def occurrence_recursion(occurring: np.ndarray,
                         alpha: float,
                         initial: float,
                         kernel: int) -> Tuple[np.ndarray, float]:
    """
    Occurrence probabilities of a smoothed occurrence model.

    Kernels:
        0: Croston interval model, p = 1 / q where q smooths demand intervals
        1: Interval model with the Syntetos-Boylan correction, p = (1 - alpha/2) / q
        2: Direct smoothing of the occurrence indicator (TSB)
        3: Smoothing of a logistic latent level

    Args:
        occurring: Occurrence indicator (n,)
        alpha: Smoothing parameter
        initial: Initial interval, probability or latent level
        kernel: Kernel code

    Returns:
        Tuple[np.ndarray, float]: In-sample probabilities and the probability
        forecast after the last observation
    """
    n = occurring.shape[0]
    probabilities = np.zeros(n)
    level = initial
    since_last = 0.0
    scale = 1.0
    if kernel == 1:
        scale = 1.0 - alpha / 2.0

    for t in range(n):
        if kernel == 0 or kernel == 1:
            probabilities[t] = scale / level
            since_last += 1.0
            if occurring[t] != 0.0:
                level = level + alpha * (since_last - level)
                since_last = 0.0
        elif kernel == 2:
            probabilities[t] = level
            level = level + alpha * (occurring[t] - level)
        else:
            p = 1.0 / (1.0 + np.exp(-level))
            probabilities[t] = p
            level = level + alpha * (occurring[t] - p)

    if kernel == 0 or kernel == 1:
        forecast = scale / level
    elif kernel == 2:
        forecast = level
    else:
        forecast = 1.0 / (1.0 + np.exp(-level))
    return probabilities, forecast
