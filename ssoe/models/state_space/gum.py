"""
General Univariate Model (GUM).

GUM is a single-source-of-error state space model with an arbitrary number of
components, each repeating on its own lag. With ``orders=[o_1, ..., o_p]`` and
``lags=[l_1, ..., l_p]`` the model has ``k = sum(orders)`` components and

    y_t = w' v_{t-l} + x_t' a_{t-1} + e_t
    v_t = F v_{t-l} + g e_t

where the measurement vector ``w``, the transition matrix ``F``, the persistence
vector ``g`` and the initial states are estimated (or provided). With
``error_type="M"`` the model is estimated on the logarithm of the series.

Estimation follows the shared engine: :class:`BoundsAssembler` builds the
parameter vector, :class:`TwoPhaseOptimizer` minimizes the :class:`CostFunction`
and the result is scored by its information criteria. For intermittent series
the cycle is repeated for each occurrence variant and the best one is kept.

When the sample is too small for the requested model it is replaced by
:class:`SimpleExponentialSmoothing` with a warning.

Examples:
    >>> import numpy as np
    >>> from ssoe.models.state_space import GUM
    >>> rng = np.random.default_rng(42)
    >>> y = 100 + np.cumsum(rng.normal(0, 1, 60))
    >>> result = GUM(orders=[1], lags=[1], h=5).fit(y)
    >>> result.forecast.shape
    (5,)
"""

import logging
import time
from dataclasses import dataclass, field, replace
from typing import Any, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd

from ...core.base import ModelBase
from ...core.config import get_config
from ...core.exceptions import (
    EstimationError, ForecastError, ParameterError, raise_data_error, raise_parameter_error,
    warn_model
)
from ...core.types import (
    OCCURRENCE_TRIAL_ORDER, BoundsType, CostType, ErrorType, ExogenousData, InformationCriterion,
    InitialType, IntervalType, OccurrenceType, TimeSeriesData
)
from ...core.validation import validate_series
from ...utils.accuracy import accuracy
from ...utils.differentiation import hessian_2sided
from ...utils.matrix_ops import discount_matrix, spectral_radius
from .bounds import BoundsAssembler, DecodedParameters, PreviousFit, initial_seed, window_from_values
from .cost import CostFunction, run_recursion
from .forecast import Forecaster
from .information import check_parameter_budget, gaussian_loglikelihood, information_criteria
from .occurrence import IntermittencySelector, OccurrenceModel, OccurrenceTrial, fit_occurrence
from .optimizer import BoundedMinimizer, OptimizationOutcome, TwoPhaseOptimizer
from .results import ExogenousResult, GUMResult, ParameterCount
from .structure import EstimationContext, ModelSpec, ProvidedBlocks
from .xreg import ExogenousAdapter

logger = logging.getLogger("ssoe.models.state_space.gum")

ArrayInput = Optional[Union[np.ndarray, Sequence[float]]]


@dataclass
class GUMConfig:
    """
    Configuration of a general univariate model.

    Options left as None take their defaults from the toolbox configuration
    (see :mod:`ssoe.core.config`). Textual options are parsed into enums here,
    so an invalid value fails at construction.

    Attributes:
        orders: Number of components per lag
        lags: Lag of each group of components
        error_type: "A" for additive, "M" for multiplicative errors
        initial: "optimal", "backcasting" or "provided"
        cost_function: Loss minimized during estimation
        ic: Information criterion used for selection
        h: Forecast horizon (and horizon of multi-step losses)
        holdout: Withhold the last ``h`` observations for evaluation
        cumulative: Forecast the sum over the horizon
        intervals: Prediction interval type
        level: Interval coverage in (0, 1)
        intermittent: Occurrence model; "auto" selects one
        bounds: Parameter bounds regime
        update_x: Update the exogenous coefficients over time
        maxeval: Evaluation budget of the optimizer
        xtol_rel: Relative tolerance of the optimizer
        provided_parameters: Starting parameter vector for the optimizer
        measurement: Provided measurement vector
        transition: Provided transition matrix (k x k, or column-stacked)
        persistence: Provided persistence vector
        initial_values: Provided initial states, ``orders . lags`` values
        initial_x: Provided initial exogenous coefficients
        transition_x: Provided exogenous transition matrix
        persistence_x: Provided exogenous persistence vector
        fisher_information: Compute the observed Fisher information
        previous_fit: A previous result (or :class:`PreviousFit`) to reuse
    """
    orders: Sequence[int] = (1,)
    lags: Sequence[int] = (1,)
    error_type: Union[str, ErrorType] = ErrorType.ADDITIVE
    initial: Union[str, InitialType] = InitialType.OPTIMAL
    cost_function: Optional[Union[str, CostType]] = None
    ic: Optional[Union[str, InformationCriterion]] = None
    h: Optional[int] = None
    holdout: bool = False
    cumulative: bool = False
    intervals: Optional[Union[str, IntervalType]] = None
    level: Optional[float] = None
    intermittent: Union[str, OccurrenceType] = OccurrenceType.NONE
    bounds: Optional[Union[str, BoundsType]] = None
    update_x: bool = False
    maxeval: Optional[int] = None
    xtol_rel: Optional[float] = None
    provided_parameters: ArrayInput = None
    measurement: ArrayInput = None
    transition: ArrayInput = None
    persistence: ArrayInput = None
    initial_values: ArrayInput = None
    initial_x: ArrayInput = None
    transition_x: ArrayInput = None
    persistence_x: ArrayInput = None
    fisher_information: bool = False
    previous_fit: Optional[Any] = None
    spec: ModelSpec = field(init=False, repr=False)

    def __post_init__(self) -> None:
        """Fill defaults, parse options and validate the configuration."""
        if self.cost_function is None:
            self.cost_function = get_config("models", "cost_function")
        if self.ic is None:
            self.ic = get_config("models", "information_criterion")
        if self.bounds is None:
            self.bounds = get_config("models", "bounds")
        if self.intervals is None:
            self.intervals = get_config("models", "intervals")
        if self.level is None:
            self.level = get_config("models", "level")
        if self.h is None:
            self.h = get_config("models", "horizon")
        if self.maxeval is None:
            self.maxeval = get_config("numerical", "maxeval")
        if self.xtol_rel is None:
            self.xtol_rel = get_config("numerical", "xtol_rel")

        if self.previous_fit is not None and not isinstance(self.previous_fit, PreviousFit):
            self.previous_fit = PreviousFit.from_result(self.previous_fit)
        if self.previous_fit is not None:
            self.orders = self.previous_fit.orders
            self.lags = self.previous_fit.lags
            self.error_type = self.previous_fit.error_type
            self.initial = InitialType.PROVIDED
            if self.intermittent in (OccurrenceType.NONE, "none"):
                self.intermittent = self.previous_fit.occurrence

        self.initial = InitialType.from_string(self.initial)
        if self.initial_values is not None:
            self.initial = InitialType.PROVIDED
        self.cost_function = CostType.from_string(self.cost_function)
        self.ic = InformationCriterion.from_string(self.ic)
        self.intervals = IntervalType.from_string(self.intervals)
        self.intermittent = OccurrenceType.from_string(self.intermittent)

        if not isinstance(self.h, (int, np.integer)) or isinstance(self.h, bool) or self.h < 1:
            raise ParameterError(
                f"Forecast horizon must be a positive integer, got {self.h}",
                param_name="h",
                param_value=self.h,
                constraint="integer >= 1"
            )
        self.h = int(self.h)
        if not 0 < self.level < 1:
            raise ParameterError(
                f"Interval level must lie in (0, 1), got {self.level}",
                param_name="level",
                param_value=self.level,
                constraint="0 < level < 1"
            )
        if self.maxeval < 1:
            raise ParameterError(
                f"maxeval must be positive, got {self.maxeval}",
                param_name="maxeval",
                param_value=self.maxeval,
                constraint="> 0"
            )
        if self.xtol_rel <= 0:
            raise ParameterError(
                f"xtol_rel must be positive, got {self.xtol_rel}",
                param_name="xtol_rel",
                param_value=self.xtol_rel,
                constraint="> 0"
            )
        if (self.initial is InitialType.PROVIDED and self.initial_values is None
                and self.previous_fit is None):
            raise ParameterError(
                "initial='provided' requires initial_values",
                param_name="initial_values",
                param_value=None,
                constraint="orders . lags values"
            )

        self.spec = ModelSpec.create(self.orders, self.lags, self.error_type, self.bounds)
        self.orders = self.spec.orders
        self.lags = self.spec.lags
        self.error_type = self.spec.error_type
        self.bounds = self.spec.bounds


@dataclass
class _Estimate:
    """Everything kept from the estimation under one occurrence variant."""
    context: EstimationContext
    cost_function: CostFunction
    outcome: OptimizationOutcome
    params: DecodedParameters
    count: ParameterCount


def _as_array(values: ArrayInput) -> Optional[np.ndarray]:
    return None if values is None else np.asarray(values, dtype=float)


class GUM(ModelBase[GUMResult, TimeSeriesData]):
    """
    General univariate single-source-of-error state space model.

    Args:
        config: Model configuration; keyword arguments override its fields
        first_minimizer: Minimizer of the first optimization phase
        second_minimizer: Minimizer of the second optimization phase
        name: Model name used in messages
        **kwargs: :class:`GUMConfig` fields

    Examples:
        >>> model = GUM(orders=[2, 1], lags=[1, 12], h=12)
        >>> model.config.spec.describe()
        '2[1],1[12]'
    """

    # Degenerate samples are refitted as simple exponential smoothing
    _allow_fallback = True

    def __init__(self,
                 config: Optional[GUMConfig] = None,
                 first_minimizer: Optional[BoundedMinimizer] = None,
                 second_minimizer: Optional[BoundedMinimizer] = None,
                 name: str = "GUM",
                 **kwargs: Any) -> None:
        super().__init__(name=name)
        if config is None:
            config = GUMConfig(**kwargs)
        elif kwargs:
            config = replace(config, **kwargs)
        self.config = config
        self.first_minimizer = first_minimizer
        self.second_minimizer = second_minimizer
        self._forecaster: Optional[Forecaster] = None
        self._future_x: Optional[np.ndarray] = None

    def _persistence_bounds(self) -> Optional[Tuple[float, float]]:
        return None

    def validate_data(self, data: TimeSeriesData) -> np.ndarray:
        """
        Validate a series for this model.

        Raises:
            DataError: If the series is not finite, too short for the holdout,
                negative for a multiplicative model or has zeros a
                multiplicative model without occurrence part cannot handle
            TypeError: If the series has an unsupported type
        """
        config = self.config
        min_length = config.h + 1 if config.holdout else 1
        y = validate_series(data, min_length=min_length, data_name="y")

        if config.spec.is_multiplicative:
            if np.any(y < 0):
                raise_data_error(
                    "Multiplicative models require non-negative data",
                    data_name="y",
                    issue="negative values",
                    index=int(np.flatnonzero(y < 0)[0])
                )
            if np.any(y == 0) and config.intermittent is OccurrenceType.NONE:
                raise_data_error(
                    "Multiplicative models need an occurrence model for series with zeros",
                    data_name="y",
                    issue="zero values with intermittent='none'",
                    index=int(np.flatnonzero(y == 0)[0])
                )
        if config.intermittent is not OccurrenceType.NONE and not np.any(y != 0):
            raise_data_error(
                "An occurrence model needs at least one non-zero observation",
                data_name="y",
                issue="all observations are zero"
            )
        return y

    def _provided_blocks(self, spec: ModelSpec, n_exogenous: int) -> Tuple[ProvidedBlocks, InitialType]:
        """Collect provided blocks, dropping those of the wrong size with a warning."""
        config = self.config
        if config.previous_fit is not None:
            provided = config.previous_fit.to_provided()
            if n_exogenous == 0:
                provided.initial_x = provided.transition_x = provided.persistence_x = None
            return provided, InitialType.PROVIDED

        k = spec.n_components
        m = n_exogenous

        def checked(name: str, values: ArrayInput, size: int) -> Optional[np.ndarray]:
            values = _as_array(values)
            if values is None:
                return None
            if size == 0 or values.size != size:
                warn_model(
                    f"Wrong length of the provided {name}; it will be estimated instead",
                    model_type=self.name,
                    issue="provided block ignored",
                    parameter=name,
                    value=int(values.size),
                    details=f"{size} values are needed"
                )
                return None
            return values

        measurement = checked("measurement", config.measurement, k)
        transition = checked("transition", config.transition, k * k)
        persistence = checked("persistence", config.persistence, k)
        initial_values = checked("initial_values", config.initial_values, spec.n_initial)
        initial_x = checked("initial_x", config.initial_x, m)
        transition_x = checked("transition_x", config.transition_x, m * m)
        persistence_x = checked("persistence_x", config.persistence_x, m)

        initial_type = config.initial
        initial_window = None
        if initial_values is not None:
            initial_window = window_from_values(initial_values.ravel(order='F'),
                                                spec.component_lags, spec.maxlag)
        elif initial_type is InitialType.PROVIDED:
            initial_type = InitialType.OPTIMAL

        provided = ProvidedBlocks(
            measurement=None if measurement is None else measurement.ravel(),
            transition=None if transition is None else transition.reshape((k, k), order='F'),
            persistence=None if persistence is None else persistence.ravel(),
            initial_window=initial_window,
            initial_x=None if initial_x is None else initial_x.ravel(),
            transition_x=None if transition_x is None else transition_x.reshape((m, m), order='F'),
            persistence_x=None if persistence_x is None else persistence_x.ravel(),
        )
        return provided, initial_type

    @staticmethod
    def _max_parameters(spec: ModelSpec,
                        provided: ProvidedBlocks,
                        initial_type: InitialType,
                        adapter: Optional[ExogenousAdapter],
                        intermittent: OccurrenceType) -> int:
        """Largest number of parameters the configured model can estimate."""
        k = spec.n_components
        count = 1  # variance
        count += k if provided.measurement is None else 0
        count += k * k if provided.transition is None else 0
        count += k if provided.persistence is None else 0
        if initial_type is InitialType.OPTIMAL:
            count += spec.n_initial
        if adapter is not None:
            count += adapter.n_parameters(provided)
        if intermittent is OccurrenceType.AUTO:
            count += 2
        else:
            count += intermittent.n_parameters
        return count

    def _optimizer(self) -> TwoPhaseOptimizer:
        return TwoPhaseOptimizer(
            first=self.first_minimizer,
            second=self.second_minimizer,
            maxeval=self.config.maxeval,
            xtol_rel=self.config.xtol_rel,
            sentinel=get_config("numerical", "sentinel"),
        )

    def _loglikelihood(self, cost: float, context: EstimationContext,
                       occurrence: OccurrenceModel) -> float:
        """Log-likelihood of the combined model from the achieved cost."""
        loglik = gaussian_loglikelihood(cost, context.cost_type, context.n_occurring,
                                        context.loss_horizon)
        if occurrence.is_intermittent:
            loglik += occurrence.loglikelihood
        if context.spec.is_multiplicative:
            # Jacobian of the log transform
            loglik -= float(np.sum(context.y[context.occurring]))
        return float(loglik)

    def _model_name(self, spec: ModelSpec, exogenous: bool, intermittent: bool) -> str:
        name = ("GUMX" if exogenous else "GUM") + f"({spec.describe()})"
        if intermittent:
            name = "i" + name
        if spec.is_multiplicative:
            name = "M" + name
        return name

    def _estimate(self,
                  variant: OccurrenceType,
                  spec: ModelSpec,
                  working: np.ndarray,
                  occurring: np.ndarray,
                  provided: ProvidedBlocks,
                  initial_type: InitialType,
                  adapter: Optional[ExogenousAdapter],
                  frequency: int) -> OccurrenceTrial:
        """Estimate the magnitude model under one occurrence variant."""
        config = self.config
        numerical = {option: get_config("numerical", option)
                     for option in ("sentinel", "stability_tolerance", "backcast_loops",
                                    "occurrence_floor")}

        occurrence = fit_occurrence(variant, occurring, config.h, numerical["occurrence_floor"])
        mask = occurrence.indicator != 0
        seed = initial_seed(working, mask, frequency, spec.n_initial)
        seed_x = None
        if adapter is not None:
            seed_x = adapter.initial_coefficients(working, mask)

        context = EstimationContext(
            spec=spec,
            y=working,
            occurrence=occurrence.indicator,
            cost_type=config.cost_function,
            horizon=config.h,
            initial_type=initial_type,
            provided=provided,
            xreg=None if adapter is None else adapter.insample,
            update_x=config.update_x,
            frequency=frequency,
            sentinel=numerical["sentinel"],
            stability_tolerance=numerical["stability_tolerance"],
            backcast_loops=numerical["backcast_loops"],
            seed_window=window_from_values(seed, spec.component_lags, spec.maxlag),
            seed_x=seed_x,
            persistence_bounds=self._persistence_bounds(),
        )
        assembler = BoundsAssembler(context)
        cost_function = CostFunction(context, assembler)
        x0, lower, upper = assembler.assemble()
        if config.provided_parameters is not None:
            # split() rejects a vector of the wrong length
            start = assembler.layout.split(_as_array(config.provided_parameters))
            x0 = np.clip(assembler.layout.join(start), lower, upper)

        outcome = self._optimizer().run(cost_function, x0, lower, upper)
        params = assembler.decode(outcome.x)
        layout = assembler.layout

        k = spec.n_components
        m = context.n_exogenous
        states_provided = ((k if provided.measurement is not None else 0)
                           + (k * k if provided.transition is not None else 0)
                           + (k if provided.persistence is not None else 0)
                           + (spec.n_initial if provided.initial_window is not None else 0))
        exogenous_provided = ((m if provided.initial_x is not None else 0)
                              + (m * m if config.update_x and provided.transition_x is not None else 0)
                              + (m if config.update_x and provided.persistence_x is not None else 0))
        count = ParameterCount(
            states_estimated=layout.n_state_parameters,
            states_provided=states_provided,
            exogenous_estimated=layout.n_exogenous_parameters,
            exogenous_provided=exogenous_provided if m > 0 else 0,
            occurrence_estimated=occurrence.n_parameters,
        )

        loglik = self._loglikelihood(outcome.fun, context, occurrence)
        criteria = information_criteria(
            loglik, context.n_obs, count.estimated,
            model_name=self._model_name(spec, adapter is not None, occurrence.is_intermittent))
        logger.debug(f"{criteria.model_name}: cost={outcome.fun:.6g}, phase={outcome.phase}, "
                     f"nfev={outcome.nfev}")
        return OccurrenceTrial(
            occurrence=occurrence,
            cost=outcome.fun,
            criteria=criteria,
            payload=_Estimate(context, cost_function, outcome, params, count),
        )

    def _fallback(self, data: TimeSeriesData, frequency: int, n_nonzero: int,
                  n_param_max: int) -> GUMResult:
        warn_model(
            "Not enough observations for the requested model; "
            "simple exponential smoothing is estimated instead",
            model_type=self.name,
            issue="degenerate sample",
            parameter="orders",
            value=list(self.config.spec.orders),
            details=f"{n_nonzero} non-zero observations for up to {n_param_max} parameters"
        )
        fallback_config = replace(
            self.config,
            initial=(InitialType.OPTIMAL if self.config.initial is InitialType.PROVIDED
                     else self.config.initial),
            provided_parameters=None,
            persistence=None,
            initial_values=None,
            initial_x=None,
            transition_x=None,
            persistence_x=None,
            previous_fit=None,
        )
        model = SimpleExponentialSmoothing(config=fallback_config,
                                           first_minimizer=self.first_minimizer,
                                           second_minimizer=self.second_minimizer)
        result = model.fit(data, frequency=frequency)
        result.fallback = True
        self._forecaster = model._forecaster
        self._future_x = None
        self._results = result
        self._fitted = True
        return result

    def fit(self,
            data: TimeSeriesData,
            frequency: int = 1,
            xreg: Optional[ExogenousData] = None) -> GUMResult:
        """
        Estimate the model and forecast.

        Args:
            data: Series to model
            frequency: Seasonal frequency, used for the initial state seed
            xreg: Exogenous regressors, one row per observation plus optional
                rows covering the forecast horizon

        Returns:
            GUMResult: The fitted model with its forecast

        Raises:
            DataError: If the data is unsuitable for the model
            ParameterError: If ``provided_parameters`` has the wrong length
        """
        start_time = time.time()
        config = self.config
        spec = config.spec
        h = config.h

        y_all = self.validate_data(data)
        if config.holdout:
            y, holdout = y_all[:-h], y_all[-h:]
        else:
            y, holdout = y_all, None
        n = y.shape[0]
        nonzero = y != 0

        if spec.is_multiplicative:
            working = np.zeros(n)
            working[nonzero] = np.log(y[nonzero])
        else:
            working = y.copy()

        adapter = None
        if xreg is not None:
            adapter = ExogenousAdapter(xreg, n, h, config.update_x)
        n_exogenous = 0 if adapter is None else adapter.n_variables
        provided, initial_type = self._provided_blocks(spec, n_exogenous)

        n_nonzero = int(np.count_nonzero(nonzero))
        n_param_max = self._max_parameters(spec, provided, initial_type, adapter,
                                           config.intermittent)
        if self._allow_fallback and (n_nonzero <= n_param_max
                                     or not check_parameter_budget(n, n_param_max)):
            return self._fallback(data, frequency, n_nonzero, n_param_max)

        def evaluate(variant: OccurrenceType) -> OccurrenceTrial:
            return self._estimate(variant, spec, working, nonzero, provided, initial_type,
                                  adapter, frequency)

        if config.intermittent is OccurrenceType.AUTO:
            variants = OCCURRENCE_TRIAL_ORDER
            if spec.is_multiplicative and not np.all(nonzero):
                # The log of zero is undefined without an occurrence part
                variants = OCCURRENCE_TRIAL_ORDER[1:]
            selector = IntermittencySelector(config.ic, variants)
            winner, trials = selector.select(evaluate, nonzero)
        else:
            winner = evaluate(config.intermittent)
            trials = [winner]

        estimate: _Estimate = winner.payload
        context = estimate.context
        params = estimate.params
        occurrence = winner.occurrence
        count = estimate.count

        output = run_recursion(context, params, horizon=h)
        if not np.all(np.isfinite(output.fitted)):
            raise EstimationError(
                "The estimated model diverges over the sample",
                model_type=self.name,
                issue="non-finite fitted values",
                details=f"Best cost {estimate.outcome.fun:.6g} after {estimate.outcome.nfev} evaluations",
            )
        n_occurring = context.n_occurring
        sum_squares = float(np.sum(output.errors[context.occurring] ** 2))
        if n_occurring > count.estimated:
            s2 = sum_squares / (n_occurring - count.estimated)
        else:
            s2 = sum_squares / max(n_occurring, 1)

        self._check_stability(params)

        forecaster = Forecaster(spec, params, output.states, output.xstates, s2,
                                output.error_matrix, context.occurring)
        future_x = None if adapter is None else adapter.future
        prediction = forecaster.forecast(h, config.intervals, config.level, config.cumulative,
                                         xreg_future=future_x, probability=occurrence.forecast)

        fitted = np.exp(output.fitted) if spec.is_multiplicative else output.fitted.copy()
        fitted = fitted * occurrence.fitted

        measures = None
        if holdout is not None:
            actual = np.array([np.sum(holdout)]) if config.cumulative else holdout
            measures = accuracy(actual, prediction.mean, y,
                                benchmark_steps=h if config.cumulative else 1)

        fisher = None
        if config.fisher_information:
            fisher = self._fisher_information(estimate, occurrence)

        exogenous = None
        if adapter is not None:
            exogenous = ExogenousResult(
                names=adapter.names,
                initial=params.initial_x.copy(),
                transition=params.transition_x.copy(),
                persistence=params.persistence_x.copy(),
                coefficients=output.xstates,
                updated=config.update_x,
            )

        criteria = winner.criteria
        result = GUMResult(
            model=criteria.model_name,
            orders=spec.orders,
            lags=spec.lags,
            error_type=spec.error_type.value,
            states=output.states,
            measurement=params.measurement.copy(),
            transition=params.transition.copy(),
            persistence=params.persistence.copy(),
            initial_window=output.initial_window,
            initial_type=initial_type.value,
            fitted=fitted,
            forecast=prediction.mean,
            lower=prediction.lower,
            upper=prediction.upper,
            residuals=output.errors,
            errors=output.error_matrix,
            s2=s2,
            n_param=count,
            criteria=criteria,
            loglikelihood=criteria.loglikelihood,
            cost=winner.cost,
            cost_type=config.cost_function,
            criterion=config.ic,
            occurrence=occurrence,
            y=y,
            holdout=holdout,
            accuracy=measures,
            exogenous=exogenous,
            level=config.level,
            intervals=config.intervals.value,
            cumulative=config.cumulative,
            fisher_information=fisher,
            elapsed=time.time() - start_time,
            trials={t.occurrence.variant.value: t.criteria.get(config.ic) for t in trials},
        )

        self._forecaster = forecaster
        self._future_x = future_x
        self._results = result
        self._fitted = True
        logger.info(f"Estimated {result.model}: {config.ic.value}={result.ic:.4f}, "
                    f"s2={s2:.6g}, elapsed={result.elapsed:.3f}s")
        return result

    def _check_stability(self, params: DecodedParameters) -> None:
        radius = spectral_radius(discount_matrix(params.measurement, params.transition,
                                                 params.persistence))
        if radius <= 1.0 + get_config("numerical", "stability_tolerance"):
            return
        if self.config.bounds is BoundsType.ADMISSIBLE:
            message = "The optimizer returned an unstable model despite admissible bounds"
        else:
            message = "Unstable model was estimated! Use bounds='admissible' to address this issue!"
        warn_model(message, model_type=self.name, issue="unstable model",
                   parameter="persistence", value=np.round(params.persistence, 4).tolist(),
                   details=f"Spectral radius of the discount matrix: {radius:.6f}")

    def _fisher_information(self, estimate: _Estimate, occurrence: OccurrenceModel) -> np.ndarray:
        """Negative Hessian of the log-likelihood at the optimum."""
        x = np.asarray(estimate.outcome.x, dtype=float)
        if x.size == 0:
            return np.zeros((0, 0))
        cost_function = estimate.cost_function

        def loglikelihood(vector: np.ndarray) -> float:
            return self._loglikelihood(cost_function(vector), estimate.context, occurrence)

        return -hessian_2sided(loglikelihood, x)

    def forecast(self,
                 h: Optional[int] = None,
                 intervals: Optional[Union[str, IntervalType]] = None,
                 level: Optional[float] = None) -> pd.DataFrame:
        """
        Forecasts of the fitted model as a DataFrame indexed by horizon.

        Without arguments the forecast produced by :meth:`fit` is returned;
        otherwise the fitted model is extrapolated again.

        Raises:
            NotFittedError: If the model has not been fitted
            ForecastError: If the regressors do not cover the new horizon
            ParameterError: If the horizon or the level is invalid
        """
        result = self.results
        if h is None and intervals is None and level is None:
            return result.forecast_frame()

        h = self.config.h if h is None else h
        if not isinstance(h, (int, np.integer)) or h < 1:
            raise_parameter_error("Forecast horizon must be at least 1",
                                  param_name="h", param_value=h, constraint=">= 1")
        intervals = IntervalType.from_string(intervals if intervals is not None else result.intervals)
        level = result.level if level is None else level

        future_x = None
        if self._future_x is not None:
            if self._future_x.shape[0] < h:
                raise ForecastError(
                    f"Regressors cover {self._future_x.shape[0]} steps, {h} were requested",
                    horizon=h,
                    details="Refit with regressors covering the horizon"
                )
            future_x = self._future_x[:h]

        forecast_probability = result.occurrence.forecast
        last = float(forecast_probability[-1]) if forecast_probability.size else 1.0
        prediction = self._forecaster.forecast(h, intervals, level, result.cumulative,
                                               xreg_future=future_x,
                                               probability=np.full(h, last))
        return replace(result, forecast=prediction.mean, lower=prediction.lower,
                       upper=prediction.upper).forecast_frame()


class SimpleExponentialSmoothing(GUM):
    """
    Simple exponential smoothing as a one-component GUM.

    The measurement and the transition are fixed at one and the smoothing
    parameter is kept in [0, 1]; the initial level is estimated.

    Examples:
        >>> import numpy as np
        >>> model = SimpleExponentialSmoothing(h=3)
        >>> result = model.fit(np.array([10.0, 12.0, 11.0, 13.0, 12.5, 12.0]))
        >>> result.model
        'GUM(1[1])'
    """

    _allow_fallback = False

    def __init__(self,
                 config: Optional[GUMConfig] = None,
                 first_minimizer: Optional[BoundedMinimizer] = None,
                 second_minimizer: Optional[BoundedMinimizer] = None,
                 name: str = "SES",
                 **kwargs: Any) -> None:
        kwargs.update(orders=(1,), lags=(1,), measurement=np.ones(1),
                      transition=np.ones((1, 1)))
        if config is None:
            config = GUMConfig(**kwargs)
        else:
            config = replace(config, **kwargs)
        super().__init__(config=config, first_minimizer=first_minimizer,
                         second_minimizer=second_minimizer, name=name)

    def _persistence_bounds(self) -> Optional[Tuple[float, float]]:
        return (0.0, 1.0)
