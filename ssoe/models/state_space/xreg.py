"""
Exogenous regressors.

:class:`ExogenousAdapter` splits user regressors into the in-sample part and
the rows covering the forecast horizon, supplies least-squares starting
coefficients and describes how many parameters the regressors add. With
``update=True`` the coefficients follow their own recursion driven by the
model's single error term.
"""

import logging
from typing import List, Optional

import numpy as np
import pandas as pd
import statsmodels.api as sm

from ...core.exceptions import raise_data_error, warn_model
from ...core.types import ExogenousData
from ...core.validation import validate_exogenous
from .structure import ProvidedBlocks

logger = logging.getLogger("ssoe.models.state_space.xreg")


class ExogenousAdapter:
    """
    Exogenous regressors aligned with a series.

    Args:
        xreg: Regressors with one row per observation, optionally followed by
            rows for the forecast horizon
        n_insample: Number of in-sample observations
        horizon: Forecast horizon
        update: Whether the coefficients are updated over time

    Raises:
        DataError: If there are fewer rows than in-sample observations
    """

    def __init__(self,
                 xreg: ExogenousData,
                 n_insample: int,
                 horizon: int,
                 update: bool = False) -> None:
        self.names = self._column_names(xreg)
        values = validate_exogenous(xreg)
        if values.shape[0] < n_insample:
            raise_data_error(
                f"xreg has {values.shape[0]} rows, the series has {n_insample} observations",
                data_name="xreg",
                issue="fewer rows than observations"
            )

        needed = n_insample + horizon
        if values.shape[0] < needed:
            warn_model(
                "xreg does not cover the forecast horizon; its last row is carried forward",
                model_type="GUMX",
                issue="short regressors",
                parameter="xreg",
                value=values.shape[0],
                details=f"{needed} rows are needed for a horizon of {horizon}"
            )
            padding = np.repeat(values[-1:, :], needed - values.shape[0], axis=0)
            values = np.vstack([values, padding])

        self.insample = np.ascontiguousarray(values[:n_insample, :])
        self.future = np.ascontiguousarray(values[n_insample:needed, :])
        self.update = bool(update)

    @staticmethod
    def _column_names(xreg: ExogenousData) -> List[str]:
        if isinstance(xreg, pd.DataFrame):
            return [str(c) for c in xreg.columns]
        if isinstance(xreg, pd.Series) and xreg.name is not None:
            return [str(xreg.name)]
        width = 1 if np.ndim(xreg) == 1 else np.shape(xreg)[1]
        return [f"x{i + 1}" for i in range(width)]

    @property
    def n_variables(self) -> int:
        return int(self.insample.shape[1])

    def initial_coefficients(self, y: np.ndarray, occurring: Optional[np.ndarray] = None) -> np.ndarray:
        """
        Least-squares coefficients of the regressors, fitted with an intercept.

        Args:
            y: Working series
            occurring: Mask of observations used in the regression

        Returns:
            np.ndarray: One coefficient per regressor, intercept excluded
        """
        mask = np.ones(y.shape[0], dtype=bool) if occurring is None else np.asarray(occurring, dtype=bool)
        design = sm.add_constant(self.insample[mask], has_constant='add')
        fit = sm.OLS(y[mask], design).fit()
        coefficients = np.asarray(fit.params, dtype=float)[1:]
        logger.debug(f"Initial exogenous coefficients: {coefficients}")
        return coefficients

    def n_parameters(self, provided: Optional[ProvidedBlocks] = None) -> int:
        """
        Maximum number of parameters the regressors can add.

        Blocks present in ``provided`` are fixed and not counted.
        """
        provided = provided if provided is not None else ProvidedBlocks()
        m = self.n_variables
        count = m if provided.initial_x is None else 0
        if self.update:
            count += m * m if provided.transition_x is None else 0
            count += m if provided.persistence_x is None else 0
        return count
