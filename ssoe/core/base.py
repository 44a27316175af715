"""
Abstract base class of the toolbox's models.

Every model is configured at construction, estimated with ``fit`` and keeps
its last result. Forecasts are part of the fitted result, so ``forecast`` on the
model simply returns the stored forecast after checking that a fit exists.
"""

import abc
from typing import Any, Generic, Optional, TypeVar, cast

from .exceptions import raise_not_fitted_error

R = TypeVar('R')  # Result type
D = TypeVar('D')  # Data type


class ModelBase(abc.ABC, Generic[R, D]):
    """Abstract base class for all models in the SSOE Toolbox.

    Type Parameters:
        R: The result type for this model
        D: The data type this model accepts
    """

    def __init__(self, name: str = "Model"):
        self._name = name
        self._fitted = False
        self._results: Optional[R] = None

    @property
    def name(self) -> str:
        return self._name

    @property
    def fitted(self) -> bool:
        return self._fitted

    @property
    def results(self) -> R:
        """The result of the last fit.

        Raises:
            NotFittedError: If the model has not been fitted
        """
        if not self._fitted or self._results is None:
            raise_not_fitted_error(f"{self._name} has not been fitted",
                                   model_type=self._name, operation="results")
        return self._results

    @abc.abstractmethod
    def fit(self, data: D, **kwargs: Any) -> R:
        """Estimate the model and return its result.

        Args:
            data: The data to fit the model to
            **kwargs: Additional keyword arguments for estimation

        Returns:
            R: The estimation result
        """
        pass

    @abc.abstractmethod
    def validate_data(self, data: D) -> Any:
        """Validate and convert input data.

        Raises:
            DataError: If the data is unsuitable for the model
            TypeError: If the data has an incorrect type
        """
        pass

    def summary(self) -> str:
        """Text summary of the model and its last fit."""
        if not self._fitted:
            return f"Model: {self._name} (not fitted)"
        if hasattr(self._results, "summary") and callable(getattr(self._results, "summary")):
            return cast(Any, self._results).summary()
        return f"Model: {self._name} (fitted)"

    def __str__(self) -> str:
        return self.summary()

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name='{self._name}', fitted={self._fitted})"
