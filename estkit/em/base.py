"""Shared plumbing for estimators with a ``fit`` step."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

import numpy as np

from ..errors import InvalidInputError, NotFittedError


class Transformer(ABC):
    """Estimator mapping samples to a lower-dimensional representation."""

    @abstractmethod
    def fit(self, X: np.ndarray, y: np.ndarray | None = None) -> "Transformer":
        """Learn the mapping from X."""

    @abstractmethod
    def transform(self, X: np.ndarray) -> np.ndarray:
        """Map X to its representation."""

    def fit_transform(self, X: np.ndarray, y: np.ndarray | None = None) -> np.ndarray:
        return self.fit(X, y).transform(X)


def check_is_fitted(instance: Any, attributes: tuple[str, ...]) -> None:
    """Raise NotFittedError unless every attribute is set and not None."""
    missing = [attr for attr in attributes if getattr(instance, attr, None) is None]
    if missing:
        raise NotFittedError(
            f"{type(instance).__name__} is not fitted yet; call fit() first "
            f"(missing: {', '.join(missing)})."
        )


def check_array(X: Any, n_features: int | None = None) -> np.ndarray:
    """Validate a finite 2D float array, optionally with a fixed column count."""
    try:
        array = np.asarray(X, dtype=np.float64)
    except (TypeError, ValueError) as exc:
        raise InvalidInputError("Array cannot be converted to float64.") from exc
    if array.ndim != 2:
        raise InvalidInputError(f"Expected 2D array, got shape {array.shape}.")
    if not np.all(np.isfinite(array)):
        raise InvalidInputError("Array contains NaN or infinite values.")
    if n_features is not None and array.shape[1] != n_features:
        raise InvalidInputError(f"Expected {n_features} features, got {array.shape[1]}.")
    return array


__all__ = ["Transformer", "check_is_fitted", "check_array"]
