"""Shared helpers for the objective functions."""

from __future__ import annotations

from typing import Callable

import numpy as np
import torch

from ..errors import InvalidInputError

# Fitted probabilities are floored here before taking logs.
PROB_FLOOR = 1e-12


def _elementwise(op: Callable[[torch.Tensor], torch.Tensor], x: np.ndarray) -> np.ndarray:
    """Apply a float64 ``torch.special`` function to an array-like."""
    values = torch.from_numpy(np.array(x, dtype=np.float64))
    return op(values).numpy()


def safe_log(p: np.ndarray) -> np.ndarray:
    """Log of probabilities clamped into ``[PROB_FLOOR, 1]``."""
    return np.log(np.clip(p, PROB_FLOOR, 1.0))


def normal_cdf(z: np.ndarray) -> np.ndarray:
    """Standard normal CDF, accurate in both tails."""
    return _elementwise(torch.special.ndtr, z)


def log_gamma(x: np.ndarray) -> np.ndarray:
    """Elementwise ``log(Gamma(x))``."""
    return _elementwise(torch.special.gammaln, x)


def log_factorial(y: np.ndarray) -> np.ndarray:
    """``log(y!)`` for non-negative counts."""
    return log_gamma(np.asarray(y, dtype=float) + 1.0)


def sigmoid(z: np.ndarray) -> np.ndarray:
    """Numerically stable logistic function."""
    z = np.asarray(z, dtype=float)
    return np.exp(-np.logaddexp(0.0, -z))


def check_design(X: np.ndarray, y: np.ndarray, n_coef: int) -> tuple[np.ndarray, np.ndarray]:
    """Validate a design matrix, response and coefficient count.

    Raises:
        InvalidInputError: On mismatched dimensions.
    """
    X = np.asarray(X, dtype=float)
    y = np.asarray(y, dtype=float).reshape(-1)
    if X.ndim != 2:
        raise InvalidInputError(f"X must be 2D, got shape {X.shape}.")
    if X.shape[0] != y.size:
        raise InvalidInputError(f"X has {X.shape[0]} rows but y has {y.size} entries.")
    if X.shape[1] != n_coef:
        raise InvalidInputError(
            f"X has {X.shape[1]} columns but {n_coef} coefficients were given."
        )
    return X, y


__all__ = [
    "PROB_FLOOR",
    "safe_log",
    "normal_cdf",
    "log_gamma",
    "log_factorial",
    "sigmoid",
    "check_design",
]
