"""Zero-inflated count models."""

from __future__ import annotations

import numpy as np

from ..errors import InvalidInputError
from .core import check_design, log_factorial, safe_log, sigmoid


def zip_nll(params: np.ndarray, X: np.ndarray, Z: np.ndarray, y: np.ndarray) -> float:
    """Zero-inflated Poisson negative log-likelihood.

    ``params`` stacks the count coefficients (one per column of ``X``, log
    link) followed by the zero-inflation coefficients (one per column of
    ``Z``, logit link).
    """
    params = np.asarray(params, dtype=float)
    X = np.asarray(X, dtype=float)
    Z = np.asarray(Z, dtype=float)
    if X.ndim != 2 or Z.ndim != 2:
        raise InvalidInputError("X and Z must be 2D.")
    if params.size != X.shape[1] + Z.shape[1]:
        raise InvalidInputError(
            f"Expected {X.shape[1] + Z.shape[1]} parameters, got {params.size}."
        )
    beta, gamma = params[: X.shape[1]], params[X.shape[1]:]
    X, y = check_design(X, y, beta.size)
    Z, _ = check_design(Z, y, gamma.size)
    if np.any(y < 0):
        raise InvalidInputError("Counts must be non-negative.")

    eta = X @ beta
    lam = np.exp(eta)
    pi = sigmoid(Z @ gamma)
    zero = y == 0
    ll_zero = safe_log(pi[zero] + (1.0 - pi[zero]) * np.exp(-lam[zero]))
    pos = ~zero
    ll_pos = (
        safe_log(1.0 - pi[pos]) - lam[pos] + y[pos] * eta[pos] - log_factorial(y[pos])
    )
    return float(-(np.sum(ll_zero) + np.sum(ll_pos)))


__all__ = ["zip_nll"]
