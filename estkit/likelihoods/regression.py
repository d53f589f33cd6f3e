"""Negative log-likelihoods and losses for regression models.

Every function is pure: the parameter vector comes first and all data is
passed explicitly, so they can be used directly as
``minimize(f, x0, args=(X, y))``.
"""

from __future__ import annotations

from enum import Enum
from typing import Callable

import numpy as np

from ..errors import InvalidInputError
from .core import check_design, log_factorial, normal_cdf, safe_log

_HALF_LOG_2PI = 0.5 * np.log(2.0 * np.pi)


def normal_nll(params: np.ndarray, y: np.ndarray) -> float:
    """Negative log-likelihood of ``y`` under ``N(mu, sigma^2)``.

    ``params`` is ``[mu, sigma]``; a non-positive sigma is infeasible (+inf).
    """
    mu, sigma = float(params[0]), float(params[1])
    if sigma <= 0.0:
        return np.inf
    y = np.asarray(y, dtype=float)
    z = (y - mu) / sigma
    return float(y.size * (np.log(sigma) + _HALF_LOG_2PI) + 0.5 * np.dot(z, z))


def linear_regression_nll(params: np.ndarray, X: np.ndarray, y: np.ndarray) -> float:
    """Gaussian linear model; ``params`` is ``[beta..., sigma]``."""
    params = np.asarray(params, dtype=float)
    X, y = check_design(X, y, params.size - 1)
    beta, sigma = params[:-1], params[-1]
    if sigma <= 0.0:
        return np.inf
    resid = (y - X @ beta) / sigma
    return float(y.size * (np.log(sigma) + _HALF_LOG_2PI) + 0.5 * np.dot(resid, resid))


def logistic_nll(beta: np.ndarray, X: np.ndarray, y: np.ndarray) -> float:
    """Bernoulli negative log-likelihood with the logit link."""
    X, y = check_design(X, y, np.size(beta))
    eta = X @ np.asarray(beta, dtype=float)
    return float(np.sum(np.logaddexp(0.0, eta) - y * eta))


def probit_nll(beta: np.ndarray, X: np.ndarray, y: np.ndarray) -> float:
    """Bernoulli negative log-likelihood with the probit link."""
    X, y = check_design(X, y, np.size(beta))
    eta = X @ np.asarray(beta, dtype=float)
    # Phi(-eta) = 1 - Phi(eta) without cancellation in the upper tail
    return float(-np.sum(y * safe_log(normal_cdf(eta)) + (1.0 - y) * safe_log(normal_cdf(-eta))))


def poisson_nll(beta: np.ndarray, X: np.ndarray, y: np.ndarray) -> float:
    """Poisson negative log-likelihood with the log link."""
    X, y = check_design(X, y, np.size(beta))
    if np.any(y < 0):
        raise InvalidInputError("Poisson counts must be non-negative.")
    eta = X @ np.asarray(beta, dtype=float)
    return float(np.sum(np.exp(eta) - y * eta + log_factorial(y)))


def quantile_loss(beta: np.ndarray, X: np.ndarray, y: np.ndarray, tau: float = 0.5) -> float:
    """Check-function loss of quantile regression at level ``tau``."""
    if not 0.0 < tau < 1.0:
        raise InvalidInputError(f"tau must lie in (0, 1), got {tau}")
    X, y = check_design(X, y, np.size(beta))
    resid = y - X @ np.asarray(beta, dtype=float)
    return float(np.sum(resid * (tau - (resid < 0.0))))


def _l1(beta: np.ndarray) -> float:
    return float(np.sum(np.abs(beta)))


def _l2(beta: np.ndarray) -> float:
    return float(np.dot(beta, beta))


class Penalty(Enum):
    """Coefficient penalty for penalized least squares."""

    L1 = "l1"
    L2 = "l2"

    @property
    def function(self) -> Callable[[np.ndarray], float]:
        return _l1 if self is Penalty.L1 else _l2


def penalized_least_squares(
    beta: np.ndarray,
    X: np.ndarray,
    y: np.ndarray,
    lam: float,
    penalty: Penalty = Penalty.L2,
    penalize_intercept: bool = False,
) -> float:
    """Half residual sum of squares plus ``lam`` times the chosen penalty.

    The first coefficient is treated as the intercept and left unpenalized
    unless ``penalize_intercept`` is set.
    """
    if lam < 0.0:
        raise InvalidInputError(f"lam must be non-negative, got {lam}")
    beta = np.asarray(beta, dtype=float)
    X, y = check_design(X, y, beta.size)
    resid = y - X @ beta
    penalized = beta if penalize_intercept else beta[1:]
    return float(0.5 * np.dot(resid, resid) + lam * penalty.function(penalized))


__all__ = [
    "normal_nll",
    "linear_regression_nll",
    "logistic_nll",
    "probit_nll",
    "poisson_nll",
    "quantile_loss",
    "Penalty",
    "penalized_least_squares",
]
