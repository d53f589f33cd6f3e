"""Cox proportional hazards partial likelihood."""

from __future__ import annotations

import numpy as np

from ..errors import InvalidInputError
from .core import check_design


def cox_partial_nll(
    beta: np.ndarray,
    X: np.ndarray,
    time: np.ndarray,
    event: np.ndarray,
    order: np.ndarray,
) -> float:
    """Negative Cox partial log-likelihood with Breslow handling of ties.

    The caller supplies ``order``, a permutation putting ``time`` in
    non-decreasing order (typically ``np.argsort(time, kind="stable")``).
    The inputs themselves are never reordered.

    Args:
        beta: Coefficients, shape (p,).
        X: Covariates, shape (n, p).
        time: Follow-up times, shape (n,).
        event: 1 for an observed event, 0 for censoring, shape (n,).
        order: Permutation of ``range(n)`` sorting ``time`` ascending.

    Raises:
        InvalidInputError: If ``order`` is not a sorting permutation of ``time``.
    """
    X, time = check_design(X, time, np.size(beta))
    event = np.asarray(event, dtype=float).reshape(-1)
    order = np.asarray(order)
    n = time.size
    if event.size != n:
        raise InvalidInputError(f"event has {event.size} entries, expected {n}.")
    if order.shape != (n,) or not np.array_equal(np.sort(order), np.arange(n)):
        raise InvalidInputError("order must be a permutation of range(n).")
    t_sorted = time[order]
    if np.any(np.diff(t_sorted) < 0):
        raise InvalidInputError("order does not sort time in non-decreasing order.")

    eta = X[order] @ np.asarray(beta, dtype=float)
    shift = float(np.max(eta))
    w = np.exp(eta - shift)
    # Risk set of subject i is everyone with time >= t_i
    tail_sums = np.cumsum(w[::-1])[::-1]
    first_tied = np.searchsorted(t_sorted, t_sorted, side="left")
    log_risk = np.log(tail_sums[first_tied]) + shift
    d = event[order]
    return float(-np.sum(d * (eta - log_risk)))


__all__ = ["cox_partial_nll"]
