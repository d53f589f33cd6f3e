"""Finite differences and small dense linear algebra for the optimizers.

Everything here is plain NumPy and deterministic; problems are assumed small
enough that an ``n x n`` Hessian fits in memory.
"""

from __future__ import annotations

from typing import Callable, Optional

import numpy as np

from .core import Bounds

Array = np.ndarray
Objective = Callable[[Array], float]


def bind_args(fun: Callable[..., float], args: tuple = ()) -> Objective:
    """Return ``x -> fun(x, *args)`` so data is passed explicitly, never captured."""
    if not args:
        return fun

    def bound(x: Array) -> float:
        return fun(x, *args)

    return bound


def guard_objective(fun: Objective) -> Objective:
    """Wrap an objective so NaN and -inf values come back as +inf.

    The optimizers treat +inf as an infeasible trial point and backtrack.
    Exceptions raised by ``fun`` are not intercepted.
    """

    def guarded(x: Array) -> float:
        with np.errstate(divide="ignore", invalid="ignore", over="ignore"):
            value = float(fun(x))
        if not np.isfinite(value):
            return np.inf
        return value

    return guarded


def _check_step(eps: float) -> None:
    if eps <= 0:
        raise ValueError("eps must be positive")


def approx_grad(
    fun: Objective,
    x: Array,
    eps: float = 1e-6,
    return_evals: bool = False,
    bounds: Optional[Bounds] = None,
) -> Array | tuple[Array, int]:
    """Finite-difference gradient of ``fun`` at ``x``.

    Central differences are used wherever ``x +- eps`` lies inside ``bounds``.
    Otherwise a one-sided difference is taken towards the side with more
    room, with the step shortened to that room when it is below ``eps``. A
    coordinate pinned by equal bounds gets a zero derivative. ``fun`` is never
    evaluated outside the box. With ``return_evals`` the number of
    evaluations is returned as well.
    """
    _check_step(eps)
    x = np.array(x, dtype=float)
    if bounds is None:
        room_up = room_down = np.full(x.size, np.inf)
    else:
        room_up = bounds.upper - x
        room_down = x - bounds.lower
    grad = np.empty(x.size)
    evals = 0
    fx: Optional[float] = None
    for i in range(x.size):
        if room_up[i] >= eps and room_down[i] >= eps:
            step = np.zeros(x.size)
            step[i] = eps
            grad[i] = (fun(x + step) - fun(x - step)) / (2.0 * eps)
            evals += 2
            continue
        h = min(eps, max(room_up[i], room_down[i]))
        trial = x.copy()
        if room_up[i] >= room_down[i]:
            trial[i] = min(x[i] + h, bounds.upper[i])
        else:
            trial[i] = max(x[i] - h, bounds.lower[i])
        delta = trial[i] - x[i]
        if delta == 0.0:
            # Pinned by its bounds
            grad[i] = 0.0
            continue
        if fx is None:
            fx = fun(x)
            evals += 1
        grad[i] = (fun(trial) - fx) / delta
        evals += 1
    return (grad, evals) if return_evals else grad


def approx_hessian(
    fun: Objective, x: Array, eps: float = 1e-4, return_evals: bool = False
) -> Array | tuple[Array, int]:
    """Central-difference Hessian; symmetric by construction."""
    _check_step(eps)
    x = np.asarray(x, dtype=float)
    n = x.size
    steps = eps * np.eye(n)
    fx = fun(x)
    plus = np.array([fun(x + s) for s in steps])
    minus = np.array([fun(x - s) for s in steps])
    hess = np.diag((plus - 2.0 * fx + minus) / eps**2)
    evals = 1 + 2 * n
    for i in range(n):
        for j in range(i + 1, n):
            si, sj = steps[i], steps[j]
            cross = fun(x + si + sj) - fun(x + si - sj) - fun(x - si + sj) + fun(x - si - sj)
            hess[i, j] = hess[j, i] = cross / (4.0 * eps**2)
            evals += 4
    return (hess, evals) if return_evals else hess


def is_pos_def(mat: Array, tol: float = 1e-12) -> bool:
    """True when the symmetric part of ``mat`` minus ``tol * I`` has a Cholesky factor."""
    sym = 0.5 * (mat + mat.T)
    try:
        np.linalg.cholesky(sym - tol * np.eye(sym.shape[0]))
    except np.linalg.LinAlgError:
        return False
    return True


def safe_solve(mat: Array, vec: Array, reg: float = 1e-12) -> Array:
    """Solve ``mat @ z = vec``, adding ``reg * I`` when ``mat`` is singular."""
    try:
        return np.linalg.solve(mat, vec)
    except np.linalg.LinAlgError:
        return np.linalg.solve(mat + reg * np.eye(mat.shape[0], dtype=mat.dtype), vec)


def standard_errors(
    fun: Callable[..., float], x: Array, args: tuple = (), eps: float = 1e-4
) -> Array:
    """Standard errors of a minimized negative log-likelihood.

    Inverts the finite-difference Hessian at ``x``. Entries are NaN when the
    Hessian is not positive definite (``x`` is not a strict local minimum).
    """
    hess = approx_hessian(bind_args(fun, args), np.asarray(x, dtype=float), eps=eps)
    if not is_pos_def(hess):
        return np.full(hess.shape[0], np.nan)
    cov = safe_solve(hess, np.eye(hess.shape[0]))
    return np.sqrt(np.diag(cov))


__all__ = [
    "Array",
    "Objective",
    "bind_args",
    "guard_objective",
    "approx_grad",
    "approx_hessian",
    "is_pos_def",
    "safe_solve",
    "standard_errors",
]
