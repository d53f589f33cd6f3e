"""Step-length selection for the quasi-Newton and bounded solvers.

Every search accepts a trial step only when the Armijo sufficient-decrease
test passes, and that test fails for any non-finite value. Objectives wrapped
by :func:`estkit.optimize.utils.guard_objective` report infeasible points as
``+inf``, so the searches shrink past them instead of stopping.
"""

from __future__ import annotations

from typing import Optional

import numpy as np

from .core import Array, Bounds, Gradient, Objective

ARMIJO_C = 1e-4
CURVATURE_C = 0.9
_ZOOM_STEPS = 32
_MIN_BRACKET = 1e-12


def sufficient_decrease(f_new: float, fx: float, predicted: float, c: float = ARMIJO_C) -> bool:
    """Armijo test ``f_new <= fx + c * predicted``; ``predicted`` is ``g . step``."""
    return bool(np.isfinite(f_new)) and f_new <= fx + c * predicted


def backtracking_armijo(
    f: Objective,
    x: Array,
    p: Array,
    grad_fx: Array,
    alpha0: float = 1.0,
    rho: float = 0.5,
    c: float = ARMIJO_C,
    max_iter: int = 50,
) -> tuple[float, int]:
    """Shrink ``alpha`` by ``rho`` until ``f(x + alpha p)`` decreases enough.

    Returns the step and the number of trial evaluations. When no trial
    passes, the last (smallest) step tried is returned.
    """
    if not 0 < c < 1:
        raise ValueError("Armijo constant c must lie in (0, 1)")
    if not 0 < rho < 1:
        raise ValueError("rho must lie in (0, 1)")
    fx = f(x)
    slope = float(np.dot(grad_fx, p))
    alpha = float(alpha0)
    for trial in range(1, max_iter + 1):
        if sufficient_decrease(f(x + alpha * p), fx, alpha * slope, c):
            return alpha, trial
        alpha *= rho
    return alpha, max_iter


def projected_backtracking(
    f: Objective,
    x: Array,
    fx: float,
    p: Array,
    grad_fx: Array,
    bounds: Bounds,
    alpha0: float = 1.0,
    rho: float = 0.5,
    c: float = ARMIJO_C,
    max_iter: int = 40,
) -> tuple[Optional[Array], float, int, int]:
    """Armijo backtracking along the projected path ``P(x + alpha p)``.

    Returns
    -------
    (x_new, f_new, nfev, n_nonfinite)
        ``x_new`` is None when no step within ``max_iter`` halvings passed,
        in which case ``f_new`` is ``fx``. ``n_nonfinite`` counts trial
        points whose objective was not finite.
    """
    alpha = float(alpha0)
    nfev = 0
    n_nonfinite = 0
    while nfev < max_iter:
        candidate = bounds.project(x + alpha * p)
        step = candidate - x
        if not np.any(step):
            # The projection collapsed the step onto x
            break
        f_new = f(candidate)
        nfev += 1
        if sufficient_decrease(f_new, fx, float(np.dot(grad_fx, step)), c):
            return candidate, f_new, nfev, n_nonfinite
        if not np.isfinite(f_new):
            n_nonfinite += 1
        alpha *= rho
    return None, fx, nfev, n_nonfinite


class _Restriction:
    """The objective along a ray, ``phi(alpha) = f(x + alpha p)``."""

    def __init__(self, f: Objective, grad: Gradient, x: Array, p: Array) -> None:
        self.f = f
        self.grad = grad
        self.x = x
        self.p = p
        self.nfev = 0

    def value(self, alpha: float) -> float:
        self.nfev += 1
        return float(self.f(self.x + alpha * self.p))

    def slope(self, alpha: float) -> float:
        return float(np.dot(self.grad(self.x + alpha * self.p), self.p))


def wolfe_line_search(
    f: Objective,
    grad: Gradient,
    x: Array,
    p: Array,
    alpha0: float = 1.0,
    c1: float = ARMIJO_C,
    c2: float = CURVATURE_C,
    max_iter: int = 40,
) -> tuple[float, int]:
    """Strong Wolfe line search (Nocedal & Wright, Algorithms 3.5 and 3.6).

    The step doubles until the minimum along ``p`` is bracketed, then the
    bracket is bisected. Returns the step and the number of objective
    evaluations, including the one at ``alpha = 0``.

    Raises:
        ValueError: If the constants are out of order or ``p`` is not a
            descent direction.
    """
    if not 0 < c1 < c2 < 1:
        raise ValueError("Require 0 < c1 < c2 < 1 for Wolfe conditions.")

    line = _Restriction(f, grad, x, p)
    phi0 = line.value(0.0)
    der0 = line.slope(0.0)
    if der0 >= 0:
        raise ValueError("Search direction must be a descent direction.")

    prev, phi_prev = 0.0, phi0
    alpha = float(alpha0)
    for iteration in range(max_iter):
        phi_alpha = line.value(alpha)
        if not sufficient_decrease(phi_alpha, phi0, alpha * der0, c1) or (
            iteration > 0 and phi_alpha >= phi_prev
        ):
            return _zoom(line, prev, phi_prev, alpha, phi0, der0, c1, c2), line.nfev
        der_alpha = line.slope(alpha)
        if abs(der_alpha) <= -c2 * der0:
            return alpha, line.nfev
        if der_alpha >= 0:
            return _zoom(line, alpha, phi_alpha, prev, phi0, der0, c1, c2), line.nfev
        prev, phi_prev = alpha, phi_alpha
        alpha *= 2.0
    return alpha, line.nfev


def _zoom(
    line: _Restriction,
    lo: float,
    phi_lo: float,
    hi: float,
    phi0: float,
    der0: float,
    c1: float,
    c2: float,
) -> float:
    """Bisect ``[lo, hi]`` until a point satisfies the strong Wolfe conditions.

    ``lo`` always holds the best step passing sufficient decrease; it is the
    fallback when the bracket collapses first.
    """
    alpha = lo
    for _ in range(_ZOOM_STEPS):
        alpha = 0.5 * (lo + hi)
        phi_alpha = line.value(alpha)
        if not sufficient_decrease(phi_alpha, phi0, alpha * der0, c1) or phi_alpha >= phi_lo:
            hi = alpha
        else:
            der_alpha = line.slope(alpha)
            if abs(der_alpha) <= -c2 * der0:
                return alpha
            if der_alpha * (hi - lo) >= 0:
                hi = lo
            lo, phi_lo = alpha, phi_alpha
        if abs(hi - lo) < _MIN_BRACKET:
            break
    if lo > 0 and np.isfinite(phi_lo):
        return lo
    return alpha


__all__ = [
    "ARMIJO_C",
    "CURVATURE_C",
    "backtracking_armijo",
    "projected_backtracking",
    "sufficient_decrease",
    "wolfe_line_search",
]
