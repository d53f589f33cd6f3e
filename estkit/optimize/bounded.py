"""Box-constrained limited-memory BFGS.

A projected variant of L-BFGS in the spirit of L-BFGS-B: variables sitting
on a bound with the gradient pushing outward are held fixed, the two-loop
recursion is applied to the remaining free variables, and the step is found
by Armijo backtracking along the projected path ``P(x + alpha d)``.

References:
    Byrd, Lu, Nocedal & Zhu (1995). A limited memory algorithm for bound
    constrained optimization. SIAM J. Sci. Comput. 16(5).
"""

from __future__ import annotations

from collections import deque
from typing import Deque, Optional

import numpy as np

from ..errors import InvalidInputError
from .core import FTOL, Bounds, OptimizeResult, Problem, Status, check_reduction
from .evaluator import ObjectiveEvaluator, RunRecorder
from .line_search import projected_backtracking
from .quasi_newton import two_loop_direction

PGTOL = 1e-5


def projected_gradient(x: np.ndarray, grad: np.ndarray, bounds: Bounds) -> np.ndarray:
    """Return ``x - P(x - grad)``; zero exactly at a KKT point of the box problem."""
    return x - bounds.project(x - grad)


def _active_mask(x: np.ndarray, grad: np.ndarray, bounds: Bounds) -> np.ndarray:
    at_lower = (x <= bounds.lower) & (grad > 0.0)
    at_upper = (x >= bounds.upper) & (grad < 0.0)
    return at_lower | at_upper


def lbfgs_b(
    problem: Problem,
    x0: np.ndarray,
    bounds: Optional[Bounds] = None,
    m: int = 10,
    maxiter: int = 1000,
    tol: float = PGTOL,
    ftol: float = FTOL,
    history: bool = False,
    verbose: bool = False,
    max_backtracks: int = 40,
    max_retries: int = 3,
    evaluator: Optional[ObjectiveEvaluator] = None,
) -> OptimizeResult:
    """Minimize ``problem.fun`` subject to ``bounds.lower <= x <= bounds.upper``.

    Args:
        problem: Objective and optional gradient.
        x0: Starting point. Entries outside the box are clamped into it.
        bounds: Box constraints; ``None`` means unbounded.
        m: Number of correction pairs kept.
        maxiter: Iteration ceiling.
        tol: Convergence threshold on the infinity norm of the projected gradient.
        ftol: Convergence threshold on the relative objective reduction.
        max_backtracks: Step halvings allowed per line search.
        max_retries: Consecutive line searches allowed to fail on non-finite
            trial values before the run stops with ``Status.NUMERICAL_ERROR``.

    Returns:
        OptimizeResult; ``success`` is False on iteration exhaustion or
        persistent non-finite objective values.
    """
    if m <= 0:
        raise ValueError("Memory parameter m must be positive.")
    x = np.asarray(x0, dtype=float).reshape(-1).copy()
    if bounds is None:
        bounds = Bounds.unbounded(x.size)
    bounds.check_dim(x.size)
    x = bounds.project(x)
    evaluator = evaluator or ObjectiveEvaluator.from_problem(problem, bounds=bounds)
    recorder = RunRecorder("lbfgs_b", history=history, verbose=verbose)

    fx = evaluator.value(x)
    if not np.isfinite(fx):
        raise InvalidInputError("Objective is not finite at the initial point.")
    grad = evaluator.gradient(x)
    recorder.record(0, x, fx, float(np.linalg.norm(grad)))
    s_history: Deque[np.ndarray] = deque(maxlen=m)
    y_history: Deque[np.ndarray] = deque(maxlen=m)
    nit = 0
    failures = 0
    status = Status.MAX_ITER
    message = "Maximum iterations reached."

    while nit < maxiter:
        if not np.all(np.isfinite(grad)):
            status = Status.NUMERICAL_ERROR
            message = "Gradient is not finite."
            break
        pg_norm = float(np.max(np.abs(projected_gradient(x, grad, bounds)), initial=0.0))
        if pg_norm <= tol:
            status = Status.CONVERGED
            message = "Projected gradient tolerance satisfied."
            break

        free = ~_active_mask(x, grad, bounds)
        g_free = np.where(free, grad, 0.0)
        direction = two_loop_direction(
            g_free,
            deque((np.where(free, s, 0.0) for s in s_history), maxlen=m),
            deque((np.where(free, y, 0.0) for y in y_history), maxlen=m),
        )
        direction = np.where(free, direction, 0.0)
        if float(np.dot(direction, grad)) >= 0.0 or not np.all(np.isfinite(direction)):
            s_history.clear()
            y_history.clear()
            direction = -g_free
        # Without curvature information take a unit-length first step
        alpha0 = 1.0 if s_history else min(1.0, 1.0 / float(np.linalg.norm(direction)))

        x_new, fx_new, ls_evals, n_nonfinite = projected_backtracking(
            evaluator.fun, x, fx, direction, grad, bounds, alpha0=alpha0, max_iter=max_backtracks
        )
        evaluator.nfev += ls_evals
        if x_new is None:
            failures += 1
            if s_history and failures < max_retries:
                # Retry from steepest descent
                s_history.clear()
                y_history.clear()
                continue
            if n_nonfinite:
                status = Status.NUMERICAL_ERROR
                message = (
                    f"Objective not finite at trial points in {failures} consecutive line searches."
                )
            else:
                status = Status.LINE_SEARCH_FAILED
                message = "Line search could not reduce the objective."
            break
        failures = 0

        grad_new = evaluator.gradient(x_new)
        s = x_new - x
        y = grad_new - grad
        sy = float(np.dot(s, y))
        if sy > np.finfo(float).eps * float(np.dot(y, y)):
            s_history.append(s)
            y_history.append(y)
        reduced = check_reduction(fx, fx_new, ftol)
        x, fx, grad = x_new, fx_new, grad_new
        nit += 1
        recorder.record(nit, x, fx, float(np.linalg.norm(grad)))
        if reduced:
            status = Status.CONVERGED
            message = "Relative reduction of the objective below ftol."
            break

    return recorder.finish(x, fx, grad, nit, status, message, evaluator)


__all__ = ["PGTOL", "lbfgs_b", "projected_gradient"]
