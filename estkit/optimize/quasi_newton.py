"""Quasi-Newton optimization algorithms (BFGS and L-BFGS)."""

from __future__ import annotations

import inspect
from collections import deque
from typing import Callable, Deque, Optional

import numpy as np

from ..errors import InvalidInputError
from .core import RTOL, OptimizeResult, Problem, Status, check_convergence, check_reduction
from .evaluator import ObjectiveEvaluator, RunRecorder
from .line_search import backtracking_armijo, wolfe_line_search

# Curvature pairs with y . s at or below this are discarded
CURVATURE_EPS = 1e-12


def _line_search_requires_grad(func: Callable) -> bool:
    sig = inspect.signature(func)
    params = list(sig.parameters.values())
    return len(params) >= 2 and params[1].name == "grad"


def _initial_point(evaluator: ObjectiveEvaluator, x0: np.ndarray) -> tuple[np.ndarray, float]:
    x = np.asarray(x0, dtype=float).reshape(-1).copy()
    fx = evaluator.value(x)
    if not np.isfinite(fx):
        raise InvalidInputError("Objective is not finite at the initial point.")
    return x, fx


def _take_step(
    evaluator: ObjectiveEvaluator,
    line_search: Callable,
    requires_grad: bool,
    x: np.ndarray,
    direction: np.ndarray,
    grad: np.ndarray,
    max_backtracks: int,
) -> tuple[np.ndarray, float]:
    """Run the line search; fall back to Armijo backtracking on non-finite trials."""
    if requires_grad:
        alpha, ls_evals = line_search(evaluator.fun, evaluator.gradient, x, direction)
    else:
        alpha, ls_evals = line_search(evaluator.fun, x, direction, grad)
    evaluator.nfev += int(ls_evals)
    x_new = x + alpha * direction
    fx_new = evaluator.value(x_new)
    if not np.isfinite(fx_new):
        alpha, ls_evals = backtracking_armijo(
            evaluator.fun, x, direction, grad, alpha0=min(alpha, 1.0), max_iter=max_backtracks
        )
        evaluator.nfev += int(ls_evals) + 1
        x_new = x + alpha * direction
        fx_new = evaluator.value(x_new)
    return x_new, fx_new


class _DenseInverse:
    """Full inverse-Hessian approximation updated by the BFGS formula."""

    def __init__(self, n: int) -> None:
        self.n = n
        self.H = np.eye(n)

    def direction(self, grad: np.ndarray) -> np.ndarray:
        return -self.H @ grad

    def reset(self) -> None:
        self.H = np.eye(self.n)

    def update(self, s: np.ndarray, y: np.ndarray) -> None:
        ys = float(np.dot(y, s))
        if ys <= CURVATURE_EPS:
            self.reset()
            return
        rho = 1.0 / ys
        left = np.eye(self.n) - rho * np.outer(s, y)
        self.H = left @ self.H @ left.T + rho * np.outer(s, s)


class _LimitedMemory:
    """The last ``m`` curvature pairs, applied by the two-loop recursion."""

    def __init__(self, m: int) -> None:
        self.s_history: Deque[np.ndarray] = deque(maxlen=m)
        self.y_history: Deque[np.ndarray] = deque(maxlen=m)

    def direction(self, grad: np.ndarray) -> np.ndarray:
        return two_loop_direction(grad, self.s_history, self.y_history)

    def reset(self) -> None:
        self.s_history.clear()
        self.y_history.clear()

    def update(self, s: np.ndarray, y: np.ndarray) -> None:
        if float(np.dot(y, s)) > CURVATURE_EPS:
            self.s_history.append(s)
            self.y_history.append(y)


def _run(
    name: str,
    model: _DenseInverse | _LimitedMemory,
    evaluator: ObjectiveEvaluator,
    x0: np.ndarray,
    maxiter: int,
    tol: float,
    ftol: float,
    line_search: Callable,
    history: bool,
    verbose: bool,
    max_backtracks: int,
) -> OptimizeResult:
    recorder = RunRecorder(name, history=history, verbose=verbose)
    x, fx = _initial_point(evaluator, x0)
    grad = evaluator.gradient(x)
    recorder.record(0, x, fx, float(np.linalg.norm(grad)))
    requires_grad = _line_search_requires_grad(line_search)
    nit = 0
    status, message = Status.MAX_ITER, "Maximum iterations reached."

    while nit < maxiter:
        grad_norm = float(np.linalg.norm(grad))
        if not np.isfinite(grad_norm):
            status, message = Status.NUMERICAL_ERROR, "Gradient is not finite."
            break
        if check_convergence(grad_norm, tol):
            status, message = Status.CONVERGED, "Gradient tolerance satisfied."
            break
        direction = model.direction(grad)
        if float(np.dot(direction, grad)) >= 0.0:
            # Curvature information no longer gives descent
            model.reset()
            direction = -grad
        x_new, fx_new = _take_step(
            evaluator, line_search, requires_grad, x, direction, grad, max_backtracks
        )
        if not np.isfinite(fx_new):
            status = Status.NUMERICAL_ERROR
            message = "Objective not finite along the search direction after backtracking."
            break
        if fx_new > fx:
            status = Status.LINE_SEARCH_FAILED
            message = "Line search returned a step that increases the objective."
            break
        grad_new = evaluator.gradient(x_new)
        model.update(x_new - x, grad_new - grad)
        reduced = check_reduction(fx, fx_new, ftol)
        x, fx, grad = x_new, fx_new, grad_new
        nit += 1
        recorder.record(nit, x, fx, float(np.linalg.norm(grad)))
        if reduced:
            status, message = Status.CONVERGED, "Relative reduction of the objective below ftol."
            break

    return recorder.finish(x, fx, grad, nit, status, message, evaluator)


def bfgs(
    problem: Problem,
    x0: np.ndarray,
    maxiter: int = 1000,
    tol: float = RTOL,
    ftol: float = 0.0,
    line_search: Callable = wolfe_line_search,
    history: bool = False,
    verbose: bool = False,
    max_backtracks: int = 30,
    evaluator: Optional[ObjectiveEvaluator] = None,
) -> OptimizeResult:
    """Full-memory BFGS with strong Wolfe line search.

    Stops on gradient norm ``<= tol`` or, when ``ftol > 0``, on a relative
    objective reduction below ``ftol``. Trial points with a non-finite
    objective are rejected by backtracking; if ``max_backtracks`` halvings do
    not recover a finite value the run ends with ``Status.NUMERICAL_ERROR``.
    """
    evaluator = evaluator or ObjectiveEvaluator.from_problem(problem)
    model = _DenseInverse(np.asarray(x0).size)
    return _run(
        "bfgs", model, evaluator, x0, maxiter, tol, ftol, line_search, history, verbose,
        max_backtracks,
    )


def lbfgs(
    problem: Problem,
    x0: np.ndarray,
    m: int = 10,
    maxiter: int = 1000,
    tol: float = RTOL,
    ftol: float = 0.0,
    line_search: Callable = wolfe_line_search,
    history: bool = False,
    verbose: bool = False,
    max_backtracks: int = 30,
    evaluator: Optional[ObjectiveEvaluator] = None,
) -> OptimizeResult:
    """L-BFGS keeping ``m`` curvature pairs; stopping rules as in :func:`bfgs`."""
    if m <= 0:
        raise ValueError("Memory parameter m must be positive.")
    evaluator = evaluator or ObjectiveEvaluator.from_problem(problem)
    return _run(
        "lbfgs", _LimitedMemory(m), evaluator, x0, maxiter, tol, ftol, line_search, history,
        verbose, max_backtracks,
    )


def two_loop_direction(
    g: np.ndarray, s_history: Deque[np.ndarray], y_history: Deque[np.ndarray]
) -> np.ndarray:
    """Return ``-H g`` for the L-BFGS inverse-Hessian approximation ``H``.

    Pairs with ``y . s`` at or below the curvature threshold are skipped. The
    initial matrix is ``gamma * I`` with ``gamma = s.y / y.y`` from the newest
    pair, or the identity without history.
    """
    pairs = [(s, y) for s, y in zip(s_history, y_history) if float(np.dot(y, s)) > CURVATURE_EPS]
    q = np.array(g, dtype=float)
    coefficients = []
    for s, y in reversed(pairs):
        rho = 1.0 / float(np.dot(y, s))
        a = rho * float(np.dot(s, q))
        q -= a * y
        coefficients.append((rho, a))
    if pairs:
        s_new, y_new = pairs[-1]
        r = q * (float(np.dot(s_new, y_new)) / float(np.dot(y_new, y_new)))
    else:
        r = q
    for (s, y), (rho, a) in zip(pairs, reversed(coefficients)):
        r += s * (a - rho * float(np.dot(y, r)))
    return -r


__all__ = ["bfgs", "lbfgs", "two_loop_direction"]
