"""Objective evaluation and run bookkeeping shared by the optimizers."""

from __future__ import annotations

from typing import Callable, List, Optional

import numpy as np

from ..logging import get_logger
from .core import Array, Bounds, OptimizeResult, Problem, Status, TraceEntry
from .utils import approx_grad, bind_args, guard_objective

logger = get_logger(__name__)


class ObjectiveEvaluator:
    """Wraps a scalar objective and its gradient, counting evaluations.

    The objective receives all data explicitly through ``args``. Non-finite
    values are reported as ``+inf``. When no gradient is supplied, central
    finite differences are used (one-sided next to a bound).

    Args:
        fun: Objective ``fun(x, *args) -> float``.
        args: Fixed data passed to ``fun`` and ``grad``.
        grad: Optional analytic gradient ``grad(x, *args) -> array``.
        bounds: Optional box used to keep finite differences feasible.
        eps: Finite-difference step.
    """

    def __init__(
        self,
        fun: Callable[..., float],
        args: tuple = (),
        grad: Optional[Callable[..., Array]] = None,
        bounds: Optional[Bounds] = None,
        eps: float = 1e-6,
    ):
        self.fun = guard_objective(bind_args(fun, args))
        self._grad = bind_args(grad, args) if grad is not None else None
        self.bounds = bounds
        self.eps = eps
        self.nfev = 0
        self.njev = 0

    @classmethod
    def from_problem(
        cls, problem: Problem, bounds: Optional[Bounds] = None
    ) -> "ObjectiveEvaluator":
        return cls(problem.fun, grad=problem.grad, bounds=bounds)

    @property
    def has_gradient(self) -> bool:
        return self._grad is not None

    def value(self, x: Array) -> float:
        self.nfev += 1
        return self.fun(x)

    def gradient(self, x: Array) -> Array:
        if self._grad is not None:
            self.njev += 1
            return np.asarray(self._grad(x), dtype=float).reshape(-1)
        grad, evals = approx_grad(
            self.fun, x, eps=self.eps, return_evals=True, bounds=self.bounds
        )
        self.nfev += int(evals)
        return grad


class RunRecorder:
    """Collects the optional history/trace of a run and logs progress."""

    def __init__(self, method: str, history: bool = False, verbose: bool = False):
        self.method = method
        self.keep_history = history
        self.verbose = verbose
        self.history: List[Array] = []
        self.trace: List[TraceEntry] = []

    def record(self, iteration: int, x: Array, fx: float, grad_norm: float) -> None:
        if self.keep_history:
            self.history.append(x.copy())
        if self.verbose:
            self.trace.append(TraceEntry(iteration=iteration, x=x.copy(), fun=float(fx)))
        logger.debug(
            "%s iter %d: f=%.10g |g|=%.3e", self.method, iteration, fx, grad_norm
        )

    def finish(
        self,
        x: Array,
        fx: float,
        grad: Array,
        nit: int,
        status: Status,
        message: str,
        evaluator: ObjectiveEvaluator,
    ) -> OptimizeResult:
        if self.keep_history and (
            len(self.history) == 0 or not np.array_equal(self.history[-1], x)
        ):
            self.history.append(x.copy())
        success = status is Status.CONVERGED
        if success:
            logger.info("%s converged after %d iterations: f=%.10g", self.method, nit, fx)
        else:
            logger.warning("%s stopped without converging: %s", self.method, message)
        return OptimizeResult(
            x=x,
            fun=float(fx),
            nit=nit,
            success=success,
            message=message,
            grad_norm=float(np.linalg.norm(grad)),
            nfev=evaluator.nfev,
            njev=evaluator.njev,
            status=status,
            history=self.history,
            trace=self.trace,
        )


__all__ = ["ObjectiveEvaluator", "RunRecorder"]
