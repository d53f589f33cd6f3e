"""Single entry point for maximum-likelihood style minimization."""

from __future__ import annotations

from enum import Enum
from typing import Callable, Optional, Sequence, Union

import numpy as np

from ..errors import InvalidInputError
from .bounded import PGTOL, lbfgs_b
from .core import FTOL, Bounds, OptimizeResult, Problem
from .evaluator import ObjectiveEvaluator
from .quasi_newton import bfgs, lbfgs

BoundsLike = Union[Bounds, Sequence[tuple[Optional[float], Optional[float]]], None]


class Method(Enum):
    """Available minimizers."""

    AUTO = "auto"
    BFGS = "bfgs"
    LBFGS = "lbfgs"
    LBFGS_B = "lbfgs_b"

    @classmethod
    def coerce(cls, value: Union["Method", str]) -> "Method":
        if isinstance(value, cls):
            return value
        key = str(value).lower().replace("-", "_")
        for member in cls:
            if member.value == key:
                return member
        supported = [member.value for member in cls]
        raise InvalidInputError(f"Unknown method '{value}'. Supported: {supported}")


def _coerce_bounds(bounds: BoundsLike, dim: int) -> Optional[Bounds]:
    if bounds is None:
        return None
    if not isinstance(bounds, Bounds):
        bounds = Bounds.from_pairs(list(bounds))
    bounds.check_dim(dim)
    return bounds


def minimize(
    objective: Callable[..., float],
    x0: np.ndarray,
    args: tuple = (),
    bounds: BoundsLike = None,
    method: Union[Method, str] = Method.AUTO,
    grad: Optional[Callable[..., np.ndarray]] = None,
    tol: float = PGTOL,
    ftol: float = FTOL,
    maxiter: int = 1000,
    verbose: bool = False,
    m: int = 10,
) -> OptimizeResult:
    """Minimize ``objective(x, *args)`` starting from ``x0``.

    With bounds (or ``method="lbfgs_b"``) the projected L-BFGS solver is used,
    otherwise BFGS. Running out of iterations is not an error: check
    ``result.success`` and ``result.status``. Exceptions raised by the
    objective propagate unchanged.

    Args:
        objective: Pure function of the parameter vector and ``args``.
        x0: Initial parameter vector.
        args: Fixed data passed to ``objective`` and ``grad``.
        bounds: ``Bounds`` or a sequence of ``(lower, upper)`` pairs, ``None``
            meaning unbounded on that side.
        method: "auto", "bfgs", "lbfgs" or "lbfgs_b".
        grad: Optional analytic gradient; finite differences otherwise.
        tol: Gradient (projected gradient for bounded runs) tolerance.
        ftol: Relative objective-reduction tolerance.
        maxiter: Iteration ceiling.
        verbose: Keep the per-iteration trace on the result.
        m: L-BFGS memory.

    Example:
        >>> import numpy as np
        >>> from estkit.optimize import minimize
        >>> res = minimize(lambda x, c: float(np.sum((x - c) ** 2)), np.zeros(2),
        ...                args=(np.array([1.0, -2.0]),))
        >>> np.round(res.x, 4)
        array([ 1., -2.])
    """
    x0 = np.asarray(x0, dtype=float).reshape(-1)
    if x0.size == 0:
        raise InvalidInputError("x0 must contain at least one parameter.")
    box = _coerce_bounds(bounds, x0.size)
    resolved = Method.coerce(method)
    if resolved is Method.AUTO:
        resolved = Method.LBFGS_B if box is not None and box.is_bounded() else Method.BFGS
    if box is not None and box.is_bounded() and resolved is not Method.LBFGS_B:
        raise InvalidInputError(f"Method '{resolved.value}' does not support bounds.")

    evaluator = ObjectiveEvaluator(objective, args=args, grad=grad, bounds=box)
    problem = Problem(fun=evaluator.fun, dim=x0.size)
    if resolved is Method.BFGS:
        return bfgs(
            problem, x0, maxiter=maxiter, tol=tol, ftol=ftol, verbose=verbose, evaluator=evaluator
        )
    if resolved is Method.LBFGS:
        return lbfgs(
            problem, x0, m=m, maxiter=maxiter, tol=tol, ftol=ftol, verbose=verbose,
            evaluator=evaluator,
        )
    return lbfgs_b(
        problem, x0, bounds=box, m=m, maxiter=maxiter, tol=tol, ftol=ftol, verbose=verbose,
        evaluator=evaluator,
    )


__all__ = ["Method", "minimize"]
