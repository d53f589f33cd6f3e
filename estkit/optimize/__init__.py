"""Deterministic quasi-Newton optimization for hand-written likelihoods.

Example
-------
>>> import numpy as np
>>> from estkit.optimize import minimize
>>> from estkit.likelihoods import normal_nll
>>> y = np.random.default_rng(0).normal(5.0, 2.0, size=1000)
>>> res = minimize(normal_nll, np.array([0.0, 1.0]), args=(y,),
...                bounds=[(None, None), (0.0, None)])
>>> bool(res.success)
True
"""

from .autodiff import autograd_gradient, torch_problem
from .bounded import PGTOL, lbfgs_b, projected_gradient
from .core import (
    ATOL,
    FTOL,
    RTOL,
    Bounds,
    OptimizeResult,
    Problem,
    Status,
    TraceEntry,
    check_convergence,
    check_reduction,
)
from .evaluator import ObjectiveEvaluator, RunRecorder
from .line_search import (
    backtracking_armijo,
    projected_backtracking,
    sufficient_decrease,
    wolfe_line_search,
)
from .minimize import Method, minimize
from .quasi_newton import bfgs, lbfgs, two_loop_direction
from .utils import (
    approx_grad,
    approx_hessian,
    bind_args,
    guard_objective,
    is_pos_def,
    safe_solve,
    standard_errors,
)

__all__ = [
    "ATOL",
    "FTOL",
    "PGTOL",
    "RTOL",
    "Bounds",
    "Method",
    "ObjectiveEvaluator",
    "OptimizeResult",
    "Problem",
    "RunRecorder",
    "Status",
    "TraceEntry",
    "approx_grad",
    "approx_hessian",
    "autograd_gradient",
    "backtracking_armijo",
    "bfgs",
    "bind_args",
    "check_convergence",
    "check_reduction",
    "guard_objective",
    "is_pos_def",
    "lbfgs",
    "lbfgs_b",
    "minimize",
    "projected_backtracking",
    "projected_gradient",
    "safe_solve",
    "standard_errors",
    "sufficient_decrease",
    "torch_problem",
    "two_loop_direction",
    "wolfe_line_search",
]
