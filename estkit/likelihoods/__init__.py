"""Pure objective functions for the classic likelihood-based models.

Each function takes the parameter vector first and every piece of data as an
explicit argument, so it can be handed straight to
:func:`estkit.optimize.minimize` through ``args``.
"""

from .core import (
    PROB_FLOOR,
    check_design,
    log_factorial,
    log_gamma,
    normal_cdf,
    safe_log,
    sigmoid,
)
from .count import zip_nll
from .regression import (
    Penalty,
    linear_regression_nll,
    logistic_nll,
    normal_nll,
    penalized_least_squares,
    poisson_nll,
    probit_nll,
    quantile_loss,
)
from .sequence import markov_chain_nll, softmax_rows, transition_counts
from .survival import cox_partial_nll

__all__ = [
    "PROB_FLOOR",
    "Penalty",
    "check_design",
    "cox_partial_nll",
    "linear_regression_nll",
    "log_factorial",
    "log_gamma",
    "logistic_nll",
    "markov_chain_nll",
    "normal_cdf",
    "normal_nll",
    "penalized_least_squares",
    "poisson_nll",
    "probit_nll",
    "quantile_loss",
    "safe_log",
    "sigmoid",
    "softmax_rows",
    "transition_counts",
    "zip_nll",
]
