"""estkit - numerical estimation toolkit built on NumPy and PyTorch."""

__version__ = "0.1.0"

# Quasi-Newton minimization
from .optimize import Bounds, OptimizeResult, Problem, Status, TraceEntry, minimize

# Expectation-maximization
from .em import PCAEM, EMResult, EMState, em_fit

# Online gradient updates
from .online import (
    OnlineConfig,
    OnlineResult,
    OnlineState,
    UpdateRule,
    online_fit,
    online_update,
    squared_error_gradient,
)

# Discrete-state sampling
from .sampling import (
    LDAGibbs,
    MarkovChain,
    TopicModelState,
    categorical_draw,
    estimate_transition_matrix,
    gibbs_sweep,
    simulate_markov_chain,
)

# Errors
from .errors import (
    DegenerateDistributionError,
    EstimationError,
    InvalidInputError,
    NotFittedError,
    NumericInstabilityError,
)

# Diagnostics and logging
from .diagnostics import debug_context, is_debug_enabled, set_debug_enabled
from .logging import configure_logging, get_logger, set_log_level

__all__ = [
    "__version__",
    "Bounds",
    "OptimizeResult",
    "Problem",
    "Status",
    "TraceEntry",
    "minimize",
    "EMResult",
    "EMState",
    "em_fit",
    "PCAEM",
    "UpdateRule",
    "OnlineConfig",
    "OnlineState",
    "OnlineResult",
    "online_update",
    "online_fit",
    "squared_error_gradient",
    "categorical_draw",
    "TopicModelState",
    "gibbs_sweep",
    "LDAGibbs",
    "MarkovChain",
    "simulate_markov_chain",
    "estimate_transition_matrix",
    "EstimationError",
    "InvalidInputError",
    "DegenerateDistributionError",
    "NumericInstabilityError",
    "NotFittedError",
    "debug_context",
    "is_debug_enabled",
    "set_debug_enabled",
    "configure_logging",
    "get_logger",
    "set_log_level",
]
