"""Online stochastic gradient estimation with adaptive step sizes."""

from .rules import (
    OnlineConfig,
    StepFn,
    UpdateRule,
    adagrad_step,
    adam_step,
    nadam_step,
    plain_step,
    resolve_rule,
    rmsprop_step,
)
from .updater import (
    OnlineResult,
    OnlineState,
    logistic_gradient,
    online_fit,
    online_update,
    squared_error_gradient,
    squared_error_loss,
)

__all__ = [
    "UpdateRule",
    "OnlineConfig",
    "StepFn",
    "resolve_rule",
    "plain_step",
    "adagrad_step",
    "rmsprop_step",
    "adam_step",
    "nadam_step",
    "OnlineState",
    "OnlineResult",
    "online_update",
    "online_fit",
    "squared_error_gradient",
    "squared_error_loss",
    "logistic_gradient",
]
