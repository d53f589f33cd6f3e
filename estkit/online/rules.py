"""First-order update rules for single-pass stochastic gradient descent.

Every rule shares one signature so that a configuration can be resolved to
its step function once, before the stream is processed:

    step(params, grad, first_moment, second_moment, t, config)
        -> (params, first_moment, second_moment)

``t`` is the 1-indexed number of the observation being processed; the
Adam-style bias corrections use ``beta ** t`` with exactly this ``t``.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Tuple, Union

import numpy as np

from ..errors import InvalidInputError

Moments = Tuple[np.ndarray, np.ndarray, np.ndarray]


class UpdateRule(Enum):
    """Supported update rules."""

    PLAIN = "plain"
    ADAGRAD = "adagrad"
    RMSPROP = "rmsprop"
    ADAM = "adam"
    NADAM = "nadam"

    @classmethod
    def coerce(cls, value: Union["UpdateRule", str]) -> "UpdateRule":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            supported = [member.value for member in cls]
            raise InvalidInputError(
                f"Unsupported update rule '{value}'. Supported rules: {supported}"
            ) from None


@dataclass(frozen=True)
class OnlineConfig:
    """
    Configuration of an online gradient updater.

    Args:
        rule: Update rule, as an UpdateRule or its name.
        stepsize: Learning rate. Must be positive.
        beta1: Decay of the first-moment average (Adam, Nadam).
        beta2: Decay of the second-moment average (Adam, Nadam).
        decay: Decay of the squared-gradient average (RMSProp).
        eps: Smoothing constant added to every square root in a denominator.
        average: Pull each new estimate toward the running average of the
            trajectory.
    """

    rule: Union[UpdateRule, str] = UpdateRule.PLAIN
    stepsize: float = 0.01
    beta1: float = 0.9
    beta2: float = 0.999
    decay: float = 0.9
    eps: float = 1e-8
    average: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "rule", UpdateRule.coerce(self.rule))
        if self.stepsize <= 0.0:
            raise InvalidInputError("stepsize must be positive.")
        for name in ("beta1", "beta2", "decay"):
            value = getattr(self, name)
            if not 0.0 <= value < 1.0:
                raise InvalidInputError(f"{name} must lie in [0, 1), got {value}")
        if self.eps <= 0.0:
            raise InvalidInputError("eps must be positive.")

    @property
    def step_fn(self) -> "StepFn":
        return resolve_rule(self)


def plain_step(params, grad, m, v, t, config: OnlineConfig) -> Moments:
    return params - config.stepsize * grad, m, v


def adagrad_step(params, grad, m, v, t, config: OnlineConfig) -> Moments:
    v = v + grad**2
    return params - config.stepsize * grad / (np.sqrt(v) + config.eps), m, v


def rmsprop_step(params, grad, m, v, t, config: OnlineConfig) -> Moments:
    v = config.decay * v + (1.0 - config.decay) * grad**2
    return params - config.stepsize * grad / (np.sqrt(v) + config.eps), m, v


def _adam_moments(grad, m, v, t, config: OnlineConfig):
    m = config.beta1 * m + (1.0 - config.beta1) * grad
    v = config.beta2 * v + (1.0 - config.beta2) * grad**2
    m_hat = m / (1.0 - config.beta1**t)
    v_hat = v / (1.0 - config.beta2**t)
    return m, v, m_hat, v_hat


def adam_step(params, grad, m, v, t, config: OnlineConfig) -> Moments:
    m, v, m_hat, v_hat = _adam_moments(grad, m, v, t, config)
    return params - config.stepsize * m_hat / (np.sqrt(v_hat) + config.eps), m, v


def nadam_step(params, grad, m, v, t, config: OnlineConfig) -> Moments:
    m, v, m_hat, v_hat = _adam_moments(grad, m, v, t, config)
    # Nesterov look-ahead on the bias-corrected first moment
    lookahead = config.beta1 * m_hat + (1.0 - config.beta1) * grad / (1.0 - config.beta1**t)
    return params - config.stepsize * lookahead / (np.sqrt(v_hat) + config.eps), m, v


StepFn = Callable[[np.ndarray, np.ndarray, np.ndarray, np.ndarray, int, OnlineConfig], Moments]

_STEPS: dict[UpdateRule, StepFn] = {
    UpdateRule.PLAIN: plain_step,
    UpdateRule.ADAGRAD: adagrad_step,
    UpdateRule.RMSPROP: rmsprop_step,
    UpdateRule.ADAM: adam_step,
    UpdateRule.NADAM: nadam_step,
}


def resolve_rule(config: OnlineConfig) -> StepFn:
    """Return the step function implementing ``config.rule``."""
    return _STEPS[config.rule]


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
]
