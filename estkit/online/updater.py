"""Single-pass online gradient updates.

An update consumes one observation: the caller's gradient function is
evaluated at the current parameters, the configured rule produces new
parameters and moment accumulators, and an optional averaging step pulls
the estimate toward the running mean of the trajectory. States are never
mutated; every update returns a fresh :class:`OnlineState`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Iterable, Optional, Tuple

import numpy as np

from ..errors import InvalidInputError, NumericInstabilityError
from ..logging import get_logger
from .rules import OnlineConfig, StepFn

logger = get_logger(__name__)

GradientFn = Callable[[np.ndarray, Any], np.ndarray]
LossFn = Callable[[np.ndarray, Any], float]


@dataclass(frozen=True)
class OnlineState:
    """Parameters and accumulators after ``t`` processed observations."""

    params: np.ndarray
    t: int
    first_moment: np.ndarray
    second_moment: np.ndarray
    average: np.ndarray

    @classmethod
    def initial(cls, x0: Any) -> "OnlineState":
        params = np.atleast_1d(np.asarray(x0, dtype=float)).copy()
        if params.ndim != 1:
            raise InvalidInputError(f"Initial parameters must be 1D, got shape {params.shape}")
        zeros = np.zeros_like(params)
        return cls(params=params, t=0, first_moment=zeros, second_moment=zeros.copy(), average=params.copy())


@dataclass
class OnlineResult:
    """Outcome of :func:`online_fit`.

    Attributes:
        params: Final parameter estimate.
        trajectory: Estimate after each observation, shape ``(n_obs, p)``.
        losses: Loss of each observation evaluated before its update, or
            None if no loss function was given.
        state: Final :class:`OnlineState`, usable to continue the stream.
    """

    params: np.ndarray
    trajectory: np.ndarray
    losses: Optional[np.ndarray]
    state: OnlineState

    @property
    def n_observations(self) -> int:
        return self.state.t


def _apply(state: OnlineState, grad: np.ndarray, config: OnlineConfig, step: StepFn) -> OnlineState:
    t = state.t + 1
    params, m, v = step(state.params, grad, state.first_moment, state.second_moment, t, config)
    average = state.average
    if config.average:
        average = state.average + (params - state.average) / t
        params = params + (average - params) / t
    if not np.all(np.isfinite(params)):
        raise NumericInstabilityError(f"Online update produced non-finite parameters at t={t}")
    return OnlineState(params=params, t=t, first_moment=m, second_moment=v, average=average)


def _gradient(state: OnlineState, gradient_fn: GradientFn, observation: Any) -> np.ndarray:
    grad = np.asarray(gradient_fn(state.params, observation), dtype=float).reshape(-1)
    if grad.shape != state.params.shape:
        raise InvalidInputError(
            f"Gradient shape {grad.shape} does not match parameter shape {state.params.shape}"
        )
    return grad


def online_update(
    state: OnlineState,
    gradient_fn: GradientFn,
    observation: Any,
    config: OnlineConfig,
) -> OnlineState:
    """Consume one observation and return the updated state.

    ``t`` of the returned state is the 1-indexed count of observations
    processed so far, which is also the exponent used in the bias
    corrections of Adam and Nadam.

    Raises:
        InvalidInputError: If the gradient shape does not match the parameters.
        NumericInstabilityError: If the update yields non-finite parameters.
    """
    return _apply(state, _gradient(state, gradient_fn, observation), config, config.step_fn)


def online_fit(
    x0: Any,
    gradient_fn: GradientFn,
    observations: Iterable[Any],
    config: OnlineConfig,
    loss_fn: Optional[LossFn] = None,
    state: Optional[OnlineState] = None,
) -> OnlineResult:
    """
    Run one pass of online updates over a stream of observations.

    Args:
        x0: Initial parameters (ignored if ``state`` is given).
        gradient_fn: ``gradient_fn(params, observation)`` returning the
            per-observation gradient.
        observations: Iterable of observations, consumed once in order.
        config: Update configuration.
        loss_fn: Optional ``loss_fn(params, observation)``; evaluated on each
            observation before the update that uses it.
        state: Resume from a previous state instead of ``x0``.

    Returns:
        OnlineResult with the final estimate and the full trajectory.
    """
    current = state if state is not None else OnlineState.initial(x0)
    step = config.step_fn
    trajectory = []
    losses = [] if loss_fn is not None else None

    for observation in observations:
        if losses is not None:
            losses.append(float(loss_fn(current.params, observation)))
        current = _apply(current, _gradient(current, gradient_fn, observation), config, step)
        trajectory.append(current.params)

    if not trajectory:
        logger.warning("online_fit received no observations")
    logger.debug("online %s pass over %d observations", config.rule.value, len(trajectory))

    return OnlineResult(
        params=current.params.copy(),
        trajectory=np.array(trajectory).reshape(len(trajectory), current.params.size),
        losses=np.array(losses) if losses is not None else None,
        state=current,
    )


def squared_error_gradient(params: np.ndarray, observation: Tuple[Any, float]) -> np.ndarray:
    """Gradient of ``(x @ params - y)**2 / 2`` for one ``(x, y)`` pair."""
    x, y = observation
    x = np.asarray(x, dtype=float)
    return (x @ params - y) * x


def squared_error_loss(params: np.ndarray, observation: Tuple[Any, float]) -> float:
    x, y = observation
    resid = float(np.asarray(x, dtype=float) @ params - y)
    return resid * resid


def logistic_gradient(params: np.ndarray, observation: Tuple[Any, float]) -> np.ndarray:
    """Gradient of the logistic log loss for one ``(x, y)`` pair with ``y`` in {0, 1}."""
    x, y = observation
    x = np.asarray(x, dtype=float)
    eta = float(x @ params)
    prob = 1.0 / (1.0 + np.exp(-eta)) if eta >= 0 else np.exp(eta) / (1.0 + np.exp(eta))
    return (prob - y) * x


__all__ = [
    "OnlineState",
    "OnlineResult",
    "online_update",
    "online_fit",
    "squared_error_gradient",
    "squared_error_loss",
    "logistic_gradient",
]
