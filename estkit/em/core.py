"""Generic expectation-maximization iteration.

The caller supplies the two half-steps; this module only owns the loop,
the convergence test and the bookkeeping:

    Initialized --E,M--> Iterating --delta < tol--> Converged
                                   --max_iter-----> MaxIterExceeded
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Generic, List, Optional, TypeVar

import numpy as np

from ..errors import InvalidInputError
from ..logging import get_logger

logger = get_logger(__name__)

P = TypeVar("P")
L = TypeVar("L")


class EMState(Enum):
    """Lifecycle of an EM run."""

    INITIALIZED = "initialized"
    ITERATING = "iterating"
    CONVERGED = "converged"
    MAX_ITER_EXCEEDED = "max_iter_exceeded"


@dataclass
class EMResult(Generic[P, L]):
    """Outcome of :func:`em_fit`.

    Attributes:
        params: Parameters after the last M-step.
        iterations: Number of completed E/M cycles.
        converged: True only if the monitored change fell below ``tol``.
        state: Final :class:`EMState`.
        latent: Latent quantities from the last E-step.
        delta: Last max-absolute change of the monitored quantity.
        history: Monitored change for every iteration after the first.
    """

    params: P
    iterations: int
    converged: bool
    state: EMState
    latent: Optional[L] = None
    delta: float = np.inf
    history: List[float] = field(default_factory=list)


def _flatten(value: Any) -> np.ndarray:
    if isinstance(value, (tuple, list)):
        parts = [np.asarray(v, dtype=float).ravel() for v in value]
        return np.concatenate(parts) if parts else np.zeros(0)
    return np.asarray(value, dtype=float).ravel()


def em_fit(
    e_step: Callable[[P], L],
    m_step: Callable[[L], P],
    initial_params: P,
    tol: float = 1e-6,
    max_iter: int = 100,
    monitor: Optional[Callable[[P, L], Any]] = None,
    callback: Optional[Callable[[int, P, L], None]] = None,
) -> EMResult[P, L]:
    """Alternate E- and M-steps until the monitored quantity settles.

    Each cycle calls ``latent = e_step(params)`` and then
    ``params = m_step(latent)``; the M-step never runs before the first
    E-step. Convergence is declared when the largest absolute change of the
    monitored quantity between two consecutive cycles is below ``tol``, so at
    least two cycles always run. Hitting ``max_iter`` is reported through
    ``converged=False`` and ``EMState.MAX_ITER_EXCEEDED``.

    Args:
        e_step: Maps parameters to expected latent quantities.
        m_step: Maps latent quantities to updated parameters.
        initial_params: Starting parameters.
        tol: Threshold on the max absolute change of the monitored quantity.
        max_iter: Maximum number of E/M cycles.
        monitor: ``monitor(params, latent)`` returning the array(s) to watch.
            Defaults to the latent quantities (arrays or a tuple of arrays).
        callback: Called as ``callback(iteration, params, latent)`` after
            every cycle (1-indexed).

    Returns:
        EMResult with the final parameters and convergence information.

    Raises:
        InvalidInputError: If ``tol`` or ``max_iter`` is invalid, or the
            monitored quantity changes shape between cycles.
    """
    if tol <= 0:
        raise InvalidInputError(f"tol must be positive, got {tol}")
    if max_iter < 1:
        raise InvalidInputError(f"max_iter must be >= 1, got {max_iter}")

    state = EMState.INITIALIZED
    params = initial_params
    latent: Optional[L] = None
    previous: Optional[np.ndarray] = None
    delta = np.inf
    history: List[float] = []
    iteration = 0

    while iteration < max_iter:
        state = EMState.ITERATING
        latent = e_step(params)
        params = m_step(latent)
        iteration += 1
        current = _flatten(monitor(params, latent) if monitor is not None else latent)
        if callback is not None:
            callback(iteration, params, latent)
        if previous is not None:
            if current.shape != previous.shape:
                raise InvalidInputError(
                    f"Monitored quantity changed shape from {previous.shape} to {current.shape}."
                )
            delta = float(np.max(np.abs(current - previous), initial=0.0))
            history.append(delta)
            logger.debug("EM iter %d: max change %.3e", iteration, delta)
            if delta < tol:
                state = EMState.CONVERGED
                break
        previous = current

    if state is not EMState.CONVERGED:
        state = EMState.MAX_ITER_EXCEEDED
        logger.warning(
            "EM did not converge in %d iterations (last change %.3e, tol %.1e)",
            max_iter, delta, tol,
        )
    else:
        logger.info("EM converged after %d iterations", iteration)

    return EMResult(
        params=params,
        iterations=iteration,
        converged=state is EMState.CONVERGED,
        state=state,
        latent=latent,
        delta=delta,
        history=history,
    )


__all__ = ["EMState", "EMResult", "em_fit"]
