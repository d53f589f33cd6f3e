"""Categorical draws from unnormalized weight vectors."""

from __future__ import annotations

from typing import Union

import numpy as np

from ..errors import DegenerateDistributionError, InvalidInputError

RNGLike = Union[None, int, np.random.Generator]


def resolve_rng(rng: RNGLike = None) -> np.random.Generator:
    """Return a NumPy generator for ``rng``.

    A Generator is returned as is; an integer seeds a new one; ``None`` seeds
    with 0 so that unseeded calls stay reproducible. Independent runs must
    each get their own generator.

    Examples:
        >>> resolve_rng(7).random() == resolve_rng(7).random()
        True
    """
    if isinstance(rng, np.random.Generator):
        return rng
    if rng is None:
        rng = 0
    return np.random.default_rng(rng)


def validate_weights(weights: np.ndarray) -> np.ndarray:
    """Validate a weight vector and return it as float64.

    Raises:
        InvalidInputError: If weights are empty, not 1D, non-finite or negative.
        DegenerateDistributionError: If every weight is zero.
    """
    w = np.asarray(weights, dtype=float)
    if w.ndim != 1 or w.size == 0:
        raise InvalidInputError(f"weights must be a non-empty 1D array, got shape {w.shape}")
    if not np.all(np.isfinite(w)):
        raise InvalidInputError("weights contain NaN or infinite values.")
    if np.any(w < 0.0):
        raise InvalidInputError(
            f"weights must be non-negative; negative at {np.flatnonzero(w < 0.0).tolist()}"
        )
    if not np.any(w > 0.0):
        raise DegenerateDistributionError(
            "All weights are zero; no valid categorical distribution exists."
        )
    return w


def draw_index(w: np.ndarray, rng: np.random.Generator) -> int:
    """Draw from already validated weights by inverting the cumulative sum."""
    cumsum = np.cumsum(w)
    u = rng.random() * cumsum[-1]
    idx = int(np.searchsorted(cumsum, u, side="right"))
    if idx >= w.size:
        # u rounded up to the total; take the last category with mass
        idx = int(np.flatnonzero(w > 0.0)[-1])
    return idx


def categorical_draw(weights: np.ndarray, rng: RNGLike = None) -> int:
    """Draw a category index with probability proportional to ``weights``.

    Args:
        weights: Non-negative weights, need not sum to one.
        rng: Generator, integer seed, or None (seed 0).

    Returns:
        Index in ``[0, len(weights))``. Zero-weight categories are never drawn.

    Raises:
        InvalidInputError: Negative, non-finite or empty weights.
        DegenerateDistributionError: All weights zero.

    Examples:
        >>> categorical_draw([0.0, 3.0, 0.0], rng=1)
        1
    """
    w = validate_weights(weights)
    return draw_index(w, resolve_rng(rng))


def categorical_draws(
    weights: np.ndarray, size: int, rng: RNGLike = None
) -> np.ndarray:
    """Draw ``size`` independent categories from the same weights."""
    if size < 0:
        raise InvalidInputError(f"size must be non-negative, got {size}")
    w = validate_weights(weights)
    generator = resolve_rng(rng)
    cumsum = np.cumsum(w)
    u = generator.random(size) * cumsum[-1]
    idx = np.searchsorted(cumsum, u, side="right")
    return np.minimum(idx, int(np.flatnonzero(w > 0.0)[-1])).astype(int)


__all__ = [
    "RNGLike",
    "resolve_rng",
    "validate_weights",
    "draw_index",
    "categorical_draw",
    "categorical_draws",
]
