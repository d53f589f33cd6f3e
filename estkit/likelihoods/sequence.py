"""Likelihoods for discrete state sequences."""

from __future__ import annotations

import numpy as np

from ..errors import InvalidInputError
from .core import safe_log


def transition_counts(sequence: np.ndarray, n_states: int) -> np.ndarray:
    """Count observed ``i -> j`` transitions, shape (n_states, n_states)."""
    seq = np.asarray(sequence, dtype=int).reshape(-1)
    if seq.size and (seq.min() < 0 or seq.max() >= n_states):
        raise InvalidInputError(f"States must lie in [0, {n_states}).")
    counts = np.zeros((n_states, n_states), dtype=np.int64)
    np.add.at(counts, (seq[:-1], seq[1:]), 1)
    return counts


def softmax_rows(logits: np.ndarray) -> np.ndarray:
    """Row-wise softmax."""
    shifted = logits - np.max(logits, axis=1, keepdims=True)
    e = np.exp(shifted)
    return e / np.sum(e, axis=1, keepdims=True)


def markov_chain_nll(params: np.ndarray, sequence: np.ndarray, n_states: int) -> float:
    """Negative log-likelihood of a first-order Markov chain.

    ``params`` holds ``n_states * n_states`` unconstrained logits, mapped to a
    transition matrix by a row-wise softmax. Transition probabilities are
    floored at ``PROB_FLOOR`` before taking logs.
    """
    params = np.asarray(params, dtype=float).reshape(-1)
    if params.size != n_states * n_states:
        raise InvalidInputError(
            f"Expected {n_states * n_states} logits, got {params.size}."
        )
    P = softmax_rows(params.reshape(n_states, n_states))
    counts = transition_counts(sequence, n_states)
    return float(-np.sum(counts * safe_log(P)))


__all__ = ["transition_counts", "softmax_rows", "markov_chain_nll"]
