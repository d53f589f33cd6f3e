"""Discrete-time Markov chain simulation and re-estimation."""

from __future__ import annotations

from typing import Iterator, Optional, Sequence

import numpy as np

from ..diagnostics import assert_row_stochastic
from ..errors import InvalidInputError
from ..likelihoods.core import safe_log
from ..likelihoods.sequence import transition_counts
from .categorical import RNGLike, draw_index, resolve_rng


class MarkovChain:
    """First-order Markov chain over states ``0 .. n_states - 1``.

    Attributes:
        trans_mat: Transition matrix, rows sum to one, shape (n_states, n_states).
        start_prob: Initial-state distribution, shape (n_states,).
    """

    def __init__(
        self,
        trans_mat: np.ndarray,
        start_prob: Optional[np.ndarray] = None,
        labels: Optional[Sequence[object]] = None,
    ):
        """Initialize the chain.

        Args:
            trans_mat: Row-stochastic transition matrix.
            start_prob: Initial distribution; uniform when None.
            labels: Optional names for the states, used by :meth:`simulate_labels`.

        Raises:
            InvalidInputError: On non-square or non-stochastic inputs.
        """
        trans_mat = np.asarray(trans_mat, dtype=float)
        if trans_mat.ndim != 2 or trans_mat.shape[0] != trans_mat.shape[1]:
            raise InvalidInputError(f"trans_mat must be square, got shape {trans_mat.shape}")
        assert_row_stochastic(trans_mat)
        n_states = trans_mat.shape[0]
        if start_prob is None:
            start_prob = np.full(n_states, 1.0 / n_states)
        start_prob = np.asarray(start_prob, dtype=float)
        if start_prob.shape != (n_states,):
            raise InvalidInputError(
                f"start_prob must have shape ({n_states},), got {start_prob.shape}"
            )
        assert_row_stochastic(start_prob[np.newaxis, :])
        if labels is not None and len(labels) != n_states:
            raise InvalidInputError(f"Expected {n_states} labels, got {len(labels)}")

        self.trans_mat = trans_mat
        self.start_prob = start_prob
        self.labels = list(labels) if labels is not None else None

    @property
    def n_states(self) -> int:
        return int(self.trans_mat.shape[0])

    def simulate(self, n_steps: int, rng: RNGLike = None) -> Iterator[int]:
        """Lazily yield ``n_steps`` states.

        Each state is drawn from the row of the transition matrix indexed by
        the previous state only. Calling again with the same seed replays the
        same path.
        """
        if n_steps < 0:
            raise InvalidInputError(f"n_steps must be non-negative, got {n_steps}")
        return self._walk(n_steps, resolve_rng(rng))

    def _walk(self, n_steps: int, generator: np.random.Generator) -> Iterator[int]:
        if n_steps == 0:
            return
        state = draw_index(self.start_prob, generator)
        yield state
        for _ in range(n_steps - 1):
            state = draw_index(self.trans_mat[state], generator)
            yield state

    def simulate_labels(self, n_steps: int, rng: RNGLike = None) -> Iterator[object]:
        """Like :meth:`simulate` but yields state labels."""
        if self.labels is None:
            raise InvalidInputError("Chain has no labels.")
        for state in self.simulate(n_steps, rng):
            yield self.labels[state]

    def log_likelihood(self, sequence: np.ndarray) -> float:
        """Log-probability of a state sequence (probabilities floored at PROB_FLOOR)."""
        seq = np.asarray(sequence, dtype=int).reshape(-1)
        if seq.size == 0:
            return 0.0
        counts = transition_counts(seq, self.n_states)
        return float(
            safe_log(self.start_prob[seq[0]]) + np.sum(counts * safe_log(self.trans_mat))
        )

    def stationary_distribution(self) -> np.ndarray:
        """Left eigenvector of the transition matrix for eigenvalue one."""
        eigvals, eigvecs = np.linalg.eig(self.trans_mat.T)
        idx = int(np.argmin(np.abs(eigvals - 1.0)))
        pi = np.real(eigvecs[:, idx])
        return pi / pi.sum()


def simulate_markov_chain(
    trans_mat: np.ndarray,
    n_steps: int,
    start_prob: Optional[np.ndarray] = None,
    rng: RNGLike = None,
) -> np.ndarray:
    """Simulate ``n_steps`` states and return them as an integer array."""
    chain = MarkovChain(trans_mat, start_prob)
    return np.fromiter(chain.simulate(n_steps, rng), dtype=int, count=n_steps)


def estimate_transition_matrix(sequence: np.ndarray, n_states: int) -> np.ndarray:
    """Maximum-likelihood transition matrix by frequency counting.

    Rows of states never left in ``sequence`` are NaN: the data carry no
    information about them.
    """
    counts = transition_counts(sequence, n_states).astype(float)
    totals = counts.sum(axis=1, keepdims=True)
    with np.errstate(invalid="ignore", divide="ignore"):
        return np.where(totals > 0, counts / totals, np.nan)


__all__ = [
    "MarkovChain",
    "simulate_markov_chain",
    "estimate_transition_matrix",
]
