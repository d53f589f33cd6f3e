"""Collapsed Gibbs sampling for Latent Dirichlet Allocation.

Implements the token-by-token reassignment sweep of Griffiths & Steyvers
with symmetric Dirichlet priors ``alpha`` (document-topic) and ``beta``
(topic-word).

References:
    Griffiths, T. L. & Steyvers, M. (2004). Finding scientific topics.
    PNAS 101 (suppl. 1), 5228-5235.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence

import numpy as np

from ..diagnostics import assert_counts_consistent, is_debug_enabled
from ..em.base import check_is_fitted
from ..errors import InvalidInputError
from ..likelihoods.core import log_gamma
from ..logging import get_logger
from .categorical import RNGLike, draw_index, resolve_rng

logger = get_logger(__name__)


def _check_documents(documents: Sequence[Sequence[int]], vocab_size: int) -> List[np.ndarray]:
    docs = [np.asarray(doc, dtype=int).reshape(-1) for doc in documents]
    if not docs:
        raise InvalidInputError("At least one document is required.")
    for d, doc in enumerate(docs):
        if doc.size and (doc.min() < 0 or doc.max() >= vocab_size):
            raise InvalidInputError(
                f"Document {d} has word ids outside [0, {vocab_size})."
            )
    return docs


@dataclass
class TopicModelState:
    """Latent topic assignment plus the count tables aggregated from it.

    Attributes:
        documents: Word ids per document.
        assignments: Topic label per token, aligned with ``documents``.
        doc_topic: Counts ``n_dk``, shape (n_docs, n_topics).
        word_topic: Counts ``n_wk``, shape (vocab_size, n_topics).
        topic_totals: Counts ``n_k``, shape (n_topics,).
    """

    documents: List[np.ndarray]
    assignments: List[np.ndarray]
    doc_topic: np.ndarray
    word_topic: np.ndarray
    topic_totals: np.ndarray

    @property
    def n_topics(self) -> int:
        return int(self.doc_topic.shape[1])

    @property
    def vocab_size(self) -> int:
        return int(self.word_topic.shape[0])

    @classmethod
    def from_assignments(
        cls,
        documents: Sequence[Sequence[int]],
        assignments: Sequence[Sequence[int]],
        n_topics: int,
        vocab_size: int,
    ) -> "TopicModelState":
        """Build the count tables by aggregating an explicit assignment."""
        if n_topics < 1:
            raise InvalidInputError("n_topics must be >= 1")
        docs = _check_documents(documents, vocab_size)
        labels = [np.asarray(z, dtype=int).reshape(-1).copy() for z in assignments]
        if len(labels) != len(docs):
            raise InvalidInputError(
                f"Got {len(labels)} assignment rows for {len(docs)} documents."
            )
        doc_topic = np.zeros((len(docs), n_topics), dtype=np.int64)
        word_topic = np.zeros((vocab_size, n_topics), dtype=np.int64)
        for d, (words, topics) in enumerate(zip(docs, labels)):
            if topics.shape != words.shape:
                raise InvalidInputError(f"Assignment row {d} does not match its document length.")
            if topics.size and (topics.min() < 0 or topics.max() >= n_topics):
                raise InvalidInputError(f"Assignment row {d} has labels outside [0, {n_topics}).")
            np.add.at(doc_topic[d], topics, 1)
            np.add.at(word_topic, (words, topics), 1)
        return cls(docs, labels, doc_topic, word_topic, word_topic.sum(axis=0))

    @classmethod
    def from_documents(
        cls,
        documents: Sequence[Sequence[int]],
        n_topics: int,
        vocab_size: int,
        rng: RNGLike = None,
    ) -> "TopicModelState":
        """Assign every token a uniformly random topic."""
        if n_topics < 1:
            raise InvalidInputError("n_topics must be >= 1")
        generator = resolve_rng(rng)
        docs = _check_documents(documents, vocab_size)
        labels = [generator.integers(n_topics, size=doc.size) for doc in docs]
        return cls.from_assignments(docs, labels, n_topics, vocab_size)

    def check_invariants(self) -> None:
        """Raise NumericInstabilityError if the tables drifted from the assignment."""
        assert_counts_consistent(
            self.assignments, self.documents, self.doc_topic, self.word_topic, self.topic_totals
        )


def topic_conditional(
    state: TopicModelState, d: int, word: int, alpha: float, beta: float
) -> np.ndarray:
    """Unnormalized ``p(z = k | rest)`` for a token whose counts were removed."""
    v_beta = state.vocab_size * beta
    return (
        (state.doc_topic[d] + alpha)
        * (state.word_topic[word] + beta)
        / (state.topic_totals + v_beta)
    )


def gibbs_sweep(
    state: TopicModelState, alpha: float, beta: float, rng: RNGLike = None
) -> TopicModelState:
    """Reassign every token once, in place.

    Tokens are visited document by document, left to right. For each token
    its current topic is removed from the count tables, a new topic is drawn
    from the collapsed conditional and added back, so the tables equal the
    aggregation of the assignment after every single update. With debug mode
    on this is verified after each token.

    Returns:
        The same ``state`` object, updated.
    """
    if alpha <= 0 or beta <= 0:
        raise InvalidInputError("alpha and beta must be positive.")
    generator = resolve_rng(rng)
    check = is_debug_enabled()
    for d, (words, topics) in enumerate(zip(state.documents, state.assignments)):
        for i, word in enumerate(words):
            old = topics[i]
            state.doc_topic[d, old] -= 1
            state.word_topic[word, old] -= 1
            state.topic_totals[old] -= 1

            new = draw_index(topic_conditional(state, d, word, alpha, beta), generator)

            topics[i] = new
            state.doc_topic[d, new] += 1
            state.word_topic[word, new] += 1
            state.topic_totals[new] += 1
            if check:
                state.check_invariants()
    return state


def collapsed_log_likelihood(state: TopicModelState, beta: float) -> float:
    """``log p(w | z)`` with the topic-word distributions integrated out."""
    n_topics, vocab = state.n_topics, state.vocab_size
    per_topic = np.sum(log_gamma(state.word_topic + beta), axis=0) - log_gamma(
        state.topic_totals + vocab * beta
    )
    const = n_topics * (float(log_gamma(vocab * beta)) - vocab * float(log_gamma(beta)))
    return float(const + np.sum(per_topic))


class LDAGibbs:
    """Latent Dirichlet Allocation fitted by collapsed Gibbs sampling.

    Attributes:
        theta_: Document-topic proportions, shape (n_docs, n_topics).
        phi_: Topic-word distributions, shape (n_topics, vocab_size).
        log_likelihood_: Collapsed log-likelihood after each sweep.
        state_: Final TopicModelState.
    """

    def __init__(
        self,
        n_topics: int,
        alpha: float = 0.1,
        beta: float = 0.01,
        n_iter: int = 200,
        rng: Optional[np.random.Generator] = None,
    ):
        if n_topics < 1:
            raise InvalidInputError("n_topics must be >= 1")
        if alpha <= 0 or beta <= 0:
            raise InvalidInputError("alpha and beta must be positive")
        if n_iter < 1:
            raise InvalidInputError("n_iter must be >= 1")
        self.n_topics = n_topics
        self.alpha = alpha
        self.beta = beta
        self.n_iter = n_iter
        self.rng = rng if rng is not None else np.random.default_rng(0)

        self.state_ = None
        self.theta_ = None
        self.phi_ = None
        self.log_likelihood_ = None

    def fit(self, documents: Sequence[Sequence[int]], vocab_size: int) -> "LDAGibbs":
        """Run ``n_iter`` Gibbs sweeps from a random assignment."""
        state = TopicModelState.from_documents(documents, self.n_topics, vocab_size, self.rng)
        history = []
        for sweep in range(self.n_iter):
            gibbs_sweep(state, self.alpha, self.beta, self.rng)
            history.append(collapsed_log_likelihood(state, self.beta))
            logger.debug("LDA sweep %d: log p(w|z)=%.6g", sweep + 1, history[-1])

        self.state_ = state
        self.log_likelihood_ = np.array(history)
        doc_lengths = state.doc_topic.sum(axis=1, keepdims=True)
        self.theta_ = (state.doc_topic + self.alpha) / (doc_lengths + self.n_topics * self.alpha)
        self.phi_ = (
            (state.word_topic + self.beta) / (state.topic_totals + vocab_size * self.beta)
        ).T
        logger.info("LDA finished %d sweeps over %d documents", self.n_iter, len(state.documents))
        return self

    def top_words(self, n: int = 10) -> np.ndarray:
        """Word ids with the highest probability in each topic, shape (n_topics, n)."""
        check_is_fitted(self, ("phi_",))
        return np.argsort(-self.phi_, axis=1, kind="stable")[:, :n]


__all__ = [
    "TopicModelState",
    "topic_conditional",
    "gibbs_sweep",
    "collapsed_log_likelihood",
    "LDAGibbs",
]
