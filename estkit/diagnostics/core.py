"""Core diagnostic checks for estimation inputs and intermediate state."""

from __future__ import annotations

import numpy as np

from ..errors import InvalidInputError, NumericInstabilityError


def is_row_stochastic(mat: np.ndarray, atol: float = 1e-8) -> bool:
    """
    Check whether every row of a matrix is a probability vector.

    Parameters
    ----------
    mat:
        Array with shape (n, m).
    atol:
        Absolute tolerance for the row sums.

    Returns
    -------
    bool
        True if all entries are non-negative and every row sums to one.
    """
    mat = np.asarray(mat, dtype=float)
    if mat.ndim != 2 or not np.all(np.isfinite(mat)):
        return False
    return bool(np.all(mat >= 0.0) and np.allclose(mat.sum(axis=1), 1.0, atol=atol, rtol=0.0))


def assert_row_stochastic(mat: np.ndarray, atol: float = 1e-8) -> None:
    """
    Assert that a matrix is row-stochastic.

    Raises
    ------
    InvalidInputError
        If a row has negative entries or does not sum to one.
    """
    if not is_row_stochastic(mat, atol=atol):
        raise InvalidInputError(
            "Matrix must be non-negative with rows summing to 1 "
            f"(row sums: {np.asarray(mat, dtype=float).sum(axis=-1).tolist()})."
        )


def assert_finite(values: np.ndarray, what: str = "array") -> None:
    """
    Assert that every entry of an array is finite.

    Raises
    ------
    NumericInstabilityError
        If NaN or infinite values are present.
    """
    arr = np.asarray(values)
    if not np.all(np.isfinite(arr)):
        raise NumericInstabilityError(f"{what} contains non-finite values.")


def assert_counts_consistent(
    assignments: list[np.ndarray],
    documents: list[np.ndarray],
    doc_topic: np.ndarray,
    word_topic: np.ndarray,
    topic_totals: np.ndarray,
) -> None:
    """
    Assert that topic count tables equal the aggregation of the assignment.

    Parameters
    ----------
    assignments:
        One integer array of topic labels per document.
    documents:
        One integer array of word ids per document, aligned with assignments.
    doc_topic:
        Document-topic counts, shape (n_docs, n_topics).
    word_topic:
        Word-topic counts, shape (vocab_size, n_topics).
    topic_totals:
        Tokens per topic, shape (n_topics,).

    Raises
    ------
    NumericInstabilityError
        If any table disagrees with a fresh aggregation.
    """
    expected_dt = np.zeros_like(doc_topic)
    expected_wt = np.zeros_like(word_topic)
    for d, (words, topics) in enumerate(zip(documents, assignments)):
        np.add.at(expected_dt[d], topics, 1)
        np.add.at(expected_wt, (words, topics), 1)
    if not np.array_equal(expected_dt, doc_topic):
        raise NumericInstabilityError("Document-topic counts diverged from the assignment.")
    if not np.array_equal(expected_wt, word_topic):
        raise NumericInstabilityError("Word-topic counts diverged from the assignment.")
    if not np.array_equal(expected_wt.sum(axis=0), topic_totals):
        raise NumericInstabilityError("Topic totals diverged from the assignment.")


__all__ = [
    "is_row_stochastic",
    "assert_row_stochastic",
    "assert_finite",
    "assert_counts_consistent",
]
