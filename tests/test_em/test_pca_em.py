"""Tests for PCA fitted by EM."""

import logging

import numpy as np
import pytest

from estkit.diagnostics import debug_context
from estkit.em import PCAEM
from estkit.errors import InvalidInputError
from estkit.logging import get_logger


@pytest.fixture
def low_rank_data(rng):
    n, p = 200, 6
    scores = rng.normal(size=(n, 2)) * np.array([5.0, 2.0])
    loadings, _ = np.linalg.qr(rng.normal(size=(p, 2)))
    return scores @ loadings.T + 0.1 * rng.normal(size=(n, p)) + 3.0


def svd_reference(X: np.ndarray, k: int):
    Xc = X - X.mean(axis=0)
    _, s, vt = np.linalg.svd(Xc, full_matrices=False)
    resid = Xc - Xc @ vt[:k].T @ vt[:k]
    return vt[:k], s[:k] ** 2 / (X.shape[0] - 1), float(np.sum(resid**2))


def test_reconstruction_error_is_non_increasing(low_rank_data):
    model = PCAEM(n_components=2).fit(low_rank_data)
    errors = model.reconstruction_errors_
    assert errors.size == model.n_iter_
    assert np.all(np.diff(errors) <= 1e-8 * errors[:-1])


def test_converges_to_svd_error(low_rank_data):
    model = PCAEM(n_components=2).fit(low_rank_data)
    _, _, svd_error = svd_reference(low_rank_data, 2)
    assert model.converged_
    assert model.reconstruction_errors_[-1] == pytest.approx(svd_error, rel=1e-6)
    assert model.reconstruction_error(low_rank_data) == pytest.approx(svd_error, rel=1e-6)


def test_components_match_svd_up_to_sign(low_rank_data):
    model = PCAEM(n_components=2).fit(low_rank_data)
    components, variances, _ = svd_reference(low_rank_data, 2)
    for ours, ref in zip(model.components_, components):
        assert abs(float(ours @ ref)) == pytest.approx(1.0, abs=1e-5)
    assert np.allclose(model.explained_variance_, variances, rtol=1e-5)
    assert np.all(np.diff(model.explained_variance_) <= 0)
    assert np.all(model.explained_variance_ratio_ <= 1.0)


def test_components_are_orthonormal(low_rank_data):
    model = PCAEM(n_components=3).fit(low_rank_data)
    gram = model.components_ @ model.components_.T
    assert np.allclose(gram, np.eye(3), atol=1e-10)


def test_transform_and_inverse_transform(low_rank_data):
    model = PCAEM(n_components=2)
    scores = model.fit_transform(low_rank_data)
    assert scores.shape == (low_rank_data.shape[0], 2)
    assert np.allclose(scores, model.scores_)
    restored = model.inverse_transform(scores)
    assert np.mean((restored - low_rank_data) ** 2) < 0.05


def test_fit_is_deterministic(low_rank_data):
    a = PCAEM(n_components=2).fit(low_rank_data)
    b = PCAEM(n_components=2).fit(low_rank_data)
    assert np.array_equal(a.components_, b.components_)


def test_invalid_inputs(low_rank_data):
    with pytest.raises(InvalidInputError):
        PCAEM(n_components=0).fit(low_rank_data)
    with pytest.raises(InvalidInputError):
        PCAEM(n_components=7).fit(low_rank_data)
    with pytest.raises(InvalidInputError):
        PCAEM().fit(np.array([[1.0, np.nan], [0.0, 1.0], [2.0, 2.0]]))
    with pytest.raises(AttributeError):
        PCAEM().transform(low_rank_data)


def test_debug_mode_does_not_warn_on_monotone_run(low_rank_data):
    records = []
    handler = logging.Handler()
    handler.emit = records.append
    logger = get_logger("estkit.em.pca")
    logger.addHandler(handler)
    try:
        with debug_context(True):
            PCAEM(n_components=2).fit(low_rank_data)
    finally:
        logger.removeHandler(handler)
    assert not any("increased" in record.getMessage() for record in records)


def test_fit_handles_collinear_columns(rng):
    b = rng.normal(size=(60, 1))
    X = np.hstack([b, 2.0 * b, -b]) + 1.0
    model = PCAEM(n_components=2).fit(X)
    assert model.converged_
    np.testing.assert_allclose(model.components_ @ model.components_.T, np.eye(2), atol=1e-8)
    np.testing.assert_allclose(model.components_[0], np.array([1.0, 2.0, -1.0]) / np.sqrt(6.0), atol=1e-8)
    assert model.explained_variance_[1] == pytest.approx(0.0, abs=1e-10)
    assert model.reconstruction_error(X) == pytest.approx(0.0, abs=1e-8)
