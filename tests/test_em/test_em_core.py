"""Tests for the generic EM iterator."""

import numpy as np
import pytest

from estkit.em import EMResult, EMState, em_fit
from estkit.errors import InvalidInputError


def gaussian_mixture_steps(x: np.ndarray, sigma: float = 1.0):
    """E/M steps for a two-component 1D mixture with known, equal variance."""

    def e_step(params):
        weight, mu1, mu2 = params
        d1 = weight * np.exp(-0.5 * ((x - mu1) / sigma) ** 2)
        d2 = (1.0 - weight) * np.exp(-0.5 * ((x - mu2) / sigma) ** 2)
        return d1 / (d1 + d2)

    def m_step(resp):
        weight = resp.mean()
        mu1 = np.sum(resp * x) / np.sum(resp)
        mu2 = np.sum((1.0 - resp) * x) / np.sum(1.0 - resp)
        return np.array([weight, mu1, mu2])

    return e_step, m_step


def test_em_recovers_mixture_means(rng):
    x = np.concatenate([rng.normal(-2.0, 1.0, 300), rng.normal(3.0, 1.0, 700)])
    e_step, m_step = gaussian_mixture_steps(x)
    result = em_fit(e_step, m_step, np.array([0.5, -1.0, 1.0]), tol=1e-8, max_iter=500)
    assert isinstance(result, EMResult)
    assert result.converged
    assert result.state is EMState.CONVERGED
    weight, mu1, mu2 = result.params
    assert weight == pytest.approx(0.3, abs=0.05)
    assert mu1 == pytest.approx(-2.0, abs=0.2)
    assert mu2 == pytest.approx(3.0, abs=0.2)
    assert result.delta < 1e-8


def test_em_reports_iteration_exhaustion(rng):
    x = rng.normal(size=200)
    e_step, m_step = gaussian_mixture_steps(x)
    result = em_fit(e_step, m_step, np.array([0.5, -1.0, 1.0]), tol=1e-300, max_iter=3)
    assert not result.converged
    assert result.state is EMState.MAX_ITER_EXCEEDED
    assert result.iterations == 3
    assert len(result.history) == 2


def test_first_iteration_never_converges():
    result = em_fit(lambda p: np.zeros(2), lambda z: 0.0, 0.0, tol=1.0, max_iter=10)
    assert result.converged
    assert result.iterations == 2


def test_e_step_always_precedes_m_step():
    calls = []

    def e_step(params):
        calls.append("E")
        return np.array([params * 0.5])

    def m_step(latent):
        calls.append("M")
        return float(latent[0])

    em_fit(e_step, m_step, 1.0, tol=1e-3, max_iter=50)
    assert calls[0] == "E"
    assert all(a != b for a, b in zip(calls, calls[1:]))


def test_callback_and_monitor():
    seen = []

    def e_step(params):
        return params / 2.0

    def m_step(latent):
        return latent

    result = em_fit(
        e_step,
        m_step,
        np.array([8.0]),
        tol=1e-2,
        max_iter=100,
        monitor=lambda params, latent: params,
        callback=lambda it, params, latent: seen.append(it),
    )
    assert seen == list(range(1, result.iterations + 1))
    assert result.converged
    assert np.all(np.abs(result.params) < 1e-2)


def test_invalid_settings():
    with pytest.raises(InvalidInputError):
        em_fit(lambda p: p, lambda z: z, 1.0, tol=0.0)
    with pytest.raises(InvalidInputError):
        em_fit(lambda p: p, lambda z: z, 1.0, max_iter=0)


def test_shape_change_is_rejected():
    sizes = iter([1, 2, 3, 4])

    with pytest.raises(InvalidInputError):
        em_fit(lambda p: np.zeros(next(sizes)), lambda z: z, 0.0, max_iter=4)
