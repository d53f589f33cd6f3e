"""Tests for categorical draws."""

import numpy as np
import pytest

from estkit.errors import DegenerateDistributionError, InvalidInputError
from estkit.sampling import categorical_draw, categorical_draws, resolve_rng

# chi-squared critical value, 3 degrees of freedom, alpha = 0.001
CHI2_CRIT_3DOF = 16.266


def chi_square(counts: np.ndarray, probs: np.ndarray) -> float:
    expected = counts.sum() * probs
    return float(np.sum((counts - expected) ** 2 / expected))


def test_draw_frequencies_pass_chi_square(rng):
    weights = np.array([1.0, 2.0, 3.0, 4.0])
    draws = [categorical_draw(weights, rng) for _ in range(20000)]
    counts = np.bincount(draws, minlength=4)
    assert chi_square(counts, weights / weights.sum()) < CHI2_CRIT_3DOF


def test_vectorized_draws_pass_chi_square(rng):
    weights = np.array([5.0, 1.0, 1.0, 3.0])
    counts = np.bincount(categorical_draws(weights, 50000, rng), minlength=4)
    assert chi_square(counts, weights / weights.sum()) < CHI2_CRIT_3DOF


def test_unnormalized_weights_are_accepted(rng):
    draws = categorical_draws(np.array([100.0, 300.0]), 4000, rng)
    assert abs(draws.mean() - 0.75) < 0.03


def test_single_nonzero_weight_is_always_drawn(rng):
    for _ in range(100):
        assert categorical_draw([0.0, 0.0, 2.5, 0.0], rng) == 2


def test_zero_weight_categories_are_never_drawn(rng):
    draws = categorical_draws(np.array([0.0, 1.0, 0.0, 1.0, 0.0]), 5000, rng)
    assert set(np.unique(draws)) == {1, 3}


def test_all_zero_weights_are_degenerate():
    with pytest.raises(DegenerateDistributionError):
        categorical_draw([0.0, 0.0, 0.0])


def test_negative_weights_are_rejected():
    with pytest.raises(InvalidInputError) as excinfo:
        categorical_draw([1.0, -0.5, 2.0])
    assert not isinstance(excinfo.value, DegenerateDistributionError)


@pytest.mark.parametrize("weights", [[], [np.nan, 1.0], [np.inf, 1.0], [[1.0, 2.0]]])
def test_malformed_weights_are_rejected(weights):
    with pytest.raises(InvalidInputError):
        categorical_draw(weights)


def test_seed_reproducibility():
    weights = np.ones(10)
    a = [categorical_draw(weights, seed) for seed in range(20)]
    b = [categorical_draw(weights, seed) for seed in range(20)]
    assert a == b
    assert categorical_draw(weights) == categorical_draw(weights)


def test_generators_are_not_shared(rng):
    gen = resolve_rng(rng)
    assert gen is rng
    other = resolve_rng(5)
    assert other is not resolve_rng(5)


def test_negative_size_is_rejected():
    with pytest.raises(InvalidInputError):
        categorical_draws(np.ones(3), -1)
