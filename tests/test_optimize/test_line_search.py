import numpy as np
import pytest

from estkit.optimize import Bounds
from estkit.optimize.line_search import (
    backtracking_armijo,
    projected_backtracking,
    sufficient_decrease,
    wolfe_line_search,
)


def quadratic_fun(x: np.ndarray) -> float:
    return float(x.T @ x)


def quadratic_grad(x: np.ndarray) -> np.ndarray:
    return 2 * x


def test_backtracking_armijo_monotone():
    x = np.array([1.0, -2.0])
    grad = quadratic_grad(x)
    direction = -grad
    alpha, nevals = backtracking_armijo(quadratic_fun, x, direction, grad)
    assert 0 < alpha <= 1.0
    new_val = quadratic_fun(x + alpha * direction)
    assert new_val <= quadratic_fun(x)
    assert nevals > 0


def rosen(x: np.ndarray) -> float:
    return (1 - x[0]) ** 2 + 100 * (x[1] - x[0] ** 2) ** 2


def rosen_grad(x: np.ndarray) -> np.ndarray:
    return np.array(
        [
            -2 * (1 - x[0]) - 400 * x[0] * (x[1] - x[0] ** 2),
            200 * (x[1] - x[0] ** 2),
        ]
    )


def test_wolfe_conditions_rosenbrock():
    x = np.array([-1.2, 1.0])
    grad = rosen_grad(x)
    direction = -grad
    alpha, _ = wolfe_line_search(rosen, rosen_grad, x, direction)
    phi0 = rosen(x)
    phi_alpha = rosen(x + alpha * direction)
    directional_derivative = rosen_grad(x + alpha * direction) @ direction
    assert phi_alpha <= phi0 + 1e-4 * alpha * (grad @ direction)
    assert abs(directional_derivative) <= 0.9 * abs(grad @ direction)


def test_backtracking_armijo_raises_on_invalid_params():
    x = np.array([1.0])
    grad = quadratic_grad(x)
    with pytest.raises(ValueError):
        backtracking_armijo(quadratic_fun, x, -grad, grad, c=1.5)
    with pytest.raises(ValueError):
        backtracking_armijo(quadratic_fun, x, -grad, grad, rho=1.1)


def test_backtracking_armijo_shrinks_past_infeasible_points():
    def barrier(x: np.ndarray) -> float:
        return float(x[0] ** 2) if x[0] > -0.5 else np.inf

    x = np.array([1.0])
    grad = 2 * x
    alpha, _ = backtracking_armijo(barrier, x, np.array([-4.0]), grad)
    assert np.isfinite(barrier(x + alpha * np.array([-4.0])))


def test_wolfe_rejects_ascent_direction():
    x = np.array([1.0, 1.0])
    with pytest.raises(ValueError):
        wolfe_line_search(quadratic_fun, quadratic_grad, x, quadratic_grad(x))


def test_projected_backtracking_stays_in_box():
    def fun(x: np.ndarray) -> float:
        return float((x[0] + 1.0) ** 2)

    x = np.array([0.5])
    grad = np.array([3.0])
    bounds = Bounds(np.array([0.0]), np.array([1.0]))
    x_new, f_new, nfev, n_nonfinite = projected_backtracking(
        fun, x, fun(x), -grad, grad, bounds
    )
    assert x_new is not None
    assert np.allclose(x_new, [0.0])
    assert f_new == pytest.approx(1.0)
    assert nfev == 1
    assert n_nonfinite == 0


def test_projected_backtracking_counts_non_finite_trials():
    def fun(x: np.ndarray) -> float:
        return float((x[0] - 0.3) ** 2) if x[0] >= 0.35 else np.inf

    x = np.array([0.5])
    grad = np.array([0.4])
    bounds = Bounds.unbounded(1)
    x_new, _, nfev, n_nonfinite = projected_backtracking(
        fun, x, fun(x), -grad, grad, bounds
    )
    assert x_new is not None
    assert x_new[0] == pytest.approx(0.4)
    assert n_nonfinite == 2
    assert nfev == 3


def test_projected_backtracking_gives_up_when_never_finite():
    def fun(x: np.ndarray) -> float:
        return 1.0 if x[0] >= 1.0 else np.nan

    x = np.array([1.0])
    grad = np.array([1.0])
    x_new, f_new, _, n_nonfinite = projected_backtracking(
        fun, x, 1.0, -grad, grad, Bounds.unbounded(1), max_iter=10
    )
    assert x_new is None
    assert f_new == 1.0
    assert n_nonfinite == 10


def test_sufficient_decrease_rejects_non_finite_values():
    assert sufficient_decrease(0.5, 1.0, -1.0)
    assert not sufficient_decrease(1.0, 1.0, -1.0)
    assert not sufficient_decrease(np.inf, 1.0, -1.0)
    assert not sufficient_decrease(np.nan, 1.0, -1.0)
