import dataclasses

import numpy as np

from estkit.optimize import Problem, Status, bfgs, lbfgs, two_loop_direction


def rosenbrock(x: np.ndarray) -> float:
    return (1 - x[0]) ** 2 + 100 * (x[1] - x[0] ** 2) ** 2


def rosenbrock_grad(x: np.ndarray) -> np.ndarray:
    return np.array(
        [
            -2 * (1 - x[0]) - 400 * x[0] * (x[1] - x[0] ** 2),
            200 * (x[1] - x[0] ** 2),
        ]
    )


def himmelblau(x: np.ndarray) -> float:
    return (x[0] ** 2 + x[1] - 11) ** 2 + (x[0] + x[1] ** 2 - 7) ** 2


def himmelblau_grad(x: np.ndarray) -> np.ndarray:
    return np.array(
        [
            4 * x[0] * (x[0] ** 2 + x[1] - 11) + 2 * (x[0] + x[1] ** 2 - 7),
            2 * (x[0] ** 2 + x[1] - 11) + 4 * x[1] * (x[0] + x[1] ** 2 - 7),
        ]
    )


def test_bfgs_reaches_rosenbrock_minimum():
    problem = Problem(fun=rosenbrock, grad=rosenbrock_grad, dim=2)
    res = bfgs(problem, np.array([-1.2, 1.0]), maxiter=200)
    assert res.success
    assert res.status is Status.CONVERGED
    assert np.allclose(res.x, np.ones(2), atol=1e-5)
    assert res.fun < 1e-9


def test_lbfgs_handles_higher_dimension():
    def rosen_nd(x: np.ndarray) -> float:
        return sum(
            (1 - x[i]) ** 2 + 100 * (x[i + 1] - x[i] ** 2) ** 2
            for i in range(0, len(x) - 1, 2)
        )

    def rosen_grad_nd(x: np.ndarray) -> np.ndarray:
        g = np.zeros_like(x)
        for i in range(0, len(x) - 1, 2):
            g[i] = -2 * (1 - x[i]) - 400 * x[i] * (x[i + 1] - x[i] ** 2)
            g[i + 1] = 200 * (x[i + 1] - x[i] ** 2)
        return g

    problem = Problem(fun=rosen_nd, grad=rosen_grad_nd, dim=4)
    x0 = np.array([-1.2, 1.0, -1.0, 1.0])
    res = lbfgs(problem, x0, m=5, maxiter=400)
    assert res.success
    assert np.allclose(res.x, np.ones(4), atol=1e-5)
    assert res.fun < 1e-8


def test_bfgs_vs_lbfgs_on_himmelblau():
    problem = Problem(fun=himmelblau, grad=himmelblau_grad, dim=2)
    x0 = np.array([3.0, 1.5])
    res_bfgs = bfgs(problem, x0, maxiter=200)
    res_lbfgs = lbfgs(problem, x0, m=6, maxiter=200)
    assert res_bfgs.success and res_lbfgs.success
    assert res_bfgs.fun < 1e-10
    assert res_lbfgs.fun < 1e-10
    assert np.allclose(res_bfgs.x, res_lbfgs.x, atol=1e-6)


def test_bfgs_without_gradient():
    problem = Problem(fun=rosenbrock, dim=2)
    res = bfgs(problem, np.array([-1.2, 1.0]), maxiter=200, tol=1e-5)
    assert res.success
    assert res.fun < 1e-6


def test_bfgs_does_not_mutate_initial_point():
    x0 = np.array([-1.2, 1.0])
    problem = Problem(fun=rosenbrock, grad=rosenbrock_grad, dim=2)
    bfgs(problem, x0, maxiter=50)
    assert np.array_equal(x0, np.array([-1.2, 1.0]))


def test_bfgs_reports_iteration_exhaustion():
    problem = Problem(fun=rosenbrock, grad=rosenbrock_grad, dim=2)
    res = bfgs(problem, np.array([-1.2, 1.0]), maxiter=3)
    assert not res.success
    assert res.status is Status.MAX_ITER
    assert res.nit == 3


def test_bfgs_history_records_every_iterate():
    problem = Problem(fun=himmelblau, grad=himmelblau_grad, dim=2)
    res = bfgs(problem, np.array([3.0, 1.5]), maxiter=100, history=True)
    assert len(res.history) == res.nit + 1
    assert np.allclose(res.history[-1], res.x)


def test_two_loop_direction_without_pairs_is_steepest_descent():
    g = np.array([1.0, -2.0, 0.5])
    assert np.allclose(two_loop_direction(g, [], []), -g)


def test_two_loop_direction_recovers_newton_step_on_quadratic():
    A = np.diag([1.0, 4.0])
    s_hist = [np.array([1.0, 0.0]), np.array([0.0, 1.0])]
    y_hist = [A @ s for s in s_hist]
    g = np.array([2.0, 8.0])
    direction = two_loop_direction(g, s_hist, y_hist)
    assert np.allclose(direction, -np.linalg.solve(A, g))


def test_bfgs_on_quadratic_reaches_linear_solve_quickly(rng):
    M = rng.normal(size=(5, 5))
    A = M @ M.T + 5 * np.eye(5)
    b = rng.normal(size=5)
    problem = Problem(fun=lambda x: float(0.5 * x @ A @ x - b @ x), grad=lambda x: A @ x - b, dim=5)
    res = bfgs(problem, np.zeros(5), maxiter=100)
    assert res.success
    assert res.nit <= 30
    assert np.allclose(res.x, np.linalg.solve(A, b), atol=1e-8)


def test_uphill_step_is_reported_as_line_search_failure():
    def backwards(f, x, p, g):
        # Steps against the search direction
        return -1.0, 1

    problem = Problem(fun=lambda x: float(np.sum(x**2)), grad=lambda x: 2 * x, dim=2)
    x0 = np.array([1.0, -2.0])
    for solver in (bfgs, lbfgs):
        res = solver(problem, x0, ftol=1e-3, line_search=backwards)
        assert not res.success
        assert res.status is Status.LINE_SEARCH_FAILED
        assert res.nit == 0
        assert np.array_equal(res.x, x0)


def test_results_carry_only_first_order_counters():
    problem = Problem(fun=lambda x: float(np.sum(x**2)), grad=lambda x: 2.0 * x)
    result = bfgs(problem, np.array([1.0, 1.0]))
    names = {f.name for f in dataclasses.fields(result)}
    assert {"nfev", "njev"} <= names
    assert "nhev" not in names
    assert "hess" not in {f.name for f in dataclasses.fields(Problem)}
