"""Tests for logging utilities."""

import logging
from io import StringIO

import numpy as np
import pytest

from estkit.em import em_fit
from estkit.logging import configure_logging, get_logger, set_log_level
from estkit.optimize import minimize


@pytest.fixture
def captured_records():
    """Collect records emitted by the optimizer and EM loggers."""
    records = []
    handler = logging.Handler()
    handler.emit = records.append
    loggers = [get_logger("estkit.optimize.evaluator"), get_logger("estkit.em.core")]
    for logger in loggers:
        logger.addHandler(handler)
    yield records
    for logger in loggers:
        logger.removeHandler(handler)


@pytest.fixture(autouse=True)
def reset_levels():
    yield
    configure_logging(level=logging.WARNING)


def test_get_logger_returns_namespaced_logger():
    logger = get_logger("test_module")
    assert isinstance(logger, logging.Logger)
    assert logger.name == "estkit.test_module"
    assert get_logger("estkit.optimize.core").name == "estkit.optimize.core"
    assert get_logger().name == "estkit"


def test_get_logger_caching():
    assert get_logger("test_module") is get_logger("test_module")
    assert get_logger("module1") is not get_logger("module2")


def test_logger_does_not_propagate():
    assert get_logger("test_module").propagate is False


def test_set_log_level_accepts_strings():
    logger = get_logger("test_module")
    set_log_level("DEBUG")
    assert logger.level == logging.DEBUG
    set_log_level("error")
    assert logger.level == logging.ERROR


def test_configure_logging_redirects_output():
    logger = get_logger("test_module")
    stream = StringIO()
    configure_logging(level=logging.DEBUG, stream=stream)
    logger.debug("Debug message")
    output = stream.getvalue()
    assert "Debug message" in output
    assert "[DEBUG] estkit.test_module:" in output


def test_optimizer_warns_when_iterations_run_out(captured_records):
    def rosen(x):
        return (1 - x[0]) ** 2 + 100 * (x[1] - x[0] ** 2) ** 2

    minimize(rosen, np.array([-1.2, 1.0]), maxiter=2)
    warnings = [r for r in captured_records if r.levelno == logging.WARNING]
    assert any("without converging" in r.getMessage() for r in warnings)


def test_optimizer_logs_iterations_at_debug(captured_records):
    set_log_level(logging.DEBUG)
    res = minimize(lambda x: float(np.sum(x**2)), np.ones(2))
    debug = [r for r in captured_records if r.levelno == logging.DEBUG]
    assert len(debug) == res.nit + 1
    assert any(r.levelno == logging.INFO for r in captured_records)


def test_em_warns_on_max_iter(captured_records):
    em_fit(lambda p: np.array([p + 1.0]), lambda z: float(z[0]), 0.0, tol=1e-3, max_iter=4)
    assert any(
        r.levelno == logging.WARNING and "did not converge" in r.getMessage()
        for r in captured_records
    )


def test_unknown_level_name_is_rejected():
    with pytest.raises(ValueError, match="Unknown logging level"):
        set_log_level("verbose")


def test_new_loggers_inherit_current_level():
    set_log_level(logging.INFO)
    assert get_logger("created_after_level_change").level == logging.INFO
