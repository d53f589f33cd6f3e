"""Logging for estkit.

Every estimation routine logs through ``get_logger(__name__)``: per-iteration
progress at DEBUG, run summaries at INFO and non-convergence at WARNING.
Loggers live under the ``estkit.`` namespace, write to stderr and do not
propagate to the root logger, so an application opts in by lowering the level::

    >>> from estkit.logging import set_log_level
    >>> set_log_level("DEBUG")

The starting level can also be taken from the ``ESTKIT_LOG_LEVEL``
environment variable.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import IO, Optional

ROOT_NAME = "estkit"
DEFAULT_FORMAT = "[%(levelname)s] %(name)s: %(message)s"
_LEVEL_ENV_VAR = "ESTKIT_LOG_LEVEL"

_loggers: dict[str, logging.Logger] = {}


def _resolve_level(level: int | str) -> int:
    """Map ``"debug"``, ``"INFO"``... or an int to a logging level."""
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.strip().upper())
    if not isinstance(resolved, int):
        raise ValueError(f"Unknown logging level {level!r}.")
    return resolved


_level: int = _resolve_level(os.getenv(_LEVEL_ENV_VAR, "WARNING"))


def _make_handler(stream: Optional[IO[str]], level: int, fmt: str) -> logging.Handler:
    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt))
    return handler


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return the cached estkit logger for ``name``.

    Args:
        name: Usually ``__name__``. Names outside the package are prefixed
            with ``estkit.``; None gives the package logger itself.

    Returns:
        A logger with one stderr handler that does not propagate.
    """
    if name is None or name == ROOT_NAME:
        qualified = ROOT_NAME
    elif name.startswith(ROOT_NAME + "."):
        qualified = name
    else:
        qualified = f"{ROOT_NAME}.{name}"

    logger = _loggers.get(qualified)
    if logger is not None:
        return logger

    logger = logging.getLogger(qualified)
    if not logger.handlers:
        logger.setLevel(_level)
        logger.addHandler(_make_handler(None, _level, DEFAULT_FORMAT))
        logger.propagate = False
    _loggers[qualified] = logger
    return logger


def set_log_level(level: int | str) -> None:
    """Set the level of every estkit logger, including ones created later.

    Raises:
        ValueError: If ``level`` is a string naming no logging level.
    """
    global _level
    _level = _resolve_level(level)
    for logger in _loggers.values():
        logger.setLevel(_level)
        for handler in logger.handlers:
            handler.setLevel(_level)


def configure_logging(
    level: int | str = logging.WARNING,
    format_string: Optional[str] = None,
    stream: Optional[IO[str]] = None,
) -> None:
    """Replace the handler of every estkit logger.

    Args:
        level: Level for loggers and handlers.
        format_string: Record format; defaults to ``[LEVEL] name: message``.
        stream: Destination, stderr when omitted.
    """
    global _level
    _level = _resolve_level(level)
    fmt = format_string or DEFAULT_FORMAT
    for logger in _loggers.values():
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
        logger.setLevel(_level)
        logger.addHandler(_make_handler(stream, _level, fmt))


__all__ = ["ROOT_NAME", "DEFAULT_FORMAT", "get_logger", "set_log_level", "configure_logging"]
