"""Process-wide debug switch.

With debug mode on, routines run invariant checks that are too expensive for
normal use: the Gibbs sweep re-aggregates its count tables after every token
and PCA-EM warns when its reconstruction error goes up. The switch starts
from the ``ESTKIT_DEBUG`` environment variable.
"""

from __future__ import annotations

import os
from contextlib import contextmanager
from typing import Iterator

_DEBUG_ENV_VAR = "ESTKIT_DEBUG"
_TRUTHY = frozenset({"1", "true", "yes", "on"})


def _env_flag(name: str) -> bool:
    return os.getenv(name, "").strip().lower() in _TRUTHY


_debug_enabled: bool = _env_flag(_DEBUG_ENV_VAR)


def is_debug_enabled() -> bool:
    """Return whether debug mode is on."""
    return _debug_enabled


def set_debug_enabled(enabled: bool) -> None:
    global _debug_enabled
    _debug_enabled = bool(enabled)


@contextmanager
def debug_context(enabled: bool = True) -> Iterator[None]:
    """
    Switch debug mode for the duration of a ``with`` block.

    The previous setting is restored on exit, also when the block raises.

    Example
    -------
    >>> with debug_context(True):
    ...     pass
    """
    global _debug_enabled
    previous = _debug_enabled
    _debug_enabled = bool(enabled)
    try:
        yield
    finally:
        _debug_enabled = previous
