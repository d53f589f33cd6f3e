"""Diagnostics and debugging utilities for estkit."""

from .core import (
    assert_counts_consistent,
    assert_finite,
    assert_row_stochastic,
    is_row_stochastic,
)
from .debug_mode import (
    debug_context,
    is_debug_enabled,
    set_debug_enabled,
)

__all__ = [
    "is_row_stochastic",
    "assert_row_stochastic",
    "assert_finite",
    "assert_counts_consistent",
    "is_debug_enabled",
    "set_debug_enabled",
    "debug_context",
]
