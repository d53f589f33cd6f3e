"""Core interfaces shared across the numerical optimizers."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Optional, Sequence

import numpy as np

from ..errors import InvalidInputError

Array = np.ndarray
Objective = Callable[..., float]
Gradient = Callable[..., Array]

RTOL = 1e-8
ATOL = 1e-10
# Relative objective reduction below which a run is considered converged
# (machine epsilon times 1e7, the usual L-BFGS-B default).
FTOL = 1e7 * np.finfo(float).eps


class Status(Enum):
    """Exit status of an optimizer run."""

    CONVERGED = "converged"
    MAX_ITER = "max_iter"
    NUMERICAL_ERROR = "numerical_error"
    LINE_SEARCH_FAILED = "line_search_failed"


@dataclass(frozen=True)
class Problem:
    """Container describing an optimization problem."""

    fun: Objective
    grad: Optional[Gradient] = None
    dim: Optional[int] = None


@dataclass(frozen=True)
class Bounds:
    """
    Independent lower/upper box constraints per parameter.

    ``None`` entries and infinities mean the parameter is unbounded on that side.
    Construct with :meth:`from_pairs` for the usual ``[(lo, hi), ...]`` form.
    """

    lower: Array
    upper: Array

    def __post_init__(self) -> None:
        lower = np.asarray(self.lower, dtype=float).reshape(-1)
        upper = np.asarray(self.upper, dtype=float).reshape(-1)
        if lower.shape != upper.shape:
            raise InvalidInputError(
                f"lower has {lower.size} entries but upper has {upper.size}."
            )
        if np.any(np.isnan(lower)) or np.any(np.isnan(upper)):
            raise InvalidInputError("Bounds must not contain NaN.")
        bad = np.flatnonzero(lower > upper)
        if bad.size:
            raise InvalidInputError(
                f"Lower bound exceeds upper bound for parameter(s) {bad.tolist()}."
            )
        object.__setattr__(self, "lower", lower)
        object.__setattr__(self, "upper", upper)

    @classmethod
    def from_pairs(
        cls, pairs: Sequence[tuple[Optional[float], Optional[float]]]
    ) -> "Bounds":
        lower = [-np.inf if lo is None else lo for lo, _ in pairs]
        upper = [np.inf if hi is None else hi for _, hi in pairs]
        return cls(np.array(lower, dtype=float), np.array(upper, dtype=float))

    @classmethod
    def unbounded(cls, dim: int) -> "Bounds":
        return cls(np.full(dim, -np.inf), np.full(dim, np.inf))

    @property
    def dim(self) -> int:
        return int(self.lower.size)

    def is_bounded(self) -> bool:
        return bool(np.any(np.isfinite(self.lower)) or np.any(np.isfinite(self.upper)))

    def project(self, x: Array) -> Array:
        """Clamp ``x`` into the box."""
        return np.clip(x, self.lower, self.upper)

    def contains(self, x: Array) -> bool:
        return bool(np.all(x >= self.lower) and np.all(x <= self.upper))

    def check_dim(self, dim: int) -> None:
        if self.dim != dim:
            raise InvalidInputError(
                f"Bounds describe {self.dim} parameters but x0 has {dim}."
            )


@dataclass(frozen=True)
class TraceEntry:
    """One row of an optimization trace."""

    iteration: int
    x: Array
    fun: float


@dataclass
class OptimizeResult:
    """Standard result object returned by all optimizers in this module.

    ``success`` is False when the iteration budget ran out or the run had to
    stop on non-finite objective values; ``status`` tells which.
    """

    x: Array
    fun: float
    nit: int
    success: bool
    message: str
    grad_norm: float
    nfev: int
    njev: int
    status: Status = Status.CONVERGED
    history: List[Array] = field(default_factory=list)
    trace: List[TraceEntry] = field(default_factory=list)

    @property
    def converged(self) -> bool:
        return self.success


def check_convergence(grad_norm: float, tol: float) -> bool:
    """Return True if gradient norm satisfies tolerance."""
    return grad_norm <= max(tol, ATOL)


def check_reduction(f_old: float, f_new: float, ftol: float) -> bool:
    """Return True if the objective decreased, but by less than ``ftol`` relative.

    An increase never counts as converged.
    """
    if ftol <= 0.0 or f_new > f_old:
        return False
    return (f_old - f_new) <= ftol * max(abs(f_old), abs(f_new), 1.0)


__all__ = [
    "Array",
    "Objective",
    "Gradient",
    "Status",
    "Problem",
    "Bounds",
    "TraceEntry",
    "OptimizeResult",
    "check_convergence",
    "check_reduction",
    "RTOL",
    "ATOL",
    "FTOL",
]
