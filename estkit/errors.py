"""Exception taxonomy shared by all estimation routines.

Input problems subclass :class:`ValueError` so that callers catching the
builtin keep working. Running out of iterations is not an error: it is
reported through the ``success``/``converged`` flags of the result objects.
"""

from __future__ import annotations


class EstimationError(Exception):
    """Base class for estkit errors."""


class InvalidInputError(EstimationError, ValueError):
    """Malformed bounds, mismatched dimensions or invalid weights."""


class DegenerateDistributionError(InvalidInputError):
    """A weight vector defines no distribution (all weights are zero)."""


class NumericInstabilityError(EstimationError, ArithmeticError):
    """A numerical invariant was violated during iteration."""


class NotFittedError(EstimationError, AttributeError):
    """A fitted attribute was requested before `fit`."""


__all__ = [
    "EstimationError",
    "InvalidInputError",
    "DegenerateDistributionError",
    "NumericInstabilityError",
    "NotFittedError",
]
