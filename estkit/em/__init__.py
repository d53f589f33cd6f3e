"""Expectation-maximization: a generic iterator and PCA fitted by EM."""

from .base import Transformer, check_array, check_is_fitted
from .core import EMResult, EMState, em_fit
from .pca import PCAEM

__all__ = [
    "EMResult",
    "EMState",
    "em_fit",
    "PCAEM",
    "Transformer",
    "check_array",
    "check_is_fitted",
]
