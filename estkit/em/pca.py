"""Principal component analysis fitted by expectation-maximization.

References:
    Roweis, S. (1998). EM algorithms for PCA and SPCA. NIPS 10.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import numpy as np

from ..diagnostics import is_debug_enabled
from ..errors import InvalidInputError
from ..logging import get_logger
from .base import Transformer, check_array, check_is_fitted
from .core import EMState, em_fit

logger = get_logger(__name__)


@dataclass
class PCAEM(Transformer):
    """Zero-noise EM for PCA.

    The E-step projects the centered data onto the current loadings by least
    squares, the M-step refits the loadings by least squares given the
    scores. Iteration stops when the scores change by less than ``tol``.
    The converged loadings are then orthonormalized and rotated so that the
    components are ordered by decreasing explained variance, matching an
    SVD-based PCA up to sign.

    Examples
    --------
    >>> import numpy as np
    >>> X = np.random.default_rng(0).normal(size=(50, 4))
    >>> PCAEM(n_components=2).fit(X).components_.shape
    (2, 4)
    """

    n_components: int = 2
    tol: float = 1e-8
    max_iter: int = 1000
    rng: Optional[np.random.Generator] = None

    def fit(self, X: np.ndarray, y: np.ndarray | None = None) -> "PCAEM":
        del y
        X_checked = check_array(X)
        n_samples, n_features = X_checked.shape
        if n_samples < 2:
            raise InvalidInputError("PCA requires at least two samples.")
        if not 1 <= self.n_components <= min(n_samples, n_features):
            raise InvalidInputError(
                f"n_components={self.n_components} is out of bounds for data of "
                f"shape {X_checked.shape}."
            )
        rng = self.rng if self.rng is not None else np.random.default_rng(0)

        self.mean_ = X_checked.mean(axis=0)
        Xc = X_checked - self.mean_
        errors: list[float] = []

        # Minimum-norm least squares keeps both steps defined when the data
        # span fewer than n_components directions.
        def e_step(W: np.ndarray) -> np.ndarray:
            # Z = Xc W (W^T W)^+
            return np.linalg.lstsq(W, Xc.T, rcond=None)[0].T

        def m_step(Z: np.ndarray) -> np.ndarray:
            # W = Xc^T Z (Z^T Z)^+
            return np.linalg.lstsq(Z, Xc, rcond=None)[0].T

        def record(iteration: int, W: np.ndarray, Z: np.ndarray) -> None:
            resid = Xc - Z @ W.T
            errors.append(float(np.sum(resid * resid)))
            if is_debug_enabled() and len(errors) > 1 and errors[-1] > errors[-2] * (1 + 1e-10):
                logger.warning(
                    "PCA-EM reconstruction error increased at iteration %d: %.10g -> %.10g",
                    iteration, errors[-2], errors[-1],
                )

        W0 = rng.standard_normal((n_features, self.n_components))
        result = em_fit(e_step, m_step, W0, tol=self.tol, max_iter=self.max_iter, callback=record)

        # Orthonormal basis of the converged subspace, then rotate to the
        # eigenvectors of the score covariance.
        Q, _ = np.linalg.qr(result.params)
        scores = Xc @ Q
        cov = scores.T @ scores / (n_samples - 1)
        eigvals, eigvecs = np.linalg.eigh(cov)
        order = np.argsort(eigvals)[::-1]
        components = (Q @ eigvecs[:, order]).T
        # Deterministic sign: largest-magnitude loading positive
        pivots = np.argmax(np.abs(components), axis=1)
        signs = np.sign(components[np.arange(components.shape[0]), pivots])
        signs[signs == 0] = 1.0
        components *= signs[:, np.newaxis]

        total_var = float(np.sum(Xc * Xc)) / (n_samples - 1)
        self.n_samples_, self.n_features_in_ = n_samples, n_features
        self.components_ = components
        self.explained_variance_ = np.clip(eigvals[order], 0.0, None)
        self.explained_variance_ratio_ = self.explained_variance_ / (total_var if total_var > 0 else 1.0)
        self.scores_ = Xc @ components.T
        self.n_iter_ = result.iterations
        self.converged_ = result.state is EMState.CONVERGED
        self.reconstruction_errors_ = np.array(errors)
        return self

    def transform(self, X: np.ndarray) -> np.ndarray:
        check_is_fitted(self, ("components_", "mean_", "n_features_in_"))
        X_checked = check_array(X, self.n_features_in_)
        return (X_checked - self.mean_) @ self.components_.T

    def inverse_transform(self, Z: np.ndarray) -> np.ndarray:
        check_is_fitted(self, ("components_", "mean_", "n_features_in_"))
        Z_checked = check_array(Z, self.components_.shape[0])
        return Z_checked @ self.components_ + self.mean_

    def reconstruction_error(self, X: np.ndarray) -> float:
        """Sum of squared residuals of projecting ``X`` onto the components."""
        X_checked = check_array(X)
        resid = X_checked - self.inverse_transform(self.transform(X_checked))
        return float(np.sum(resid * resid))


__all__ = ["PCAEM"]
