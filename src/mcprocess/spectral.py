r"""
mcprocess.spectral
==================

Covariance construction and principal-component factorization.

For a Brownian motion with volatility :math:`\sigma` observed at
:math:`t_1 < \dots < t_d`, the covariance of the observation vector is

.. math::
   C_{ij} = \sigma^2 \min(t_i, t_j).

Writing :math:`C = P D P^\top` with eigenvalues sorted in decreasing order, the
loading matrix :math:`A = P D^{1/2}` satisfies :math:`C = A A^\top`, and
:math:`A z` with :math:`z \sim \mathcal{N}(0, I_d)` has covariance :math:`C`.
Sorting puts the component that explains the most variance first, so the
first coordinates of :math:`z` (or of a low-discrepancy point) carry most of
the path's variability.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional

import numpy as np
import scipy.linalg as la

logger = logging.getLogger(__name__)

__all__ = [
    "brownian_covariance",
    "decompose_pca",
    "SpectralFactor",
    "SpectralFactorizer",
]


def brownian_covariance(times: np.ndarray, sigma: float) -> np.ndarray:
    r"""
    Covariance matrix :math:`C_{ij} = \sigma^2 \min(t_i, t_j)` of Brownian observations.

    Parameters
    ----------
    times : ndarray
        Observation times :math:`t_1, \dots, t_d` (the start time excluded).
    sigma : float
        Diffusion scale.

    Returns
    -------
    ndarray
        Symmetric ``(d, d)`` matrix.

    Examples
    --------
    >>> brownian_covariance(np.array([1.0, 2.0]), 1.0).tolist()
    [[1.0, 1.0], [1.0, 2.0]]
    """
    t = np.asarray(times, dtype=float)
    return sigma * sigma * np.minimum(t[:, None], t[None, :])


@dataclass(frozen=True)
class SpectralFactor:
    r"""
    Result of a principal-component factorization :math:`C = A A^\top`.

    Attributes
    ----------
    loadings : ndarray
        Loading matrix :math:`A = P D^{1/2}` of shape ``(d, d)``; column
        :math:`k` is the :math:`k`-th principal direction scaled by
        :math:`\sqrt{\lambda_k}`.
    eigenvalues : ndarray
        Eigenvalues :math:`\lambda_1 \ge \dots \ge \lambda_d \ge 0`.
    covariance : ndarray
        The factored matrix.
    """

    loadings: np.ndarray
    eigenvalues: np.ndarray
    covariance: np.ndarray

    @property
    def dim(self) -> int:
        return int(self.eigenvalues.size)

    def reconstruct(self) -> np.ndarray:
        r"""Return :math:`A A^\top`."""
        return self.loadings @ self.loadings.T

    def explained_variance(self, k: int) -> float:
        r"""
        Fraction :math:`\sum_{i \le k} \lambda_i / \sum_i \lambda_i` of total variance
        captured by the first ``k`` components.
        """
        if not 0 <= k <= self.dim:
            raise ValueError(f"k must be in [0, {self.dim}], got {k}")
        total = float(np.sum(self.eigenvalues))
        if total == 0.0:
            return 1.0
        return float(np.sum(self.eigenvalues[:k]) / total)


def decompose_pca(cov: np.ndarray) -> SpectralFactor:
    r"""
    Factor a symmetric positive-semidefinite matrix as :math:`C = A A^\top`.

    Parameters
    ----------
    cov : ndarray
        Symmetric PSD matrix of shape ``(d, d)``. Results for matrices that are
        not PSD are meaningless.

    Returns
    -------
    SpectralFactor
        Loadings and eigenvalues, largest eigenvalue first.

    Notes
    -----
    Round-off can produce eigenvalues like ``-1e-17`` for singular input; they
    are clipped to zero before the square root.
    """
    cov = np.asarray(cov, dtype=float)
    eigenvalues, eigenvectors = la.eigh(cov)

    idx = np.argsort(eigenvalues)[::-1]
    eigenvalues = np.maximum(eigenvalues[idx], 0.0)
    eigenvectors = eigenvectors[:, idx]

    loadings = eigenvectors * np.sqrt(eigenvalues)
    return SpectralFactor(loadings=loadings, eigenvalues=eigenvalues, covariance=cov)


class SpectralFactorizer:
    r"""
    Cache for a :class:`SpectralFactor` guarded by an explicit validity flag.

    The owner calls :meth:`invalidate` from every parameter or schedule
    mutator. :meth:`factor` recomputes only when the flag is down.

    Examples
    --------
    >>> fz = SpectralFactorizer()
    >>> f = fz.factor(lambda: np.eye(2))
    >>> fz.valid
    True
    >>> fz.factor(lambda: np.zeros((2, 2))) is f
    True
    """

    def __init__(self):
        self._factor: Optional[SpectralFactor] = None
        self.valid = False

    def invalidate(self) -> None:
        self.valid = False

    @property
    def cached(self) -> Optional[SpectralFactor]:
        """Last computed factor, possibly stale, or ``None``."""
        return self._factor

    def factor(self, build_covariance: Callable[[], np.ndarray]) -> SpectralFactor:
        """Return the cached factor, recomputing it from ``build_covariance()`` if invalid."""
        if not self.valid or self._factor is None:
            cov = build_covariance()
            logger.debug("Computing PCA decomposition of a %dx%d covariance matrix", *cov.shape)
            self._factor = decompose_pca(cov)
            self.valid = True
        return self._factor
