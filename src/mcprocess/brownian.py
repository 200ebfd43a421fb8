r"""
mcprocess.brownian
==================

Brownian motion sampled by principal components.

The process

.. math::
   X(t) = x_0 + \mu t + \sigma B(t)

is observed at :math:`t_1 < \dots < t_d`. The observation vector is Gaussian
with mean :math:`x_0 + \mu t_j` and covariance
:math:`\sigma^2 \min(t_i, t_j)`, so with the PCA loading matrix :math:`A`
(see :mod:`mcprocess.spectral`) a whole path is

.. math::
   X(t_j) = x_0 + \mu t_j + \sum_{k=1}^d A_{jk} Z_k,
   \qquad Z \sim \mathcal{N}(0, I_d).

Every observation mixes all :math:`d` normals, so the path cannot be produced
one observation at a time.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Sequence, Union

import numpy as np
from scipy.stats import norm

from .errors import InvalidParameterError, UnsupportedOperationError
from .process import ProcessPath, SamplingStrategy, as_normal_gen
from .randvar import NormalGen
from .schedule import ObservationSchedule, as_schedule
from .spectral import SpectralFactor, SpectralFactorizer, brownian_covariance
from .streams import RandomStream

logger = logging.getLogger(__name__)

__all__ = ["BrownianParams", "BrownianMotionPCA"]


@dataclass(frozen=True)
class BrownianParams:
    r"""
    Parameters of :math:`X(t) = x_0 + \mu t + \sigma B(t)`.

    Attributes
    ----------
    x0 : float
        Initial value.
    mu : float
        Drift.
    sigma : float
        Diffusion scale, must be positive.
    """

    x0: float
    mu: float
    sigma: float

    def __post_init__(self) -> None:
        if self.sigma <= 0.0:
            raise InvalidParameterError("sigma must be positive")


class BrownianMotionPCA:
    r"""
    Brownian motion with drift, generated a whole path at a time by PCA.

    Parameters
    ----------
    x0, mu, sigma : float
        See :class:`BrownianParams`.
    source : RandomStream or NormalGen
        Source of the standard normals. A stream is wrapped into a standard
        :class:`~mcprocess.randvar.NormalGen`.
    schedule : ObservationSchedule or sequence of float, optional
        Observation times. Can be set later with :meth:`set_observation_times`.

    Notes
    -----
    The loading matrix is computed on first use and cached. :meth:`set_params`
    and :meth:`set_observation_times` drop the cache; nothing else recomputes
    it.

    Examples
    --------
    >>> bm = BrownianMotionPCA(0.0, 0.0, 1.0, RandomStream(seed=1), schedule=[0.0, 1.0, 2.0])
    >>> bm.generate_path([0.5, 0.5]).tolist()
    [0.0, 0.0, 0.0]
    """

    strategy = SamplingStrategy.pca
    supports_sequential = False

    def __init__(
        self,
        x0: float,
        mu: float,
        sigma: float,
        source: Union[RandomStream, NormalGen],
        *,
        schedule: Optional[Union[ObservationSchedule, Sequence[float]]] = None,
    ):
        self.params = BrownianParams(float(x0), float(mu), float(sigma))
        self.gen = as_normal_gen(source)
        self._state = ProcessPath(x0=self.params.x0)
        self._factorizer = SpectralFactorizer()
        if schedule is not None:
            self.set_observation_times(schedule)

    # ------------------------------------------------------------------ setters
    def set_params(self, x0: float, mu: float, sigma: float) -> None:
        """Replace the parameters and invalidate the cached factor."""
        self.params = BrownianParams(float(x0), float(mu), float(sigma))
        self._state.set_x0(self.params.x0)
        self._factorizer.invalidate()

    def set_observation_times(self, times: Union[ObservationSchedule, Sequence[float]]) -> None:
        """Install a new schedule, reset the path and invalidate the cached factor."""
        sched = as_schedule(times)
        self._state.reset(sched)
        self._factorizer.invalidate()
        logger.debug("BrownianMotionPCA schedule set: d=%d, horizon=%g", sched.d, sched.horizon)

    def set_stream(self, stream: RandomStream) -> None:
        self.gen.set_stream(stream)

    def reset_start_process(self) -> None:
        """Rewind the cursor to ``t0``."""
        self._state.reset()

    # ----------------------------------------------------------------- spectral
    def covariance(self) -> np.ndarray:
        r"""Covariance :math:`\sigma^2 \min(t_i, t_j)` of the observations at :math:`t_1..t_d`."""
        sched = self._state.require_schedule()
        return brownian_covariance(sched.times[1:], self.params.sigma)

    @property
    def factor_valid(self) -> bool:
        return self._factorizer.valid

    @property
    def spectral_factor(self) -> SpectralFactor:
        """The PCA factor for the current parameters and schedule (computed if stale)."""
        return self._factorizer.factor(self.covariance)

    @property
    def sorted_eigenvalues(self) -> np.ndarray:
        """Eigenvalues of the covariance matrix, largest first."""
        return self.spectral_factor.eigenvalues

    # --------------------------------------------------------------- generation
    def generate_path(self, uniforms: Optional[Sequence[float]] = None) -> np.ndarray:
        r"""
        Generate a whole path.

        Parameters
        ----------
        uniforms : sequence of float, optional
            Exactly ``d`` values in :math:`(0, 1)`. When given, the normals are
            :math:`Z_k = \Phi^{-1}(u_k)` and the normal source is not touched.
            Otherwise ``d`` normals are drawn from the source.

        Returns
        -------
        ndarray
            Copy of the committed path :math:`(X(t_0), \dots, X(t_d))`.
        """
        d = self._state.d
        if uniforms is None:
            z = self.gen.next_array(d)
        else:
            z = norm.ppf(np.asarray(uniforms, dtype=float))
        return self.generate_path_from_normals(z)

    def generate_path_from_normals(self, z: Sequence[float]) -> np.ndarray:
        """Generate the path driven by the given ``d`` standard normals."""
        sched = self._state.require_schedule()
        loadings = self.spectral_factor.loadings
        z = np.asarray(z, dtype=float)
        tail = self.params.x0 + self.params.mu * sched.times[1:] + loadings @ z
        return self._state.commit_path(tail)

    def next_observation(self) -> float:
        raise UnsupportedOperationError(
            "next_observation() is not defined for BrownianMotionPCA; use generate_path()"
        )

    def next_observation_at(self, next_time: float) -> float:
        raise UnsupportedOperationError(
            "next_observation_at() is not defined for BrownianMotionPCA; use generate_path()"
        )

    # ------------------------------------------------------------------ getters
    @property
    def x0(self) -> float:
        return self.params.x0

    @property
    def mu(self) -> float:
        return self.params.mu

    @property
    def sigma(self) -> float:
        return self.params.sigma

    @property
    def stream(self) -> RandomStream:
        return self.gen.stream

    @property
    def path(self) -> np.ndarray:
        """Copy of the path buffer."""
        return self._state.values.copy()

    @property
    def schedule(self) -> ObservationSchedule:
        return self._state.require_schedule()

    @property
    def observation_times(self) -> np.ndarray:
        return self.schedule.times

    @property
    def observation_index(self) -> int:
        return self._state.observation_index

    @property
    def current_observation(self) -> float:
        return self._state.current_value

    def has_next_observation(self) -> bool:
        return self._state.has_next()

    def __repr__(self) -> str:
        p = self.params
        return f"BrownianMotionPCA(x0={p.x0:g}, mu={p.mu:g}, sigma={p.sigma:g}, schedule={self._state.schedule!r})"
