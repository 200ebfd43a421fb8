r"""
mcprocess.gamma
===============

Gamma process generated from a PCA Brownian path.

A gamma process :math:`G` with mean rate :math:`\mu` and variance rate
:math:`\nu` has independent increments

.. math::
   G(t_j) - G(t_{j-1}) \sim \mathrm{Gamma}\!\left(\text{shape} = \frac{\mu^2 \Delta t_j}{\nu},\;
   \text{rate} = \frac{\mu}{\nu}\right),

so :math:`\mathbb{E}[G(t) - G(0)] = \mu t` and :math:`\mathrm{Var}[G(t) - G(0)] = \nu t`.

The increments are obtained by inversion from uniforms, and the uniforms come
from the increments of a Brownian motion :math:`W` with volatility
:math:`\sqrt{\nu}` sampled by PCA:

.. math::
   V_j = \Phi\!\left(\frac{W(t_j) - W(t_{j-1})}{\sqrt{\nu\,\Delta t_j}}\right), \qquad
   G(t_j) = G(t_{j-1}) + F^{-1}_{\Gamma_j}(V_j).

The :math:`V_j` are i.i.d. uniforms, but their dependence on the normal inputs
follows the PCA ordering, which is what a quasi-Monte Carlo point set can
exploit.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Optional, Sequence, Union

import numpy as np
from scipy.stats import norm

from .brownian import BrownianMotionPCA
from .errors import InvalidParameterError, UnsupportedOperationError
from .process import ProcessPath, SamplingStrategy
from .randvar import GammaGen
from .schedule import ObservationSchedule, as_schedule
from .streams import RandomStream

logger = logging.getLogger(__name__)

__all__ = ["GammaParams", "GammaProcessPCA"]

# Phi(z) is kept in [_U_LOW, _U_HIGH]: the gamma quantile is infinite at 1.0
_U_LOW = np.finfo(float).tiny
_U_HIGH = 1.0 - np.finfo(float).eps


@dataclass(frozen=True)
class GammaParams:
    r"""
    Parameters of a gamma process.

    Attributes
    ----------
    s0 : float
        Initial value.
    mu : float
        Mean rate, must be positive.
    nu : float
        Variance rate, must be positive.
    """

    s0: float
    mu: float
    nu: float

    def __post_init__(self) -> None:
        if self.mu <= 0.0:
            raise InvalidParameterError("mu must be positive")
        if self.nu <= 0.0:
            raise InvalidParameterError("nu must be positive")

    @property
    def mu_over_nu(self) -> float:
        """Gamma rate :math:`\\mu / \\nu` of every increment."""
        return self.mu / self.nu


class GammaProcessPCA:
    r"""
    Gamma process whose increments are driven by a PCA Brownian path.

    Parameters
    ----------
    s0, mu, nu : float
        See :class:`GammaParams`.
    source : RandomStream or GammaGen
        Stream feeding the inner Brownian motion. When a
        :class:`~mcprocess.randvar.GammaGen` is given, its stream is used.
    schedule : ObservationSchedule or sequence of float, optional
        Observation times, shared with the inner Brownian motion.

    Attributes
    ----------
    bm : BrownianMotionPCA
        Inner Brownian motion with ``x0 = 0``, ``mu = 0`` and
        ``sigma = sqrt(nu)``.
    """

    strategy = SamplingStrategy.subordinated
    supports_sequential = False

    def __init__(
        self,
        s0: float,
        mu: float,
        nu: float,
        source: Union[RandomStream, GammaGen],
        *,
        schedule: Optional[Union[ObservationSchedule, Sequence[float]]] = None,
    ):
        stream = source.stream if isinstance(source, GammaGen) else source
        if not isinstance(stream, RandomStream):
            raise TypeError(f"expected a RandomStream or GammaGen, got {type(source).__name__}")
        self.params = GammaParams(float(s0), float(mu), float(nu))
        self._state = ProcessPath(x0=self.params.s0)
        self.bm = BrownianMotionPCA(0.0, 0.0, math.sqrt(self.params.nu), stream)
        self._shapes: Optional[np.ndarray] = None
        if schedule is not None:
            self.set_observation_times(schedule)

    def set_params(self, s0: float, mu: float, nu: float) -> None:
        """Replace the parameters; the inner Brownian motion gets ``sigma = sqrt(nu)``."""
        params = GammaParams(float(s0), float(mu), float(nu))
        self.bm.set_params(0.0, 0.0, math.sqrt(params.nu))
        self.params = params
        self._state.set_x0(params.s0)
        self._shapes = None

    def set_observation_times(self, times: Union[ObservationSchedule, Sequence[float]]) -> None:
        """Install a new schedule here and on the inner Brownian motion."""
        sched = as_schedule(times)
        self.bm.set_observation_times(sched)
        self._state.reset(sched)
        self._shapes = None

    def set_stream(self, stream: RandomStream) -> None:
        self.bm.set_stream(stream)

    def reset_start_process(self) -> None:
        self._state.reset()

    def _increment_shapes(self) -> np.ndarray:
        r"""Per-step gamma shapes :math:`\mu^2 \Delta t_j / \nu`, cached against the schedule."""
        if self._shapes is None:
            p = self.params
            self._shapes = p.mu * p.mu * self._state.require_schedule().deltas / p.nu
            logger.debug("Recomputed %d gamma increment shapes", self._shapes.size)
        return self._shapes

    def generate_path(self, uniforms: Optional[Sequence[float]] = None) -> np.ndarray:
        r"""
        Generate a whole path.

        Parameters
        ----------
        uniforms : sequence of float, optional
            ``d`` uniforms on :math:`(0, 1)` forwarded to
            :meth:`BrownianMotionPCA.generate_path`.

        Returns
        -------
        ndarray
            Copy of the committed path :math:`(G(t_0), \dots, G(t_d))`.
        """
        bm_path = self.bm.generate_path(uniforms)
        return self._subordinate(bm_path)

    def _subordinate(self, bm_path: np.ndarray) -> np.ndarray:
        sched = self._state.require_schedule()
        scale = self.bm.sigma * np.sqrt(sched.deltas)
        v = norm.cdf(np.diff(bm_path) / scale)
        v = np.clip(v, _U_LOW, _U_HIGH)
        increments = GammaGen.inverse_f(self._increment_shapes(), self.params.mu_over_nu, v)
        return self._state.commit_path(self.params.s0 + np.cumsum(increments))

    def next_observation(self) -> float:
        raise UnsupportedOperationError(
            "next_observation() is not implemented for GammaProcessPCA; use generate_path()"
        )

    def next_observation_at(self, next_time: float) -> float:
        raise UnsupportedOperationError(
            "next_observation_at() is not implemented for GammaProcessPCA; use generate_path()"
        )

    @property
    def x0(self) -> float:
        return self.params.s0

    @property
    def mu(self) -> float:
        return self.params.mu

    @property
    def nu(self) -> float:
        return self.params.nu

    @property
    def stream(self) -> RandomStream:
        return self.bm.stream

    @property
    def path(self) -> np.ndarray:
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
        return f"GammaProcessPCA(s0={p.s0:g}, mu={p.mu:g}, nu={p.nu:g}, schedule={self._state.schedule!r})"
