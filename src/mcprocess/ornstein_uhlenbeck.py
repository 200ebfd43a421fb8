r"""
mcprocess.ornstein_uhlenbeck
============================

Ornstein-Uhlenbeck process discretized by the Euler-Maruyama scheme.

The process solves

.. math::
   dX(t) = \alpha\,(b - X(t))\,dt + \sigma\,dB(t),

and is approximated on the schedule by

.. math::
   X(t_j) = X(t_{j-1}) + \alpha\,(b - X(t_{j-1}))\,\Delta t_j + \sigma\sqrt{\Delta t_j}\,Z_j,

with :math:`Z_j` i.i.d. standard normal. The per-step coefficients
:math:`\alpha\Delta t_j` and :math:`\sigma\sqrt{\Delta t_j}` are cached for the
current schedule.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Optional, Sequence, Union

import numpy as np

from .errors import InvalidParameterError
from .process import ProcessPath, SamplingStrategy, as_normal_gen
from .randvar import NormalGen
from .schedule import ObservationSchedule, as_schedule
from .streams import RandomStream

logger = logging.getLogger(__name__)

__all__ = ["OUParams", "OrnsteinUhlenbeckProcessEuler"]


@dataclass(frozen=True)
class OUParams:
    r"""
    Parameters of :math:`dX = \alpha(b - X)\,dt + \sigma\,dB`.

    Attributes
    ----------
    x0 : float
        Initial value.
    alpha : float
        Mean-reversion speed, must be positive.
    b : float
        Long-run level.
    sigma : float
        Diffusion scale, must be positive.
    """

    x0: float
    alpha: float
    b: float
    sigma: float

    def __post_init__(self) -> None:
        if self.alpha <= 0.0:
            raise InvalidParameterError("alpha must be positive")
        if self.sigma <= 0.0:
            raise InvalidParameterError("sigma must be positive")


class OrnsteinUhlenbeckProcessEuler:
    r"""
    Ornstein-Uhlenbeck paths by Euler-Maruyama, whole-path or step by step.

    Parameters
    ----------
    x0, alpha, b, sigma : float
        See :class:`OUParams`.
    source : RandomStream or NormalGen
        Source of the standard normals :math:`Z_j`.
    schedule : ObservationSchedule or sequence of float, optional
        Observation times.

    Notes
    -----
    The coefficients are computed as soon as a schedule is installed, and again
    on :meth:`set_params`. :meth:`next_observation_at` computes its step from
    the supplied time and writes that time into the schedule, but leaves the
    coefficients as they were. After such a call, :meth:`next_observation` and
    :meth:`generate_path` keep using the coefficients of the schedule that was
    last installed through :meth:`set_observation_times`, until the next
    :meth:`set_params`.

    Examples
    --------
    >>> ou = OrnsteinUhlenbeckProcessEuler(0.1, 2.0, 0.05, 0.1, RandomStream(seed=7),
    ...                                    schedule=ObservationSchedule.equally_spaced(0.25, 4))
    >>> ou.generate_path().shape
    (5,)
    """

    strategy = SamplingStrategy.euler
    supports_sequential = True

    def __init__(
        self,
        x0: float,
        alpha: float,
        b: float,
        sigma: float,
        source: Union[RandomStream, NormalGen],
        *,
        schedule: Optional[Union[ObservationSchedule, Sequence[float]]] = None,
    ):
        self.params = OUParams(float(x0), float(alpha), float(b), float(sigma))
        self.gen = as_normal_gen(source)
        self._state = ProcessPath(x0=self.params.x0)
        self._alpha_dt = np.empty(0)
        self._sigma_sqrt_dt = np.empty(0)
        self._coeffs_valid = False
        if schedule is not None:
            self.set_observation_times(schedule)

    def set_params(self, x0: float, alpha: float, b: float, sigma: float) -> None:
        """Replace the parameters and recompute the coefficients on the current schedule."""
        self.params = OUParams(float(x0), float(alpha), float(b), float(sigma))
        self._state.set_x0(self.params.x0)
        self._coeffs_valid = False
        if self._state.schedule is not None:
            self._ensure_coefficients()

    def set_observation_times(self, times: Union[ObservationSchedule, Sequence[float]]) -> None:
        """Install a new schedule, reset the path and recompute the coefficients."""
        self._state.reset(as_schedule(times))
        self._coeffs_valid = False
        self._ensure_coefficients()

    def set_stream(self, stream: RandomStream) -> None:
        self.gen.set_stream(stream)

    def reset_start_process(self) -> None:
        self._state.reset()

    @property
    def coefficients_valid(self) -> bool:
        return self._coeffs_valid

    def _ensure_coefficients(self) -> None:
        if self._coeffs_valid:
            return
        dt = self._state.require_schedule().deltas
        self._alpha_dt = self.params.alpha * dt
        self._sigma_sqrt_dt = self.params.sigma * np.sqrt(dt)
        self._coeffs_valid = True
        logger.debug("Recomputed Euler coefficients for %d steps", dt.size)

    def generate_path(self, uniforms: Optional[Sequence[float]] = None) -> np.ndarray:
        r"""
        Generate a whole path by ``d`` Euler steps from ``x0``.

        Parameters
        ----------
        uniforms : sequence of float, optional
            ``d`` uniforms on :math:`(0, 1)` used as :math:`\Phi(Z_j)`. When
            omitted the normal source is used.

        Raises
        ------
        IndexError
            If :meth:`next_observation_at` has appended times that the cached
            coefficients do not cover. Nothing is drawn in that case.
        """
        self._ensure_coefficients()
        d = self._state.d
        if d != self._alpha_dt.size:
            raise IndexError(
                f"schedule has d={d} steps but coefficients cover {self._alpha_dt.size}; "
                "call set_observation_times() to install the extended schedule"
            )
        b = self.params.b
        if uniforms is None:
            draws = None
        else:
            draws = NormalGen.inverse_f(0.0, 1.0, np.asarray(uniforms, dtype=float))
        tail = np.empty(d, dtype=float)
        x = self.params.x0
        for j in range(d):
            z = self.gen.next_double() if draws is None else float(draws[j])
            x = x + (b - x) * self._alpha_dt[j] + self._sigma_sqrt_dt[j] * z
            tail[j] = x
        return self._state.commit_path(tail)

    def next_observation(self) -> float:
        r"""
        Advance the cursor by one step using the cached coefficients.

        Returns
        -------
        float
            The new observation :math:`X(t_{j+1})`.

        Raises
        ------
        IndexError
            If the cursor is already at ``d``.
        """
        self._ensure_coefficients()
        j = self._state.observation_index
        if j >= self._alpha_dt.size:
            raise IndexError(f"no observation left: cursor is already at d={self._alpha_dt.size}")
        x_old = self._state.current_value
        x = x_old + (self.params.b - x_old) * self._alpha_dt[j] + self._sigma_sqrt_dt[j] * self.gen.next_double()
        return self._state.commit_step(x)

    def next_observation_at(self, next_time: float) -> float:
        r"""
        Advance the cursor by one step to ``next_time``.

        The step length is ``next_time - t_j`` and ``next_time`` becomes
        ``t_{j+1}`` in the schedule (appended when the cursor is at ``d``).
        ``next_time`` must not be smaller than the current time; this is not
        checked. The cached coefficients are not updated.
        """
        state = self._state
        sched = state.require_schedule()
        self._ensure_coefficients()
        j = state.observation_index
        prev_time = float(sched.times[j])
        x_old = state.current_value
        dt = next_time - prev_time
        p = self.params
        x = x_old + p.alpha * (p.b - x_old) * dt + p.sigma * math.sqrt(dt) * self.gen.next_double()

        state.schedule = sched.with_time(j + 1, next_time)
        if j + 1 == state.values.size:
            state.values = np.append(state.values, x)
            state.observation_index = j + 1
            return x
        return state.commit_step(x)

    def next_observation_from(self, x: float, dt: float) -> float:
        r"""
        One Euler step of length ``dt`` from ``x``, without touching the path.

        Consumes one normal from the source.
        """
        p = self.params
        return x + p.alpha * (p.b - x) * dt + p.sigma * math.sqrt(dt) * self.gen.next_double()

    @property
    def x0(self) -> float:
        return self.params.x0

    @property
    def alpha(self) -> float:
        return self.params.alpha

    @property
    def b(self) -> float:
        return self.params.b

    @property
    def sigma(self) -> float:
        return self.params.sigma

    @property
    def stream(self) -> RandomStream:
        return self.gen.stream

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
        return (
            f"OrnsteinUhlenbeckProcessEuler(x0={p.x0:g}, alpha={p.alpha:g}, b={p.b:g}, "
            f"sigma={p.sigma:g}, schedule={self._state.schedule!r})"
        )
