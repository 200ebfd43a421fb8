r"""
Observation schedules.

An :class:`ObservationSchedule` is the ordered set of times
:math:`t_0 < t_1 < \dots < t_d` at which a process is observed. The schedule is
an immutable value: generators replace it wholesale, which is how their cached
factors and coefficients learn that they are stale.
"""

from __future__ import annotations

from typing import Iterable, Sequence

import numpy as np

from .errors import InvalidParameterError

__all__ = ["ObservationSchedule", "as_schedule"]


class ObservationSchedule:
    r"""
    Strictly increasing observation times :math:`t_0 < \dots < t_d`, :math:`d \ge 1`.

    Parameters
    ----------
    times : sequence of float
        The ``d + 1`` observation times. ``times[0]`` is the process start.

    Raises
    ------
    InvalidParameterError
        If fewer than two times are given, a time is not finite, or the times
        are not strictly increasing.

    Examples
    --------
    >>> sched = ObservationSchedule([0.0, 0.5, 1.5])
    >>> sched.d
    2
    >>> sched.deltas.tolist()
    [0.5, 1.0]
    """

    __slots__ = ("_times",)

    def __init__(self, times: Iterable[float]):
        arr = np.array(list(times), dtype=float)
        if arr.ndim != 1 or arr.size < 2:
            raise InvalidParameterError("schedule needs at least two observation times (d >= 1)")
        if not np.all(np.isfinite(arr)):
            raise InvalidParameterError("observation times must be finite")
        if np.any(np.diff(arr) <= 0.0):
            raise InvalidParameterError("observation times must be strictly increasing")
        arr.setflags(write=False)
        self._times = arr

    @classmethod
    def equally_spaced(cls, delta: float, d: int, t0: float = 0.0) -> "ObservationSchedule":
        r"""
        Build the schedule :math:`t_j = t_0 + j\,\delta` for :math:`j = 0, \dots, d`.

        Parameters
        ----------
        delta : float
            Step length, must be positive.
        d : int
            Number of steps, must be at least 1.
        t0 : float, default ``0.0``
            Start time.
        """
        if delta <= 0.0:
            raise InvalidParameterError("delta must be positive")
        if d < 1:
            raise InvalidParameterError("d must be >= 1")
        return cls(t0 + delta * np.arange(d + 1, dtype=float))

    @classmethod
    def _unchecked(cls, times: np.ndarray) -> "ObservationSchedule":
        obj = cls.__new__(cls)
        arr = np.array(times, dtype=float)
        arr.setflags(write=False)
        obj._times = arr
        return obj

    def with_time(self, index: int, time: float) -> "ObservationSchedule":
        r"""
        Return a copy with ``times[index]`` replaced by ``time``.

        ``index == d + 1`` appends ``time``. The ordering is **not** checked:
        free stepping through
        :meth:`~mcprocess.ornstein_uhlenbeck.OrnsteinUhlenbeckProcessEuler.next_observation_at`
        trusts its caller.
        """
        times = self._times.copy()
        if index == times.size:
            times = np.append(times, float(time))
        else:
            times[index] = float(time)
        return ObservationSchedule._unchecked(times)

    @property
    def times(self) -> np.ndarray:
        """Read-only array of the ``d + 1`` observation times."""
        return self._times

    @property
    def d(self) -> int:
        """Number of observations after ``t0``."""
        return int(self._times.size - 1)

    @property
    def t0(self) -> float:
        return float(self._times[0])

    @property
    def horizon(self) -> float:
        """Last observation time :math:`t_d`."""
        return float(self._times[-1])

    @property
    def deltas(self) -> np.ndarray:
        r"""Step lengths :math:`\Delta t_j = t_j - t_{j-1}`, length ``d``."""
        return np.diff(self._times)

    def __len__(self) -> int:
        return int(self._times.size)

    def __getitem__(self, index):
        return self._times[index]

    def __eq__(self, other) -> bool:
        if not isinstance(other, ObservationSchedule):
            return NotImplemented
        return bool(np.array_equal(self._times, other._times))

    def __hash__(self) -> int:
        return hash(self._times.tobytes())

    def __repr__(self) -> str:
        return f"ObservationSchedule(d={self.d}, t0={self.t0:g}, horizon={self.horizon:g})"


def as_schedule(times: ObservationSchedule | Sequence[float]) -> ObservationSchedule:
    """Coerce a sequence of times into an :class:`ObservationSchedule`."""
    if isinstance(times, ObservationSchedule):
        return times
    return ObservationSchedule(times)
