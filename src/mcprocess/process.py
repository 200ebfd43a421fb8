r"""
mcprocess.process
=================

State shared by every process generator and the protocol they implement.

Generators do not inherit their path state. Each one owns a
:class:`ProcessPath` record (schedule, path buffer, cursor, initial value) and
implements its own sampling strategy on top of it. Strategies are tagged by
:class:`SamplingStrategy` and advertise whether they can step one observation
at a time through ``supports_sequential``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Protocol, Sequence, Union

import numpy as np

from .errors import ScheduleNotSetError
from .randvar import NormalGen
from .schedule import ObservationSchedule
from .streams import RandomStream

__all__ = [
    "SamplingStrategy",
    "ProcessPath",
    "PathGenerator",
    "SequentialPathGenerator",
    "as_normal_gen",
]


class SamplingStrategy(str, Enum):
    r"""
    How a generator produces its path.

    Attributes
    ----------
    pca : str
        Whole path at once from a principal-component factor.
    subordinated : str
        Whole path at once by transforming a PCA Brownian path.
    euler : str
        One observation at a time with an Euler-Maruyama step.
    """

    pca = "pca"
    subordinated = "subordinated"
    euler = "euler"


@dataclass
class ProcessPath:
    r"""
    Schedule, path buffer and cursor of one process instance.

    Attributes
    ----------
    x0 : float
        Initial value, always stored in ``values[0]``.
    schedule : ObservationSchedule or None
        Observation times; ``None`` until set.
    values : ndarray
        Path buffer of length ``d + 1``.
    observation_index : int
        Number of committed observations after ``t0``: 0 after a reset, ``d``
        after a whole-path generation.
    """

    x0: float
    schedule: Optional[ObservationSchedule] = None
    values: np.ndarray = field(default_factory=lambda: np.empty(0))
    observation_index: int = 0

    def reset(self, schedule: Optional[ObservationSchedule] = None) -> None:
        """Install ``schedule`` (if given), reallocate the path and rewind the cursor."""
        if schedule is not None:
            self.schedule = schedule
        if self.schedule is not None:
            self.values = np.zeros(self.schedule.d + 1, dtype=float)
            self.values[0] = self.x0
        self.observation_index = 0

    def set_x0(self, x0: float) -> None:
        self.x0 = float(x0)
        if self.values.size:
            self.values[0] = self.x0

    def require_schedule(self) -> ObservationSchedule:
        if self.schedule is None:
            raise ScheduleNotSetError("observation times have not been set")
        return self.schedule

    @property
    def d(self) -> int:
        return self.require_schedule().d

    @property
    def current_value(self) -> float:
        return float(self.values[self.observation_index])

    @property
    def current_time(self) -> float:
        return float(self.require_schedule().times[self.observation_index])

    def has_next(self) -> bool:
        return self.schedule is not None and self.observation_index < self.schedule.d

    def commit_step(self, x: float) -> float:
        """Store ``x`` at the next index and advance the cursor by one."""
        nxt = self.observation_index + 1
        if nxt >= self.values.size:
            raise IndexError(f"no observation left: cursor is already at d={self.values.size - 1}")
        self.values[nxt] = x
        self.observation_index = nxt
        return x

    def commit_path(self, tail: np.ndarray) -> np.ndarray:
        """Store ``tail`` as ``values[1:]``, mark the path complete and return a copy."""
        self.values[0] = self.x0
        self.values[1:] = tail
        self.observation_index = self.values.size - 1
        return self.values.copy()


class PathGenerator(Protocol):
    r"""
    Interface common to all process generators.

    Whole-path generators implement the sequential methods by raising
    :class:`~mcprocess.errors.UnsupportedOperationError` and set
    ``supports_sequential = False``.
    """

    strategy: SamplingStrategy
    supports_sequential: bool

    def generate_path(self, uniforms: Optional[Sequence[float]] = None) -> np.ndarray: ...

    def next_observation(self) -> float: ...

    def next_observation_at(self, next_time: float) -> float: ...

    def set_observation_times(self, times: Union[ObservationSchedule, Sequence[float]]) -> None: ...

    def reset_start_process(self) -> None: ...

    @property
    def path(self) -> np.ndarray: ...

    @property
    def schedule(self) -> ObservationSchedule: ...

    @property
    def observation_index(self) -> int: ...


class SequentialPathGenerator(PathGenerator, Protocol):
    """Generators that can also step from an arbitrary state."""

    def next_observation_from(self, x: float, dt: float) -> float: ...


def as_normal_gen(source: Union[RandomStream, NormalGen]) -> NormalGen:
    """Wrap a stream into a standard :class:`~mcprocess.randvar.NormalGen`; pass generators through."""
    if isinstance(source, NormalGen):
        return source
    if isinstance(source, RandomStream):
        return NormalGen(source)
    raise TypeError(f"expected a RandomStream or NormalGen, got {type(source).__name__}")
