r"""
Uniform random streams with substreams.

A :class:`RandomStream` supplies i.i.d. uniforms on the open interval
:math:`(0, 1)`. It is partitioned into substreams so that replication
:math:`i` of an experiment always consumes the same numbers, whatever the
other replications did. This is what makes common random numbers and
reproducible per-worker streams possible.

Substream :math:`k` is driven by a :class:`numpy.random.Philox` generator
seeded from the child :class:`numpy.random.SeedSequence` with spawn key
``(k,)``, i.e. exactly the :math:`k`-th child that
:meth:`numpy.random.SeedSequence.spawn` would hand out.
"""

from __future__ import annotations

from typing import Optional

import numpy as np

__all__ = ["RandomStream"]


class RandomStream:
    r"""
    Seedable source of uniforms on :math:`(0, 1)` split into substreams.

    Parameters
    ----------
    seed : int, optional
        Entropy for the root :class:`numpy.random.SeedSequence`. ``None`` draws
        entropy from the OS.
    antithetic : bool, default ``False``
        If ``True`` every returned value :math:`u` is replaced by :math:`1 - u`.

    Notes
    -----
    Streams carry mutable position state and are not thread-safe. Give each
    worker its own stream (or its own substream range).

    Examples
    --------
    >>> s = RandomStream(seed=42)
    >>> u1 = s.next_double()
    >>> s.reset_start_substream()
    >>> s.next_double() == u1
    True
    """

    def __init__(self, seed: Optional[int] = None, *, antithetic: bool = False):
        self.seed_seq = np.random.SeedSequence(seed)
        self.antithetic = antithetic
        self._substream_index = 0
        self._rng = self._make_rng(0)

    def __getstate__(self):
        """Drop the generator; it is rebuilt from the seed on unpickling."""
        state = self.__dict__.copy()
        state["_rng"] = None
        return state

    def __setstate__(self, state):
        self.__dict__.update(state)
        self._rng = self._make_rng(self._substream_index)

    def _make_rng(self, index: int) -> np.random.Generator:
        child = np.random.SeedSequence(
            entropy=self.seed_seq.entropy,
            spawn_key=tuple(self.seed_seq.spawn_key) + (index,),
        )
        return np.random.Generator(np.random.Philox(child))

    @property
    def substream_index(self) -> int:
        """Index of the substream currently being consumed."""
        return self._substream_index

    def next_double(self) -> float:
        r"""Return one uniform on :math:`(0, 1)`."""
        u = self._rng.random()
        # Generator.random() is on [0, 1)
        while u == 0.0:
            u = self._rng.random()
        return float(1.0 - u) if self.antithetic else float(u)

    def next_array(self, n: int) -> np.ndarray:
        r"""
        Return ``n`` uniforms on :math:`(0, 1)`.

        Consumes the stream in the same order as ``n`` calls to
        :meth:`next_double`.
        """
        u = self._rng.random(n)
        zeros = u == 0.0
        while np.any(zeros):
            u[zeros] = self._rng.random(int(zeros.sum()))
            zeros = u == 0.0
        return 1.0 - u if self.antithetic else u

    def reset_start_stream(self) -> None:
        """Rewind to the beginning of substream 0."""
        self._substream_index = 0
        self._rng = self._make_rng(0)

    def reset_start_substream(self) -> None:
        """Rewind to the beginning of the current substream."""
        self._rng = self._make_rng(self._substream_index)

    def reset_next_substream(self) -> None:
        """Jump to the beginning of the next substream."""
        self._substream_index += 1
        self._rng = self._make_rng(self._substream_index)

    def __repr__(self) -> str:
        return (
            f"RandomStream(entropy={self.seed_seq.entropy}, substream={self._substream_index}, "
            f"antithetic={self.antithetic})"
        )
