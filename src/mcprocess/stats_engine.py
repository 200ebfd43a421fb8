r"""
mcprocess.stats_engine
======================
Sample statistics for Monte Carlo replications.

This module defines:

- :class:`StatsContext`: the configuration shared by all metrics.
- :class:`FnMetric`: a frozen adapter that names a metric function.
- :class:`StatsEngine`: evaluates a set of metrics over one sample.

The default engine (:func:`build_default_engine`) computes :func:`mean`,
:func:`std`, :func:`var` and the parametric interval :func:`ci_mean`.

See Also
--------
mcprocess.utils.autocrit
    Selects a z/t critical value for a confidence level and sample size.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Callable, Generic, Iterable, Optional, Protocol, Sequence, TypeVar

import numpy as np

from .utils import autocrit

logger = logging.getLogger(__name__)
if not logger.handlers:
    handler = logging.StreamHandler()
    formatter = logging.Formatter("%(asctime)s - %(levelname)s - %(message)s")
    handler.setFormatter(formatter)
    logger.addHandler(handler)
    logger.setLevel(logging.INFO)


class NanPolicy(str, Enum):
    r"""
    Handling of non-finite observations.

    Attributes
    ----------
    propagate : str
        Keep NaNs and infinities; statistics become non-finite.
    omit : str
        Drop non-finite observations first.
    """

    propagate = "propagate"
    omit = "omit"


class CIMethod(str, Enum):
    r"""
    Critical value used by :func:`ci_mean`.

    Attributes
    ----------
    auto : str
        Student-t when :math:`n_\text{eff} < 30`, otherwise z.
    z : str
        Normal critical value.
    t : str
        Student-t critical value with :math:`n_\text{eff} - 1` degrees of freedom.
    """

    auto = "auto"
    z = "z"
    t = "t"


@dataclass(slots=True)
class StatsContext:
    r"""
    Configuration shared by every metric.

    Attributes
    ----------
    n : int
        Declared sample size.
    confidence : float, default 0.95
        Confidence level in :math:`(0, 1)`.
    ci_method : {"auto", "z", "t"}, default "auto"
        Critical value selection for :func:`ci_mean`.
    nan_policy : {"propagate", "omit"}, default "propagate"
        If ``"omit"``, drop non-finite values before computing.
    ddof : int, default 1
        Degrees of freedom for :func:`std` and :func:`var`.

    Examples
    --------
    >>> ctx = StatsContext(n=5000, confidence=0.95)
    >>> round(ctx.alpha, 2)
    0.05
    """

    n: int
    confidence: float = 0.95
    ci_method: CIMethod = "auto"
    nan_policy: NanPolicy = "propagate"
    ddof: int = 1

    def with_overrides(self, **changes) -> "StatsContext":
        """Return a copy with selected fields replaced."""
        return replace(self, **changes)

    @property
    def alpha(self) -> float:
        r"""Tail probability :math:`\alpha = 1 - \text{confidence}`."""
        return 1.0 - self.confidence

    def eff_n(self, observed_len: int, finite_count: Optional[int] = None) -> int:
        r"""
        Effective sample size :math:`n_\text{eff}`.

        The count of finite values when ``nan_policy="omit"``, else the declared
        :attr:`n`, else ``observed_len``.
        """
        if self.nan_policy == "omit" and finite_count is not None:
            return int(finite_count)
        return int(self.n or observed_len)

    def __post_init__(self) -> None:
        if not (0.0 < self.confidence < 1.0):
            raise ValueError("confidence must be in (0,1)")
        if self.ddof < 0:
            raise ValueError("ddof must be >= 0")
        if self.ci_method not in ("auto", "z", "t"):
            raise ValueError(f"ci_method must be one of 'auto', 'z', 't', got '{self.ci_method}'")
        if self.nan_policy not in ("propagate", "omit"):
            raise ValueError(f"Unknown nan_policy: {self.nan_policy}")


class Metric(Protocol):
    r"""
    A named callable ``metric(x, ctx) -> Any`` evaluated by :class:`StatsEngine`.
    """

    name: str

    def __call__(self, x: np.ndarray, ctx: StatsContext, /) -> Any: ...


T = TypeVar("T")


@dataclass(frozen=True)
class FnMetric(Generic[T]):
    r"""
    Binds a ``name`` to a metric function ``fn(x, ctx) -> T``.

    Examples
    --------
    >>> m = FnMetric("mean", lambda a, ctx: float(np.mean(a)))
    >>> m(np.array([1, 2, 3]), StatsContext(n=3))
    2.0
    """

    name: str
    fn: Callable[[np.ndarray, StatsContext], T]
    doc: str = ""

    def __call__(self, x: np.ndarray, ctx: StatsContext) -> T:
        return self.fn(x, ctx)


class StatsEngine:
    r"""
    Evaluates a list of metrics over one sample.

    Examples
    --------
    >>> eng = StatsEngine([FnMetric("mean", mean), FnMetric("std", std)])
    >>> eng.compute(np.array([1., 2., 3.]), StatsContext(n=3))
    {'mean': 2.0, 'std': 1.0}
    """

    def __init__(self, metrics: Iterable[Metric]):
        self._metrics = list(metrics)

    def available(self) -> tuple[str, ...]:
        return tuple(m.name for m in self._metrics)

    def compute(
        self,
        x: np.ndarray,
        ctx: Optional[StatsContext] = None,
        select: Sequence[str] | None = None,
        **kwargs: Any,
    ) -> dict[str, Any]:
        r"""
        Evaluate the registered metrics on ``x``.

        Parameters
        ----------
        x : ndarray
            Sample values.
        ctx : StatsContext, optional
            If ``None``, one is built from ``**kwargs`` with ``n`` defaulting to
            ``x.size``.
        select : sequence of str, optional
            Compute only the metrics with these names.

        Returns
        -------
        dict
            Metric name to value.
        """
        if ctx is None:
            base = dict(kwargs)
            base.setdefault("n", int(np.asarray(x).size))
            ctx = StatsContext(**base)

        wanted = None if select is None else set(select)
        out: dict[str, Any] = {}
        for m in self._metrics:
            if wanted is not None and m.name not in wanted:
                continue
            out[m.name] = m(x, ctx)
        return out


def _clean(x: np.ndarray, ctx: StatsContext) -> tuple[np.ndarray, int]:
    """Return the (possibly filtered) sample and its count of finite values."""
    arr = np.asarray(x, dtype=float)
    finite = np.isfinite(arr)
    if ctx.nan_policy == "omit":
        arr = arr[finite]
    return arr, int(finite.sum())


def mean(x: np.ndarray, ctx: StatsContext) -> float:
    r"""Sample mean :math:`\bar X`; ``nan`` for an empty sample."""
    arr, _ = _clean(x, ctx)
    return float(np.mean(arr)) if arr.size else float("nan")


def var(x: np.ndarray, ctx: StatsContext) -> float:
    r"""
    Sample variance :math:`s^2 = \frac{1}{n - \text{ddof}} \sum_i (x_i - \bar X)^2`.

    Returns ``0.0`` when :math:`n_\text{eff} \le 1`.
    """
    arr, finite = _clean(x, ctx)
    if ctx.eff_n(observed_len=arr.size, finite_count=finite) <= 1 or arr.size <= ctx.ddof:
        return 0.0
    return float(np.var(arr, ddof=ctx.ddof))


def std(x: np.ndarray, ctx: StatsContext) -> float:
    """Sample standard deviation, the square root of :func:`var`."""
    return float(np.sqrt(var(x, ctx)))


def ci_mean(x: np.ndarray, ctx: StatsContext) -> dict[str, float | str]:
    r"""
    Parametric confidence interval :math:`\bar X \pm c\,s/\sqrt{n_\text{eff}}`.

    Returns
    -------
    dict
        ``confidence``, ``method`` (resolved ``"z"`` or ``"t"``), ``low``,
        ``high``, ``se`` and ``crit``. Endpoints are ``nan`` when
        :math:`n_\text{eff} < 2`.
    """
    arr, finite = _clean(x, ctx)
    n_eff = ctx.eff_n(observed_len=arr.size, finite_count=finite)
    if arr.size == 0 or n_eff < 2:
        logger.warning("ci_mean needs at least two observations, got %d", n_eff)
        nan = float("nan")
        return {
            "confidence": ctx.confidence,
            "method": getattr(ctx.ci_method, "value", ctx.ci_method),
            "low": nan,
            "high": nan,
            "se": nan,
            "crit": nan,
        }

    mu = float(np.mean(arr))
    se = float(np.std(arr, ddof=ctx.ddof)) / np.sqrt(n_eff)
    crit, method = autocrit(ctx.confidence, n_eff, ctx.ci_method)
    return {
        "confidence": ctx.confidence,
        "method": method,
        "se": float(se),
        "crit": float(crit),
        "low": float(mu - crit * se),
        "high": float(mu + crit * se),
    }


def build_default_engine() -> StatsEngine:
    """Engine computing ``mean``, ``std``, ``var`` and ``ci_mean``."""
    return StatsEngine(
        [
            FnMetric("mean", mean, "Sample mean"),
            FnMetric("std", std, "Sample standard deviation"),
            FnMetric("var", var, "Sample variance"),
            FnMetric("ci_mean", ci_mean, "Parametric CI for the mean"),
        ]
    )


DEFAULT_ENGINE = build_default_engine()

__all__ = [
    "NanPolicy",
    "CIMethod",
    "StatsContext",
    "Metric",
    "FnMetric",
    "StatsEngine",
    "mean",
    "std",
    "var",
    "ci_mean",
    "build_default_engine",
    "DEFAULT_ENGINE",
]
