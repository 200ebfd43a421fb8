r"""

mcprocess.experiment
====================

Replication helpers for Monte Carlo experiments over generated paths.

A *model* draws whatever it needs from a :class:`~mcprocess.streams.RandomStream`
in :meth:`MonteCarloModel.simulate` and exposes the realized performance
:math:`X`. Replication :math:`i` always runs on substream :math:`i`, so two
models simulated with the same stream see the same random numbers run by run.

This module provides:

* :func:`simulate_runs` and :func:`run_experiment` – plain replications.
* :func:`simulate_runs_cv` and :func:`compute_mean_var_cv` – control variates.
* :func:`simulate_fd_replicates_crn` / :func:`simulate_fd_replicates_irn` –
  finite-difference estimators with common or independent random numbers.

Control variates
----------------

With performance :math:`X`, a control :math:`C` of known mean zero and
:math:`\beta = \mathrm{Cov}(C, X) / \mathrm{Var}(C)`, the estimator
:math:`X - \beta C` has variance

.. math::

   \mathrm{Var}(X) + \beta^2 \mathrm{Var}(C) - 2 \beta\,\mathrm{Cov}(C, X).
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Optional, Protocol, Sequence

import numpy as np

from .stats_engine import DEFAULT_ENGINE, StatsContext, StatsEngine
from .streams import RandomStream

logger = logging.getLogger(__name__)
if not logger.handlers:
    handler = logging.StreamHandler()
    formatter = logging.Formatter("%(asctime)s - %(levelname)s - %(message)s")
    handler.setFormatter(formatter)
    logger.addHandler(handler)
    logger.setLevel(logging.INFO)

__all__ = [
    "MonteCarloModel",
    "MonteCarloModelCV",
    "ExperimentResult",
    "simulate_runs",
    "run_experiment",
    "simulate_runs_cv",
    "compute_mean_var_cv",
    "simulate_fd_replicates_crn",
    "simulate_fd_replicates_irn",
]


class MonteCarloModel(Protocol):
    """A model simulated once per replication."""

    def simulate(self, stream: RandomStream) -> None: ...

    @property
    def performance(self) -> float: ...


class MonteCarloModelCV(MonteCarloModel, Protocol):
    """A model that also reports control variates (each with known mean zero)."""

    @property
    def values_cv(self) -> Sequence[float]: ...


@dataclass
class ExperimentResult:
    r"""
    Outcome of :func:`run_experiment`.

    Attributes
    ----------
    results : ndarray of float
        Performance of each replication.
    n_runs : int
        Number of replications.
    execution_time : float
        Wall-clock time in seconds.
    mean : float
        Sample mean :math:`\bar X`.
    variance : float
        Sample variance per run (``ddof=1``).
    std : float
        Sample standard deviation.
    ci : dict
        Output of :func:`~mcprocess.stats_engine.ci_mean`.
    metadata : dict
        ``"model"``, ``"timestamp"``, ``"seed_entropy"`` and ``"first_substream"``.
    """

    results: np.ndarray
    n_runs: int
    execution_time: float
    mean: float
    variance: float
    std: float
    ci: dict[str, Any] = field(default_factory=dict)
    metadata: dict[str, Any] = field(default_factory=dict)


def _check_n(n: int) -> None:
    if n <= 0:
        raise ValueError("n must be positive")


def simulate_runs(model: MonteCarloModel, n: int, stream: RandomStream) -> np.ndarray:
    r"""
    Run ``n`` replications of ``model`` and return their performances.

    The stream moves to its next substream after every run.
    """
    _check_n(n)
    results = np.empty(n, dtype=float)
    for i in range(n):
        model.simulate(stream)
        results[i] = float(model.performance)
        stream.reset_next_substream()
    return results


def run_experiment(
    model: MonteCarloModel,
    n: int,
    stream: RandomStream,
    *,
    confidence: float = 0.95,
    ci_method: str = "t",
    stats_engine: Optional[StatsEngine] = None,
) -> ExperimentResult:
    r"""
    Run ``n`` replications and summarize them with a stats engine.

    Parameters
    ----------
    model : MonteCarloModel
        Model to replicate.
    n : int
        Number of replications.
    stream : RandomStream
        Stream consumed one substream per replication.
    confidence : float, default ``0.95``
        Confidence level of the interval on the mean.
    ci_method : {"auto", "z", "t"}, default ``"t"``
        Critical value for the interval.
    stats_engine : StatsEngine, optional
        Defaults to :data:`~mcprocess.stats_engine.DEFAULT_ENGINE`.

    Returns
    -------
    ExperimentResult
    """
    _check_n(n)
    ctx = StatsContext(n=n, confidence=confidence, ci_method=ci_method)
    first_substream = stream.substream_index
    model_name = type(model).__name__
    logger.info("Running %d replications of %s...", n, model_name)

    t0 = time.time()
    results = simulate_runs(model, n, stream)
    exec_time = time.time() - t0

    eng = stats_engine or DEFAULT_ENGINE
    stats = eng.compute(results, ctx)
    variance = stats.get("var", float(np.var(results, ddof=1)) if n > 1 else 0.0)
    return ExperimentResult(
        results=results,
        n_runs=n,
        execution_time=exec_time,
        mean=float(stats.get("mean", np.mean(results))),
        variance=float(variance),
        std=float(np.sqrt(variance)),
        ci=dict(stats.get("ci_mean", {})),
        metadata={
            "model": model_name,
            "timestamp": time.time(),
            "seed_entropy": stream.seed_seq.entropy,
            "first_substream": first_substream,
        },
    )


def simulate_runs_cv(
    model: MonteCarloModelCV, n: int, stream: RandomStream
) -> tuple[np.ndarray, np.ndarray]:
    r"""
    Run ``n`` replications and collect the performance and the first control variate.

    Returns
    -------
    tuple of ndarray
        ``(x, c)``, both of length ``n``.
    """
    _check_n(n)
    x = np.empty(n, dtype=float)
    c = np.empty(n, dtype=float)
    for i in range(n):
        model.simulate(stream)
        x[i] = float(model.performance)
        c[i] = float(model.values_cv[0])
        stream.reset_next_substream()
    return x, c


def compute_mean_var_cv(x: np.ndarray, c: np.ndarray) -> tuple[tuple[float, float], tuple[float, float]]:
    r"""
    Mean and variance per run, without and with the control variate ``c``.

    Parameters
    ----------
    x : ndarray
        Performances.
    c : ndarray
        Control variate values; their true mean is taken to be zero.

    Returns
    -------
    tuple
        ``((mean, mean_cv), (variance, variance_cv))``.

    Notes
    -----
    If ``c`` has zero sample variance the control is useless and the plain
    estimates are returned for both.
    """
    x = np.asarray(x, dtype=float)
    c = np.asarray(c, dtype=float)
    if x.size < 2 or x.size != c.size:
        raise ValueError("x and c must have the same length, at least 2")
    mean_x = float(np.mean(x))
    var_x = float(np.var(x, ddof=1))
    var_c = float(np.var(c, ddof=1))
    if var_c == 0.0:
        logger.warning("Control variate has zero variance; returning plain estimates")
        return (mean_x, mean_x), (var_x, var_x)
    cov_cx = float(np.cov(c, x, ddof=1)[0, 1])
    beta = cov_cx / var_c
    mean_cv = mean_x - beta * float(np.mean(c))
    var_cv = var_x + beta * beta * var_c - 2.0 * beta * cov_cx
    return (mean_x, mean_cv), (var_x, var_cv)


def simulate_fd_replicates_crn(
    model1: MonteCarloModel,
    model2: MonteCarloModel,
    delta: float,
    n: int,
    stream: RandomStream,
) -> np.ndarray:
    r"""
    Finite-difference replicates :math:`(X_2 - X_1)/\delta` with common random numbers.

    For each replication the stream moves to a new substream, ``model1`` runs,
    the substream is rewound and ``model2`` runs on the same numbers.
    """
    _check_n(n)
    if delta == 0.0:
        raise ValueError("delta must be non-zero")
    out = np.empty(n, dtype=float)
    for i in range(n):
        stream.reset_next_substream()
        model1.simulate(stream)
        value1 = float(model1.performance)
        stream.reset_start_substream()
        model2.simulate(stream)
        out[i] = (float(model2.performance) - value1) / delta
    return out


def simulate_fd_replicates_irn(
    model1: MonteCarloModel,
    model2: MonteCarloModel,
    delta: float,
    n: int,
    stream: RandomStream,
) -> np.ndarray:
    r"""
    Finite-difference replicates :math:`(X_2 - X_1)/\delta` with independent random numbers.

    ``model2`` continues on the numbers that follow ``model1``'s.
    """
    _check_n(n)
    if delta == 0.0:
        raise ValueError("delta must be non-zero")
    out = np.empty(n, dtype=float)
    for i in range(n):
        stream.reset_next_substream()
        model1.simulate(stream)
        value1 = float(model1.performance)
        model2.simulate(stream)
        out[i] = (float(model2.performance) - value1) / delta
    return out
