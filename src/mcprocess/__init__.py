"""mcprocess package public API."""

from .brownian import BrownianMotionPCA, BrownianParams
from .errors import (
    InvalidParameterError,
    MCProcessError,
    ScheduleNotSetError,
    UnsupportedOperationError,
)
from .experiment import (
    ExperimentResult,
    compute_mean_var_cv,
    run_experiment,
    simulate_fd_replicates_crn,
    simulate_fd_replicates_irn,
    simulate_runs,
    simulate_runs_cv,
)
from .gamma import GammaParams, GammaProcessPCA
from .ornstein_uhlenbeck import OrnsteinUhlenbeckProcessEuler, OUParams
from .process import PathGenerator, ProcessPath, SamplingStrategy
from .randvar import BinomialGen, GammaGen, NormalGen, Pearson5Gen, PowerGen
from .schedule import ObservationSchedule
from .spectral import SpectralFactor, SpectralFactorizer, brownian_covariance, decompose_pca
from .stats_engine import DEFAULT_ENGINE, StatsContext, StatsEngine
from .streams import RandomStream

__all__ = [
    "ObservationSchedule",
    "RandomStream",
    "NormalGen",
    "GammaGen",
    "BinomialGen",
    "Pearson5Gen",
    "PowerGen",
    "brownian_covariance",
    "decompose_pca",
    "SpectralFactor",
    "SpectralFactorizer",
    "ProcessPath",
    "PathGenerator",
    "SamplingStrategy",
    "BrownianParams",
    "BrownianMotionPCA",
    "GammaParams",
    "GammaProcessPCA",
    "OUParams",
    "OrnsteinUhlenbeckProcessEuler",
    "InvalidParameterError",
    "UnsupportedOperationError",
    "ScheduleNotSetError",
    "MCProcessError",
    "ExperimentResult",
    "simulate_runs",
    "run_experiment",
    "simulate_runs_cv",
    "compute_mean_var_cv",
    "simulate_fd_replicates_crn",
    "simulate_fd_replicates_irn",
    "StatsContext",
    "StatsEngine",
    "DEFAULT_ENGINE",
]

__version__ = "0.1.0"
