import numpy as np
import pytest

from mcprocess import (
    BrownianMotionPCA,
    GammaProcessPCA,
    ObservationSchedule,
    OrnsteinUhlenbeckProcessEuler,
    RandomStream,
)


class TerminalValueModel:
    """Performance is the terminal value of a PCA Brownian path driven by the replication stream."""

    def __init__(self, sigma: float = 1.0, mu: float = 0.0, x0: float = 0.0):
        self.bm = BrownianMotionPCA(
            x0, mu, sigma, RandomStream(seed=0), schedule=ObservationSchedule.equally_spaced(0.25, 4)
        )
        self.performance = float("nan")

    def simulate(self, stream):
        self.bm.set_stream(stream)
        self.performance = float(self.bm.generate_path()[-1])


class UniformWithControlModel:
    """X = U + 0.1 V with control C = U - 1/2, which has mean zero."""

    def __init__(self):
        self.performance = float("nan")
        self.values_cv = [float("nan")]

    def simulate(self, stream):
        u = stream.next_double()
        v = stream.next_double()
        self.performance = u + 0.1 * v
        self.values_cv = [u - 0.5]


@pytest.fixture
def stream():
    """Seeded stream for reproducible draws."""
    return RandomStream(seed=12345)


@pytest.fixture
def two_step_schedule():
    """Schedule t = [0, 1, 2]."""
    return ObservationSchedule([0.0, 1.0, 2.0])


@pytest.fixture
def quarterly_schedule():
    """Four equal steps over one year."""
    return ObservationSchedule.equally_spaced(0.25, 4)


@pytest.fixture
def bm_pca(stream, two_step_schedule):
    """Standard Brownian motion on t = [0, 1, 2]."""
    return BrownianMotionPCA(0.0, 0.0, 1.0, stream, schedule=two_step_schedule)


@pytest.fixture
def gamma_pca(stream, quarterly_schedule):
    """Gamma process with mu = 1.2, nu = 0.5 on a quarterly grid."""
    return GammaProcessPCA(0.0, 1.2, 0.5, stream, schedule=quarterly_schedule)


@pytest.fixture
def ou_euler(stream, two_step_schedule):
    """Ornstein-Uhlenbeck process x0 = 1, alpha = 0.5, b = 0.2, sigma = 0.3."""
    return OrnsteinUhlenbeckProcessEuler(1.0, 0.5, 0.2, 0.3, stream, schedule=two_step_schedule)


@pytest.fixture
def terminal_model():
    return TerminalValueModel()


@pytest.fixture
def cv_model():
    return UniformWithControlModel()


@pytest.fixture
def sample_data():
    """Fixture providing sample data for testing"""
    return np.random.default_rng(42).normal(5.0, 2.0, 1000)
