import math

import numpy as np
import pytest
from scipy import stats

from mcprocess import (
    GammaGen,
    GammaProcessPCA,
    InvalidParameterError,
    MCProcessError,
    ObservationSchedule,
    RandomStream,
    SamplingStrategy,
    ScheduleNotSetError,
    UnsupportedOperationError,
)


class TestGeneratePath:
    """Test gamma paths obtained by subordinating a PCA Brownian path"""

    def test_path_basics(self, stream, quarterly_schedule):
        """Test s0 at index 0, nondecreasing path and full cursor"""
        g = GammaProcessPCA(10.0, 1.2, 0.5, stream, schedule=quarterly_schedule)
        path = g.generate_path()
        assert path.shape == (5,)
        assert path[0] == 10.0
        assert np.all(np.diff(path) >= 0.0)
        assert g.observation_index == 4

    def test_uniforms_pipeline(self, gamma_pca):
        """Test normalize -> normal CDF -> gamma quantile on the inner Brownian increments"""
        u = np.array([0.1, 0.45, 0.7, 0.95])
        path = gamma_pca.generate_path(u)

        loadings = gamma_pca.bm.spectral_factor.loadings
        w = np.concatenate([[0.0], loadings @ stats.norm.ppf(u)])
        dt = 0.25
        v = stats.norm.cdf(np.diff(w) / (math.sqrt(0.5) * math.sqrt(dt)))
        inc = stats.gamma.ppf(v, a=1.2**2 * dt / 0.5, scale=0.5 / 1.2)
        np.testing.assert_allclose(path, np.concatenate([[0.0], np.cumsum(inc)]))

    def test_same_uniforms_same_path(self, gamma_pca):
        u = [0.2, 0.4, 0.6, 0.8]
        np.testing.assert_array_equal(gamma_pca.generate_path(u), gamma_pca.generate_path(u))

    def test_terminal_increment_is_gamma(self):
        """Test G(T) - s0 ~ Gamma(shape mu^2 T / nu, rate mu / nu) by Kolmogorov-Smirnov"""
        mu, nu = 1.2, 0.5
        sched = ObservationSchedule([0.0, 0.1, 0.35, 0.6, 1.0])
        g = GammaProcessPCA(2.0, mu, nu, RandomStream(seed=99), schedule=sched)
        terminal = np.array([g.generate_path()[-1] - 2.0 for _ in range(3000)])

        shape, rate = mu * mu * 1.0 / nu, mu / nu
        result = stats.kstest(terminal, "gamma", args=(shape, 0.0, 1.0 / rate))
        assert result.pvalue > 1e-3
        assert terminal.mean() == pytest.approx(mu * 1.0, abs=0.05)
        assert terminal.var() == pytest.approx(nu * 1.0, abs=0.08)

    def test_extreme_increments(self):
        """Test tail probabilities map to finite quantiles without flattening small ones"""
        g = GammaProcessPCA(0.0, 1.0, 1.0, RandomStream(seed=1), schedule=[0.0, 1.0])

        small = g._subordinate(np.array([0.0, -9.0]))[1]
        assert small == pytest.approx(stats.expon.ppf(stats.norm.cdf(-9.0)), rel=1e-6)
        assert small < stats.expon.ppf(np.finfo(float).eps)

        underflow = g._subordinate(np.array([0.0, -40.0]))[1]
        assert np.isfinite(underflow) and underflow >= 0.0

        large = g._subordinate(np.array([0.0, 50.0]))[1]
        assert np.isfinite(large)
        assert large == pytest.approx(stats.expon.ppf(1.0 - np.finfo(float).eps))

    def test_accepts_gamma_gen(self, quarterly_schedule):
        s = RandomStream(seed=3)
        g = GammaProcessPCA(0.0, 1.0, 1.0, GammaGen(s, 1.0), schedule=quarterly_schedule)
        assert g.stream is s

    def test_requires_schedule(self, stream):
        """Test a missing schedule raises an error of the package family"""
        g = GammaProcessPCA(0.0, 1.0, 1.0, stream)
        with pytest.raises(ScheduleNotSetError, match="observation times"):
            g.generate_path()
        with pytest.raises(RuntimeError):
            g.generate_path()

    def test_errors_share_one_family(self, stream, gamma_pca):
        for call in (
            lambda: GammaProcessPCA(0.0, 1.0, 1.0, stream).generate_path(),
            lambda: gamma_pca.set_params(0.0, -1.0, 1.0),
            lambda: gamma_pca.next_observation(),
        ):
            with pytest.raises(MCProcessError):
                call()

    def test_rejects_other_sources(self):
        with pytest.raises(TypeError):
            GammaProcessPCA(0.0, 1.0, 1.0, np.random.default_rng(0))


class TestPropagation:
    """Test that parameters and schedule reach the inner Brownian motion"""

    def test_inner_brownian_configuration(self, gamma_pca):
        assert gamma_pca.bm.x0 == 0.0
        assert gamma_pca.bm.mu == 0.0
        assert gamma_pca.bm.sigma == pytest.approx(math.sqrt(0.5))
        assert gamma_pca.bm.schedule == gamma_pca.schedule

    def test_set_params(self, gamma_pca):
        """Test new parameters invalidate the inner factor and change the next path"""
        u = [0.3, 0.5, 0.7, 0.9]
        before = gamma_pca.generate_path(u)
        assert gamma_pca.bm.factor_valid

        gamma_pca.set_params(1.0, 2.0, 0.8)
        assert gamma_pca.bm.sigma == pytest.approx(math.sqrt(0.8))
        assert not gamma_pca.bm.factor_valid
        after = gamma_pca.generate_path(u)
        assert after[0] == 1.0
        assert not np.allclose(after - 1.0, before)

    def test_set_observation_times(self, gamma_pca):
        gamma_pca.generate_path()
        gamma_pca.set_observation_times([0.0, 1.0, 3.0])
        assert gamma_pca.bm.schedule == gamma_pca.schedule
        assert not gamma_pca.bm.factor_valid
        assert gamma_pca.observation_index == 0
        assert gamma_pca.generate_path().shape == (3,)

    def test_set_stream(self, gamma_pca):
        s = RandomStream(seed=8)
        gamma_pca.set_stream(s)
        assert gamma_pca.bm.stream is s

    @pytest.mark.parametrize(("mu", "nu", "message"), [(0.0, 1.0, "mu"), (-1.0, 1.0, "mu"), (1.0, 0.0, "nu")])
    def test_invalid_params_keep_state(self, gamma_pca, mu, nu, message):
        with pytest.raises(InvalidParameterError, match=message):
            gamma_pca.set_params(5.0, mu, nu)
        assert gamma_pca.x0 == 0.0
        assert gamma_pca.mu == 1.2
        assert gamma_pca.nu == 0.5
        assert gamma_pca.bm.sigma == pytest.approx(math.sqrt(0.5))


class TestSequentialUnsupported:
    """Test whole-path-only capability"""

    def test_capability_flags(self, gamma_pca):
        assert gamma_pca.supports_sequential is False
        assert gamma_pca.strategy is SamplingStrategy.subordinated

    def test_next_observation_raises(self, gamma_pca):
        gamma_pca.generate_path()
        with pytest.raises(UnsupportedOperationError):
            gamma_pca.next_observation()
        with pytest.raises(UnsupportedOperationError):
            gamma_pca.next_observation_at(2.0)
        assert gamma_pca.observation_index == 4
