import numpy as np
import pytest
from conftest import TerminalValueModel, UniformWithControlModel

from mcprocess import (
    ExperimentResult,
    RandomStream,
    compute_mean_var_cv,
    run_experiment,
    simulate_fd_replicates_crn,
    simulate_fd_replicates_irn,
    simulate_runs,
    simulate_runs_cv,
)


class TestSimulateRuns:
    """Test plain replications"""

    def test_reproducible(self, terminal_model):
        a = simulate_runs(terminal_model, 50, RandomStream(seed=1))
        b = simulate_runs(TerminalValueModel(), 50, RandomStream(seed=1))
        np.testing.assert_array_equal(a, b)

    def test_one_substream_per_run(self, terminal_model):
        """Test run i is driven by substream i"""
        stream = RandomStream(seed=3)
        results = simulate_runs(terminal_model, 10, stream)
        assert stream.substream_index == 10

        replay = RandomStream(seed=3)
        for _ in range(4):
            replay.reset_next_substream()
        terminal_model.simulate(replay)
        assert terminal_model.performance == results[4]

    @pytest.mark.parametrize("n", [0, -5])
    def test_invalid_n(self, terminal_model, n):
        with pytest.raises(ValueError, match="n must be positive"):
            simulate_runs(terminal_model, n, RandomStream(seed=0))


class TestRunExperiment:
    """Test the summarized experiment"""

    def test_terminal_value_statistics(self, terminal_model):
        """Test a standard Brownian terminal value has mean 0 and variance 1"""
        res = run_experiment(terminal_model, 4000, RandomStream(seed=11))
        assert isinstance(res, ExperimentResult)
        assert res.n_runs == 4000
        assert res.results.shape == (4000,)
        assert res.mean == pytest.approx(0.0, abs=0.06)
        assert res.variance == pytest.approx(1.0, abs=0.08)
        assert res.std == pytest.approx(np.sqrt(res.variance))
        assert res.ci["method"] == "t"
        assert res.ci["low"] < res.mean < res.ci["high"]
        assert res.execution_time >= 0.0

    def test_metadata(self, terminal_model):
        stream = RandomStream(seed=21)
        stream.reset_next_substream()
        res = run_experiment(terminal_model, 5, stream, confidence=0.9, ci_method="z")
        assert res.metadata["model"] == "TerminalValueModel"
        assert res.metadata["first_substream"] == 1
        assert res.metadata["seed_entropy"] == 21
        assert res.ci["confidence"] == 0.9
        assert res.ci["method"] == "z"

    def test_invalid_n(self, terminal_model):
        with pytest.raises(ValueError):
            run_experiment(terminal_model, 0, RandomStream(seed=0))


class TestControlVariates:
    """Test control-variate estimation"""

    def test_variance_reduction(self, cv_model):
        """Test X - beta C keeps the mean and removes the variance explained by C"""
        x, c = simulate_runs_cv(cv_model, 2000, RandomStream(seed=5))
        (m, m_cv), (v, v_cv) = compute_mean_var_cv(x, c)
        assert m == pytest.approx(0.55, abs=0.02)
        assert m_cv == pytest.approx(0.55, abs=0.005)
        assert v == pytest.approx(1.01 / 12.0, rel=0.1)
        assert v_cv == pytest.approx(0.01 / 12.0, rel=0.15)
        assert v_cv < 0.2 * v

    def test_zero_variance_control(self):
        x = np.array([1.0, 2.0, 4.0])
        (m, m_cv), (v, v_cv) = compute_mean_var_cv(x, np.zeros(3))
        assert m == m_cv == pytest.approx(7.0 / 3.0)
        assert v == v_cv

    @pytest.mark.parametrize(("x", "c"), [([1.0], [0.0]), ([1.0, 2.0], [0.0, 1.0, 2.0])])
    def test_invalid_lengths(self, x, c):
        with pytest.raises(ValueError):
            compute_mean_var_cv(x, c)

    def test_runs_cv_shapes(self):
        x, c = simulate_runs_cv(UniformWithControlModel(), 7, RandomStream(seed=9))
        assert x.shape == c.shape == (7,)


class TestFiniteDifferences:
    """Test finite-difference sensitivities with common and independent random numbers"""

    def test_crn_beats_irn(self):
        """Test common random numbers shrink the variance of d X / d sigma"""
        model1, model2 = TerminalValueModel(sigma=1.0), TerminalValueModel(sigma=1.01)
        crn = simulate_fd_replicates_crn(model1, model2, 0.01, 500, RandomStream(seed=17))
        irn = simulate_fd_replicates_irn(model1, model2, 0.01, 500, RandomStream(seed=17))
        assert crn.shape == irn.shape == (500,)
        assert np.var(crn, ddof=1) < 0.01 * np.var(irn, ddof=1)
        # with common numbers the replicate is exactly W(T)
        assert np.var(crn, ddof=1) == pytest.approx(1.0, abs=0.2)

    def test_crn_moves_substreams(self):
        stream = RandomStream(seed=2)
        simulate_fd_replicates_crn(TerminalValueModel(), TerminalValueModel(), 0.5, 3, stream)
        assert stream.substream_index == 3

    @pytest.mark.parametrize("fd", [simulate_fd_replicates_crn, simulate_fd_replicates_irn])
    def test_zero_delta(self, fd):
        with pytest.raises(ValueError, match="delta"):
            fd(TerminalValueModel(), TerminalValueModel(), 0.0, 3, RandomStream(seed=0))
