import numpy as np
import pytest

from mcprocess import InvalidParameterError, ObservationSchedule
from mcprocess.schedule import as_schedule


class TestObservationSchedule:
    """Test construction and derived quantities"""

    def test_times_and_deltas(self):
        """Test d, deltas, t0 and horizon"""
        sched = ObservationSchedule([0.0, 0.5, 1.5, 3.0])
        assert sched.d == 3
        assert len(sched) == 4
        assert sched.t0 == 0.0
        assert sched.horizon == 3.0
        np.testing.assert_allclose(sched.deltas, [0.5, 1.0, 1.5])

    def test_equally_spaced(self):
        """Test equally spaced construction with an offset start"""
        sched = ObservationSchedule.equally_spaced(0.25, 4, t0=1.0)
        np.testing.assert_allclose(sched.times, [1.0, 1.25, 1.5, 1.75, 2.0])

    def test_times_are_read_only(self):
        """Test the times array cannot be mutated in place"""
        sched = ObservationSchedule([0.0, 1.0])
        with pytest.raises(ValueError):
            sched.times[1] = 5.0

    @pytest.mark.parametrize(
        ("times", "message"),
        [
            ([0.0], "at least two"),
            ([0.0, 1.0, 1.0], "strictly increasing"),
            ([0.0, 2.0, 1.0], "strictly increasing"),
            ([0.0, float("inf")], "finite"),
        ],
    )
    def test_invalid_schedules(self, times, message):
        """Test invalid schedules are rejected"""
        with pytest.raises(InvalidParameterError, match=message):
            ObservationSchedule(times)

    @pytest.mark.parametrize(("delta", "d"), [(0.0, 3), (-1.0, 3), (0.5, 0)])
    def test_invalid_equal_spacing(self, delta, d):
        with pytest.raises(InvalidParameterError):
            ObservationSchedule.equally_spaced(delta, d)

    def test_with_time_replaces_and_appends(self):
        """Test with_time returns a new schedule without validating order"""
        sched = ObservationSchedule([0.0, 1.0, 2.0])
        replaced = sched.with_time(1, 3.0)
        assert replaced.times.tolist() == [0.0, 3.0, 2.0]
        assert sched.times.tolist() == [0.0, 1.0, 2.0]

        appended = sched.with_time(3, 2.5)
        assert appended.d == 3
        assert appended.horizon == 2.5

    def test_equality_and_coercion(self):
        sched = ObservationSchedule([0.0, 1.0])
        assert sched == ObservationSchedule([0.0, 1.0])
        assert sched != ObservationSchedule([0.0, 2.0])
        assert as_schedule(sched) is sched
        assert as_schedule([0.0, 1.0]) == sched
