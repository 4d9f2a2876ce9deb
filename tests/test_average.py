"""
Running Average Tests
=====================
"""

import pytest

from streambench.monitor.average import RunningAverage
from streambench.monitor.latency import format_average


class TestRunningAverage:

    def test_empty_is_undefined(self):
        """No samples means no average, not zero."""
        assert RunningAverage().get() is None

    def test_mean_of_samples(self):
        average = RunningAverage()
        for d in (0.010, 0.020, 0.045):
            average.update(d)

        assert average.count == 3
        assert average.get() == pytest.approx(0.025)

    def test_lifetime_not_windowed(self):
        """Early samples keep their weight after many later ones."""
        average = RunningAverage()
        average.update(1.0)
        for _ in range(99):
            average.update(0.0)

        assert average.get() == pytest.approx(0.01)


class TestFormatAverage:

    def test_missing_average(self):
        assert format_average(None) == "average: n/a"

    def test_milliseconds(self):
        assert format_average(0.0333333) == "average: 33.333 ms"
