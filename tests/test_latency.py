"""
Latency Monitor Tests
=====================

Read loop and reporting against a scripted connection.
"""

import threading

import pytest

from streambench.monitor.latency import LatencyMonitor, ReportError
from streambench.transport.base import ConnectionClosed


class ScriptedConnection:
    """Returns ``frames`` whole frames, then reports a closed peer."""

    def __init__(self, frames: int, on_read=None) -> None:
        self.remaining = frames
        self.on_read = on_read
        self.closed = False
        self.sizes = []

    def read_exact(self, size: int) -> bytes:
        if self.remaining == 0:
            raise ConnectionClosed("peer went away")
        self.remaining -= 1
        self.sizes.append(size)
        if self.on_read:
            self.on_read()
        return bytes(size)

    def write_all(self, data: bytes) -> None:
        raise NotImplementedError

    def close(self) -> None:
        self.closed = True


class BlockingConnection:
    """Blocks reads until closed, then reports a closed peer."""

    def __init__(self) -> None:
        self.closed_event = threading.Event()

    @property
    def closed(self) -> bool:
        return self.closed_event.is_set()

    def read_exact(self, size: int) -> bytes:
        self.closed_event.wait(timeout=5.0)
        raise ConnectionClosed("connection closed")

    def write_all(self, data: bytes) -> None:
        raise NotImplementedError

    def close(self) -> None:
        self.closed_event.set()


class StepClock:
    def __init__(self, start: float = 0.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now


class TestLatencyMonitor:

    def test_read_failure_is_fatal(self):
        connection = ScriptedConnection(frames=3)
        monitor = LatencyMonitor(connection, frame_size=32, report_interval=60.0)

        with pytest.raises(ConnectionClosed):
            monitor.run()

        assert monitor.frames_received == 3
        assert connection.sizes == [32, 32, 32]
        assert connection.closed

    def test_intervals_include_setup(self):
        """The first interval runs from started_at; later ones frame to frame."""
        clock = StepClock(start=1.0)
        steps = iter([1.5, 1.6, 1.7, 1.8])

        def advance():
            clock.now = next(steps)

        connection = ScriptedConnection(frames=4, on_read=advance)
        monitor = LatencyMonitor(
            connection,
            frame_size=8,
            report_interval=60.0,
            clock=clock,
            started_at=1.0,
        )

        with pytest.raises(ConnectionClosed):
            monitor.run()

        # (0.5 + 0.1 + 0.1 + 0.1) / 4
        assert monitor.average() == pytest.approx(0.2)

    def test_average_undefined_before_first_frame(self):
        monitor = LatencyMonitor(ScriptedConnection(frames=0), frame_size=8)
        assert monitor.average() is None

    def test_reports_each_interval(self):
        reports = []
        two_reports = threading.Event()

        def sink(average):
            reports.append(average)
            if len(reports) >= 2:
                two_reports.set()

        def slow_read():
            two_reports.wait(timeout=2.0)

        connection = ScriptedConnection(frames=1, on_read=slow_read)
        monitor = LatencyMonitor(connection, frame_size=8, report_interval=0.05, on_report=sink)

        with pytest.raises(ConnectionClosed):
            monitor.run()

        assert len(reports) >= 2
        assert reports[0] is None

    def test_stop_returns_quietly(self):
        monitor_box = []

        def stop_after_read():
            monitor_box[0].stop()

        connection = ScriptedConnection(frames=1, on_read=stop_after_read)
        monitor = LatencyMonitor(connection, frame_size=8, report_interval=60.0)
        monitor_box.append(monitor)

        monitor.run()

        assert monitor.frames_received == 1

    @pytest.mark.parametrize("kwargs", [{"frame_size": 0}, {"frame_size": 8, "report_interval": 0}])
    def test_invalid_arguments(self, kwargs):
        with pytest.raises(ValueError):
            LatencyMonitor(ScriptedConnection(frames=0), **kwargs)

    def test_report_failure_ends_monitor(self):
        """A sink that raises (closed stdout) closes the connection and fails run()."""
        connection = BlockingConnection()

        def broken_sink(average):
            raise BrokenPipeError(32, "Broken pipe")

        monitor = LatencyMonitor(connection, frame_size=8, report_interval=0.05, on_report=broken_sink)

        with pytest.raises(ReportError) as excinfo:
            monitor.run()

        assert isinstance(excinfo.value.__cause__, BrokenPipeError)
        assert connection.closed
