"""
Latency Monitor
===============

Client-side measurement of frame arrival regularity.

Two activities run concurrently:
    - the read loop (caller's thread) reads whole frames and folds the
      time since the previous completed read into a RunningAverage
    - a reporter thread emits the current average once per interval

Design Rules:
    - A read failure is fatal (no reconnect)
    - A report failure (e.g. closed stdout) is fatal too: it closes the
      connection and run() raises ReportError
    - The first interval runs from started_at (or monitor start), so it
      includes connection setup latency; it is not excluded
    - The average is shared under a single lock
"""

import logging
import threading
import time
from typing import Callable, Optional

from streambench.monitor.average import RunningAverage
from streambench.transport.base import Connection, TransportError


logger = logging.getLogger(__name__)


ReportSink = Callable[[Optional[float]], None]


class ReportError(Exception):
    """Raised by run() when the report sink fails."""
    pass


def format_average(average: Optional[float]) -> str:
    """Render an average (seconds) as a report line."""
    if average is None:
        return "average: n/a"
    return f"average: {average * 1000.0:.3f} ms"


def print_report(average: Optional[float]) -> None:
    print(format_average(average), flush=True)


class LatencyMonitor:
    """
    Measures inter-frame arrival time on a client connection.

    Attributes:
        connection: Connected transport stream (owned by the monitor)
        frame_size: Bytes per frame (width * height)
        report_interval: Seconds between reports
        frames_received: Whole frames read so far

    Example:
        monitor = LatencyMonitor(connection, frame_size=64 * 64)
        monitor.run()  # blocks; raises TransportError on disconnect
    """

    def __init__(
        self,
        connection: Connection,
        frame_size: int,
        report_interval: float = 1.0,
        on_report: ReportSink = print_report,
        clock: Callable[[], float] = time.perf_counter,
        started_at: Optional[float] = None,
    ) -> None:
        """
        Initialize latency monitor.

        Args:
            connection: Connected stream to read frames from
            frame_size: Bytes per frame
            report_interval: Seconds between reports
            on_report: Receives the average (seconds, or None) each interval
            clock: Monotonic clock used for measurements
            started_at: Clock value the first interval is measured from
                (e.g. taken before connecting). None = when run() starts.
        """
        if frame_size < 1:
            raise ValueError("frame_size must be >= 1")
        if report_interval <= 0:
            raise ValueError("report_interval must be greater than zero")

        self.connection = connection
        self.frame_size = frame_size
        self.report_interval = report_interval
        self.on_report = on_report
        self.frames_received = 0

        self._clock = clock
        self._started_at = started_at
        self._average = RunningAverage()
        self._lock = threading.Lock()
        self._stop_event = threading.Event()
        self._report_error: Optional[Exception] = None

    def average(self) -> Optional[float]:
        """Current lifetime average in seconds (None before the first frame)."""
        with self._lock:
            return self._average.get()

    def run(self) -> None:
        """
        Read frames until stopped.

        Raises:
            TransportError: If a read fails while not stopping.
            ReportError: If the report sink raised.
        """
        reporter = threading.Thread(
            target=self._report_loop,
            name="latency-reporter",
            daemon=True,
        )
        reporter.start()

        try:
            self._read_loop()
        except TransportError as e:
            if not self._stop_event.is_set():
                logger.error(f"Read failed after {self.frames_received} frames: {e}")
                raise
        finally:
            self._stop_event.set()
            reporter.join()
            self.connection.close()

        if self._report_error is not None:
            raise ReportError(f"report failed: {self._report_error}") from self._report_error

    def stop(self) -> None:
        """Stop reporting and unblock the read loop."""
        self._stop_event.set()
        self.connection.close()

    def _read_loop(self) -> None:
        last = self._started_at if self._started_at is not None else self._clock()
        while not self._stop_event.is_set():
            self.connection.read_exact(self.frame_size)
            now = self._clock()
            with self._lock:
                self._average.update(now - last)
            self.frames_received += 1
            last = now

    def _report_loop(self) -> None:
        while not self._stop_event.wait(self.report_interval):
            try:
                self.on_report(self.average())
            except Exception as e:
                logger.error(f"Report failed, stopping: {e}")
                self._report_error = e
                self.stop()
                return
