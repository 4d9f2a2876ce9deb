"""
Monitor Module
==============

Client-side latency measurement.
"""

from streambench.monitor.average import RunningAverage
from streambench.monitor.latency import LatencyMonitor, ReportError, format_average


__all__ = [
    "LatencyMonitor",
    "ReportError",
    "RunningAverage",
    "format_average",
]
