"""
Running Average
===============

Lifetime average of measured durations.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass(slots=True)
class RunningAverage:
    """
    Accumulates (count, total) and reports total / count.

    There is no decay or windowing: every sample since creation weighs
    the same. Not thread-safe; callers hold their own lock.

    Attributes:
        count: Number of samples folded in
        total: Sum of samples in seconds
    """

    count: int = 0
    total: float = 0.0

    def update(self, duration: float) -> None:
        """Fold one duration (seconds) into the average."""
        self.count += 1
        self.total += duration

    def get(self) -> Optional[float]:
        """Average in seconds, or None before the first sample."""
        if self.count == 0:
            return None
        return self.total / self.count
