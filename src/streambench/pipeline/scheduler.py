"""
Rate Scheduler
==============

Self-correcting fixed-interval driver.

Invokes a callback at a target frequency. The deadline advances by a fixed
period per tick regardless of how long the tick took, so the long-run rate
converges to the target. When a tick overruns, the deadline is reset to
"now" instead of firing a burst of catch-up ticks.

Design Rules:
    - The callback's own stop signal is the only cancellation
    - No catch-up bursts after an overrun
    - Clock and sleep are injectable for stepped tests
"""

import time
from enum import Enum
from typing import Callable


class Tick(Enum):
    """Signal returned by a scheduled callback."""

    CONTINUE = "continue"
    STOP = "stop"


class RateScheduler:
    """
    Drive a callback at a fixed frequency.

    Attributes:
        frequency: Target ticks per second
        period: Seconds between ticks

    Example:
        scheduler = RateScheduler(frequency=30.0)
        scheduler.run(lambda: Tick.CONTINUE if send() else Tick.STOP)
    """

    def __init__(
        self,
        frequency: float,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if frequency <= 0:
            raise ValueError("frequency must be greater than zero")

        self.frequency = frequency
        self.period = 1.0 / frequency
        self._clock = clock
        self._sleep = sleep

    def run(self, callback: Callable[[], Tick]) -> int:
        """
        Run ticks until the callback returns Tick.STOP.

        Args:
            callback: Unit of work for one tick

        Returns:
            Number of ticks run, including the one that stopped.
        """
        next_deadline = self._clock()
        ticks = 0

        while True:
            ticks += 1
            if callback() is Tick.STOP:
                return ticks

            next_deadline += self.period
            wait = next_deadline - self._clock()
            if wait > 0:
                self._sleep(wait)
            else:
                # Overran the period: drop the backlog
                next_deadline = self._clock()
