"""
Frame Queue
===========

Thread-safe bounded queue between frame producers and delivery threads.

This module provides the FrameQueue class, the backpressure boundary of the
server. Producers block on a full queue; consumers block on an empty one.
Every frame is handed to exactly one consumer.

Design Rules:
    - Fixed capacity (never exceeded, never grows)
    - Blocks producers when full (no drop policy)
    - No peeking, no duplication
    - Callers need no external lock
"""

import logging
import threading
from collections import deque
from typing import Deque, Optional

from streambench.pipeline.frame import Frame


logger = logging.getLogger(__name__)


class QueueClosed(Exception):
    """Raised by push/pop once the queue has been closed."""
    pass


def capacity_for_fps(fps: float) -> int:
    """
    Queue capacity for a target frame rate.

    Roughly one second of frames is buffered across all consumers.
    """
    return max(1, round(fps))


class FrameQueue:
    """
    Bounded multi-producer/multi-consumer frame queue.

    Attributes:
        capacity: Maximum number of frames held at once
        size: Current number of frames held
        waiting_producers: Producers currently blocked on a full queue
        waiting_consumers: Consumers currently blocked on an empty queue

    Example:
        queue = FrameQueue(capacity=capacity_for_fps(30.0))

        # Producer thread
        queue.push(frame)

        # Consumer thread
        frame = queue.pop()
    """

    def __init__(self, capacity: int) -> None:
        """
        Initialize frame queue.

        Args:
            capacity: Maximum frames to hold. Must be >= 1.
        """
        if capacity < 1:
            raise ValueError("capacity must be >= 1")

        self._capacity = capacity
        self._frames: Deque[Frame] = deque()
        self._lock = threading.Lock()
        self._not_full = threading.Condition(self._lock)
        self._not_empty = threading.Condition(self._lock)
        self._closed = False

        self._waiting_producers = 0
        self._waiting_consumers = 0
        self._total_pushed = 0
        self._total_popped = 0

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def size(self) -> int:
        with self._lock:
            return len(self._frames)

    @property
    def closed(self) -> bool:
        with self._lock:
            return self._closed

    @property
    def waiting_producers(self) -> int:
        with self._lock:
            return self._waiting_producers

    @property
    def waiting_consumers(self) -> int:
        with self._lock:
            return self._waiting_consumers

    @property
    def total_pushed(self) -> int:
        with self._lock:
            return self._total_pushed

    @property
    def total_popped(self) -> int:
        with self._lock:
            return self._total_popped

    def push(self, frame: Frame, timeout: Optional[float] = None) -> bool:
        """
        Add a frame, blocking while the queue is full.

        Args:
            frame: Frame to add
            timeout: Maximum seconds to wait. None = wait forever.

        Returns:
            True if the frame was added, False if the timeout expired.

        Raises:
            QueueClosed: If the queue is (or becomes) closed.
        """
        with self._not_full:
            if self._closed:
                raise QueueClosed("push on closed queue")

            self._waiting_producers += 1
            try:
                ok = self._not_full.wait_for(
                    lambda: self._closed or len(self._frames) < self._capacity,
                    timeout=timeout,
                )
            finally:
                self._waiting_producers -= 1

            if self._closed:
                raise QueueClosed("push on closed queue")
            if not ok:
                return False

            self._frames.append(frame)
            self._total_pushed += 1
            self._not_empty.notify()
            return True

    def pop(self, timeout: Optional[float] = None) -> Optional[Frame]:
        """
        Take the next frame, blocking while the queue is empty.

        Frames left in a closed queue are still handed out; QueueClosed
        is raised only once it is drained.

        Args:
            timeout: Maximum seconds to wait. None = wait forever.

        Returns:
            Next frame, or None if the timeout expired.

        Raises:
            QueueClosed: If the queue is closed and empty.
        """
        with self._not_empty:
            self._waiting_consumers += 1
            try:
                ok = self._not_empty.wait_for(
                    lambda: self._closed or self._frames,
                    timeout=timeout,
                )
            finally:
                self._waiting_consumers -= 1

            if not self._frames:
                if self._closed:
                    raise QueueClosed("pop on closed queue")
                if not ok:
                    return None

            frame = self._frames.popleft()
            self._total_popped += 1
            self._not_full.notify()
            return frame

    def close(self) -> None:
        """Close the queue and wake every blocked producer and consumer."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            self._not_full.notify_all()
            self._not_empty.notify_all()
        logger.debug("Frame queue closed")

    def metrics(self) -> dict:
        """
        Get queue metrics for observability.

        Returns:
            Dict with size, capacity, waiting counts and totals
        """
        with self._lock:
            return {
                "size": len(self._frames),
                "capacity": self._capacity,
                "waiting_producers": self._waiting_producers,
                "waiting_consumers": self._waiting_consumers,
                "total_pushed": self._total_pushed,
                "total_popped": self._total_popped,
            }
