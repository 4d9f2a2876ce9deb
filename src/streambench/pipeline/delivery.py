"""
Paced Delivery
==============

Per-connection writer that drains the shared frame queue at a fixed rate.

Each tick pops one frame (blocking) and writes it whole to the connection.
The first failed write is treated as a disconnect: the connection is
closed, the scheduler is stopped and the thread exits. The popped frame
is lost, not requeued.

Design Rules:
    - The only place disconnects are detected (no heartbeat)
    - Failure is local to the connection
    - No shared state besides the queue
"""

import logging

from streambench.pipeline.queue import FrameQueue, QueueClosed
from streambench.pipeline.scheduler import RateScheduler, Tick
from streambench.transport.base import Connection, TransportError


logger = logging.getLogger(__name__)


class DeliveryMetrics:
    """Metrics for PacedDelivery observability."""

    __slots__ = (
        "frames_sent",
        "bytes_sent",
        "write_errors",
    )

    def __init__(self) -> None:
        self.frames_sent: int = 0
        self.bytes_sent: int = 0
        self.write_errors: int = 0

    def to_dict(self) -> dict:
        """Export metrics as dict."""
        return {
            "frames_sent": self.frames_sent,
            "bytes_sent": self.bytes_sent,
            "write_errors": self.write_errors,
        }


class PacedDelivery:
    """
    Paced frame writer for one connection.

    Attributes:
        connection: Destination connection (owned by this delivery)
        queue: Shared frame queue
        fps: Target frames per second
        metrics: Operational metrics

    Example:
        delivery = PacedDelivery(connection, queue, fps=30.0)
        threading.Thread(target=delivery.run, daemon=True).start()
    """

    def __init__(
        self,
        connection: Connection,
        queue: FrameQueue,
        fps: float,
        name: str = "client",
    ) -> None:
        self.connection = connection
        self.queue = queue
        self.fps = fps
        self.name = name
        self.metrics = DeliveryMetrics()
        self._scheduler = RateScheduler(fps)

    def run(self) -> None:
        """Deliver frames until the connection fails or the queue closes."""
        logger.debug(f"Delivery to {self.name} started at {self.fps} fps")
        try:
            self._scheduler.run(self._tick)
        finally:
            self.connection.close()
        logger.info(
            f"Delivery to {self.name} finished: "
            f"{self.metrics.frames_sent} frames, {self.metrics.bytes_sent} bytes"
        )

    def _tick(self) -> Tick:
        try:
            frame = self.queue.pop()
        except QueueClosed:
            logger.debug(f"Delivery to {self.name} stopping: queue closed")
            return Tick.STOP

        try:
            self.connection.write_all(frame.data)
        except TransportError as e:
            self.metrics.write_errors += 1
            logger.warning(f"Client {self.name} disconnected: {e}")
            return Tick.STOP

        self.metrics.frames_sent += 1
        self.metrics.bytes_sent += len(frame)
        return Tick.CONTINUE
