"""
Connection Dispatcher
=====================

Accept loop for the streaming server.

Every accepted connection gets its own PacedDelivery thread and the loop
goes straight back to accept(); no single connection can hold up
acceptance.

Design Rules:
    - Accept failure is fatal to the dispatcher (no recovery path)
    - Delivery failures stay local to their connection
    - One daemon thread per connection
"""

import logging
import threading
from typing import List

from streambench.pipeline.delivery import PacedDelivery
from streambench.pipeline.queue import FrameQueue
from streambench.transport.base import Listener, TransportError


logger = logging.getLogger(__name__)


class ConnectionDispatcher:
    """
    Accepts connections and spawns a paced delivery for each.

    Attributes:
        listener: Bound transport listener
        queue: Shared frame queue handed to every delivery
        fps: Target frames per second per connection
        accepted: Number of connections accepted so far

    Example:
        dispatcher = ConnectionDispatcher(listener, queue, fps=30.0)
        dispatcher.serve_forever()
    """

    def __init__(self, listener: Listener, queue: FrameQueue, fps: float) -> None:
        if fps <= 0:
            raise ValueError("fps must be greater than zero")

        self.listener = listener
        self.queue = queue
        self.fps = fps
        self.accepted = 0

        self._stopping = threading.Event()
        self._deliveries: List[threading.Thread] = []

    @property
    def active(self) -> int:
        """Number of delivery threads still running."""
        return sum(1 for t in self._deliveries if t.is_alive())

    def serve_forever(self) -> None:
        """
        Accept connections until stopped.

        Raises:
            TransportError: If accept() fails while not stopping.
        """
        logger.info("listening for incoming streams")

        while True:
            try:
                connection, peer = self.listener.accept()
            except TransportError:
                if self._stopping.is_set():
                    logger.info("Dispatcher stopped")
                    return
                logger.error("Listener failed, dispatcher giving up")
                raise

            self.accepted += 1
            name = f"{self.accepted}:{peer or 'unnamed'}"
            logger.info(f"new client {name}")

            delivery = PacedDelivery(connection, self.queue, self.fps, name=name)
            thread = threading.Thread(
                target=delivery.run,
                name=f"delivery-{self.accepted}",
                daemon=True,
            )
            self._deliveries = [t for t in self._deliveries if t.is_alive()]
            self._deliveries.append(thread)
            thread.start()

    def stop(self) -> None:
        """Close the listener so serve_forever() returns."""
        self._stopping.set()
        self.listener.close()
