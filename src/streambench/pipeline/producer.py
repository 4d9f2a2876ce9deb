"""
Frame Producer Pool
===================

Background workers that keep the frame queue full.

One worker thread runs per available CPU. Each owns an independent numpy
Generator spawned from a single SeedSequence, so workers share entropy but
never generator state (and never contend on a lock for randomness).

Design Rules:
    - The queue's blocking push is the only throttle on production
    - Workers never skip or coalesce frames
    - A closed queue ends the worker; nothing else does
"""

import logging
import os
import threading
from typing import List, Optional

import numpy as np

from streambench.pipeline.frame import Frame
from streambench.pipeline.queue import FrameQueue, QueueClosed


logger = logging.getLogger(__name__)


def available_workers() -> int:
    """Number of parallel execution units available to this process."""
    if hasattr(os, "sched_getaffinity"):
        return max(1, len(os.sched_getaffinity(0)))
    return os.cpu_count() or 1


def make_frame(rng: np.random.Generator, size: int, producer: int = 0) -> Frame:
    """Allocate a frame of ``size`` bytes filled from ``rng``."""
    return Frame(data=rng.bytes(size), producer=producer)


class FrameProducerPool:
    """
    Pool of frame-generating worker threads.

    Attributes:
        queue: FrameQueue the workers publish into
        frame_size: Bytes per frame (width * height)
        workers: Number of worker threads

    Example:
        queue = FrameQueue(capacity=30)
        pool = FrameProducerPool(queue, width=1920, height=1080)
        pool.start()
    """

    def __init__(
        self,
        queue: FrameQueue,
        width: int,
        height: int,
        workers: Optional[int] = None,
        seed: Optional[int] = None,
    ) -> None:
        """
        Initialize producer pool.

        Args:
            queue: Destination queue
            width: Frame width in bytes
            height: Frame height in rows
            workers: Worker count (None = one per available CPU)
            seed: Entropy for the shared SeedSequence (None = OS entropy)
        """
        if width < 1 or height < 1:
            raise ValueError("width and height must be >= 1")
        if workers is not None and workers < 1:
            raise ValueError("workers must be >= 1")

        self.queue = queue
        self.frame_size = width * height
        self.workers = workers if workers is not None else available_workers()

        self._seed_sequence = np.random.SeedSequence(seed)
        self._threads: List[threading.Thread] = []
        self._count_lock = threading.Lock()
        self._frames_produced = 0

    @property
    def frames_produced(self) -> int:
        """Frames successfully pushed into the queue by all workers."""
        with self._count_lock:
            return self._frames_produced

    @property
    def alive(self) -> int:
        """Number of worker threads still running."""
        return sum(1 for t in self._threads if t.is_alive())

    def start(self) -> None:
        """Spawn one daemon worker per configured unit of parallelism."""
        if self._threads:
            raise RuntimeError("producer pool already started")

        children = self._seed_sequence.spawn(self.workers)
        for num, child in enumerate(children):
            rng = np.random.default_rng(child)
            thread = threading.Thread(
                target=self._run_worker,
                args=(num, rng),
                name=f"frame-producer-{num}",
                daemon=True,
            )
            self._threads.append(thread)
            thread.start()

        logger.info(
            f"Started {self.workers} frame producers "
            f"(frame_size={self.frame_size}, capacity={self.queue.capacity})"
        )

    def stop(self, timeout: Optional[float] = 5.0) -> None:
        """Close the queue and wait for every worker to exit."""
        self.queue.close()
        for thread in self._threads:
            thread.join(timeout=timeout)

    def _run_worker(self, num: int, rng: np.random.Generator) -> None:
        """Generate frames forever, blocking on a full queue."""
        logger.debug(f"Producer {num} running")
        while True:
            frame = make_frame(rng, self.frame_size, producer=num)
            try:
                self.queue.push(frame)
            except QueueClosed:
                logger.debug(f"Producer {num} stopped: queue closed")
                return
            with self._count_lock:
                self._frames_produced += 1
