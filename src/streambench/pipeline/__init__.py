"""
Pipeline Module
===============

Server-side streaming pipeline.

    - Frame: immutable synthetic payload
    - FrameQueue: bounded blocking queue (backpressure boundary)
    - FrameProducerPool: one generator thread per CPU
    - RateScheduler: fixed-interval driver without catch-up bursts
    - PacedDelivery: per-connection paced writer
    - ConnectionDispatcher: accept loop

Example:
    from streambench.pipeline import (
        ConnectionDispatcher, FrameProducerPool, FrameQueue, capacity_for_fps,
    )

    queue = FrameQueue(capacity=capacity_for_fps(30.0))
    FrameProducerPool(queue, width=64, height=64).start()
    ConnectionDispatcher(listener, queue, fps=30.0).serve_forever()
"""

from streambench.pipeline.frame import Frame
from streambench.pipeline.queue import FrameQueue, QueueClosed, capacity_for_fps
from streambench.pipeline.scheduler import RateScheduler, Tick
from streambench.pipeline.producer import FrameProducerPool
from streambench.pipeline.delivery import DeliveryMetrics, PacedDelivery
from streambench.pipeline.dispatcher import ConnectionDispatcher


__all__ = [
    "ConnectionDispatcher",
    "DeliveryMetrics",
    "Frame",
    "FrameProducerPool",
    "FrameQueue",
    "PacedDelivery",
    "QueueClosed",
    "RateScheduler",
    "Tick",
    "capacity_for_fps",
]
