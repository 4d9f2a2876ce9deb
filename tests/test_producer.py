"""
Frame Producer Pool Tests
=========================
"""

import numpy as np
import pytest

from streambench.pipeline.producer import FrameProducerPool, available_workers, make_frame
from streambench.pipeline.queue import FrameQueue


class TestMakeFrame:

    def test_size_and_producer(self, rng):
        frame = make_frame(rng, 64 * 48, producer=3)
        assert len(frame) == 64 * 48
        assert frame.producer == 3
        assert "producer=3" in repr(frame)

    def test_seeded_generators_are_reproducible(self):
        a = make_frame(np.random.default_rng(5), 128)
        b = make_frame(np.random.default_rng(5), 128)
        assert a.data == b.data
        assert a != b  # distinct frames despite equal bytes


class TestFrameProducerPool:

    def test_default_worker_count(self):
        pool = FrameProducerPool(FrameQueue(capacity=1), width=4, height=4)
        assert pool.workers == available_workers() >= 1

    @pytest.mark.parametrize("kwargs", [
        {"width": 0, "height": 4},
        {"width": 4, "height": 0},
        {"width": 4, "height": 4, "workers": 0},
    ])
    def test_invalid_arguments(self, kwargs):
        with pytest.raises(ValueError):
            FrameProducerPool(FrameQueue(capacity=1), **kwargs)

    def test_fills_queue_then_blocks(self, wait_until):
        queue = FrameQueue(capacity=4)
        pool = FrameProducerPool(queue, width=8, height=8, workers=3, seed=11)
        pool.start()

        assert wait_until(lambda: queue.size == 4 and queue.waiting_producers == 3)
        assert pool.frames_produced == 4
        assert pool.alive == 3

        frame = queue.pop()
        assert len(frame) == 64
        assert wait_until(lambda: pool.frames_produced == 5)

        pool.stop()
        assert pool.alive == 0

    def test_workers_use_independent_streams(self, wait_until):
        """Different workers produce different bytes from one seed."""
        queue = FrameQueue(capacity=40)
        pool = FrameProducerPool(queue, width=16, height=16, workers=2, seed=3)
        pool.start()
        assert wait_until(lambda: queue.size == 40)
        pool.stop()

        by_worker = {}
        for _ in range(40):
            frame = queue.pop()
            by_worker.setdefault(frame.producer, []).append(frame.data)

        if len(by_worker) == 2:
            assert not set(by_worker[0]) & set(by_worker[1])

    def test_start_twice(self):
        pool = FrameProducerPool(FrameQueue(capacity=1), width=1, height=1, workers=1)
        pool.start()
        with pytest.raises(RuntimeError):
            pool.start()
        pool.stop()
