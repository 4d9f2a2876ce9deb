"""
Test Configuration
==================

Pytest fixtures and test configuration for streambench.
"""

import os
import shutil
import tempfile
import time

import numpy as np
import pytest


@pytest.fixture
def socket_path():
    """Short unix socket path (AF_UNIX paths are limited to ~108 bytes)."""
    directory = tempfile.mkdtemp(prefix="sb-")
    yield os.path.join(directory, "bench.sock")
    shutil.rmtree(directory, ignore_errors=True)


@pytest.fixture
def rng():
    """Deterministic generator for frame payloads."""
    return np.random.default_rng(1234)


@pytest.fixture
def make_frame(rng):
    """Factory for small frames."""
    from streambench.pipeline.producer import make_frame as _make_frame

    def factory(size: int = 16, producer: int = 0):
        return _make_frame(rng, size, producer=producer)

    return factory


@pytest.fixture
def wait_until():
    """Poll a predicate until it holds or the timeout expires."""

    def waiter(predicate, timeout: float = 5.0, interval: float = 0.01) -> bool:
        deadline = time.monotonic() + timeout
        while time.monotonic() < deadline:
            if predicate():
                return True
            time.sleep(interval)
        return predicate()

    return waiter


@pytest.fixture
def settings_factory():
    """Build Settings for in-process servers."""
    from streambench.config import Settings

    def factory(endpoint: str, width: int = 64, height: int = 64, fps: float = 30.0, workers: int = 2):
        return Settings.model_validate({
            "frame": {"width": width, "height": height, "fps": fps},
            "transport": {"endpoint": endpoint},
            "producer": {"workers": workers, "seed": 7},
        })

    return factory
