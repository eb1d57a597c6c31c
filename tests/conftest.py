"""Shared pytest fixtures."""

import time

import numpy as np
import pytest
from PySide6.QtCore import QCoreApplication

from livefilter.core import PixelBuffer


@pytest.fixture(scope="session", autouse=True)
def qapp():
    """Qt application instance for timers and queued signals."""
    app = QCoreApplication.instance() or QCoreApplication([])
    yield app


@pytest.fixture
def make_buffer():
    """Factory: build a PixelBuffer from RGB(A) values or a fill color."""

    def factory(values=None, width=4, height=4, fill=(0, 0, 0, 255)):
        if values is None:
            return PixelBuffer.blank(width, height, fill)
        return PixelBuffer.from_array(np.array(values, dtype=np.uint8))

    return factory


@pytest.fixture
def random_buffer():
    """Deterministic random RGBA buffer."""
    rng = np.random.default_rng(1234)
    samples = rng.integers(0, 256, size=(9, 11, 4), dtype=np.uint8)
    return PixelBuffer(11, 9, samples)


class FakeStream:
    """In-memory live stream; yields queued frames, then None."""

    def __init__(self, frames=(), open_ok=True, fail_read=False):
        self.frames = list(frames)
        self.open_ok = open_ok
        self.fail_read = fail_read
        self.reads = 0
        self.closed = False

    def open(self):
        return self.open_ok

    def read(self):
        self.reads += 1
        if self.fail_read:
            raise OSError("camera unplugged")
        if self.frames:
            return self.frames.pop(0)
        return None

    def close(self):
        self.closed = True


@pytest.fixture
def fake_stream():
    """Factory for FakeStream instances."""
    return FakeStream


@pytest.fixture
def wait_until(qapp):
    """Pump the event loop until a predicate holds or the timeout elapses."""

    def waiter(predicate, timeout=2.0):
        deadline = time.monotonic() + timeout
        while time.monotonic() < deadline:
            qapp.processEvents()
            if predicate():
                return True
            time.sleep(0.002)
        qapp.processEvents()
        return predicate()

    return waiter
