"""
End-to-End Tests
================

Server and clients wired over unix sockets in one process.
"""

import socket
import threading
import time

import pytest

from streambench.main import StreamServer
from streambench.monitor import LatencyMonitor
from streambench.transport import UnixEndpoint, connect, listen


pytestmark = pytest.mark.skipif(
    not hasattr(socket, "AF_UNIX"),
    reason="unix sockets not available",
)


class Client:
    """LatencyMonitor running in a background thread."""

    def __init__(self, endpoint, frame_size, report_interval=1.0):
        self.reports = []
        self.errors = []
        self.monitor = LatencyMonitor(
            connect(endpoint),
            frame_size=frame_size,
            report_interval=report_interval,
            on_report=self.reports.append,
        )
        self.thread = threading.Thread(target=self._run, daemon=True)
        self.thread.start()

    def _run(self):
        try:
            self.monitor.run()
        except Exception as e:
            self.errors.append(e)

    def stop(self):
        self.monitor.stop()
        self.thread.join(timeout=3.0)


@pytest.fixture
def server(socket_path, settings_factory):
    """Running in-process server at 30 fps with 64x64 frames."""
    settings = settings_factory(f"unix:{socket_path}", width=64, height=64, fps=30.0)
    endpoint = UnixEndpoint(path=socket_path)
    server = StreamServer(settings, listen(endpoint))
    server.start()
    server.endpoint = endpoint
    yield server
    server.stop()


class TestSingleClient:

    def test_reports_every_second(self, server):
        """Five seconds of streaming give at least four sane reports."""
        client = Client(server.endpoint, frame_size=64 * 64)
        time.sleep(5.3)
        client.stop()

        assert not client.errors
        assert len(client.reports) >= 4
        for average in client.reports:
            assert average is not None
            assert 0 < average < 1.0

        # Steady-state average approaches one frame period
        assert client.reports[-1] == pytest.approx(1 / 30, rel=0.5)

    def test_client_sees_server_close_as_fatal(self, server, wait_until):
        client = Client(server.endpoint, frame_size=64 * 64)
        assert wait_until(lambda: client.monitor.frames_received > 5)

        server.stop()
        client.thread.join(timeout=3.0)

        assert not client.thread.is_alive()
        assert len(client.errors) == 1


class TestMultipleClients:

    def test_one_disconnect_leaves_others_streaming(self, server, wait_until):
        first = Client(server.endpoint, frame_size=64 * 64)
        second = Client(server.endpoint, frame_size=64 * 64)
        assert wait_until(lambda: server.dispatcher.active == 2)
        assert wait_until(lambda: first.monitor.frames_received > 10)

        first.stop()
        assert wait_until(lambda: server.dispatcher.active == 1)

        before = second.monitor.frames_received
        time.sleep(2.0)
        received = second.monitor.frames_received - before

        assert not second.errors
        assert received >= 0.7 * 2.0 * 30
        second.stop()

    def test_frames_are_split_not_duplicated(self, server, wait_until):
        """Both clients pace at the target rate from one shared queue."""
        first = Client(server.endpoint, frame_size=64 * 64)
        second = Client(server.endpoint, frame_size=64 * 64)
        assert wait_until(lambda: min(
            first.monitor.frames_received, second.monitor.frames_received
        ) >= 30)
        first.stop()
        second.stop()

        popped = server.queue.total_popped
        assert popped >= first.monitor.frames_received + second.monitor.frames_received


class TestBackpressure:

    def test_stalled_delivery_blocks_producers(self, socket_path, settings_factory, wait_until):
        """With capacity 5 and no consumer, producers block and the queue stays at 5."""
        settings = settings_factory(f"unix:{socket_path}", width=64, height=64, fps=5.0, workers=2)
        server = StreamServer(settings, listen(UnixEndpoint(path=socket_path)))
        assert server.queue.capacity == 5
        server.start()

        try:
            assert wait_until(lambda: server.queue.waiting_producers == 2)
            produced = server.pool.frames_produced
            time.sleep(5 * (1 / 5.0) + 0.2)

            assert server.queue.size == 5
            assert server.queue.waiting_producers == 2
            assert server.pool.frames_produced == produced == 5
        finally:
            server.stop()
