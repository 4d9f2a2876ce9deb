"""
streambench Main Entry Point
===========================

Command-line wiring for the two roles of the harness.

Usage:
    streambench server <endpoint> <width> <height> <fps>
    streambench client <endpoint> <width> <height> <fps>

Roles:
    server  - bind the endpoint, start frame producers, accept forever
    client  - connect, print the average inter-frame latency every second

Exit status:
    0   - clean exit
    1   - unknown role, setup failure or (client) lost connection
    2   - unparseable arguments
    130 - interrupted
"""

import argparse
import logging
import sys
import threading
import time
from typing import List, Optional

from pydantic import ValidationError

from streambench import __version__
from streambench.config import Settings, load_config, setup_logging
from streambench.monitor import LatencyMonitor, ReportError
from streambench.pipeline import (
    ConnectionDispatcher,
    FrameProducerPool,
    FrameQueue,
    capacity_for_fps,
)
from streambench.transport import Listener, TransportError, connect, listen, parse_endpoint


logger = logging.getLogger(__name__)


ROLES = ("server", "client")


# =============================================================================
# Server
# =============================================================================

class StreamServer:
    """
    Producer pool plus dispatcher bound to one listener.

    Attributes:
        queue: Shared frame queue
        pool: Frame producer pool
        dispatcher: Accept loop
    """

    def __init__(self, settings: Settings, listener: Listener) -> None:
        frame = settings.frame
        self.queue = FrameQueue(capacity=capacity_for_fps(frame.fps))
        self.pool = FrameProducerPool(
            self.queue,
            width=frame.width,
            height=frame.height,
            workers=settings.producer.workers,
            seed=settings.producer.seed,
        )
        self.dispatcher = ConnectionDispatcher(listener, self.queue, fps=frame.fps)
        self._thread: Optional[threading.Thread] = None

    def serve_forever(self) -> None:
        """Start producers and accept connections in the calling thread."""
        self.pool.start()
        self.dispatcher.serve_forever()

    def start(self) -> None:
        """Run serve_forever() in a background thread."""
        self._thread = threading.Thread(
            target=self.serve_forever,
            name="dispatcher",
            daemon=True,
        )
        self._thread.start()

    def stop(self) -> None:
        """Stop accepting, close the queue and wait for producers."""
        self.dispatcher.stop()
        self.pool.stop()
        if self._thread is not None:
            self._thread.join(timeout=5.0)


def run_server(settings: Settings) -> None:
    """Bind the configured endpoint and serve until the process ends."""
    endpoint = parse_endpoint(settings.transport.endpoint)
    listener = listen(
        endpoint,
        backlog=settings.transport.backlog,
        remove_stale=settings.transport.remove_stale,
    )
    logger.info(
        f"Serving {settings.frame.width}x{settings.frame.height} frames "
        f"at {settings.frame.fps} fps on {endpoint}"
    )
    StreamServer(settings, listener).serve_forever()


# =============================================================================
# Client
# =============================================================================

def run_client(settings: Settings) -> None:
    """Connect and report average latency until the connection fails."""
    endpoint = parse_endpoint(settings.transport.endpoint)
    started_at = time.perf_counter()
    connection = connect(endpoint)
    monitor = LatencyMonitor(
        connection,
        frame_size=settings.frame.size,
        report_interval=settings.monitor.report_interval,
        started_at=started_at,
    )
    monitor.run()


# =============================================================================
# Argument Parsing
# =============================================================================

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="streambench",
        description="Rate-controlled frame streaming benchmark",
    )
    parser.add_argument("role", help="server or client")
    parser.add_argument("endpoint", help="unix:<path>, <path> or hv:<vm>:<service>")
    parser.add_argument("width", type=int, help="Frame width in bytes")
    parser.add_argument("height", type=int, help="Frame height in rows")
    parser.add_argument("fps", type=float, help="Target frames per second")
    parser.add_argument("--config", default=None, help="Path to YAML config")
    parser.add_argument("--log-level", default=None, help="Override log level")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def resolve_settings(args: argparse.Namespace) -> Settings:
    """Overlay command-line values on file/env configuration."""
    settings = load_config(args.config)
    data = settings.model_dump()
    data["transport"]["endpoint"] = args.endpoint
    data["frame"].update(width=args.width, height=args.height, fps=args.fps)
    if args.log_level:
        data["logging"]["level"] = args.log_level
    return Settings.model_validate(data)


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    if args.role not in ROLES:
        print(f"unknown kind {args.role}", file=sys.stderr)
        return 1

    try:
        settings = resolve_settings(args)
    except ValidationError as e:
        print(f"invalid configuration: {e}", file=sys.stderr)
        return 1

    setup_logging(settings)

    try:
        if args.role == "server":
            run_server(settings)
        else:
            run_client(settings)
    except TransportError as e:
        logger.error(f"{args.role} failed: {e}")
        return 1
    except ReportError as e:
        logger.error(f"client stopped: {e}")
        return 1
    except ValueError as e:
        logger.error(f"invalid endpoint: {e}")
        return 1
    except KeyboardInterrupt:
        logger.info("Interrupted")
        return 130

    return 0


if __name__ == "__main__":
    sys.exit(main())
