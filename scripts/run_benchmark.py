#!/usr/bin/env python3
"""
Local Benchmark Script
======================

Standalone script that runs a server and several clients in one process
over a unix socket.

This script:
    1. Starts a StreamServer on a temporary socket
    2. Connects N LatencyMonitor clients
    3. Logs queue and client stats every report interval
    4. Reports a final summary

Usage:
    python scripts/run_benchmark.py --duration 30 --clients 4
    python scripts/run_benchmark.py --width 1920 --height 1080 --fps 60
"""

import argparse
import logging
import os
import sys
import tempfile
import threading
import time

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from streambench.config import Settings
from streambench.main import StreamServer
from streambench.monitor import LatencyMonitor, format_average
from streambench.transport import TransportError, UnixEndpoint, connect, listen


# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%S",
)
logger = logging.getLogger(__name__)


def _run_monitor(monitor: LatencyMonitor, errors: list) -> None:
    try:
        monitor.run()
    except TransportError as e:
        errors.append(e)


def run_benchmark(
    width: int,
    height: int,
    fps: float,
    clients: int,
    duration: int,
    report_interval: int,
) -> dict:
    """
    Run the benchmark.

    Args:
        width: Frame width in bytes
        height: Frame height in rows
        fps: Target frames per second per client
        clients: Number of concurrent clients
        duration: Benchmark duration in seconds
        report_interval: Seconds between progress reports

    Returns:
        Final metrics dict
    """
    logger.info("=" * 60)
    logger.info("streambench local run")
    logger.info("=" * 60)
    logger.info(f"Frame: {width}x{height} ({width * height} bytes)")
    logger.info(f"Target FPS: {fps}")
    logger.info(f"Clients: {clients}")
    logger.info(f"Duration: {duration} seconds")
    logger.info("=" * 60)

    directory = tempfile.mkdtemp(prefix="streambench-")
    endpoint = UnixEndpoint(path=os.path.join(directory, "bench.sock"))
    settings = Settings.model_validate({
        "frame": {"width": width, "height": height, "fps": fps},
        "transport": {"endpoint": str(endpoint)},
    })

    server = StreamServer(settings, listen(endpoint))
    server.start()

    monitors = []
    errors: list = []
    threads = []
    for _ in range(clients):
        monitor = LatencyMonitor(
            connect(endpoint),
            frame_size=settings.frame.size,
            on_report=lambda average: None,
        )
        thread = threading.Thread(target=_run_monitor, args=(monitor, errors), daemon=True)
        thread.start()
        monitors.append(monitor)
        threads.append(thread)

    start_time = time.time()
    last_report_time = start_time

    try:
        while time.time() - start_time < duration:
            if time.time() - last_report_time >= report_interval:
                queue_metrics = server.queue.metrics()
                logger.info("-" * 40)
                logger.info(f"Progress Report (elapsed: {time.time() - start_time:.0f}s)")
                logger.info(f"  Frames produced: {server.pool.frames_produced}")
                logger.info(f"  Queue: {queue_metrics['size']}/{queue_metrics['capacity']}")
                logger.info(f"  Blocked producers: {queue_metrics['waiting_producers']}")
                for i, monitor in enumerate(monitors):
                    logger.info(
                        f"  Client {i}: {monitor.frames_received} frames, "
                        f"{format_average(monitor.average())}"
                    )
                last_report_time = time.time()

            time.sleep(0.5)

    except KeyboardInterrupt:
        logger.info("Benchmark interrupted by user")
    finally:
        for monitor in monitors:
            monitor.stop()
        for thread in threads:
            thread.join(timeout=5.0)
        server.stop()

    total_time = time.time() - start_time
    received = [m.frames_received for m in monitors]
    averages = [m.average() for m in monitors]

    logger.info("=" * 60)
    logger.info("FINAL SUMMARY")
    logger.info("=" * 60)
    logger.info(f"Total runtime: {total_time:.1f} seconds")
    logger.info(f"Frames produced: {server.pool.frames_produced}")
    for i, (count, average) in enumerate(zip(received, averages)):
        rate = count / total_time if total_time > 0 else 0
        logger.info(f"Client {i}: {count} frames ({rate:.1f} fps), {format_average(average)}")
    logger.info(f"Client errors: {len(errors)}")
    logger.info("=" * 60)

    return {
        "duration": total_time,
        "frames_received": received,
        "averages": averages,
        "errors": len(errors),
    }


def main():
    parser = argparse.ArgumentParser(
        description="Run a streambench server and clients in one process"
    )
    parser.add_argument("--width", type=int, default=1920, help="Frame width (default: 1920)")
    parser.add_argument("--height", type=int, default=1080, help="Frame height (default: 1080)")
    parser.add_argument("--fps", type=float, default=60.0, help="Target FPS (default: 60)")
    parser.add_argument("--clients", type=int, default=2, help="Concurrent clients (default: 2)")
    parser.add_argument(
        "--duration",
        type=int,
        default=30,
        help="Benchmark duration in seconds (default: 30)",
    )
    parser.add_argument(
        "--report-interval",
        type=int,
        default=5,
        help="Seconds between progress reports (default: 5)",
    )

    args = parser.parse_args()

    result = run_benchmark(
        width=args.width,
        height=args.height,
        fps=args.fps,
        clients=args.clients,
        duration=args.duration,
        report_interval=args.report_interval,
    )

    # Every client must have received frames and none may have failed
    ok = result["errors"] == 0 and all(n > 0 for n in result["frames_received"])
    sys.exit(0 if ok else 1)


if __name__ == "__main__":
    main()
