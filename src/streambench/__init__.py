"""
streambench
===========

Throughput/latency benchmark for point-to-point byte-stream transports.

A server manufactures fixed-size random frames on one thread per CPU and
streams them to every connected client at a target rate. Each client
measures how regularly whole frames arrive.

Components:
    - pipeline: frame queue, producers, rate scheduler, paced delivery
    - monitor: client-side running-average latency
    - transport: unix and Hyper-V sockets, service id codec
    - registry: Hyper-V host service directory

Example:
    $ streambench server unix:/tmp/bench.sock 64 64 30
    $ streambench client unix:/tmp/bench.sock 64 64 30
    average: 33.341 ms
"""

__version__ = "0.1.0"

__all__ = [
    "__version__",
]
