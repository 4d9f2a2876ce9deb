"""
Transport Module
================

Byte-stream transports used by the streaming pipeline.

This module provides:
    - listen/connect: endpoint-dispatched setup
    - Connection/Listener: the contract the pipeline relies on
    - UnixEndpoint/HyperVEndpoint: typed endpoint models
    - service id codec for vsock ports

Example:
    from streambench.transport import connect, parse_endpoint

    connection = connect(parse_endpoint("unix:/tmp/streambench.sock"))
    data = connection.read_exact(4096)
"""

from streambench.transport import hvsock, unix
from streambench.transport.base import (
    Connection,
    ConnectionClosed,
    Listener,
    SocketConnection,
    SocketListener,
    TransportError,
)
from streambench.transport.endpoint import (
    Endpoint,
    HyperVEndpoint,
    UnixEndpoint,
    parse_endpoint,
)
from streambench.transport.service_id import (
    decode_service_id,
    port_to_service_id,
    service_id_to_port,
)


def listen(endpoint: Endpoint, backlog: int = 128, remove_stale: bool = False) -> SocketListener:
    """Bind and listen on any supported endpoint."""
    if isinstance(endpoint, HyperVEndpoint):
        return hvsock.listen(endpoint, backlog=backlog)
    return unix.listen(endpoint, backlog=backlog, remove_stale=remove_stale)


def connect(endpoint: Endpoint) -> SocketConnection:
    """Connect to any supported endpoint."""
    if isinstance(endpoint, HyperVEndpoint):
        return hvsock.connect(endpoint)
    return unix.connect(endpoint)


__all__ = [
    "Connection",
    "ConnectionClosed",
    "Endpoint",
    "HyperVEndpoint",
    "Listener",
    "SocketConnection",
    "SocketListener",
    "TransportError",
    "UnixEndpoint",
    "connect",
    "decode_service_id",
    "listen",
    "parse_endpoint",
    "port_to_service_id",
    "service_id_to_port",
]
