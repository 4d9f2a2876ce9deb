"""
Hyper-V Socket Transport
========================

Hypervisor-mediated stream sockets addressed by (vm id, service id).

On a Windows host ``AF_HYPERV`` sockets are used directly. On a Linux
guest the same channel is reached through ``AF_VSOCK``: the service id
must then carry a port (see service_id) and the vm id must be one of the
well-known aliases, which map to vsock context ids.
"""

import logging
import socket
from typing import Any, Tuple

from streambench.transport.base import SocketConnection, SocketListener, TransportError
from streambench.transport.endpoint import (
    HV_GUID_LOOPBACK,
    HV_GUID_PARENT,
    HV_GUID_WILDCARD,
    HV_GUID_CHILDREN,
    HyperVEndpoint,
)
from streambench.transport.service_id import service_id_to_port


logger = logging.getLogger(__name__)


VMADDR_CID_ANY = 0xFFFFFFFF
VMADDR_CID_LOCAL = 1
VMADDR_CID_HOST = 2


def _vsock_cid(endpoint: HyperVEndpoint) -> int:
    cids = {
        HV_GUID_WILDCARD: getattr(socket, "VMADDR_CID_ANY", VMADDR_CID_ANY),
        HV_GUID_CHILDREN: getattr(socket, "VMADDR_CID_ANY", VMADDR_CID_ANY),
        HV_GUID_LOOPBACK: getattr(socket, "VMADDR_CID_LOCAL", VMADDR_CID_LOCAL),
        HV_GUID_PARENT: getattr(socket, "VMADDR_CID_HOST", VMADDR_CID_HOST),
    }
    try:
        return cids[endpoint.vm_id]
    except KeyError:
        raise TransportError(
            f"vm id {endpoint.vm_id} has no vsock equivalent"
        ) from None


def _socket_and_address(endpoint: HyperVEndpoint) -> Tuple[socket.socket, Any]:
    """Create an unconnected socket and the address to bind/connect."""
    if hasattr(socket, "AF_HYPERV"):
        sock = socket.socket(socket.AF_HYPERV, socket.SOCK_STREAM, socket.HV_PROTOCOL_RAW)
        return sock, (str(endpoint.vm_id), str(endpoint.service_id))

    if hasattr(socket, "AF_VSOCK"):
        port = service_id_to_port(endpoint.service_id)
        if port is None:
            raise TransportError(
                f"service id {endpoint.service_id} does not encode a vsock port"
            )
        address = (_vsock_cid(endpoint), port)
        return socket.socket(socket.AF_VSOCK, socket.SOCK_STREAM), address

    raise TransportError("hypervisor sockets are not supported on this platform")


def listen(endpoint: HyperVEndpoint, backlog: int = 128) -> SocketListener:
    """
    Bind and listen on a Hyper-V endpoint.

    Raises:
        TransportError: If the platform lacks support or binding fails.
    """
    sock, address = _socket_and_address(endpoint)
    try:
        sock.bind(address)
        sock.listen(backlog)
    except OSError as e:
        sock.close()
        raise TransportError(f"cannot listen on {endpoint}: {e}") from e

    logger.info(f"Listening on {endpoint} ({address})")
    return SocketListener(sock, address)


def connect(endpoint: HyperVEndpoint) -> SocketConnection:
    """
    Connect to a Hyper-V endpoint.

    Raises:
        TransportError: If the platform lacks support or connecting fails.
    """
    sock, address = _socket_and_address(endpoint)
    try:
        sock.connect(address)
    except OSError as e:
        sock.close()
        raise TransportError(f"cannot connect to {endpoint}: {e}") from e

    logger.info(f"Connected to {endpoint} ({address})")
    return SocketConnection(sock, address)
