"""
Unix Socket Transport
=====================

Stream sockets addressed by a filesystem path.
"""

import logging
import os
import socket
import stat

from streambench.transport.base import SocketConnection, SocketListener, TransportError
from streambench.transport.endpoint import UnixEndpoint


logger = logging.getLogger(__name__)


def _require_af_unix() -> None:
    if not hasattr(socket, "AF_UNIX"):
        raise TransportError("unix sockets are not supported on this platform")


def _remove_stale_socket(path: str) -> None:
    """Unlink a leftover socket file; anything else at the path is an error."""
    try:
        mode = os.stat(path).st_mode
    except FileNotFoundError:
        return
    except OSError as e:
        raise TransportError(f"cannot inspect {path}: {e}") from e

    if not stat.S_ISSOCK(mode):
        raise TransportError(f"refusing to remove {path}: not a socket")

    logger.warning(f"Removing stale socket: {path}")
    try:
        os.unlink(path)
    except OSError as e:
        raise TransportError(f"cannot remove stale socket {path}: {e}") from e


def listen(endpoint: UnixEndpoint, backlog: int = 128, remove_stale: bool = False) -> SocketListener:
    """
    Bind and listen on ``endpoint.path``.

    Args:
        endpoint: Socket path
        backlog: listen() backlog
        remove_stale: Unlink an existing socket file (only a socket) before binding

    Raises:
        TransportError: If the path is taken, cannot be cleared or binding fails.
    """
    _require_af_unix()

    if remove_stale:
        _remove_stale_socket(endpoint.path)

    sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
    try:
        sock.bind(endpoint.path)
        sock.listen(backlog)
    except OSError as e:
        sock.close()
        raise TransportError(f"cannot listen on {endpoint}: {e}") from e

    logger.info(f"Listening on {endpoint}")
    return SocketListener(sock, endpoint.path)


def connect(endpoint: UnixEndpoint) -> SocketConnection:
    """
    Connect to a listening unix socket.

    Raises:
        TransportError: If the connection cannot be established.
    """
    _require_af_unix()

    sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
    try:
        sock.connect(endpoint.path)
    except OSError as e:
        sock.close()
        raise TransportError(f"cannot connect to {endpoint}: {e}") from e

    logger.info(f"Connected to {endpoint}")
    return SocketConnection(sock, endpoint.path)
