"""
Transport Contract
==================

Minimal byte-stream transport interface used by the pipeline.

The pipeline only needs a listener that accepts connections and a
connection that reads or writes whole buffers. Concrete transports
(unix sockets, Hyper-V sockets) share the socket-backed implementation
in this module.

Design Rules:
    - read_exact/write_all move a whole buffer or fail
    - Every OSError surfaces as a TransportError
    - Endpoint addressing stays inside the concrete transport
"""

import logging
import socket
from typing import Any, Protocol, Tuple


logger = logging.getLogger(__name__)


class TransportError(Exception):
    """Raised when a transport operation fails."""
    pass


class ConnectionClosed(TransportError):
    """Raised when the peer closed the connection mid-transfer."""
    pass


class Connection(Protocol):
    """
    Protocol for a connected, ordered, reliable byte stream.

    Implemented by:
        - SocketConnection (unix and Hyper-V sockets)
    """

    def read_exact(self, size: int) -> bytes:
        """Block until exactly ``size`` bytes were read."""
        ...

    def write_all(self, data: bytes) -> None:
        """Block until all of ``data`` was written."""
        ...

    def close(self) -> None:
        ...


class Listener(Protocol):
    """Protocol for a bound listening endpoint."""

    def accept(self) -> Tuple[Connection, Any]:
        """Block until a peer connects; return (connection, peer address)."""
        ...

    def close(self) -> None:
        ...


class SocketConnection:
    """
    Connection backed by a connected stream socket.

    Attributes:
        sock: Underlying socket
        peer: Peer address as reported by accept/connect
    """

    def __init__(self, sock: socket.socket, peer: Any = None) -> None:
        self.sock = sock
        self.peer = peer
        self._closed = False

    def read_exact(self, size: int) -> bytes:
        """
        Read exactly ``size`` bytes.

        Raises:
            ConnectionClosed: If the peer closed before ``size`` bytes arrived
            TransportError: On any other socket error
        """
        buf = bytearray(size)
        view = memoryview(buf)
        received = 0
        try:
            while received < size:
                n = self.sock.recv_into(view[received:], size - received)
                if n == 0:
                    raise ConnectionClosed(
                        f"connection closed after {received}/{size} bytes"
                    )
                received += n
        except OSError as e:
            raise TransportError(f"read failed: {e}") from e
        return bytes(buf)

    def write_all(self, data: bytes) -> None:
        """
        Write all of ``data``.

        A partial write counts as a failed write.

        Raises:
            ConnectionClosed: If the peer went away
            TransportError: On any other socket error
        """
        try:
            self.sock.sendall(data)
        except (BrokenPipeError, ConnectionResetError) as e:
            raise ConnectionClosed(f"peer closed connection: {e}") from e
        except OSError as e:
            raise TransportError(f"write failed: {e}") from e

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            self.sock.shutdown(socket.SHUT_RDWR)
        except OSError:
            pass  # already disconnected
        self.sock.close()

    def __enter__(self) -> "SocketConnection":
        return self

    def __exit__(self, *args) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"SocketConnection(fd={self.sock.fileno()}, peer={self.peer!r})"


class SocketListener:
    """
    Listener backed by a bound, listening stream socket.

    Attributes:
        sock: Underlying listening socket
        address: Address the socket is bound to
    """

    def __init__(self, sock: socket.socket, address: Any) -> None:
        self.sock = sock
        self.address = address

    def accept(self) -> Tuple[SocketConnection, Any]:
        """
        Accept one connection.

        Raises:
            TransportError: If the listener is broken or was closed
        """
        try:
            conn, peer = self.sock.accept()
        except OSError as e:
            raise TransportError(f"accept failed: {e}") from e
        return SocketConnection(conn, peer), peer

    def close(self) -> None:
        # close() alone does not wake a thread blocked in accept() on Linux
        try:
            self.sock.shutdown(socket.SHUT_RDWR)
        except OSError:
            pass
        self.sock.close()

    def __enter__(self) -> "SocketListener":
        return self

    def __exit__(self, *args) -> None:
        self.close()
