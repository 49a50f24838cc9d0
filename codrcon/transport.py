"""
UDP transport: one connected datagram socket per remote server.

Reads take an absolute ``time.monotonic()`` deadline so the accumulator can
keep a single deadline across several datagrams.
"""

import logging
import socket
import time
from typing import Optional

from .config import READ_BUFFER_SIZE
from .errors import (
    AddressResolutionError,
    RconConnectionError,
    RconTimeoutError,
    TransportError,
)

logger = logging.getLogger("codrcon.transport")


class UdpTransport:
    """Raw datagram send/receive against a single remote address."""

    def __init__(self, sock: socket.socket, address: tuple):
        self._sock: Optional[socket.socket] = sock
        self.address = address

    @classmethod
    def open(cls, host: str, port: int) -> "UdpTransport":
        """Resolve ``host:port`` and dial a connected UDP socket."""
        try:
            infos = socket.getaddrinfo(host, port, type=socket.SOCK_DGRAM)
        except (socket.gaierror, UnicodeError) as e:
            raise AddressResolutionError(f"failed to resolve UDP address {host}:{port}") from e
        if not infos:
            raise AddressResolutionError(f"failed to resolve UDP address {host}:{port}")

        family, socktype, proto, _, sockaddr = infos[0]
        try:
            sock = socket.socket(family, socktype, proto)
        except OSError as e:
            raise RconConnectionError("failed to establish UDP connection") from e
        try:
            sock.connect(sockaddr)
        except OSError as e:
            sock.close()
            raise RconConnectionError("failed to establish UDP connection") from e

        logger.debug(f"UDP socket connected to {sockaddr[0]}:{sockaddr[1]}")
        return cls(sock, sockaddr)

    @property
    def closed(self) -> bool:
        return self._sock is None

    def _socket(self) -> socket.socket:
        if self._sock is None:
            raise TransportError("use of closed UDP transport")
        return self._sock

    def write(self, data: bytes) -> int:
        sock = self._socket()
        try:
            return sock.send(data)
        except OSError as e:
            raise TransportError(f"UDP write failed: {e}") from e

    def read_datagram(self, deadline: float) -> bytes:
        """Block until one datagram arrives or ``deadline`` passes."""
        sock = self._socket()
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            raise RconTimeoutError("read deadline exceeded")
        try:
            sock.settimeout(remaining)
            data = sock.recv(READ_BUFFER_SIZE)
        except socket.timeout as e:
            raise RconTimeoutError("read deadline exceeded") from e
        except OSError as e:
            if self._sock is None:
                raise TransportError("use of closed UDP transport") from e
            raise TransportError(f"UDP read failed: {e}") from e
        # shutdown() from close() wakes a blocked recv with an empty read
        if not data and self._sock is None:
            raise TransportError("use of closed UDP transport")
        return data

    def close(self):
        """Release the socket, failing any read blocked in another thread."""
        sock = self._socket()
        self._sock = None
        try:
            sock.shutdown(socket.SHUT_RDWR)
        except OSError:
            pass
        sock.close()
