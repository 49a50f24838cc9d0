"""
Shared test fixtures for the codrcon test suite.

Provides:
- FakeTransport: scripted in-memory transport (one reply per write)
- make_client: RconClient wired to a FakeTransport with sleeps recorded
- udp_server: real loopback UDP server replying with timed datagrams
"""

import os
import socket
import sys
import threading
import time

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from codrcon.client import RconClient
from codrcon.errors import RconTimeoutError
from codrcon.executor import CommandExecutor

OOB = b"\xff\xff\xff\xff"


class FakeTransport:
    """
    Each write() queues the next scripted reply.

    A reply is a list of datagrams (bytes) or exceptions to raise from
    read_datagram; an empty list means the server stays silent.
    """

    def __init__(self, replies=None, write_errors=None):
        self.replies = list(replies or [])
        self.write_errors = list(write_errors or [])
        self.sent: list[bytes] = []
        self.closed = False
        self._pending = []

    def write(self, data: bytes) -> int:
        if self.write_errors:
            raise self.write_errors.pop(0)
        self.sent.append(data)
        self._pending = list(self.replies.pop(0)) if self.replies else []
        return len(data)

    def read_datagram(self, deadline: float) -> bytes:
        if self._pending:
            item = self._pending.pop(0)
            if isinstance(item, Exception):
                raise item
            return item
        raise RconTimeoutError("read deadline exceeded")

    def close(self):
        self.closed = True


def print_reply(*lines: str) -> list[bytes]:
    """One datagram in the usual OOB print format."""
    return [OOB + b"print\n" + "\n".join(lines).encode("latin-1") + b"\n"]


def make_client(transport, password="secret", sleeps=None) -> RconClient:
    client = RconClient("127.0.0.1", 28960, password)
    client._executor = CommandExecutor(transport, password, 1.0)
    if sleeps is not None:
        client._executor._sleep = sleeps.append
        client._sleep = sleeps.append
    return client


@pytest.fixture
def sleeps():
    return []


class ScriptedUdpServer:
    """
    Loopback UDP server. For every request it receives it plays the next
    script: a list of (delay_seconds, payload) pairs sent in order.
    """

    def __init__(self):
        self.sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        self.sock.bind(("127.0.0.1", 0))
        self.sock.settimeout(0.1)
        self.port = self.sock.getsockname()[1]
        self.scripts = []
        self.requests: list[bytes] = []
        self._running = True
        self._thread = threading.Thread(target=self._serve, daemon=True)
        self._thread.start()

    def _serve(self):
        while self._running:
            try:
                data, addr = self.sock.recvfrom(4096)
            except socket.timeout:
                continue
            except OSError:
                return
            self.requests.append(data)
            script = self.scripts.pop(0) if self.scripts else []
            for delay, payload in script:
                time.sleep(delay)
                self.sock.sendto(payload, addr)

    def stop(self):
        self._running = False
        self._thread.join(timeout=1)
        self.sock.close()


@pytest.fixture
def udp_server():
    server = ScriptedUdpServer()
    yield server
    server.stop()
