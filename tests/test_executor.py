"""
Tests for the command executor: framing, retry policy and locking.
"""

import threading
import time

import pytest

from codrcon.errors import (
    ConnectionNotEstablishedError,
    ExhaustedRetriesError,
    RconTimeoutError,
    TransportError,
)
from codrcon.executor import CommandExecutor, build_payload
from codrcon.models import CommandSettings
from conftest import FakeTransport, print_reply

REQUIRED = CommandSettings(require_success=True)


def make_executor(transport, sleeps):
    executor = CommandExecutor(transport, "secret", 1.0)
    executor._sleep = sleeps.append
    return executor


class TestPayload:

    def test_without_args(self):
        assert build_payload("pw", " status ") == "rcon pw status"

    def test_with_args(self):
        assert build_payload("pw", "say", "  hello there ") == "rcon pw say hello there"

    def test_blank_args_ignored(self):
        assert build_payload("pw", "status", "   ") == "rcon pw status"

    def test_packet_on_the_wire(self, sleeps):
        transport = FakeTransport(replies=[print_reply("ok")])
        make_executor(transport, sleeps).send_command("say", "hi")
        assert transport.sent == [b"\xff\xff\xff\xffrcon secret say hi\n"]


class TestNotRequired:

    def test_silence_is_success(self, sleeps):
        transport = FakeTransport(replies=[[]])
        assert make_executor(transport, sleeps).send_command("say", "hi") == []
        assert len(transport.sent) == 1
        assert sleeps == []

    def test_framing_only_reply_is_success(self, sleeps):
        transport = FakeTransport(replies=[[b"\xff\xff\xff\xffprint\n"]])
        assert make_executor(transport, sleeps).send_command("say", "hi") == []
        assert len(transport.sent) == 1

    def test_lines_returned(self, sleeps):
        transport = FakeTransport(replies=[print_reply("a", "b")])
        assert make_executor(transport, sleeps).send_command("cmd") == ["a", "b"]

    def test_write_failures_retried_then_raised(self, sleeps):
        errors = [TransportError("write failed") for _ in range(4)]
        transport = FakeTransport(write_errors=errors)
        with pytest.raises(TransportError):
            make_executor(transport, sleeps).send_command("say", "hi")
        assert sleeps == pytest.approx([0.15, 0.30, 0.45])

    def test_write_failure_then_success(self, sleeps):
        transport = FakeTransport(
            replies=[print_reply("done")],
            write_errors=[TransportError("write failed")],
        )
        assert make_executor(transport, sleeps).send_command("cmd") == ["done"]
        assert sleeps == pytest.approx([0.15])


class TestRequired:

    def test_success_short_circuits(self, sleeps):
        transport = FakeTransport(replies=[print_reply("map: mp_crash")])
        lines = make_executor(transport, sleeps).send_command("status", settings=REQUIRED)
        assert lines == ["map: mp_crash"]
        assert len(transport.sent) == 1

    def test_timeout_then_reply(self, sleeps):
        transport = FakeTransport(replies=[[], print_reply("late")])
        lines = make_executor(transport, sleeps).send_command("status", settings=REQUIRED)
        assert lines == ["late"]
        assert len(transport.sent) == 2
        assert sleeps == pytest.approx([0.15])

    def test_exhausted_after_timeouts(self, sleeps):
        transport = FakeTransport()
        with pytest.raises(ExhaustedRetriesError) as err:
            make_executor(transport, sleeps).send_command("status", settings=REQUIRED)
        assert len(transport.sent) == 4
        assert sleeps == pytest.approx([0.15, 0.30, 0.45])
        assert isinstance(err.value.last_error, RconTimeoutError)
        assert err.value.command == "status"

    def test_empty_replies_exhaust_without_cause(self, sleeps):
        empty = [b"\xff\xff\xff\xffprint\n"]
        transport = FakeTransport(replies=[empty, empty, empty])
        settings = CommandSettings(require_success=True, retries=2)
        with pytest.raises(ExhaustedRetriesError) as err:
            make_executor(transport, sleeps).send_command("status", settings=settings)
        assert err.value.last_error is None
        assert "no response received for command 'status'" in str(err.value)

    def test_non_timeout_read_error_not_retried(self, sleeps):
        transport = FakeTransport(replies=[[TransportError("UDP read failed: refused")]])
        with pytest.raises(TransportError):
            make_executor(transport, sleeps).send_command("status", settings=REQUIRED)
        assert len(transport.sent) == 1
        assert sleeps == []

    def test_required_helper_raises_zero_retries(self):
        assert CommandSettings(retries=0).required().retries == 2
        assert CommandSettings(retries=5).required().retries == 5


class TestConnection:

    def test_closed_transport(self, sleeps):
        transport = FakeTransport()
        transport.closed = True
        with pytest.raises(ConnectionNotEstablishedError):
            make_executor(transport, sleeps).send_command("status")

    def test_exchanges_are_serialized(self):
        active = []
        overlaps = []

        class SlowTransport(FakeTransport):
            def write(self, data):
                active.append(data)
                if len(active) > 1:
                    overlaps.append(data)
                return super().write(data)

            def read_datagram(self, deadline):
                time.sleep(0.05)
                try:
                    return super().read_datagram(deadline)
                except RconTimeoutError:
                    active.pop()
                    raise

        transport = SlowTransport(replies=[print_reply("one"), print_reply("two")])
        executor = CommandExecutor(transport, "secret", 1.0)
        threads = [
            threading.Thread(target=executor.send_command, args=("cmd",))
            for _ in range(2)
        ]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert overlaps == []
        assert len(transport.sent) == 2


def test_required_backoff_timing_against_silent_server(udp_server):
    from codrcon.transport import UdpTransport

    transport = UdpTransport.open("127.0.0.1", udp_server.port)
    executor = CommandExecutor(transport, "secret", 0.1)
    settings = CommandSettings(require_success=True, retries=2, read_timeout=0.1)
    started = time.monotonic()
    try:
        with pytest.raises(ExhaustedRetriesError):
            executor.send_command("status", settings=settings)
    finally:
        transport.close()
    elapsed = time.monotonic() - started
    # three 0.1s reads plus 0.15s + 0.30s of backoff
    assert elapsed >= 0.75
    assert len(udp_server.requests) == 3


def test_not_required_silent_server_returns_quickly(udp_server):
    from codrcon.transport import UdpTransport

    transport = UdpTransport.open("127.0.0.1", udp_server.port)
    executor = CommandExecutor(transport, "secret", 0.2)
    started = time.monotonic()
    try:
        assert executor.send_command("say", "hi") == []
    finally:
        transport.close()
    assert time.monotonic() - started < 0.6
