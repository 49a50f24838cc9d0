"""
Command executor: framing, mutual exclusion and the retry/backoff policy.

Replies are matched to requests only by arriving next, so the lock is held
for the whole exchange, every retry included.
"""

import logging
import threading
import time
from enum import Enum
from typing import Optional

from . import config
from .accumulator import read_response
from .errors import (
    ConnectionNotEstablishedError,
    ExhaustedRetriesError,
    RconTimeoutError,
    TransportError,
)
from .models import CommandSettings
from .text import build_packet

logger = logging.getLogger("codrcon.executor")


class ExchangeState(Enum):
    SEND = "send"
    AWAIT = "await"
    EVALUATE = "evaluate"
    BACKOFF = "backoff"
    DONE = "done"
    FAILED = "failed"


def build_payload(password: str, command: str, args: Optional[str] = None) -> str:
    payload = f"rcon {password} {command.strip()}"
    if args is not None and args.strip():
        payload += f" {args.strip()}"
    return payload


class CommandExecutor:
    """Runs send/accumulate cycles on one transport."""

    def __init__(self, transport, password: str, default_timeout: float = config.DEFAULT_READ_TIMEOUT):
        self.transport = transport
        self.password = password
        self.default_timeout = default_timeout
        self.lock = threading.Lock()

    def _sleep(self, seconds: float):
        time.sleep(seconds)

    def _timeout(self, settings: CommandSettings) -> float:
        if settings.read_timeout is not None and settings.read_timeout > 0:
            return settings.read_timeout
        if self.default_timeout > 0:
            return self.default_timeout
        return config.DEFAULT_READ_TIMEOUT

    def _require_transport(self):
        if self.transport is None or self.transport.closed:
            raise ConnectionNotEstablishedError("RCON connection is not established")

    def send_command(
        self,
        command: str,
        args: Optional[str] = None,
        settings: Optional[CommandSettings] = None,
    ) -> list[str]:
        """
        Send an authenticated command and return the reply lines.

        With ``require_success`` unset, silence is a valid answer and an
        empty list is returned. With it set, empty replies and timeouts are
        retried with linear backoff until ``retries`` is spent.
        """
        self._require_transport()
        settings = settings or CommandSettings()
        packet = build_packet(build_payload(self.password, command, args))
        read_timeout = self._timeout(settings)

        with self.lock:
            return self._exchange(command, packet, settings, read_timeout)

    def _exchange(self, command, packet, settings, read_timeout) -> list[str]:
        last_error: Optional[Exception] = None
        lines: list[str] = []
        attempt = 0
        state = ExchangeState.SEND

        while True:
            if state is ExchangeState.SEND:
                try:
                    self.transport.write(packet)
                except TransportError as e:
                    logger.warning(f"Write failed for {command!r} (attempt {attempt + 1}): {e}")
                    last_error = e
                    state = ExchangeState.BACKOFF
                    continue
                state = ExchangeState.AWAIT

            elif state is ExchangeState.AWAIT:
                error: Optional[Exception] = None
                try:
                    lines = read_response(self.transport, read_timeout, settings.read_extension)
                except RconTimeoutError as e:
                    error = e
                state = ExchangeState.EVALUATE

            elif state is ExchangeState.EVALUATE:
                if lines:
                    state = ExchangeState.DONE
                elif not settings.require_success:
                    lines = []
                    state = ExchangeState.DONE
                else:
                    if error is not None:
                        last_error = error
                    logger.debug(f"No reply to {command!r} (attempt {attempt + 1}/{settings.retries + 1})")
                    state = ExchangeState.BACKOFF

            elif state is ExchangeState.BACKOFF:
                if attempt >= settings.retries:
                    state = ExchangeState.FAILED
                    continue
                self._sleep(config.backoff_delay(attempt))
                attempt += 1
                state = ExchangeState.SEND

            elif state is ExchangeState.DONE:
                return lines

            elif state is ExchangeState.FAILED:
                if settings.require_success:
                    if last_error is not None:
                        raise ExhaustedRetriesError(
                            f"no response received for command {command!r}",
                            command=command,
                            last_error=last_error,
                        ) from last_error
                    raise ExhaustedRetriesError(
                        f"no response received for command {command!r}",
                        command=command,
                    )
                if last_error is not None:
                    raise last_error
                return []

    def query(self, command: str, read_timeout: Optional[float] = None) -> list[str]:
        """Send an unauthenticated OOB query (getinfo, getstatus) once."""
        self._require_transport()
        timeout = read_timeout if read_timeout and read_timeout > 0 else self._timeout(CommandSettings())
        with self.lock:
            self.transport.write(build_packet(command))
            return read_response(self.transport, timeout, config.DEFAULT_READ_EXTENSION)
