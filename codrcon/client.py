"""
RCON client for Call of Duty / Quake 3 family servers.

Usage:
    from codrcon import RconClient

    with RconClient.connect("127.0.0.1", "28960", "secret") as rcon:
        status = rcon.status()
        for player in status.players:
            print(player.client_num, player.name, player.ping)
        print(rcon.get_dvar("sv_hostname"))
        rcon.say("Server restarting in 5 minutes")
"""

import logging
import time
from typing import Optional, Union

from . import config
from .errors import (
    ConnectionNotEstablishedError,
    EmptyDvarResponseError,
    EmptyPasswordError,
    EmptyResponseError,
    InvalidArgumentError,
    InvalidPortError,
)
from .executor import CommandExecutor
from .models import CommandSettings, ServerInfo, ServerStatus, ServerStatusInfo
from .parsers import (
    INFO_BANNER,
    STATUS_BANNER,
    DvarMatcher,
    parse_kv_block,
    parse_status,
    server_info_from_kv,
    server_status_info_from_kv,
)
from .transport import UdpTransport

logger = logging.getLogger("codrcon.client")


def parse_port(port: Union[str, int]) -> int:
    try:
        value = int(str(port).strip())
    except ValueError as e:
        raise InvalidPortError("invalid port number") from e
    if value < 0 or value > 65535:
        raise InvalidPortError("invalid port number")
    return value


def quote_value(value: str) -> str:
    """Quote a dvar value when it contains whitespace or quotes."""
    if any(c in value for c in (" ", "\t", '"')):
        return '"' + value.replace('"', '\\"') + '"'
    return value


class RconClient:
    """One authenticated RCON session over a single UDP socket."""

    def __init__(
        self,
        host: str,
        port: Union[str, int],
        password: str,
        timeout: float = config.DEFAULT_READ_TIMEOUT,
        tell_prefix: str = config.TELL_PREFIX,
    ):
        if not password:
            raise EmptyPasswordError("RCON password cannot be empty")
        self.host = host
        self.port = parse_port(port)
        self.password = password
        self.timeout = timeout
        self.tell_prefix = tell_prefix
        self._executor: Optional[CommandExecutor] = None

    @classmethod
    def connect(cls, host: str, port: Union[str, int], password: str, **kwargs) -> "RconClient":
        """Validate, resolve and dial in one step."""
        client = cls(host, port, password, **kwargs)
        client.open()
        return client

    def open(self):
        transport = UdpTransport.open(self.host, self.port)
        self._executor = CommandExecutor(transport, self.password, self.timeout)
        logger.info(f"RCON connected to {self.host}:{self.port}")

    def close(self):
        if self._executor is None or self._executor.transport.closed:
            return
        self._executor.transport.close()
        logger.info(f"RCON connection to {self.host}:{self.port} closed")

    @property
    def connected(self) -> bool:
        return self._executor is not None and not self._executor.transport.closed

    def __enter__(self):
        if self._executor is None:
            self.open()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False

    def __repr__(self) -> str:
        state = "connected" if self.connected else "closed"
        return f"<RconClient {self.host}:{self.port} {state}>"

    def _executor_or_fail(self) -> CommandExecutor:
        if self._executor is None:
            raise ConnectionNotEstablishedError("RCON connection is not established")
        return self._executor

    def _sleep(self, seconds: float):
        time.sleep(seconds)

    # ── Core ─────────────────────────────────────────────────

    def send_command(
        self,
        command: str,
        args: Optional[str] = None,
        settings: Optional[CommandSettings] = None,
    ) -> list[str]:
        """Send ``rcon <password> <command> [args]`` and return reply lines."""
        if settings is None:
            settings = CommandSettings()
        return self._executor_or_fail().send_command(command, args, settings)

    def query(self, command: str, banner: Optional[str] = None) -> list[str]:
        """Unauthenticated OOB query; raises EmptyResponseError on no data."""
        lines = self._executor_or_fail().query(command)
        if not lines:
            raise EmptyResponseError(f"empty {banner or command}")
        return lines

    # ── Structured queries ───────────────────────────────────

    def status(self) -> ServerStatus:
        settings = CommandSettings().required().with_read_extension(config.STATUS_READ_EXTENSION)
        lines = self.send_command("status", settings=settings)
        return parse_status(lines)

    def get_info(self) -> ServerInfo:
        lines = self.query("getinfo", banner="infoResponse")
        return server_info_from_kv(parse_kv_block(lines, INFO_BANNER))

    def get_status(self) -> ServerStatusInfo:
        lines = self.query("getstatus", banner="statusResponse")
        return server_status_info_from_kv(parse_kv_block(lines, STATUS_BANNER))

    def get_dvar(self, name: str) -> str:
        """
        Read a dvar by sending its name as a command.

        Replies polluted by IW4MAdmin's ``sv_iw4madmin_in`` echo are
        retried; if no echo format ever matches, the first clean line
        seen is returned instead.
        """
        if not name or not name.strip():
            raise InvalidArgumentError("dvar cannot be empty")

        matcher = DvarMatcher(name)
        settings = CommandSettings().required()
        for attempt in range(config.DVAR_MAX_ATTEMPTS):
            lines = self.send_command(name, settings=settings)
            value = matcher.scan(lines)
            if value is not None:
                return value
            if not matcher.needs_retry(lines) or attempt + 1 >= config.DVAR_MAX_ATTEMPTS:
                break
            logger.warning(f"Polluted reply for dvar {name!r} (attempt {attempt + 1}), retrying")
            self._sleep(config.backoff_delay(attempt))

        if matcher.fallback is not None:
            return matcher.fallback
        raise EmptyDvarResponseError(f"empty dvar response for {name!r}")

    # ── Fire-and-forget commands ─────────────────────────────

    def set_dvar(self, name: str, value: str):
        if not name or not value:
            raise InvalidArgumentError("dvar and value cannot be empty")
        self.send_command("set", f"{name} {quote_value(value)}")

    def say(self, message: str):
        """Broadcast a message to all players."""
        if not message:
            raise InvalidArgumentError("message cannot be empty")
        self.send_command("say", message)

    def tell(self, client_num: int, message: str):
        """Private message to one client slot."""
        if not message:
            raise InvalidArgumentError("message cannot be empty")
        self.send_command("tell", f"{client_num} {self.tell_prefix} {message}")

    def kick(self, player: str, reason: str):
        if not player or not reason:
            raise InvalidArgumentError("player and reason cannot be empty")
        self.send_command("clientkick_for_reason", f"{player} '{reason}'")
