"""
Exception hierarchy for the RCON client.

Parsers never raise these for malformed server output; they are reserved
for configuration mistakes, bad arguments and transport failures.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class RconError(Exception):
    message: str

    def __str__(self) -> str:
        return self.message


# ── Configuration ─────────────────────────────────────────────

class ConfigurationError(RconError):
    pass


class EmptyPasswordError(ConfigurationError):
    pass


class InvalidPortError(ConfigurationError):
    pass


class InvalidArgumentError(RconError):
    pass


# ── Transport ─────────────────────────────────────────────────

class TransportError(RconError):
    pass


class AddressResolutionError(TransportError):
    pass


class RconConnectionError(TransportError):
    pass


class ConnectionNotEstablishedError(TransportError):
    pass


class RconTimeoutError(RconError):
    pass


# ── Command outcomes ──────────────────────────────────────────

@dataclass
class ExhaustedRetriesError(RconError):
    command: str = ""
    last_error: Exception | None = None

    def __str__(self) -> str:
        if self.last_error is None:
            return self.message
        return f"{self.message}: {self.last_error}"


class EmptyResponseError(RconError):
    pass


class EmptyDvarResponseError(RconError):
    pass
