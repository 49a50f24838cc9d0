"""codrcon: RCON client for Call of Duty / Quake 3 family game servers."""

__version__ = "1.0.0"

from .client import RconClient
from .errors import (
    AddressResolutionError,
    ConfigurationError,
    ConnectionNotEstablishedError,
    EmptyDvarResponseError,
    EmptyPasswordError,
    EmptyResponseError,
    ExhaustedRetriesError,
    InvalidArgumentError,
    InvalidPortError,
    RconConnectionError,
    RconError,
    RconTimeoutError,
    TransportError,
)
from .models import CommandSettings, Player, ServerInfo, ServerStatus, ServerStatusInfo
from .pool import RconPool

__all__ = [
    "RconClient",
    "RconPool",
    "CommandSettings",
    "Player",
    "ServerStatus",
    "ServerInfo",
    "ServerStatusInfo",
    "RconError",
    "ConfigurationError",
    "EmptyPasswordError",
    "InvalidPortError",
    "InvalidArgumentError",
    "TransportError",
    "AddressResolutionError",
    "RconConnectionError",
    "ConnectionNotEstablishedError",
    "RconTimeoutError",
    "ExhaustedRetriesError",
    "EmptyResponseError",
    "EmptyDvarResponseError",
]
