"""
Runtime configuration for codrcon, read from environment variables.

    RCON_HOST / RCON_PORT / RCON_PASSWORD   default server credentials
    RCON_TIMEOUT                            default read timeout (seconds)
    RCON_READ_EXTENSION                     inter-datagram idle window (seconds)
    RCON_RETRIES                            default retry count
    RCON_TELL_PREFIX                        prefix for private messages
    GAME_SERVERS                            JSON list for the pool / gateway
    GATEWAY_SECRET                          admin secret for the HTTP gateway
"""

import json
import logging
import os

from pydantic import BaseModel, ValidationError

logger = logging.getLogger("codrcon.config")


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name, "")
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning(f"Invalid {name}={raw!r}, using {default}")
        return default


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "")
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning(f"Invalid {name}={raw!r}, using {default}")
        return default


# ── Protocol defaults ─────────────────────────────────────────

DEFAULT_HOST = os.environ.get("RCON_HOST", "127.0.0.1")
DEFAULT_PORT = os.environ.get("RCON_PORT", "28960")
DEFAULT_PASSWORD = os.environ.get("RCON_PASSWORD", "")

DEFAULT_READ_TIMEOUT = _env_float("RCON_TIMEOUT", 1.0)
DEFAULT_READ_EXTENSION = _env_float("RCON_READ_EXTENSION", 0.35)
DEFAULT_RETRIES = _env_int("RCON_RETRIES", 3)
STATUS_READ_EXTENSION = 1.0

BACKOFF_STEP = 0.150  # seconds, multiplied by the attempt number
READ_BUFFER_SIZE = 4096

TELL_PREFIX = os.environ.get("RCON_TELL_PREFIX", "[^5Gambling^7]")
POLLUTION_TOKEN = "sv_iw4madmin_in"
DVAR_MAX_ATTEMPTS = 3

GATEWAY_SECRET = os.environ.get("GATEWAY_SECRET", "")


def backoff_delay(attempt: int) -> float:
    """Linear backoff after the zero-based ``attempt``."""
    return (attempt + 1) * BACKOFF_STEP


# ── Server list ───────────────────────────────────────────────

class ServerConfig(BaseModel):
    id: str
    host: str
    port: int
    rcon_password: str


def load_server_list() -> list[ServerConfig]:
    """Load game servers from GAME_SERVERS (JSON array), else RCON_* vars."""
    raw = os.environ.get("GAME_SERVERS", "")
    if raw:
        try:
            return [ServerConfig(**entry) for entry in json.loads(raw)]
        except (json.JSONDecodeError, TypeError, ValidationError) as e:
            logger.warning(f"Invalid GAME_SERVERS, using defaults: {e}")

    host = os.environ.get("RCON_HOST", DEFAULT_HOST)
    port = _env_int("RCON_PORT", 28960)
    password = os.environ.get("RCON_PASSWORD", "")
    return [ServerConfig(id="server-1", host=host, port=port, rcon_password=password)]
