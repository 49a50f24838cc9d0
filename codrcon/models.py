from datetime import datetime
from typing import Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from . import config

LOAD_PING = "LOAD"


def _now() -> datetime:
    return datetime.now()


# ── Command policy ────────────────────────────────────────────

class CommandSettings(BaseModel):
    """Per-call retry / timeout policy for one RCON exchange."""

    retries: int = config.DEFAULT_RETRIES
    read_timeout: Optional[float] = None  # None = connection default
    read_extension: float = config.DEFAULT_READ_EXTENSION
    require_success: bool = False

    def required(self) -> "CommandSettings":
        """Copy that insists on a non-empty reply."""
        retries = self.retries if self.retries > 0 else 2
        return self.model_copy(update={"require_success": True, "retries": retries})

    def with_read_extension(self, seconds: float) -> "CommandSettings":
        return self.model_copy(update={"read_extension": max(0.0, seconds)})


# ── Status table ──────────────────────────────────────────────

class Player(BaseModel):
    model_config = ConfigDict(frozen=True)

    client_num: int
    name: str
    ping: Union[int, Literal["LOAD"]]
    score: int
    ip: str
    port: int
    qport: int
    guid: str
    last_msg: int
    rate: int

    @property
    def is_loading(self) -> bool:
        return self.ping == LOAD_PING


class ServerStatus(BaseModel):
    model_config = ConfigDict(frozen=True)

    map: str = ""
    players: list[Player] = Field(default_factory=list)
    raw: list[str] = Field(default_factory=list)
    retrieved_at: datetime = Field(default_factory=_now)


# ── Key/value snapshots ───────────────────────────────────────

class ServerInfo(BaseModel):
    """Decoded ``getinfo`` reply."""

    model_config = ConfigDict(frozen=True)

    net_field_chk: int = 0
    protocol: int = 0
    session_mode: int = 0
    hostname: str = ""
    map_name: str = ""
    is_in_game: bool = False
    max_clients: int = 0
    game_type: str = ""
    hw: int = 0
    mod: bool = False
    voice: bool = False
    sec_key: str = ""
    sec_id: str = ""
    host_addr: str = ""
    retrieved_at: datetime = Field(default_factory=_now)


class ServerStatusInfo(BaseModel):
    """Decoded ``getstatus`` reply."""

    model_config = ConfigDict(frozen=True)

    com_max_clients: int = 0
    game_type: str = ""
    random_seed: int = 0
    game_name: str = ""
    map_name: str = ""
    playlist_enabled: bool = False
    playlist_entry: int = 0
    protocol: int = 0
    scr_team_ff_type: int = 0
    short_version: bool = False
    sv_allow_aim_assist: bool = False
    sv_allow_anonymous: bool = False
    sv_client_fps_limit: int = 0
    sv_disable_client_console: bool = False
    sv_hostname: str = ""
    sv_max_clients: int = 0
    sv_max_ping: int = 0
    sv_min_ping: int = 0
    sv_patch_dsr50: bool = False
    sv_private_clients: int = 0
    sv_private_clients_for_users: int = 0
    sv_pure: bool = False
    sv_voice: bool = False
    password_enabled: bool = False
    mod_enabled: bool = False
    retrieved_at: datetime = Field(default_factory=_now)
