"""
Decoders for the loosely formatted text the server sends back.

None of these raise on malformed input: rows that don't fit are skipped and
missing fields fall back to zero values, since servers drift in format and
mods echo extra lines into replies.
"""

import re
from typing import Optional

from .config import POLLUTION_TOKEN
from .models import LOAD_PING, Player, ServerInfo, ServerStatus, ServerStatusInfo
from .text import strip_color_codes

INFO_BANNER = "inforesponse"
STATUS_BANNER = "statusresponse"


# ── Scalar helpers ────────────────────────────────────────────

def to_int(value: Optional[str]) -> int:
    """Parse an integer, 0 on anything unparseable."""
    try:
        return int(value.strip())
    except (AttributeError, ValueError):
        return 0


def to_bool(value: Optional[str]) -> bool:
    if value is None:
        return False
    value = value.strip()
    return value == "1" or value.lower() == "true"


# ── status ────────────────────────────────────────────────────

_STATUS_HEADER = re.compile(r"^num\s+score\s+ping", re.IGNORECASE)
_PLAYER_ROW = re.compile(
    r"(?P<num>\d+)\s+"
    r"(?P<score>-?\d+)\s+"
    r"(?:(?P<bot>\w+)\s+)?"
    r"(?P<ping>\d+|LOAD)\s+"
    r"(?P<guid>[0-9a-fA-F]+)\s+"
    r"(?P<name>.+?)\s+"
    r"(?P<lastmsg>\d+)\s+"
    r"(?P<ipport>\S+)\s+"
    r"(?P<qport>\d+)\s+"
    r"(?P<rate>\d+)"
)


def parse_map_name(lines: list[str]) -> str:
    for line in lines:
        line = line.strip()
        if line.lower().startswith("map:"):
            return line.split(":", 1)[1].strip()
    return ""


def parse_player_row(line: str) -> Optional[Player]:
    """Decode one status table row, or None if it doesn't fit."""
    line = line.strip()
    if not line or not line[0].isdigit():
        return None
    match = _PLAYER_ROW.search(line)
    if match is None:
        return None

    ip, _, port = match.group("ipport").partition(":")
    ping_raw = match.group("ping")
    ping = ping_raw if ping_raw == LOAD_PING else int(ping_raw)

    return Player(
        client_num=to_int(match.group("num")),
        name=match.group("name"),
        ping=ping,
        score=to_int(match.group("score")),
        ip=ip,
        port=to_int(port),
        qport=to_int(match.group("qport")),
        guid=match.group("guid"),
        last_msg=to_int(match.group("lastmsg")),
        rate=to_int(match.group("rate")),
    )


def parse_status(lines: list[str]) -> ServerStatus:
    """Decode a ``status`` reply: map line, table header, player rows."""
    start = 0
    for i, line in enumerate(lines):
        if _STATUS_HEADER.match(line.strip()):
            start = i + 1
            break

    players = []
    for line in lines[start:]:
        player = parse_player_row(line)
        if player is not None:
            players.append(player)

    return ServerStatus(map=parse_map_name(lines), players=players, raw=list(lines))


# ── getinfo / getstatus ───────────────────────────────────────

def join_kv_lines(lines: list[str], banner: str) -> str:
    """
    Reassemble the backslash block, skipping the banner line.

    Falls back to the last line when nothing contains a backslash.
    """
    data = ""
    for line in lines:
        line = line.strip()
        if line.lower() == banner.lower():
            continue
        if "\\" in line:
            data += line
    if not data and lines:
        data = lines[-1].strip()
    return data


def parse_kv(line: str) -> dict[str, str]:
    """Split ``\\key\\value\\key\\value`` into a dict of color-stripped values."""
    parts = line.split("\\")
    if parts and parts[0] == "":
        parts = parts[1:]
    kv = {}
    for i in range(0, len(parts) - 1, 2):
        key = parts[i].strip()
        if not key:
            continue
        kv[key] = strip_color_codes(parts[i + 1].strip())
    return kv


def parse_kv_block(lines: list[str], banner: str) -> dict[str, str]:
    return parse_kv(join_kv_lines(lines, banner))


def server_info_from_kv(kv: dict[str, str]) -> ServerInfo:
    return ServerInfo(
        net_field_chk=to_int(kv.get("netfieldchk")),
        protocol=to_int(kv.get("protocol")),
        session_mode=to_int(kv.get("sessionmode")),
        hostname=kv.get("hostname", ""),
        map_name=kv.get("mapname", ""),
        is_in_game=to_bool(kv.get("isInGame")),
        max_clients=to_int(kv.get("com_maxclients")),
        game_type=kv.get("gametype", ""),
        hw=to_int(kv.get("hw")),
        mod=to_bool(kv.get("mod")),
        voice=to_bool(kv.get("voice")),
        sec_key=kv.get("seckey", ""),
        sec_id=kv.get("secid", ""),
        host_addr=kv.get("hostaddr", ""),
    )


def server_status_info_from_kv(kv: dict[str, str]) -> ServerStatusInfo:
    if "sv_privateClientsForClients" in kv:
        private_for_users = to_int(kv["sv_privateClientsForClients"])
    else:
        private_for_users = to_int(kv.get("sv_privateClientsForUsers"))

    return ServerStatusInfo(
        com_max_clients=to_int(kv.get("com_maxclients")),
        game_type=kv.get("g_gametype", ""),
        random_seed=to_int(kv.get("g_randomSeed")),
        game_name=kv.get("gamename", ""),
        map_name=kv.get("mapname", ""),
        playlist_enabled=to_bool(kv.get("playlist_enabled")),
        playlist_entry=to_int(kv.get("playlist_entry")),
        protocol=to_int(kv.get("protocol")),
        scr_team_ff_type=to_int(kv.get("scr_team_fftype")),
        short_version=to_bool(kv.get("shortversion")),
        sv_allow_aim_assist=to_bool(kv.get("sv_allowAimAssist")),
        sv_allow_anonymous=to_bool(kv.get("sv_allowAnonymous")),
        sv_client_fps_limit=to_int(kv.get("sv_clientFpsLimit")),
        sv_disable_client_console=to_bool(kv.get("sv_disableClientConsole")),
        sv_hostname=kv.get("sv_hostname", ""),
        sv_max_clients=to_int(kv.get("sv_maxclients")),
        sv_max_ping=to_int(kv.get("sv_maxPing")),
        sv_min_ping=to_int(kv.get("sv_minPing")),
        sv_patch_dsr50=to_bool(kv.get("sv_patch_dsr50")),
        sv_private_clients=to_int(kv.get("sv_privateClients")),
        sv_private_clients_for_users=private_for_users,
        sv_pure=to_bool(kv.get("sv_pure")),
        sv_voice=to_bool(kv.get("sv_voice")),
        password_enabled=to_bool(kv.get("pswrd")),
        mod_enabled=to_bool(kv.get("mod")),
    )


# ── dvars ─────────────────────────────────────────────────────

class DvarMatcher:
    """
    Recognizes the value of one dvar in a reply.

    Two echo formats are accepted, ``name is: "value"`` and
    ``name: value`` / ``name=value``. Lines that match neither and don't
    carry the IW4MAdmin pollution token are kept as a fallback answer; only
    the first such line is ever kept.
    """

    def __init__(self, name: str, pollution_token: str = POLLUTION_TOKEN):
        escaped = re.escape(name.strip())
        self.patterns = (
            re.compile(rf'^{escaped}\s+is:\s+"?(?P<val>.*?)"?(?:\s|$)', re.IGNORECASE),
            re.compile(rf'^{escaped}\s*[:=]\s*"?(?P<val>.*?)"?$', re.IGNORECASE),
        )
        self.pollution_token = pollution_token.lower()
        self.fallback: Optional[str] = None

    def is_polluted(self, line: str) -> bool:
        return self.pollution_token in line.lower()

    def scan(self, lines: list[str]) -> Optional[str]:
        """Return the matched value, or None after recording any fallback."""
        for line in lines:
            clean = strip_color_codes(line).strip()
            if not clean:
                continue
            for pattern in self.patterns:
                match = pattern.search(clean)
                if match:
                    return strip_color_codes(match.group("val"))
            if not self.is_polluted(clean) and self.fallback is None:
                self.fallback = clean
        return None

    def needs_retry(self, lines: list[str]) -> bool:
        return any(self.is_polluted(line) for line in lines)
