"""
RCON Pool: multi-server RCON management.

Keeps one RconClient per configured game server and summarizes their
state. Each client has its own socket and lock, so different servers can
be queried from different threads at once.
"""

import logging
import threading
from typing import Optional, Union

from .client import RconClient
from .config import ServerConfig
from .errors import RconError

logger = logging.getLogger("codrcon.pool")


class RconPool:
    """
    Manages RCON connections to multiple game servers.
    """

    def __init__(self, servers: list[Union[ServerConfig, dict]]):
        """
        servers: list of ServerConfig or {"id", "host", "port", "rcon_password"}
        """
        configs = [s if isinstance(s, ServerConfig) else ServerConfig(**s) for s in servers]
        self.servers: dict[str, ServerConfig] = {s.id: s for s in configs}
        self._clients: dict[str, RconClient] = {}
        self._lock = threading.Lock()

    def get_server(self, server_id: str) -> Optional[ServerConfig]:
        return self.servers.get(server_id)

    def client(self, server_id: str) -> Optional[RconClient]:
        """Connected client for ``server_id``, dialed on first use."""
        server = self.servers.get(server_id)
        if server is None:
            return None
        with self._lock:
            client = self._clients.get(server_id)
            if client is None or not client.connected:
                client = RconClient.connect(server.host, server.port, server.rcon_password)
                self._clients[server_id] = client
            return client

    def send_rcon(self, server_id: str, command: str) -> str:
        """Send a raw RCON command and return the reply as text."""
        client = self.client(server_id)
        if client is None:
            logger.error(f"Unknown server: {server_id}")
            return ""
        name, _, args = command.strip().partition(" ")
        return "\n".join(client.send_command(name, args or None))

    def get_status(self, server_id: str) -> dict:
        """Summarize a server via getstatus plus the rcon status table."""
        offline = {"online": False, "players": [], "info": {}}
        try:
            client = self.client(server_id)
            if client is None:
                return offline
            info = client.get_status()
            status = client.status()
        except RconError as e:
            logger.warning(f"Server {server_id} unreachable: {e}")
            return offline

        return {
            "online": True,
            "info": info.model_dump(mode="json"),
            "map": status.map or info.map_name,
            "players": [p.model_dump(mode="json") for p in status.players],
        }

    def list_all(self) -> list[dict]:
        """List all servers with their current status."""
        result = []
        for server_id, server in self.servers.items():
            status = self.get_status(server_id)
            result.append({
                "id": server_id,
                "host": server.host,
                "port": server.port,
                "online": status.get("online", False),
                "player_count": len(status.get("players", [])),
                "players": status.get("players", []),
                "map": status.get("map", "unknown"),
            })
        return result

    def close(self):
        with self._lock:
            for client in self._clients.values():
                client.close()
            self._clients.clear()
