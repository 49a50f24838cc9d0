"""
codrcon Gateway: FastAPI service exposing game servers' RCON over HTTP.

Read-only endpoints are public; commands that change server state require
the ``X-Gateway-Secret`` header to match ``GATEWAY_SECRET``.

Run with:
    uvicorn codrcon.gateway:app --port 8000
"""

import logging

from fastapi import Depends, FastAPI, Header, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from . import config
from .client import RconClient
from .errors import (
    ExhaustedRetriesError,
    InvalidArgumentError,
    RconError,
    RconTimeoutError,
    TransportError,
)
from .models import ServerInfo, ServerStatus, ServerStatusInfo
from .pool import RconPool

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
)
logger = logging.getLogger("codrcon.gateway")

app = FastAPI(title="codrcon gateway")

_pool = RconPool(config.load_server_list())


def get_pool() -> RconPool:
    return _pool


def get_gateway_secret() -> str:
    return config.GATEWAY_SECRET


def require_admin(
    x_gateway_secret: str = Header(default="", alias="X-Gateway-Secret"),
    secret: str = Depends(get_gateway_secret),
):
    if not secret or x_gateway_secret != secret:
        raise HTTPException(status_code=403, detail="Invalid gateway secret")


# ── Request bodies ────────────────────────────────────────────

class SayRequest(BaseModel):
    message: str


class TellRequest(BaseModel):
    client_num: int
    message: str


class KickRequest(BaseModel):
    player: str
    reason: str


class DvarSetRequest(BaseModel):
    name: str
    value: str


class RawCommandRequest(BaseModel):
    command: str
    args: str = ""


# ── Error mapping ─────────────────────────────────────────────

def _status_code(exc: RconError) -> int:
    if isinstance(exc, InvalidArgumentError):
        return 400
    if isinstance(exc, (RconTimeoutError, ExhaustedRetriesError)):
        return 504
    if isinstance(exc, TransportError):
        return 502
    return 500


@app.exception_handler(RconError)
async def rcon_error_handler(request: Request, exc: RconError):
    code = _status_code(exc)
    logger.warning(f"{request.url.path} failed ({code}): {exc}")
    return JSONResponse(status_code=code, content={"detail": str(exc)})


def _client(server_id: str, pool: RconPool) -> RconClient:
    client = pool.client(server_id)
    if client is None:
        raise HTTPException(status_code=404, detail=f"Unknown server: {server_id}")
    return client


# ── Public ────────────────────────────────────────────────────

@app.get("/api/health")
def health():
    return {"status": "ok", "service": "codrcon-gateway"}


@app.get("/api/servers")
def server_list(pool: RconPool = Depends(get_pool)):
    return {"servers": pool.list_all()}


@app.get("/api/servers/{server_id}/status", response_model=ServerStatus)
def server_status(server_id: str, pool: RconPool = Depends(get_pool)):
    return _client(server_id, pool).status()


@app.get("/api/servers/{server_id}/info", response_model=ServerInfo)
def server_info(server_id: str, pool: RconPool = Depends(get_pool)):
    return _client(server_id, pool).get_info()


@app.get("/api/servers/{server_id}/serverinfo", response_model=ServerStatusInfo)
def server_status_info(server_id: str, pool: RconPool = Depends(get_pool)):
    return _client(server_id, pool).get_status()


@app.get("/api/servers/{server_id}/dvars/{name}")
def get_dvar(server_id: str, name: str, pool: RconPool = Depends(get_pool)):
    return {"name": name, "value": _client(server_id, pool).get_dvar(name)}


# ── Admin ─────────────────────────────────────────────────────

@app.post("/api/servers/{server_id}/say", dependencies=[Depends(require_admin)])
def say(server_id: str, body: SayRequest, pool: RconPool = Depends(get_pool)):
    _client(server_id, pool).say(body.message)
    return {"ok": True}


@app.post("/api/servers/{server_id}/tell", dependencies=[Depends(require_admin)])
def tell(server_id: str, body: TellRequest, pool: RconPool = Depends(get_pool)):
    _client(server_id, pool).tell(body.client_num, body.message)
    return {"ok": True}


@app.post("/api/servers/{server_id}/kick", dependencies=[Depends(require_admin)])
def kick(server_id: str, body: KickRequest, pool: RconPool = Depends(get_pool)):
    _client(server_id, pool).kick(body.player, body.reason)
    logger.info(f"Kicked {body.player} on {server_id}: {body.reason}")
    return {"ok": True}


@app.post("/api/servers/{server_id}/dvars", dependencies=[Depends(require_admin)])
def set_dvar(server_id: str, body: DvarSetRequest, pool: RconPool = Depends(get_pool)):
    _client(server_id, pool).set_dvar(body.name, body.value)
    return {"ok": True}


@app.post("/api/servers/{server_id}/rcon", dependencies=[Depends(require_admin)])
def raw_command(server_id: str, body: RawCommandRequest, pool: RconPool = Depends(get_pool)):
    lines = _client(server_id, pool).send_command(body.command, body.args or None)
    return {"lines": lines}
