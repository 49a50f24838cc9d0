#!/usr/bin/env python3
"""
codrcon command line.

Usage:
    python -m codrcon --host 1.2.3.4 --port 28960 --password secret status
    python -m codrcon get sv_hostname
    python -m codrcon set sv_hostname "My Server"
    python -m codrcon say "Restart in 5 minutes"

Credentials default to RCON_HOST / RCON_PORT / RCON_PASSWORD.
"""

import argparse
import json
import logging
import sys

from . import config
from .client import RconClient
from .errors import RconError
from .text import strip_color_codes

logger = logging.getLogger("codrcon.cli")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="codrcon", description="RCON client for CoD / Quake 3 servers")
    parser.add_argument("--host", default=config.DEFAULT_HOST)
    parser.add_argument("--port", default=config.DEFAULT_PORT)
    parser.add_argument("--password", default=config.DEFAULT_PASSWORD)
    parser.add_argument("--timeout", type=float, default=config.DEFAULT_READ_TIMEOUT)
    parser.add_argument("--json", action="store_true", help="Print results as JSON")
    parser.add_argument("-v", "--verbose", action="store_true")

    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("status", help="Map and player table")
    sub.add_parser("info", help="getinfo reply")
    sub.add_parser("serverinfo", help="getstatus reply")

    get = sub.add_parser("get", help="Read a dvar")
    get.add_argument("name")

    set_ = sub.add_parser("set", help="Set a dvar")
    set_.add_argument("name")
    set_.add_argument("value")

    say = sub.add_parser("say", help="Broadcast a message")
    say.add_argument("message")

    tell = sub.add_parser("tell", help="Private message to a client slot")
    tell.add_argument("client_num", type=int)
    tell.add_argument("message")

    kick = sub.add_parser("kick", help="Kick a player with a reason")
    kick.add_argument("player")
    kick.add_argument("reason")

    raw = sub.add_parser("raw", help="Send any rcon command")
    raw.add_argument("name")
    raw.add_argument("args", nargs="*")
    return parser


def _print_status(status, as_json: bool):
    if as_json:
        print(status.model_dump_json(indent=2))
        return
    print(f"map: {status.map}")
    print(f"{'num':>3} {'score':>5} {'ping':>4}  name")
    for p in status.players:
        print(f"{p.client_num:>3} {p.score:>5} {str(p.ping):>4}  {strip_color_codes(p.name)}")


def run(args, client: RconClient):
    if args.command == "status":
        _print_status(client.status(), args.json)
    elif args.command in ("info", "serverinfo"):
        result = client.get_info() if args.command == "info" else client.get_status()
        if args.json:
            print(result.model_dump_json(indent=2))
        else:
            for key, value in result.model_dump().items():
                print(f"{key}: {value}")
    elif args.command == "get":
        value = client.get_dvar(args.name)
        print(json.dumps({"name": args.name, "value": value}) if args.json else value)
    elif args.command == "set":
        client.set_dvar(args.name, args.value)
    elif args.command == "say":
        client.say(args.message)
    elif args.command == "tell":
        client.tell(args.client_num, args.message)
    elif args.command == "kick":
        client.kick(args.player, args.reason)
    elif args.command == "raw":
        for line in client.send_command(args.name, " ".join(args.args) or None):
            print(line)


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
    )
    try:
        with RconClient.connect(args.host, args.port, args.password, timeout=args.timeout) as client:
            run(args, client)
    except RconError as e:
        logger.error(f"{args.command} failed: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
