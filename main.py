"""Command-line interface for the access limiting service."""

from __future__ import annotations
import argparse
import logging
import os
import sys
from typing import Sequence

import httpx

from accesslimit.database import Database, resolve_database_path

logger = logging.getLogger("accesslimit.main")

_DEFAULT_SERVICE_URL = "http://localhost:8080"


def _parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Access limiting service utilities")
    subparsers = parser.add_subparsers(dest="command")

    parser.set_defaults(command="serve")

    subparsers.add_parser("init-db", help="Initialise the user database")

    serve_parser = subparsers.add_parser("serve", help="Start the HTTP service")
    serve_parser.add_argument("--host", default="0.0.0.0", help="Bind address for the API")
    serve_parser.add_argument(
        "--port",
        type=int,
        default=8080,
        help="Port for the HTTP API (default: 8080)",
    )

    quota_parser = subparsers.add_parser("quota", help="Print remaining quota of every user")
    quota_parser.add_argument(
        "--service-url",
        default=None,
        help=f"Base URL of a running service (default: {_DEFAULT_SERVICE_URL})",
    )

    args_list = list(argv) if argv is not None else sys.argv[1:]
    known_commands = {"serve", "quota", "init-db"}

    if not args_list:
        args_list = ["serve"]
    else:
        first = args_list[0]
        if first in ("-h", "--help"):
            return parser.parse_args(args_list)
        if first not in known_commands:
            if any(flag in args_list for flag in ("-h", "--help")):
                return parser.parse_args(args_list)
            args_list = ["serve", *args_list]

    return parser.parse_args(args_list)


def _initialise_database() -> Database:
    db_path = resolve_database_path(os.getenv("ACCESSLIMIT_DB_PATH"))
    database = Database(db_path)
    database.initialize()
    logger.info("Database initialised at %s", db_path)
    return database


def _serve(*, database: Database, host: str, port: int) -> None:
    from accesslimit.api import create_app
    import uvicorn

    logger.info("Starting access limiting API on http://%s:%s", host, port)

    app = create_app(database=database)
    uvicorn.run(app, host=host, port=port, log_level="info")


def _show_quota(service_url: str | None) -> int:
    base_url = service_url or os.getenv("ACCESSLIMIT_SERVICE_URL") or _DEFAULT_SERVICE_URL
    endpoint = base_url.rstrip("/") + "/api/v1/users/quota"

    try:
        response = httpx.get(endpoint, timeout=10.0)
    except httpx.HTTPError as exc:
        print(f"Failed to contact access limiting service: {exc}")
        return 1

    if response.status_code != 200:
        print(f"Service responded with {response.status_code}: {response.text.strip()}")
        return 1

    try:
        quotas = response.json()
    except ValueError:
        print("Service returned an unexpected response format.")
        return 1

    if not quotas:
        print("No users are currently known to the service.")
        return 0

    print(f"{len(quotas)} user(s) found:")
    print(f"{'User ID':<40}  Quota")
    print("-" * 48)
    for user_id, quota in sorted(quotas.items()):
        print(f"{user_id:<40}  {quota}")
    return 0


def main(argv: Sequence[str] | None = None) -> None:
    """Entry point for CLI usage."""

    logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(message)s")

    args = _parse_args(argv)

    if args.command == "quota":
        raise SystemExit(_show_quota(args.service_url))

    database = _initialise_database()

    if args.command == "serve":
        _serve(database=database, host=args.host, port=args.port)
    elif args.command == "init-db":
        print("Database initialisation complete.")


if __name__ == "__main__":
    main()
