import argparse
import os
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from accesslimit.config import ConfigurationError, load_quota_settings
from accesslimit.database import Database, resolve_database_path


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Create an access limiting user record")
    parser.add_argument("first_name", help="First name of the user")
    parser.add_argument("last_name", help="Last name of the user")
    parser.add_argument("--id", dest="user_id", default=None, help="Explicit user id (default: random UUID)")
    parser.add_argument(
        "--db",
        dest="db_path",
        default=None,
        help="Path to the SQLite database (defaults to ACCESSLIMIT_DB_PATH or data/accesslimit.sqlite3)",
    )
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)

    try:
        settings = load_quota_settings()
    except ConfigurationError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    db_env = args.db_path or os.getenv("ACCESSLIMIT_DB_PATH")
    db_path = resolve_database_path(db_env)

    database = Database(db_path)
    database.initialize()

    try:
        user = database.create_user(
            args.first_name,
            args.last_name,
            quota=settings.quota_limit,
            user_id=args.user_id,
        )
    except ValueError as exc:  # duplicates, etc.
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    print(f"Created user {user.id}: {user.first_name} {user.last_name} (quota {user.quota})")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
