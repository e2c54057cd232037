"""SQLite-backed persistence for user quota records."""
from __future__ import annotations

import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

from .models import User


def _ensure_directory(path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)


def resolve_database_path(env_value: Optional[str]) -> Path:
    """Resolve the on-disk path for the application database."""

    if env_value:
        return Path(env_value).expanduser().resolve(strict=False)
    base_dir = Path(__file__).resolve().parent.parent / "data"
    return (base_dir / "accesslimit.sqlite3").resolve(strict=False)


def _serialize_datetime(value: datetime) -> str:
    return value.isoformat()


def _parse_datetime(value: str) -> datetime:
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class Database:
    """Simple wrapper around SQLite for persisting users and their quota."""

    def __init__(self, path: Path) -> None:
        _ensure_directory(path)
        self._path = path

    @property
    def path(self) -> Path:
        return self._path

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._path, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        return conn

    def initialize(self) -> None:
        """Create the required tables if they do not already exist."""

        with self._connect() as conn:
            conn.executescript(
                """
                CREATE TABLE IF NOT EXISTS users (
                    id TEXT PRIMARY KEY,
                    first_name TEXT NOT NULL,
                    last_name TEXT NOT NULL,
                    last_login_time_utc TEXT NOT NULL,
                    quota INTEGER NOT NULL
                );
                """
            )

    # ------------------------------------------------------------------
    # Store contract used by the quota engine
    # ------------------------------------------------------------------
    def save(self, user: User) -> User:
        """Insert or overwrite ``user`` and return the stored record."""

        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO users (id, first_name, last_name, last_login_time_utc, quota)
                VALUES (?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    first_name = excluded.first_name,
                    last_name = excluded.last_name,
                    last_login_time_utc = excluded.last_login_time_utc,
                    quota = excluded.quota
                """,
                (
                    user.id,
                    user.first_name,
                    user.last_name,
                    _serialize_datetime(user.last_login_time_utc),
                    user.quota,
                ),
            )

        stored = self.find_by_id(user.id)
        if stored is None:
            raise RuntimeError("Failed to load user after saving")
        return stored

    def find_by_id(self, user_id: str) -> Optional[User]:
        with self._connect() as conn:
            row = conn.execute("SELECT * FROM users WHERE id = ?", (user_id,)).fetchone()
        if row is None:
            return None
        return self._row_to_user(row)

    def find_all(self) -> List[User]:
        with self._connect() as conn:
            rows = conn.execute("SELECT * FROM users ORDER BY rowid").fetchall()
        return [self._row_to_user(row) for row in rows]

    def delete_by_id(self, user_id: str) -> None:
        with self._connect() as conn:
            conn.execute("DELETE FROM users WHERE id = ?", (user_id,))

    # ------------------------------------------------------------------
    # Record management
    # ------------------------------------------------------------------
    def create_user(
        self,
        first_name: str,
        last_name: str,
        *,
        quota: int,
        user_id: Optional[str] = None,
    ) -> User:
        """Create a new user with a full quota."""

        normalized_first = first_name.strip()
        normalized_last = last_name.strip()
        if not normalized_first or not normalized_last:
            raise ValueError("First and last name must not be empty")
        if quota < 0:
            raise ValueError("Quota must not be negative")
        if user_id == "":
            raise ValueError("User id must not be empty")

        if user_id is not None:
            user = User(first_name=normalized_first, last_name=normalized_last, quota=quota, id=user_id)
        else:
            user = User(first_name=normalized_first, last_name=normalized_last, quota=quota)

        with self._connect() as conn:
            try:
                conn.execute(
                    """
                    INSERT INTO users (id, first_name, last_name, last_login_time_utc, quota)
                    VALUES (?, ?, ?, ?, ?)
                    """,
                    (
                        user.id,
                        user.first_name,
                        user.last_name,
                        _serialize_datetime(user.last_login_time_utc),
                        user.quota,
                    ),
                )
            except sqlite3.IntegrityError as exc:
                raise ValueError("A user with that id already exists") from exc

        return user

    def get_user(self, user_id: str) -> Optional[User]:
        """Return the stored user for the record management endpoints."""

        return self.find_by_id(user_id)

    def update_user(self, user_id: str, *, first_name: str, last_name: str) -> Optional[User]:
        """Update the display name of an existing user.

        Quota and login timestamp are left untouched. Returns ``None`` when no
        user with ``user_id`` exists.
        """

        normalized_first = first_name.strip()
        normalized_last = last_name.strip()
        if not normalized_first or not normalized_last:
            raise ValueError("First and last name must not be empty")

        with self._connect() as conn:
            cursor = conn.execute(
                "UPDATE users SET first_name = ?, last_name = ? WHERE id = ?",
                (normalized_first, normalized_last, user_id),
            )
            if cursor.rowcount == 0:
                return None

        return self.find_by_id(user_id)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _row_to_user(self, row: sqlite3.Row) -> User:
        return User(
            id=str(row["id"]),
            first_name=str(row["first_name"]),
            last_name=str(row["last_name"]),
            last_login_time_utc=_parse_datetime(str(row["last_login_time_utc"])),
            quota=int(row["quota"]),
        )


__all__ = ["Database", "resolve_database_path"]
