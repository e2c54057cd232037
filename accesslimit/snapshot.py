"""Read-only snapshot of users from the secondary index."""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Iterable, Iterator, Optional, Tuple

import yaml

from .config import ConfigurationError
from .models import User

logger = logging.getLogger("accesslimit.snapshot")


class SecondarySnapshot:
    """Immutable collection of users loaded once at startup."""

    def __init__(self, users: Iterable[User]) -> None:
        self._users: Tuple[User, ...] = tuple(users)

    def find_by_id(self, user_id: str) -> Optional[User]:
        for user in self._users:
            if user.id == user_id:
                return user
        return None

    def __iter__(self) -> Iterator[User]:
        return iter(self._users)

    def __len__(self) -> int:
        return len(self._users)


def _parse_timestamp(value: object) -> datetime:
    if isinstance(value, datetime):
        parsed = value
    else:
        try:
            parsed = datetime.fromisoformat(str(value))
        except ValueError as exc:
            raise ConfigurationError(f"Invalid last_login_time_utc value {value!r}") from exc
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _parse_quota(value: object) -> int:
    if isinstance(value, bool):
        raise ConfigurationError(f"Invalid quota value {value!r}")
    try:
        quota = int(value)  # type: ignore[arg-type]
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"Invalid quota value {value!r}") from exc
    if quota < 0:
        raise ConfigurationError(f"Snapshot quota must not be negative, got {quota}")
    return quota


def _user_from_dict(data: object, *, quota_limit: int) -> User:
    if not isinstance(data, dict):
        raise ConfigurationError("Each snapshot user must be a mapping of fields")

    missing = {"first_name", "last_name"} - data.keys()
    if missing:
        raise ConfigurationError(
            f"Missing required snapshot user fields: {', '.join(sorted(missing))}"
        )

    fields: Dict[str, object] = {
        "first_name": str(data["first_name"]),
        "last_name": str(data["last_name"]),
        "quota": _parse_quota(data.get("quota", quota_limit)),
    }
    if data.get("id") is not None:
        fields["id"] = str(data["id"])
    if data.get("last_login_time_utc") is not None:
        fields["last_login_time_utc"] = _parse_timestamp(data["last_login_time_utc"])
    return User(**fields)  # type: ignore[arg-type]


def _log_loaded(users: Iterable[User]) -> None:
    for user in users:
        logger.info("Retrieved user from secondary index: %s", user)


def default_snapshot(quota_limit: int) -> SecondarySnapshot:
    """Return the built-in snapshot used when no seed file is configured."""

    logger.info("Retrieving users from secondary index")
    snapshot = SecondarySnapshot(
        [
            User(first_name="John", last_name="Doe", quota=quota_limit),
            User(first_name="Jane", last_name="Smith", quota=quota_limit),
        ]
    )
    _log_loaded(snapshot)
    return snapshot


def load_snapshot(path: Path, *, quota_limit: int) -> SecondarySnapshot:
    """Load snapshot users from a YAML file with a top-level ``users`` list."""

    logger.info("Retrieving users from secondary index at %s", path)
    with path.open("r", encoding="utf-8") as handle:
        raw = yaml.safe_load(handle) or {}

    if not isinstance(raw, dict):
        raise ConfigurationError("Snapshot file must contain a mapping with a 'users' key")

    users_raw = raw.get("users") or []
    if not isinstance(users_raw, list):
        raise ConfigurationError("Snapshot file must define a list under the 'users' key")

    snapshot = SecondarySnapshot(_user_from_dict(item, quota_limit=quota_limit) for item in users_raw)
    _log_loaded(snapshot)
    return snapshot


__all__ = ["SecondarySnapshot", "default_snapshot", "load_snapshot"]
