"""Domain models for the access limiting service."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone


def _new_user_id() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class User:
    """A rate-limited user and the number of consumptions it has left."""

    first_name: str
    last_name: str
    quota: int
    id: str = field(default_factory=_new_user_id)
    last_login_time_utc: datetime = field(default_factory=_utcnow)


__all__ = ["User"]
