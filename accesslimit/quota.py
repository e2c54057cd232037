"""Quota consumption engine.

A consume request picks its candidate record from the user store during the
daytime window and from the secondary snapshot otherwise. Whether the
decrement is persisted is decided separately: only users that exist in the
user store are saved back, everyone else receives a decremented copy that is
never stored.
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Dict, Iterator, List, Optional, Protocol

from .models import User
from .snapshot import SecondarySnapshot
from .timewindow import DaytimeWindow

logger = logging.getLogger("accesslimit.quota")


class UserStore(Protocol):
    """Durable keyed storage for users."""

    def save(self, user: User) -> User:
        ...

    def find_by_id(self, user_id: str) -> Optional[User]:
        ...

    def find_all(self) -> List[User]:
        ...

    def delete_by_id(self, user_id: str) -> None:
        ...


class QuotaOutcome(str, Enum):
    """Result of a single consumption attempt."""

    CONSUMED = "consumed"
    EXHAUSTED = "exhausted"
    NOT_FOUND = "not_found"


@dataclass(frozen=True)
class ConsumeResult:
    outcome: QuotaOutcome
    user: Optional[User] = None

    @property
    def consumed(self) -> bool:
        return self.outcome is QuotaOutcome.CONSUMED


_NOT_FOUND = ConsumeResult(QuotaOutcome.NOT_FOUND)
_EXHAUSTED = ConsumeResult(QuotaOutcome.EXHAUSTED)


@dataclass
class _LockEntry:
    lock: threading.Lock = field(default_factory=threading.Lock)
    holders: int = 0


class KeyedLock:
    """Hands out one lock per key so unrelated users never wait on each other.

    An entry lives only while some caller holds or waits on it.
    """

    def __init__(self) -> None:
        self._locks: Dict[str, _LockEntry] = {}
        self._guard = threading.Lock()

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)

    @contextmanager
    def hold(self, key: str) -> Iterator[None]:
        with self._guard:
            entry = self._locks.get(key)
            if entry is None:
                entry = self._locks[key] = _LockEntry()
            entry.holders += 1
        try:
            with entry.lock:
                yield
        finally:
            with self._guard:
                entry.holders -= 1
                if entry.holders == 0:
                    del self._locks[key]


class QuotaEngine:
    """Consume, decrement and report per-user quota across both user sources."""

    def __init__(
        self,
        store: UserStore,
        snapshot: SecondarySnapshot,
        window: DaytimeWindow,
        locks: Optional[KeyedLock] = None,
    ) -> None:
        self._store = store
        self._snapshot = snapshot
        self._window = window
        self._locks = locks if locks is not None else KeyedLock()

    @property
    def snapshot(self) -> SecondarySnapshot:
        return self._snapshot

    def consume_quota(self, user_id: str) -> ConsumeResult:
        """Consume one unit of quota for ``user_id``."""

        if not user_id:
            raise ValueError("User identifier must not be empty")

        logger.info("Consuming quota for user with ID: %s", user_id)
        with self._locks.hold(user_id):
            if self._window.is_daytime():
                candidate = self._store.find_by_id(user_id)
            else:
                candidate = self._snapshot.find_by_id(user_id)

            if candidate is None:
                logger.info("User %s not found in the active source", user_id)
                return _NOT_FOUND

            return self.decrement_quota(candidate)

    def decrement_quota(self, user: User) -> ConsumeResult:
        """Decrement ``user`` by one, persisting only if the store knows the user."""

        logger.info("Decrementing quota for user: %s", user.id)
        if user.quota <= 0:
            logger.info("User %s has reached quota limit. User is locked.", user.id)
            return _EXHAUSTED

        updated = replace(user, quota=user.quota - 1)
        if self._store.find_by_id(user.id) is not None:
            updated = self._store.save(updated)
        logger.info("Quota consumed for user %s. Remaining quota: %s", updated.id, updated.quota)
        return ConsumeResult(QuotaOutcome.CONSUMED, updated)

    def get_users_quota(self) -> Dict[str, int]:
        """Return remaining quota per user id; stored users win over snapshot entries."""

        logger.info("Retrieving quota status for all users")
        quotas: Dict[str, int] = {user.id: user.quota for user in self._store.find_all()}
        for user in self._snapshot:
            quotas.setdefault(user.id, user.quota)

        logger.info("Quota status for all users:")
        for user_id, quota in quotas.items():
            logger.info("User: %s, Quota: %s", user_id, quota)
        return quotas


__all__ = [
    "ConsumeResult",
    "KeyedLock",
    "QuotaEngine",
    "QuotaOutcome",
    "UserStore",
]
