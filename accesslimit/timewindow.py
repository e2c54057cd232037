"""Daytime window used to pick the user source for quota consumption."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, time
from typing import Callable


def is_daytime(now: time, start_hour: int, end_hour: int) -> bool:
    """Return ``True`` when ``now`` falls strictly between the two boundary hours.

    Both boundaries are exclusive, so ``start_hour:00`` and ``end_hour:00``
    count as night. A window whose start is not before its end never opens.
    """

    return time(start_hour, 0) < now < time(end_hour, 0)


@dataclass(frozen=True)
class DaytimeWindow:
    """Binds the configured boundary hours to a clock."""

    start_hour: int
    end_hour: int
    clock: Callable[[], datetime] = field(default=datetime.now, compare=False)

    def is_daytime(self) -> bool:
        # Local wall-clock time; tzinfo is dropped so aware clocks compare too.
        return is_daytime(self.clock().time(), self.start_hour, self.end_hour)


__all__ = ["DaytimeWindow", "is_daytime"]
