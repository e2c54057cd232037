from __future__ import annotations

from datetime import datetime, time

import pytest

from accesslimit.timewindow import DaytimeWindow, is_daytime


@pytest.mark.parametrize(
    "now, expected",
    [
        (time(10, 0), True),
        (time(8, 0, 0, 1), True),
        (time(19, 59, 59), True),
        (time(8, 0), False),
        (time(20, 0), False),
        (time(7, 59, 59), False),
        (time(23, 0), False),
        (time(0, 0), False),
    ],
)
def test_boundaries_are_exclusive(now: time, expected: bool) -> None:
    assert is_daytime(now, 8, 20) is expected


@pytest.mark.parametrize("now", [time(0, 30), time(12, 0), time(22, 0)])
def test_inverted_window_never_opens(now: time) -> None:
    assert is_daytime(now, 20, 8) is False
    assert is_daytime(now, 12, 12) is False


def test_window_uses_injected_clock() -> None:
    current = {"value": datetime(2024, 5, 1, 10, 0)}
    window = DaytimeWindow(8, 20, clock=lambda: current["value"])

    assert window.is_daytime() is True

    current["value"] = datetime(2024, 5, 1, 23, 0)
    assert window.is_daytime() is False
