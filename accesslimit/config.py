"""Configuration for the quota consumption engine."""
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

DEFAULT_QUOTA_LIMIT = 5
DEFAULT_DAYTIME_START_HOUR = 9
DEFAULT_DAYTIME_END_HOUR = 17


class ConfigurationError(RuntimeError):
    """Raised when the service is started with invalid settings."""


def _env_int(name: str, value: Optional[str], default: int) -> int:
    if value is None or value.strip() == "":
        return default
    try:
        return int(value)
    except ValueError as exc:
        raise ConfigurationError(f"Invalid integer value {value!r} for {name}") from exc


def _validate_hour(name: str, value: int) -> int:
    if not 0 <= value <= 23:
        raise ConfigurationError(f"{name} must be between 0 and 23, got {value}")
    return value


@dataclass(frozen=True)
class QuotaSettings:
    """Quota ceiling and daytime window boundaries."""

    quota_limit: int = DEFAULT_QUOTA_LIMIT
    daytime_start_hour: int = DEFAULT_DAYTIME_START_HOUR
    daytime_end_hour: int = DEFAULT_DAYTIME_END_HOUR

    def __post_init__(self) -> None:
        if self.quota_limit < 0:
            raise ConfigurationError("quota_limit must not be negative")
        _validate_hour("daytime_start_hour", self.daytime_start_hour)
        _validate_hour("daytime_end_hour", self.daytime_end_hour)


def load_quota_settings() -> QuotaSettings:
    """Load quota settings from environment variables."""

    return QuotaSettings(
        quota_limit=_env_int(
            "ACCESSLIMIT_QUOTA_LIMIT", os.getenv("ACCESSLIMIT_QUOTA_LIMIT"), DEFAULT_QUOTA_LIMIT
        ),
        daytime_start_hour=_env_int(
            "ACCESSLIMIT_DAYTIME_START_HOUR",
            os.getenv("ACCESSLIMIT_DAYTIME_START_HOUR"),
            DEFAULT_DAYTIME_START_HOUR,
        ),
        daytime_end_hour=_env_int(
            "ACCESSLIMIT_DAYTIME_END_HOUR",
            os.getenv("ACCESSLIMIT_DAYTIME_END_HOUR"),
            DEFAULT_DAYTIME_END_HOUR,
        ),
    )


def resolve_snapshot_path(env_value: Optional[str]) -> Optional[Path]:
    """Return the configured snapshot seed file, if any."""

    if env_value is None or env_value.strip() == "":
        return None
    return Path(env_value).expanduser().resolve(strict=False)


__all__ = [
    "ConfigurationError",
    "QuotaSettings",
    "load_quota_settings",
    "resolve_snapshot_path",
]
