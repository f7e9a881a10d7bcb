"""Synchronisation defaults for platform user provisioning."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import time
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .env import optional_env_var
from .errors import ConfigurationError

DEFAULT_PLATFORM_ID = "platform"
DEFAULT_TIMEZONE = "UTC"
DEFAULT_WORKDAYS: tuple[int, ...] = (0, 1, 2, 3, 4)  # datetime.weekday(): Monday == 0
DEFAULT_WORKDAY_START = time(9, 0)
DEFAULT_WORKDAY_END = time(17, 0)
DEFAULT_MAX_CONFLICT_RETRIES = 3
DEFAULT_LEDGER_LIMIT = 100


@dataclass(frozen=True, slots=True)
class SyncConfig:
    platform_id: str = DEFAULT_PLATFORM_ID
    default_timezone: str = DEFAULT_TIMEZONE
    workdays: tuple[int, ...] = field(default=DEFAULT_WORKDAYS)
    workday_start: time = DEFAULT_WORKDAY_START
    workday_end: time = DEFAULT_WORKDAY_END
    max_conflict_retries: int = DEFAULT_MAX_CONFLICT_RETRIES
    ledger_limit: int = DEFAULT_LEDGER_LIMIT

    def __post_init__(self) -> None:
        validate_timezone(self.default_timezone)
        if self.workday_start >= self.workday_end:
            raise ConfigurationError("Working hours must start before they end")
        if any(day < 0 or day > 6 for day in self.workdays):  # noqa: PLR2004
            raise ConfigurationError("Workdays must be between 0 (Monday) and 6 (Sunday)")
        if self.max_conflict_retries < 0:
            raise ConfigurationError("max_conflict_retries must be non-negative")


def validate_timezone(name: str) -> str:
    try:
        ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ConfigurationError(f"Unknown time zone: {name!r}") from exc
    return name


def get_sync_config() -> SyncConfig:
    return SyncConfig(
        platform_id=optional_env_var("USERSYNC_PLATFORM_ID", DEFAULT_PLATFORM_ID)
        or DEFAULT_PLATFORM_ID,
        default_timezone=optional_env_var("USERSYNC_DEFAULT_TIMEZONE", DEFAULT_TIMEZONE)
        or DEFAULT_TIMEZONE,
    )
