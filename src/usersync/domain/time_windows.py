"""Clocks and inclusive UTC windows over the sync run history."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Protocol

from usersync.domain.errors import ValidationError

Bounds = tuple[datetime | None, datetime | None]


class Clock(Protocol):
    def __call__(self) -> datetime: ...


def utcnow() -> datetime:
    return datetime.now(UTC)


def ensure_aware(value: datetime | None, *, label: str = "timestamp") -> datetime | None:
    if value is None:
        return None
    if value.tzinfo is None:
        raise ValidationError(f"{label} must include timezone information")
    return value.astimezone(UTC)


def checked_bounds(start: datetime | None, end: datetime | None) -> Bounds:
    """Normalise ``start <= run_at <= end`` bounds to UTC; either side may be open."""

    lower = ensure_aware(start, label="window start")
    upper = ensure_aware(end, label="window end")
    if lower is not None and upper is not None and lower > upper:
        raise ValidationError("window start must not be after its end")
    return lower, upper


def _as_utc(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=UTC)
    return moment.astimezone(UTC)


@dataclass(frozen=True, slots=True)
class TimeWindow:
    """Run history window as requested by an operator.

    ``lookback`` counts back from ``end`` (or from now) and can only move ``start``
    later, never earlier.
    """

    start: datetime | None = None
    end: datetime | None = None
    lookback: timedelta | None = None

    def __post_init__(self) -> None:
        if self.lookback is not None and self.lookback < timedelta(0):
            raise ValidationError("lookback must be non-negative")

    def resolve(self, *, clock: Clock = utcnow) -> Bounds:
        start, end = checked_bounds(self.start, self.end)
        if self.lookback is None:
            return start, end
        anchor = end if end is not None else _as_utc(clock())
        floor = anchor - self.lookback
        return checked_bounds(floor if start is None else max(start, floor), anchor)


__all__ = ["Bounds", "Clock", "TimeWindow", "checked_bounds", "ensure_aware", "utcnow"]
