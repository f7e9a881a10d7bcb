"""Availability templates owned by users."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import time
from typing import TYPE_CHECKING

from usersync.domain.model.entity import Entity

if TYPE_CHECKING:
    from collections.abc import Iterable
    from uuid import UUID

DEFAULT_SCHEDULE_NAME = "Working Hours"


@dataclass(eq=False, kw_only=True)
class AvailabilityRule(Entity):
    """A weekly window: the same start/end time on each of ``weekdays``.

    Weekdays follow ``datetime.weekday()`` (Monday == 0).
    """

    weekdays: frozenset[int]
    start_time: time
    end_time: time
    schedule_id: UUID | None = None

    def __post_init__(self) -> None:
        self.weekdays = frozenset(self.weekdays)
        if not self.weekdays:
            raise ValueError("availability rule needs at least one weekday")
        if any(day < 0 or day > 6 for day in self.weekdays):  # noqa: PLR2004
            raise ValueError("weekdays must be between 0 and 6")
        if self.start_time >= self.end_time:
            raise ValueError("availability window must start before it ends")


@dataclass(eq=False, kw_only=True)
class Schedule(Entity):
    user_id: UUID
    time_zone: str
    name: str = DEFAULT_SCHEDULE_NAME
    rules: list[AvailabilityRule] = field(default_factory=list["AvailabilityRule"])

    def add_rule(
        self, weekdays: Iterable[int], start_time: time, end_time: time
    ) -> AvailabilityRule:
        rule = AvailabilityRule(
            weekdays=frozenset(weekdays),
            start_time=start_time,
            end_time=end_time,
            schedule_id=self.id,
        )
        self.rules.append(rule)
        return rule


def working_hours_schedule(
    *,
    user_id: UUID,
    time_zone: str,
    workdays: Iterable[int],
    start_time: time,
    end_time: time,
) -> Schedule:
    """Build the default schedule created for every newly provisioned user."""

    schedule = Schedule(user_id=user_id, time_zone=time_zone)
    schedule.add_rule(workdays, start_time, end_time)
    return schedule
