"""Public domain model surface."""

from __future__ import annotations

from usersync.domain.model.audit import AuditEntry
from usersync.domain.model.booking import Booking
from usersync.domain.model.entity import Entity, new_id
from usersync.domain.model.enums import (
    AccountStatus,
    AuditAction,
    BookingStatus,
    NotificationEvent,
    ReconcileOutcome,
    SyncRunStatus,
    SyncRunType,
)
from usersync.domain.model.schedule import (
    DEFAULT_SCHEDULE_NAME,
    AvailabilityRule,
    Schedule,
    working_hours_schedule,
)
from usersync.domain.model.sync_run import SyncRun
from usersync.domain.model.user import User

__all__ = [  # noqa: RUF022
    # base
    "Entity",
    "new_id",
    # users
    "User",
    "Schedule",
    "AvailabilityRule",
    "DEFAULT_SCHEDULE_NAME",
    "working_hours_schedule",
    # collaborators
    "Booking",
    "AuditEntry",
    "SyncRun",
    # enums
    "AccountStatus",
    "AuditAction",
    "BookingStatus",
    "NotificationEvent",
    "ReconcileOutcome",
    "SyncRunStatus",
    "SyncRunType",
]
