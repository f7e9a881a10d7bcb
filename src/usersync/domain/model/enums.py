"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class AccountStatus(StrEnum):
    ACTIVE = "active"
    DEACTIVATED = "deactivated"


class BookingStatus(StrEnum):
    ACCEPTED = "accepted"
    PENDING = "pending"
    CANCELLED = "cancelled"
    REJECTED = "rejected"


class AuditAction(StrEnum):
    USER_CREATED = "USER_CREATED"
    USER_UPDATED = "USER_UPDATED"
    USER_DEACTIVATED = "USER_DEACTIVATED"


class SyncRunStatus(StrEnum):
    RUNNING = "RUNNING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


class SyncRunType(StrEnum):
    BULK_USER_SYNC = "bulk_user_sync"


class ReconcileOutcome(StrEnum):
    CREATED = "created"
    UPDATED = "updated"


class NotificationEvent(StrEnum):
    """Trigger names delivered to downstream listeners."""

    PLATFORM_USER_CREATED = "PLATFORM_USER_CREATED"
    PLATFORM_USER_UPDATED = "PLATFORM_USER_UPDATED"
    PLATFORM_USER_DEACTIVATED = "PLATFORM_USER_DEACTIVATED"

    @classmethod
    def for_outcome(cls, outcome: ReconcileOutcome) -> NotificationEvent:
        if outcome is ReconcileOutcome.CREATED:
            return cls.PLATFORM_USER_CREATED
        return cls.PLATFORM_USER_UPDATED
