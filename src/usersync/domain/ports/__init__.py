"""Domain port definitions for adapters."""

from __future__ import annotations

from .notification import NotificationDeliveryError, NotificationEmitter
from .persistence import (
    AuditLogRepository,
    BookingRepository,
    Repository,
    ScheduleRepository,
    SyncRunRepository,
    UserRepository,
)
from .unit_of_work import RepositoryCollection, SyncRepositories, SyncUnitOfWork, UnitOfWork

__all__ = [
    "AuditLogRepository",
    "BookingRepository",
    "NotificationDeliveryError",
    "NotificationEmitter",
    "Repository",
    "RepositoryCollection",
    "ScheduleRepository",
    "SyncRepositories",
    "SyncRunRepository",
    "SyncUnitOfWork",
    "UnitOfWork",
    "UserRepository",
]
