"""SQLAlchemy adapter package for usersync."""

from __future__ import annotations

from .mappings import create_all_tables, mapper_registry, start_mappers
from .repositories import (
    SqlAlchemyAuditLogRepository,
    SqlAlchemyBookingRepository,
    SqlAlchemyScheduleRepository,
    SqlAlchemySyncRunRepository,
    SqlAlchemyUserRepository,
)

__all__ = [
    "SqlAlchemyAuditLogRepository",
    "SqlAlchemyBookingRepository",
    "SqlAlchemyScheduleRepository",
    "SqlAlchemySyncRunRepository",
    "SqlAlchemyUserRepository",
    "create_all_tables",
    "mapper_registry",
    "start_mappers",
]
