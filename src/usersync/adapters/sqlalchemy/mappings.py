"""SQLAlchemy mapping metadata for the usersync domain model."""

from __future__ import annotations

import json
import logging
import uuid
from datetime import UTC, datetime
from functools import cache
from typing import TYPE_CHECKING, Any, cast

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Dialect,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Table,
    Time,
    TypeDecorator,
    UniqueConstraint,
    Uuid,
    orm,
)
from sqlalchemy.orm import configure_mappers, relationship

from usersync.domain.model import (
    AccountStatus,
    AuditAction,
    AuditEntry,
    AvailabilityRule,
    Booking,
    BookingStatus,
    Schedule,
    SyncRun,
    SyncRunStatus,
    SyncRunType,
    User,
)

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

log = logging.getLogger(__name__)

UUIDColumnType = Uuid[uuid.UUID]


class UTCDateTime(TypeDecorator[datetime]):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        return value if value.tzinfo else value.replace(tzinfo=UTC)


class WeekdaySetType(TypeDecorator[frozenset[int]]):
    impl = String
    cache_ok = True

    def process_bind_param(self, value: frozenset[int] | None, dialect: Dialect) -> str | None:
        _ = dialect
        if value is None:
            return None
        return json.dumps(sorted(value))

    def process_result_value(self, value: str | None, dialect: Dialect) -> frozenset[int]:
        _ = dialect
        if value is None:
            return frozenset()
        loaded = json.loads(value)
        if not isinstance(loaded, list):
            return frozenset()
        items = cast(list[Any], loaded)
        return frozenset(item for item in items if isinstance(item, int))


mapper_registry = orm.registry()
mapper_registry.metadata.naming_convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_label)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_label)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

# Tables -----------------------------------------------------------------------

user_table = Table(
    "user_account",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("external_id", String, nullable=True),
    Column("email", String, nullable=False),
    Column("username", String, nullable=False),
    Column("display_name", String, nullable=False),
    Column("synced_from_platform", Boolean, nullable=False, default=False),
    Column("platform_metadata", JSON(none_as_null=True), nullable=True),
    Column("last_synced_at", UTCDateTime(), nullable=True),
    Column("managed_by_admin", Boolean, nullable=False, default=False),
    Column("password_hash", String, nullable=True),
    Column("status", Enum(AccountStatus, native_enum=False), nullable=False),
    Column("deactivated_at", UTCDateTime(), nullable=True),
    Column("default_schedule_id", UUIDColumnType, nullable=True),
    Column("created_at", UTCDateTime(), nullable=True),
    Column("updated_at", UTCDateTime(), nullable=True),
    UniqueConstraint("external_id", name="uq_user_account_external_id"),
    UniqueConstraint("email", name="uq_user_account_email"),
    Index("ix_user_account_username", "username"),
)

schedule_table = Table(
    "schedule",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column(
        "user_id",
        UUIDColumnType,
        ForeignKey("user_account.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("name", String, nullable=False),
    Column("time_zone", String, nullable=False),
)

availability_table = Table(
    "availability",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column(
        "schedule_id",
        UUIDColumnType,
        ForeignKey("schedule.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("weekdays", WeekdaySetType(), nullable=False),
    Column("start_time", Time, nullable=False),
    Column("end_time", Time, nullable=False),
)

booking_table = Table(
    "booking",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column(
        "user_id",
        UUIDColumnType,
        ForeignKey("user_account.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("title", String, nullable=False),
    Column("start_time", UTCDateTime(), nullable=False),
    Column("end_time", UTCDateTime(), nullable=False),
    Column("status", Enum(BookingStatus, native_enum=False), nullable=False),
    Column("cancellation_reason", String, nullable=True),
    Index("ix_booking_user_start", "user_id", "start_time"),
)

audit_log_table = Table(
    "audit_log",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("action", Enum(AuditAction, native_enum=False), nullable=False),
    Column("target_user_id", UUIDColumnType, nullable=False),
    Column("details", JSON(none_as_null=True), nullable=True),
    Column("actor", String, nullable=True),
    Column("created_at", UTCDateTime(), nullable=False),
    Index("ix_audit_log_target", "target_user_id"),
)

sync_run_table = Table(
    "sync_run",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("platform", String, nullable=False),
    Column("run_at", UTCDateTime(), nullable=False),
    Column("run_type", Enum(SyncRunType, native_enum=False), nullable=False),
    Column("status", Enum(SyncRunStatus, native_enum=False), nullable=False),
    Column("records_processed", Integer, nullable=False, default=0),
    Column("records_failed", Integer, nullable=False, default=0),
    Column("failure_details", JSON(none_as_null=True), nullable=True),
    Index("ix_sync_run_run_at", "run_at"),
)


@cache
def start_mappers() -> orm.registry:
    """Configure SQLAlchemy mappers for the domain model."""

    log.info("Starting SQLAlchemy mappers")

    mapper_registry.map_imperatively(
        User,
        user_table,
        properties={
            # orders user inserts before their schedules within one flush
            "_schedules": relationship(Schedule, cascade="save-update"),
        },
    )

    mapper_registry.map_imperatively(
        Schedule,
        schedule_table,
        properties={
            "rules": relationship(
                AvailabilityRule,
                cascade="all, delete-orphan",
                order_by=availability_table.c.start_time,
            ),
        },
    )

    mapper_registry.map_imperatively(AvailabilityRule, availability_table)
    mapper_registry.map_imperatively(Booking, booking_table)
    mapper_registry.map_imperatively(AuditEntry, audit_log_table)
    mapper_registry.map_imperatively(SyncRun, sync_run_table)

    configure_mappers()
    return mapper_registry


def create_all_tables(engine: Engine) -> None:
    """Create database tables for the mapped metadata."""

    log.info("Creating all tables")
    mapper_registry.metadata.create_all(engine)
