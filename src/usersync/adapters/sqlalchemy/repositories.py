"""Repository implementations backed by SQLAlchemy sessions."""

from __future__ import annotations

from typing import TYPE_CHECKING, cast

from sqlalchemy import func, select

from usersync.adapters.sqlalchemy.mappings import (
    audit_log_table,
    booking_table,
    schedule_table,
    sync_run_table,
    user_table,
)
from usersync.domain.model import AuditEntry, Booking, BookingStatus, Schedule, SyncRun, User

if TYPE_CHECKING:
    from collections.abc import Sequence
    from datetime import datetime
    from uuid import UUID

    from sqlalchemy.orm import Session


class SqlAlchemyUserRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: User) -> None:
        self.session.add(entity)

    def get(self, user_id: UUID) -> User | None:
        return self.session.get(User, user_id)

    def get_by_external_id(self, external_id: str) -> User | None:
        stmt = select(User).where(user_table.c.external_id == external_id)
        return self.session.execute(stmt).scalar_one_or_none()

    def get_by_email(self, email: str) -> User | None:
        stmt = select(User).where(func.lower(user_table.c.email) == email.lower())
        return self.session.execute(stmt).scalars().first()

    def username_taken(self, username: str) -> bool:
        stmt = select(user_table.c.id).where(user_table.c.username == username).limit(1)
        return self.session.execute(stmt).scalar_one_or_none() is not None

    def count_synced(self) -> int:
        stmt = (
            select(func.count())
            .select_from(user_table)
            .where(user_table.c.synced_from_platform.is_(True))
        )
        return int(self.session.execute(stmt).scalar_one())


class SqlAlchemyScheduleRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: Schedule) -> None:
        self.session.add(entity)

    def get(self, schedule_id: UUID) -> Schedule | None:
        return self.session.get(Schedule, schedule_id)

    def for_user(self, user_id: UUID) -> Sequence[Schedule]:
        stmt = select(Schedule).where(schedule_table.c.user_id == user_id)
        return self.session.execute(stmt).scalars().all()


class SqlAlchemyBookingRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: Booking) -> None:
        self.session.add(entity)

    def for_user(self, user_id: UUID) -> Sequence[Booking]:
        stmt = (
            select(Booking)
            .where(booking_table.c.user_id == user_id)
            .order_by(booking_table.c.start_time)
        )
        return self.session.execute(stmt).scalars().all()

    def cancel_future_bookings(self, *, user_id: UUID, now: datetime, reason: str) -> int:
        stmt = (
            select(Booking)
            .where(booking_table.c.user_id == user_id)
            .where(booking_table.c.start_time >= now)
            .where(booking_table.c.status != BookingStatus.CANCELLED)
            .order_by(booking_table.c.start_time)
        )
        cancelled = 0
        for booking in self.session.execute(stmt).scalars():
            if booking.is_cancellable_at(now):
                booking.cancel(reason)
                cancelled += 1
        return cancelled


class SqlAlchemyAuditLogRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: AuditEntry) -> None:
        self.session.add(entity)

    def for_user(self, user_id: UUID) -> Sequence[AuditEntry]:
        stmt = (
            select(AuditEntry)
            .where(audit_log_table.c.target_user_id == user_id)
            .order_by(audit_log_table.c.created_at)
        )
        return self.session.execute(stmt).scalars().all()


class SqlAlchemySyncRunRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: SyncRun) -> None:
        self.session.add(entity)

    def list_runs(
        self,
        *,
        start: datetime | None = None,
        end: datetime | None = None,
        limit: int = 100,
    ) -> Sequence[SyncRun]:
        stmt = select(SyncRun)
        if start is not None:
            stmt = stmt.where(sync_run_table.c.run_at >= start)
        if end is not None:
            stmt = stmt.where(sync_run_table.c.run_at <= end)
        stmt = stmt.order_by(sync_run_table.c.run_at.desc()).limit(limit)
        return self.session.execute(stmt).scalars().all()


if TYPE_CHECKING:
    from usersync.domain.ports.persistence import (
        AuditLogRepository,
        BookingRepository,
        ScheduleRepository,
        SyncRunRepository,
        UserRepository,
    )

    _session_stub = cast("Session", object())
    _user_repo: UserRepository = SqlAlchemyUserRepository(_session_stub)
    _schedule_repo: ScheduleRepository = SqlAlchemyScheduleRepository(_session_stub)
    _booking_repo: BookingRepository = SqlAlchemyBookingRepository(_session_stub)
    _audit_repo: AuditLogRepository = SqlAlchemyAuditLogRepository(_session_stub)
    _sync_run_repo: SyncRunRepository = SqlAlchemySyncRunRepository(_session_stub)
