"""Ports for persisting domain aggregates."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

from usersync.domain.model import AuditEntry, Booking, Schedule, SyncRun, User

if TYPE_CHECKING:
    from collections.abc import Sequence
    from datetime import datetime
    from uuid import UUID


@runtime_checkable
class Repository[TEntity](Protocol):
    """Minimal repository contract for a persistent aggregate store."""

    def add(self, entity: TEntity) -> None: ...


@runtime_checkable
class UserRepository(Repository[User], Protocol):
    """Point lookups used by reconciliation; external id and e-mail are unique."""

    def get(self, user_id: UUID) -> User | None: ...

    def get_by_external_id(self, external_id: str) -> User | None: ...

    def get_by_email(self, email: str) -> User | None: ...

    def username_taken(self, username: str) -> bool: ...

    def count_synced(self) -> int: ...


@runtime_checkable
class ScheduleRepository(Repository[Schedule], Protocol):
    def get(self, schedule_id: UUID) -> Schedule | None: ...

    def for_user(self, user_id: UUID) -> Sequence[Schedule]: ...


@runtime_checkable
class BookingRepository(Repository[Booking], Protocol):
    def for_user(self, user_id: UUID) -> Sequence[Booking]: ...

    def cancel_future_bookings(self, *, user_id: UUID, now: datetime, reason: str) -> int:
        """Cancel bookings starting at or after ``now`` that are not cancelled yet."""
        ...


@runtime_checkable
class AuditLogRepository(Repository[AuditEntry], Protocol):
    def for_user(self, user_id: UUID) -> Sequence[AuditEntry]: ...


@runtime_checkable
class SyncRunRepository(Repository[SyncRun], Protocol):
    def list_runs(
        self,
        *,
        start: datetime | None = None,
        end: datetime | None = None,
        limit: int = 100,
    ) -> Sequence[SyncRun]:
        """Return runs inside the inclusive window, most recent first."""
        ...
