"""Unit-of-work abstractions for coordinating repositories."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from types import TracebackType

    from usersync.domain.ports.persistence import (
        AuditLogRepository,
        BookingRepository,
        ScheduleRepository,
        SyncRunRepository,
        UserRepository,
    )


@runtime_checkable
class RepositoryCollection(Protocol):
    """Marker protocol for groups of repositories managed together."""


@runtime_checkable
class UnitOfWork[TRepositories: RepositoryCollection](Protocol):
    """Generic unit-of-work boundary around a repository collection.

    ``commit`` raises :class:`~usersync.domain.errors.DuplicateRecordError` when a
    uniqueness constraint rejects the write and
    :class:`~usersync.domain.errors.PersistenceError` for other storage failures.
    """

    @property
    def repositories(self) -> TRepositories: ...

    def __enter__(self) -> UnitOfWork[TRepositories]: ...

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> bool: ...

    def commit(self) -> None: ...

    def rollback(self) -> None: ...


@dataclass(slots=True)
class SyncRepositories(RepositoryCollection):
    """Repositories required to reconcile platform users."""

    users: UserRepository
    schedules: ScheduleRepository
    bookings: BookingRepository
    audit_log: AuditLogRepository
    sync_runs: SyncRunRepository


type SyncUnitOfWork = UnitOfWork[SyncRepositories]
