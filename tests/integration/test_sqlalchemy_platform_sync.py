from __future__ import annotations

import json
from datetime import timedelta
from typing import TYPE_CHECKING

import pytest

from tests.helpers.platform_users import FixedClock, RecordingEmitter, make_booking, make_record
from usersync.app import (
    deactivate_platform_user,
    list_sync_runs,
    reconcile_platform_user,
    sync_platform_users,
    sync_platform_users_from_file,
    synced_user_count,
)
from usersync.domain.batch import BatchRunner
from usersync.domain.errors import ConflictError
from usersync.domain.ledger import SyncStatusLedger
from usersync.domain.model import (
    AccountStatus,
    AuditAction,
    BookingStatus,
    NotificationEvent,
    SyncRunStatus,
)
from usersync.domain.reconciliation import IdentityReconciler
from usersync.domain.time_windows import TimeWindow

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

    from usersync.adapters.sqlalchemy.unit_of_work import SqlAlchemySyncUnitOfWork

pytestmark = pytest.mark.integration


def test_created_then_updated_scenario(
    sqlite_unit_of_work: Callable[[], SqlAlchemySyncUnitOfWork],
    emitter: RecordingEmitter,
) -> None:
    created = reconcile_platform_user(
        make_record("ext-1", "alice@example.com", name="Alice"),
        unit_of_work_factory=sqlite_unit_of_work,
        notifier=emitter,
    )
    updated = reconcile_platform_user(
        make_record("ext-1", "alice@corp.example.com", name="Alice Corp", metadata={"v": 2}),
        unit_of_work_factory=sqlite_unit_of_work,
        notifier=emitter,
    )

    assert created.message == "User created successfully"
    assert updated.message == "User updated successfully"
    assert created.user_id == updated.user_id
    assert emitter.names == [
        NotificationEvent.PLATFORM_USER_CREATED,
        NotificationEvent.PLATFORM_USER_UPDATED,
    ]

    with sqlite_unit_of_work() as uow:
        user = uow.repositories.users.get(created.user_id)
        assert user is not None
        assert user.email == "alice@corp.example.com"
        assert user.display_name == "Alice Corp"
        assert user.platform_metadata == {"v": 2}
        assert user.synced_from_platform
        schedules = uow.repositories.schedules.for_user(user.id)
        assert [schedule.id for schedule in schedules] == [user.default_schedule_id]
        assert len(schedules[0].rules) == 1
        actions = [entry.action for entry in uow.repositories.audit_log.for_user(user.id)]
        assert actions == [AuditAction.USER_CREATED, AuditAction.USER_UPDATED]


def test_conflict_leaves_database_untouched(
    sqlite_unit_of_work: Callable[[], SqlAlchemySyncUnitOfWork],
    emitter: RecordingEmitter,
) -> None:
    first = reconcile_platform_user(
        make_record("ext-1", "shared@example.com"),
        unit_of_work_factory=sqlite_unit_of_work,
        notifier=emitter,
    )

    with pytest.raises(ConflictError):
        reconcile_platform_user(
            make_record("ext-2", "shared@example.com"),
            unit_of_work_factory=sqlite_unit_of_work,
            notifier=emitter,
        )

    with sqlite_unit_of_work() as uow:
        assert uow.repositories.users.get_by_external_id("ext-2") is None
        assert uow.repositories.users.count_synced() == 1
        assert len(uow.repositories.audit_log.for_user(first.user_id)) == 1


def test_bulk_sync_with_partial_failure_is_recorded(
    sqlite_unit_of_work: Callable[[], SqlAlchemySyncUnitOfWork],
    emitter: RecordingEmitter,
) -> None:
    outcome = sync_platform_users(
        [
            make_record("ext-1", "one@example.com"),
            make_record("ext-2", "not-an-email"),
            make_record("ext-3", "one@example.com"),
            make_record("ext-4", "four@example.com"),
        ],
        platform="acme",
        unit_of_work_factory=sqlite_unit_of_work,
        notifier=emitter,
    )

    assert outcome.total == 4
    assert len(outcome.successful) == 2
    assert [failure.external_id for failure in outcome.failed] == ["ext-2", "ext-3"]

    runs = list_sync_runs(unit_of_work_factory=sqlite_unit_of_work)
    assert [run.id for run in runs] == [outcome.run_id]
    run = runs[0]
    assert run.platform == "acme"
    assert run.status is SyncRunStatus.COMPLETED
    assert (run.records_processed, run.records_failed) == (2, 2)
    assert run.failure_details is not None
    assert [detail["errorType"] for detail in run.failure_details] == [
        "ValidationError",
        "ConflictError",
    ]
    assert synced_user_count(unit_of_work_factory=sqlite_unit_of_work) == 2


def test_batch_file_with_unreadable_entries_still_syncs_the_rest(
    sqlite_unit_of_work: Callable[[], SqlAlchemySyncUnitOfWork],
    emitter: RecordingEmitter,
    tmp_path: Path,
) -> None:
    path = tmp_path / "batch.json"
    document = [
        {"externalId": "u1", "email": "u1@example.com"},
        {"externalId": "u2", "email": "u2@example.com", "metadata": ["team-a", "team-b"]},
        None,
        {"externalId": "u4", "email": {"address": "u4@example.com"}},
        {"externalId": "u5", "email": "u5@example.com"},
    ]
    path.write_text(json.dumps(document))

    outcome = sync_platform_users_from_file(
        path, platform="acme", unit_of_work_factory=sqlite_unit_of_work, notifier=emitter
    )

    assert outcome.total == 5
    assert [result.external_id for result in outcome.successful] == ["u1", "u2", "u5"]
    assert [failure.external_id for failure in outcome.failed] == [None, "u4"]
    assert {failure.error_type for failure in outcome.failed} == {"ValidationError"}

    runs = list_sync_runs(unit_of_work_factory=sqlite_unit_of_work)
    assert [(run.records_processed, run.records_failed) for run in runs] == [(3, 2)]
    with sqlite_unit_of_work() as uow:
        user = uow.repositories.users.get_by_external_id("u2")
        assert user is not None
        assert user.platform_metadata == ["team-a", "team-b"]


def test_ledger_window_queries(
    sqlite_unit_of_work: Callable[[], SqlAlchemySyncUnitOfWork],
    emitter: RecordingEmitter,
) -> None:
    clock = FixedClock()
    reconciler = IdentityReconciler(
        unit_of_work_factory=sqlite_unit_of_work, notifier=emitter, clock=clock
    )
    runner = BatchRunner(
        reconciler=reconciler,
        ledger=SyncStatusLedger(unit_of_work_factory=sqlite_unit_of_work),
        platform="acme",
        clock=clock,
    )
    early = runner.run_batch([])
    clock.advance(timedelta(hours=3))
    late = runner.run_batch([make_record()])

    recent = list_sync_runs(
        TimeWindow(end=clock.now, lookback=timedelta(hours=1)),
        unit_of_work_factory=sqlite_unit_of_work,
    )
    everything = list_sync_runs(unit_of_work_factory=sqlite_unit_of_work)

    assert [run.id for run in recent] == [late.run_id]
    assert [run.id for run in everything] == [late.run_id, early.run_id]


def test_deactivation_cascades_to_bookings(
    sqlite_unit_of_work: Callable[[], SqlAlchemySyncUnitOfWork],
    emitter: RecordingEmitter,
) -> None:
    clock = FixedClock()
    reconciler = IdentityReconciler(
        unit_of_work_factory=sqlite_unit_of_work, notifier=emitter, clock=clock
    )
    user_id = reconciler.reconcile(make_record()).user_id
    with sqlite_unit_of_work() as uow:
        bookings = uow.repositories.bookings
        bookings.add(make_booking(user_id, start=clock.now - timedelta(days=1)))
        bookings.add(make_booking(user_id, start=clock.now + timedelta(days=1)))
        bookings.add(
            make_booking(
                user_id, start=clock.now + timedelta(days=2), status=BookingStatus.PENDING
            )
        )
        uow.commit()
    clock.advance(timedelta(minutes=5))

    result = reconciler.deactivate("ext-1", reason="Offboarded")

    assert result.cancelled_bookings == 2
    with sqlite_unit_of_work() as uow:
        user = uow.repositories.users.get(user_id)
        assert user is not None
        assert user.status is AccountStatus.DEACTIVATED
        assert user.deactivated_at == clock.now
        statuses = [
            (booking.status, booking.cancellation_reason)
            for booking in uow.repositories.bookings.for_user(user_id)
        ]
        assert statuses == [
            (BookingStatus.ACCEPTED, None),
            (BookingStatus.CANCELLED, "Offboarded"),
            (BookingStatus.CANCELLED, "Offboarded"),
        ]
        actions = [entry.action for entry in uow.repositories.audit_log.for_user(user_id)]
        assert actions[-1] is AuditAction.USER_DEACTIVATED


def test_deactivate_via_app(
    sqlite_unit_of_work: Callable[[], SqlAlchemySyncUnitOfWork],
    emitter: RecordingEmitter,
) -> None:
    reconcile_platform_user(
        make_record(), unit_of_work_factory=sqlite_unit_of_work, notifier=emitter
    )

    result = deactivate_platform_user(
        "ext-1", unit_of_work_factory=sqlite_unit_of_work, notifier=emitter
    )

    assert result.external_id == "ext-1"
    assert emitter.names[-1] == NotificationEvent.PLATFORM_USER_DEACTIVATED
