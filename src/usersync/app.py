"""Application orchestration entry points."""

from __future__ import annotations

from collections.abc import Callable
from logging import getLogger
from typing import TYPE_CHECKING

from usersync.adapters.platform import load_batch_file
from usersync.adapters.sqlalchemy.unit_of_work import SqlAlchemySyncUnitOfWork, is_started, startup
from usersync.adapters.webhook import build_notification_emitter
from usersync.config import get_sync_config, get_webhook_config
from usersync.domain.batch import BatchRunner
from usersync.domain.ledger import SyncStatusLedger
from usersync.domain.ports.unit_of_work import SyncUnitOfWork
from usersync.domain.reconciliation import DEFAULT_CANCELLATION_REASON, IdentityReconciler

if TYPE_CHECKING:
    from collections.abc import Iterable
    from pathlib import Path

    from usersync.config import SyncConfig
    from usersync.domain.batch import BatchOutcome
    from usersync.domain.model import SyncRun
    from usersync.domain.ports.notification import NotificationEmitter
    from usersync.domain.reconciliation import DeactivationResult, ReconcileResult
    from usersync.domain.records import PlatformUserRecord
    from usersync.domain.time_windows import TimeWindow

UnitOfWorkFactory = Callable[[], SyncUnitOfWork]


log = getLogger(__name__)


def _ensure_started() -> None:
    if not is_started():
        startup()


def _default_unit_of_work_factory() -> UnitOfWorkFactory:
    _ensure_started()
    return SqlAlchemySyncUnitOfWork


def build_reconciler(
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    notifier: NotificationEmitter | None = None,
    config: SyncConfig | None = None,
    actor: str | None = None,
) -> IdentityReconciler:
    return IdentityReconciler(
        unit_of_work_factory=unit_of_work_factory or _default_unit_of_work_factory(),
        notifier=notifier or build_notification_emitter(get_webhook_config()),
        config=config or get_sync_config(),
        actor=actor,
    )


def build_ledger(
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    config: SyncConfig | None = None,
) -> SyncStatusLedger:
    effective_config = config or get_sync_config()
    return SyncStatusLedger(
        unit_of_work_factory=unit_of_work_factory or _default_unit_of_work_factory(),
        limit=effective_config.ledger_limit,
    )


def reconcile_platform_user(
    record: PlatformUserRecord,
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    notifier: NotificationEmitter | None = None,
    actor: str | None = None,
) -> ReconcileResult:
    """Create or update a single platform user."""

    reconciler = build_reconciler(
        unit_of_work_factory=unit_of_work_factory, notifier=notifier, actor=actor
    )
    result = reconciler.reconcile(record)
    log.info("Reconciled %s: %s (%s)", result.external_id, result.outcome, result.user_id)
    return result


def sync_platform_users(
    records: Iterable[PlatformUserRecord],
    *,
    platform: str | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    notifier: NotificationEmitter | None = None,
    actor: str | None = None,
) -> BatchOutcome:
    """Run a bulk sync batch and record it in the ledger."""

    config = get_sync_config()
    effective_uow = unit_of_work_factory or _default_unit_of_work_factory()
    runner = BatchRunner(
        reconciler=build_reconciler(
            unit_of_work_factory=effective_uow, notifier=notifier, config=config, actor=actor
        ),
        ledger=build_ledger(unit_of_work_factory=effective_uow, config=config),
        platform=platform or config.platform_id,
    )
    return runner.run_batch(records)


def sync_platform_users_from_file(
    path: str | Path,
    *,
    platform: str | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    notifier: NotificationEmitter | None = None,
    actor: str | None = None,
) -> BatchOutcome:
    return sync_platform_users(
        load_batch_file(path),
        platform=platform,
        unit_of_work_factory=unit_of_work_factory,
        notifier=notifier,
        actor=actor,
    )


def deactivate_platform_user(
    external_id: str,
    *,
    reason: str = DEFAULT_CANCELLATION_REASON,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    notifier: NotificationEmitter | None = None,
    actor: str | None = None,
) -> DeactivationResult:
    reconciler = build_reconciler(
        unit_of_work_factory=unit_of_work_factory, notifier=notifier, actor=actor
    )
    return reconciler.deactivate(external_id, reason=reason)


def list_sync_runs(
    window: TimeWindow | None = None,
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> list[SyncRun]:
    """Return recorded sync runs inside ``window``, most recent first."""

    start, end = window.resolve() if window is not None else (None, None)
    return build_ledger(unit_of_work_factory=unit_of_work_factory).query(start, end)


def synced_user_count(*, unit_of_work_factory: UnitOfWorkFactory | None = None) -> int:
    return build_ledger(unit_of_work_factory=unit_of_work_factory).synced_user_count()
