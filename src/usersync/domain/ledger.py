"""Append-only ledger of bulk sync runs."""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from usersync.config.sync import DEFAULT_LEDGER_LIMIT
from usersync.domain.time_windows import checked_bounds

if TYPE_CHECKING:
    from collections.abc import Callable
    from datetime import datetime

    from usersync.domain.model import SyncRun
    from usersync.domain.ports.unit_of_work import SyncUnitOfWork

log = getLogger(__name__)


@dataclass(slots=True)
class SyncStatusLedger:
    """Record and query :class:`SyncRun` rows.

    There is no update or delete. ``limit`` bounds what a single query returns;
    older rows stay reachable by narrowing the time range.
    """

    unit_of_work_factory: Callable[[], SyncUnitOfWork]
    limit: int = DEFAULT_LEDGER_LIMIT

    def record(self, run: SyncRun) -> None:
        with self.unit_of_work_factory() as uow:
            uow.repositories.sync_runs.add(run)
            uow.commit()
        log.info(
            "Recorded %s run for %s: status=%s processed=%s failed=%s",
            run.run_type,
            run.platform,
            run.status,
            run.records_processed,
            run.records_failed,
        )

    def query(
        self,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> list[SyncRun]:
        """Return runs with ``start <= run_at <= end``, most recent first."""

        start, end = checked_bounds(start, end)
        with self.unit_of_work_factory() as uow:
            runs = uow.repositories.sync_runs.list_runs(start=start, end=end, limit=self.limit)
            return list(runs)

    def synced_user_count(self) -> int:
        """All-time number of users that originated from platform sync."""

        with self.unit_of_work_factory() as uow:
            return uow.repositories.users.count_synced()
