"""Bulk synchronisation of platform users with partial-failure accounting."""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING, Any

from usersync.domain.model import SyncRun
from usersync.domain.time_windows import utcnow

if TYPE_CHECKING:
    from collections.abc import Iterable
    from uuid import UUID

    from usersync.domain.ledger import SyncStatusLedger
    from usersync.domain.reconciliation import IdentityReconciler, ReconcileResult
    from usersync.domain.records import PlatformUserRecord
    from usersync.domain.time_windows import Clock

log = getLogger(__name__)


@dataclass(frozen=True, slots=True)
class BatchFailure:
    external_id: str | None
    error: str
    error_type: str

    @classmethod
    def from_exception(cls, external_id: str | None, exc: Exception) -> BatchFailure:
        return cls(external_id=external_id, error=str(exc), error_type=type(exc).__name__)

    def as_detail(self) -> dict[str, Any]:
        return {"externalId": self.external_id, "error": self.error, "errorType": self.error_type}


@dataclass(slots=True)
class BatchOutcome:
    successful: list[ReconcileResult] = field(default_factory=list["ReconcileResult"])
    failed: list[BatchFailure] = field(default_factory=list[BatchFailure])
    total: int = 0
    run_id: UUID | None = None


@dataclass(slots=True)
class BatchRunner:
    """Drive the reconciler over a batch, one record at a time.

    A failing record never stops the batch: every exception raised by its
    reconcile is turned into a :class:`BatchFailure`. Only the final ledger write
    can make ``run_batch`` raise.
    """

    reconciler: IdentityReconciler
    ledger: SyncStatusLedger
    platform: str
    clock: Clock = utcnow

    def run_batch(self, records: Iterable[PlatformUserRecord]) -> BatchOutcome:
        pending = list(records)
        run_at = self.clock()
        outcome = BatchOutcome(total=len(pending))
        log.info("Starting %s sync batch with %s records", self.platform, outcome.total)

        for record in pending:
            try:
                outcome.successful.append(self.reconciler.reconcile(record))
            except Exception as exc:  # noqa: BLE001
                log.warning("Failed to reconcile %s: %s", record.external_id, exc)
                outcome.failed.append(BatchFailure.from_exception(record.external_id, exc))

        run = SyncRun.completed(
            platform=self.platform,
            run_at=run_at,
            records_processed=len(outcome.successful),
            failures=[failure.as_detail() for failure in outcome.failed],
        )
        self.ledger.record(run)
        outcome.run_id = run.id

        log.info(
            "Finished %s sync batch: succeeded=%s failed=%s total=%s",
            self.platform,
            len(outcome.successful),
            len(outcome.failed),
            outcome.total,
        )
        return outcome
