"""Batch run records kept in the sync status ledger."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from usersync.domain.model.entity import Entity
from usersync.domain.model.enums import SyncRunStatus, SyncRunType

if TYPE_CHECKING:
    from collections.abc import Sequence
    from datetime import datetime


@dataclass(eq=False, kw_only=True)
class SyncRun(Entity):
    """One invocation of the bulk reconciler.

    ``failure_details`` holds ``{"externalId", "error", "errorType"}`` entries and
    is ``None`` when nothing failed.
    """

    platform: str
    run_at: datetime
    run_type: SyncRunType = SyncRunType.BULK_USER_SYNC
    status: SyncRunStatus = SyncRunStatus.RUNNING
    records_processed: int = 0
    records_failed: int = 0
    failure_details: list[dict[str, Any]] | None = None

    @classmethod
    def completed(
        cls,
        *,
        platform: str,
        run_at: datetime,
        records_processed: int,
        failures: Sequence[dict[str, Any]],
        run_type: SyncRunType = SyncRunType.BULK_USER_SYNC,
    ) -> SyncRun:
        return cls(
            platform=platform,
            run_at=run_at,
            run_type=run_type,
            status=SyncRunStatus.COMPLETED,
            records_processed=records_processed,
            records_failed=len(failures),
            failure_details=[dict(item) for item in failures] or None,
        )

    @property
    def total(self) -> int:
        return self.records_processed + self.records_failed
