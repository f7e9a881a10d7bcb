"""Identity reconciliation: make local users match upstream platform users."""

from __future__ import annotations

import hashlib
import secrets
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from usersync.config.sync import SyncConfig
from usersync.domain.errors import (
    ConflictError,
    DuplicateRecordError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from usersync.domain.model import (
    AuditAction,
    AuditEntry,
    NotificationEvent,
    ReconcileOutcome,
    User,
    working_hours_schedule,
)
from usersync.domain.notifications import notify_safely
from usersync.domain.records import username_from_email
from usersync.domain.time_windows import utcnow

if TYPE_CHECKING:
    from collections.abc import Callable
    from datetime import datetime
    from uuid import UUID

    from usersync.domain.ports.notification import NotificationEmitter
    from usersync.domain.ports.unit_of_work import SyncRepositories, SyncUnitOfWork
    from usersync.domain.records import PlatformUserRecord
    from usersync.domain.time_windows import Clock

log = getLogger(__name__)

DEFAULT_CANCELLATION_REASON = "Account deactivated by platform sync"
_MAX_USERNAME_SUFFIX = 1000


@dataclass(frozen=True, slots=True)
class ReconcileResult:
    success: bool
    user_id: UUID
    external_id: str
    outcome: ReconcileOutcome
    message: str


@dataclass(frozen=True, slots=True)
class DeactivationResult:
    user_id: UUID
    external_id: str
    deactivated_at: datetime
    cancelled_bookings: int


@dataclass(slots=True)
class IdentityReconciler:
    """Create-or-update local users keyed by their platform external id.

    Each call runs in its own unit of work. The lookup-then-write is guarded by the
    unique constraints on external id and e-mail: when a concurrent writer wins the
    race, the commit fails with :class:`DuplicateRecordError` and the whole step is
    repeated, at which point the winner's row is found and updated instead.
    """

    unit_of_work_factory: Callable[[], SyncUnitOfWork]
    notifier: NotificationEmitter
    config: SyncConfig = field(default_factory=SyncConfig)
    clock: Clock = utcnow
    actor: str | None = None

    def reconcile(self, record: PlatformUserRecord) -> ReconcileResult:
        valid = record.validated()
        attempts = self.config.max_conflict_retries + 1
        last_error: DuplicateRecordError | None = None
        for attempt in range(1, attempts + 1):
            try:
                result = self._reconcile_once(valid)
            except DuplicateRecordError as exc:
                last_error = exc
                log.warning(
                    "Uniqueness conflict reconciling %s (attempt %s/%s): %s",
                    valid.external_id,
                    attempt,
                    attempts,
                    exc,
                )
                continue
            notify_safely(
                self.notifier,
                NotificationEvent.for_outcome(result.outcome),
                {"userId": str(result.user_id), "externalId": result.external_id},
            )
            return result
        raise PersistenceError(
            f"Could not reconcile {valid.external_id} after {attempts} attempts"
        ) from last_error

    def deactivate(
        self,
        external_id: str,
        *,
        reason: str = DEFAULT_CANCELLATION_REASON,
    ) -> DeactivationResult:
        """Deactivate the matched user and cancel their upcoming bookings."""

        key = external_id.strip()
        if not key:
            raise ValidationError("externalId is required")
        now = self.clock()
        with self.unit_of_work_factory() as uow:
            repositories = uow.repositories
            user = repositories.users.get_by_external_id(key)
            if user is None:
                raise NotFoundError(f"No user with external id {key!r}")
            first_time = user.deactivate(at=now)
            cancelled = repositories.bookings.cancel_future_bookings(
                user_id=user.id, now=now, reason=reason
            )
            repositories.audit_log.add(
                AuditEntry(
                    action=AuditAction.USER_DEACTIVATED,
                    target_user_id=user.id,
                    details={
                        "externalId": key,
                        "cancelledBookings": cancelled,
                        "alreadyDeactivated": not first_time,
                    },
                    actor=self.actor,
                    created_at=now,
                )
            )
            uow.commit()
            result = DeactivationResult(
                user_id=user.id,
                external_id=key,
                deactivated_at=user.deactivated_at or now,
                cancelled_bookings=cancelled,
            )

        log.info("Deactivated %s (%s), cancelled %s bookings", key, result.user_id, cancelled)
        notify_safely(
            self.notifier,
            NotificationEvent.PLATFORM_USER_DEACTIVATED,
            {
                "userId": str(result.user_id),
                "externalId": key,
                "cancelledBookings": cancelled,
            },
        )
        return result

    def _reconcile_once(self, record: PlatformUserRecord) -> ReconcileResult:
        # record is validated: external_id and email are set
        external_id = str(record.external_id)
        email = str(record.email)
        now = self.clock()
        with self.unit_of_work_factory() as uow:
            repositories = uow.repositories
            existing = repositories.users.get_by_external_id(external_id)
            email_owner = repositories.users.get_by_email(email)
            if email_owner is not None and (existing is None or email_owner.id != existing.id):
                raise ConflictError(
                    f"Email {email} already belongs to user {email_owner.id}",
                    email=email,
                    existing_user_id=email_owner.id,
                )

            if existing is None:
                user = self._create_user(repositories, record, now)
                outcome = ReconcileOutcome.CREATED
            else:
                user = existing
                self._update_user(repositories, user, record, now)
                outcome = ReconcileOutcome.UPDATED
            uow.commit()
            user_id = user.id

        log.debug("Reconciled %s -> %s (%s)", external_id, user_id, outcome)
        return ReconcileResult(
            success=True,
            user_id=user_id,
            external_id=external_id,
            outcome=outcome,
            message=f"User {outcome} successfully",
        )

    def _create_user(
        self,
        repositories: SyncRepositories,
        record: PlatformUserRecord,
        now: datetime,
    ) -> User:
        email = str(record.email)
        username = record.username or self._available_username(
            repositories, username_from_email(email)
        )
        user = User.provision(
            external_id=str(record.external_id),
            email=email,
            username=username,
            display_name=record.name or username,
            password_hash=_placeholder_password_hash(),
            metadata=record.metadata,
            synced_at=now,
        )
        schedule = working_hours_schedule(
            user_id=user.id,
            time_zone=self.config.default_timezone,
            workdays=self.config.workdays,
            start_time=self.config.workday_start,
            end_time=self.config.workday_end,
        )
        user.bind_default_schedule(schedule)
        repositories.users.add(user)
        repositories.schedules.add(schedule)
        repositories.audit_log.add(
            AuditEntry(
                action=AuditAction.USER_CREATED,
                target_user_id=user.id,
                details={
                    "externalId": record.external_id,
                    "email": email,
                    "scheduleId": str(schedule.id),
                },
                actor=self.actor,
                created_at=now,
            )
        )
        return user

    def _update_user(
        self,
        repositories: SyncRepositories,
        user: User,
        record: PlatformUserRecord,
        now: datetime,
    ) -> None:
        user.apply_platform_profile(
            email=str(record.email),
            display_name=record.name or user.display_name,
            username=record.username,
            metadata=record.metadata,
            synced_at=now,
        )
        repositories.audit_log.add(
            AuditEntry(
                action=AuditAction.USER_UPDATED,
                target_user_id=user.id,
                details={"externalId": record.external_id, "email": user.email},
                actor=self.actor,
                created_at=now,
            )
        )

    @staticmethod
    def _available_username(repositories: SyncRepositories, base: str) -> str:
        if not repositories.users.username_taken(base):
            return base
        for suffix in range(2, _MAX_USERNAME_SUFFIX):
            candidate = f"{base}-{suffix}"
            if not repositories.users.username_taken(candidate):
                return candidate
        return f"{base}-{secrets.token_hex(4)}"


def _placeholder_password_hash() -> str:
    """Hash of a random secret that is discarded immediately.

    The account cannot be logged into until identity setup completes elsewhere.
    """

    return "sha256$" + hashlib.sha256(secrets.token_bytes(32)).hexdigest()
