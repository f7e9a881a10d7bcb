"""Local user accounts provisioned from an upstream platform."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from usersync.domain.model.entity import Entity
from usersync.domain.model.enums import AccountStatus

if TYPE_CHECKING:
    from datetime import datetime
    from uuid import UUID

    from usersync.domain.model.schedule import Schedule


@dataclass(eq=False, kw_only=True)
class User(Entity):
    """User identity record.

    ``external_id`` is the reconciliation key: unique when present, ``None`` for
    accounts created locally. ``platform_metadata`` is an opaque JSON value stored
    as received (object, array or scalar). Lifecycle state lives in
    ``status``/``deactivated_at``, never in the metadata.
    """

    email: str
    username: str
    display_name: str

    external_id: str | None = None
    synced_from_platform: bool = False
    platform_metadata: Any = None
    last_synced_at: datetime | None = None
    managed_by_admin: bool = False

    # placeholder credential, identity setup completes out-of-band
    password_hash: str | None = field(default=None, repr=False)

    status: AccountStatus = AccountStatus.ACTIVE
    deactivated_at: datetime | None = None

    default_schedule_id: UUID | None = None

    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def provision(
        cls,
        *,
        external_id: str,
        email: str,
        username: str,
        display_name: str,
        password_hash: str,
        metadata: Any,
        synced_at: datetime,
    ) -> User:
        """Create a user that originates from platform sync."""

        return cls(
            external_id=external_id,
            email=email,
            username=username,
            display_name=display_name,
            password_hash=password_hash,
            synced_from_platform=True,
            managed_by_admin=True,
            platform_metadata=copy.deepcopy(metadata),
            last_synced_at=synced_at,
            created_at=synced_at,
            updated_at=synced_at,
        )

    @property
    def is_active(self) -> bool:
        return self.status is AccountStatus.ACTIVE

    def apply_platform_profile(
        self,
        *,
        email: str,
        display_name: str,
        username: str | None,
        metadata: Any,
        synced_at: datetime,
    ) -> None:
        """Overwrite profile fields from the upstream record.

        The external id, provenance flags and creation data stay untouched.
        """

        self.email = email
        self.display_name = display_name
        if username is not None:
            self.username = username
        # reassign rather than mutate so the ORM notices the change
        self.platform_metadata = copy.deepcopy(metadata)
        self.last_synced_at = synced_at
        self.updated_at = synced_at

    def bind_default_schedule(self, schedule: Schedule) -> None:
        if schedule.user_id != self.id:
            raise ValueError("schedule not owned by this user")
        if self.default_schedule_id is not None:
            raise ValueError("user already has a default schedule")
        self.default_schedule_id = schedule.id

    def deactivate(self, *, at: datetime) -> bool:
        """Mark the account deactivated; returns ``False`` when it already was."""

        if self.status is AccountStatus.DEACTIVATED:
            return False
        self.status = AccountStatus.DEACTIVATED
        self.deactivated_at = at
        self.updated_at = at
        return True
