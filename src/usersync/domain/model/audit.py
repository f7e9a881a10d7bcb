"""Append-only audit records for admin-driven account changes."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from usersync.domain.model.entity import Entity

if TYPE_CHECKING:
    from uuid import UUID

    from .enums import AuditAction


@dataclass(eq=False, kw_only=True)
class AuditEntry(Entity):
    action: AuditAction
    target_user_id: UUID
    details: dict[str, Any] | None = None
    actor: str | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(tz=UTC))
