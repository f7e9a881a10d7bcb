"""Translate platform payloads into domain records."""

from __future__ import annotations

from typing import TYPE_CHECKING

from usersync.domain.records import PlatformUserRecord

if TYPE_CHECKING:
    from .schema import PlatformUserPayload


def to_record(payload: PlatformUserPayload) -> PlatformUserRecord:
    return PlatformUserRecord(
        external_id=payload.external_id,
        email=payload.email,
        name=payload.name,
        username=payload.username,
        metadata=payload.platform_metadata,
    )


def rejected_record(external_id: str | None, reason: str) -> PlatformUserRecord:
    """Stand-in for a batch entry that could not be read as a user."""

    return PlatformUserRecord(external_id=external_id, email=None, rejection=reason)
