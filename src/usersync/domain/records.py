"""Inbound platform user records and their validation."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, replace
from typing import Any, Final

from usersync.domain.errors import ValidationError

_EMAIL_PATTERN: Final = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s.]+$")
_USERNAME_INVALID: Final = re.compile(r"[^a-z0-9._-]+")


@dataclass(frozen=True, slots=True)
class PlatformUserRecord:
    """One upstream user as delivered by the platform.

    Fields are optional at this level so that a malformed entry can still travel
    through a batch and be reported against its external id. ``rejection`` is set
    when the entry could not be read at all; ``metadata`` is any JSON value.
    """

    external_id: str | None
    email: str | None
    name: str | None = None
    username: str | None = None
    metadata: Any = None
    rejection: str | None = None

    def validated(self) -> PlatformUserRecord:
        """Return a normalised copy or raise :class:`ValidationError`."""

        if self.rejection is not None:
            raise ValidationError(self.rejection)
        external_id = (self.external_id or "").strip()
        if not external_id:
            raise ValidationError("externalId is required")
        username = normalize_username(self.username) if self.username is not None else None
        if username == "":
            raise ValidationError(f"username {self.username!r} has no usable characters")
        name = self.name.strip() if self.name is not None else None
        _check_metadata(self.metadata)
        return replace(
            self,
            external_id=external_id,
            email=normalize_email(self.email),
            name=name or None,
            username=username,
        )


def normalize_email(value: str | None) -> str:
    if value is None or not value.strip():
        raise ValidationError("email is required")
    email = value.strip().lower()
    if not _EMAIL_PATTERN.match(email):
        raise ValidationError(f"email {value!r} is malformed")
    return email


def normalize_username(value: str) -> str:
    return _USERNAME_INVALID.sub("", value.strip().lower())


def username_from_email(email: str) -> str:
    """Derive a handle from the local part of ``email``."""

    local_part = email.split("@", 1)[0]
    return normalize_username(local_part) or "user"


def _check_metadata(metadata: object) -> None:
    try:
        json.dumps(metadata, allow_nan=False)
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"metadata is not a JSON value: {exc}") from exc
