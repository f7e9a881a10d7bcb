"""Error taxonomy raised by the reconciliation core."""

from __future__ import annotations


class SyncError(Exception):
    """Base class for every error raised while synchronising platform users."""


class ValidationError(SyncError):
    """Inbound record is malformed; the caller must fix and resubmit it."""


class ConflictError(SyncError):
    """The e-mail already belongs to a different local user.

    Conflicts are surfaced for human resolution and never merged automatically.
    """

    def __init__(self, message: str, *, email: str, existing_user_id: object) -> None:
        super().__init__(message)
        self.email = email
        self.existing_user_id = existing_user_id


class NotFoundError(SyncError):
    """No local user matches the given external identifier."""


class PersistenceError(SyncError):
    """The storage layer failed; retrying the same reconcile is safe."""


class DuplicateRecordError(PersistenceError):
    """A uniqueness constraint rejected the write (usually a concurrent writer)."""
