"""The slice of the booking store needed to cascade account deactivation."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from usersync.domain.model.entity import Entity
from usersync.domain.model.enums import BookingStatus

if TYPE_CHECKING:
    from datetime import datetime
    from uuid import UUID


@dataclass(eq=False, kw_only=True)
class Booking(Entity):
    user_id: UUID
    title: str
    start_time: datetime
    end_time: datetime
    status: BookingStatus = BookingStatus.ACCEPTED
    cancellation_reason: str | None = None

    def is_cancellable_at(self, now: datetime) -> bool:
        return self.status is not BookingStatus.CANCELLED and self.start_time >= now

    def cancel(self, reason: str) -> None:
        self.status = BookingStatus.CANCELLED
        self.cancellation_reason = reason
