"""Port for notifying downstream listeners about reconciled users."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Mapping


@runtime_checkable
class NotificationEmitter(Protocol):
    """Fire-and-forget delivery; retries and fan-out are the emitter's concern."""

    def notify(self, event_name: str, payload: Mapping[str, Any]) -> None: ...


class NotificationDeliveryError(RuntimeError):
    """Raised by emitters when one or more listeners could not be reached."""

    def __init__(self, message: str, *, targets: tuple[str, ...] = ()) -> None:
        super().__init__(message)
        self.targets = targets
