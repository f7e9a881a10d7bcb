"""Best-effort delivery of reconcile outcomes to the notification port."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Mapping

    from usersync.domain.ports.notification import NotificationEmitter

log = getLogger(__name__)


def notify_safely(
    emitter: NotificationEmitter,
    event_name: str,
    payload: Mapping[str, Any],
) -> bool:
    """Call ``emitter`` once and report whether it succeeded.

    Emitter failures are logged and never propagate: a notification problem must
    not change the outcome of the operation that triggered it.
    """

    try:
        emitter.notify(event_name, payload)
    except Exception:  # noqa: BLE001
        log.warning("Notification %s failed for %s", event_name, dict(payload), exc_info=True)
        return False
    return True
