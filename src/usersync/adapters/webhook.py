"""Notification emitters: signed JSON webhooks over httpx, or plain log lines."""

from __future__ import annotations

import hashlib
import hmac
import json
import time
from dataclasses import dataclass, field
from logging import INFO, getLogger
from typing import TYPE_CHECKING, Any

import httpx

from usersync.config.notifications import WebhookConfig
from usersync.domain.ports.notification import NotificationDeliveryError
from usersync.domain.time_windows import utcnow

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

    from usersync.domain.ports.notification import NotificationEmitter
    from usersync.domain.time_windows import Clock

log = getLogger(__name__)

USER_AGENT = "usersync-webhook/1"


def compute_signature(secret: str, body: bytes) -> str:
    """Hex HMAC-SHA256 of ``body`` keyed by ``secret``."""

    return hmac.new(secret.encode("utf-8"), body, hashlib.sha256).hexdigest()


def _default_client_factory(config: WebhookConfig) -> httpx.Client:
    return httpx.Client(
        timeout=httpx.Timeout(config.timeout_seconds),
        headers={"User-Agent": USER_AGENT},
    )


@dataclass(slots=True)
class WebhookNotificationEmitter:
    """POST each event to every subscriber URL.

    Delivery is attempted once per subscriber. All subscribers of one event share a
    single deadline of ``timeout_seconds``: each request only gets the time left, and
    subscribers still waiting when it passes are not contacted. httpx applies that
    budget to each phase (connect, write, read), so one event takes at most about
    three times the timeout whatever the number of subscribers. Failed and skipped
    subscribers are listed by the :class:`NotificationDeliveryError` raised at the end.
    """

    config: WebhookConfig
    client_factory: Callable[[WebhookConfig], httpx.Client] = field(
        default=_default_client_factory
    )
    clock: Clock = utcnow
    monotonic: Callable[[], float] = time.monotonic

    def notify(self, event_name: str, payload: Mapping[str, Any]) -> None:
        if not self.config.enabled:
            return
        body = self._encode(event_name, payload)
        headers = {"Content-Type": "application/json"}
        if self.config.secret:
            headers[self.config.signature_header] = compute_signature(self.config.secret, body)

        failed: list[str] = []
        deadline = self.monotonic() + self.config.timeout_seconds
        with self.client_factory(self.config) as client:
            for url in self.config.urls:
                remaining = deadline - self.monotonic()
                if remaining <= 0:
                    log.warning("Webhook %s to %s skipped: deadline passed", event_name, url)
                    failed.append(url)
                    continue
                try:
                    response = client.post(
                        url, content=body, headers=headers, timeout=httpx.Timeout(remaining)
                    )
                    response.raise_for_status()
                except httpx.HTTPError as exc:
                    log.warning("Webhook %s to %s failed: %s", event_name, url, exc)
                    failed.append(url)
                    continue
                log.debug("Delivered %s to %s (%s)", event_name, url, response.status_code)

        if failed:
            raise NotificationDeliveryError(
                f"{event_name} not delivered to {len(failed)} of {len(self.config.urls)} "
                "subscribers",
                targets=tuple(failed),
            )

    def _encode(self, event_name: str, payload: Mapping[str, Any]) -> bytes:
        document = {
            "triggerEvent": event_name,
            "createdAt": self.clock().isoformat(),
            "payload": dict(payload),
        }
        return json.dumps(document, separators=(",", ":"), sort_keys=True).encode("utf-8")


@dataclass(slots=True)
class LoggingNotificationEmitter:
    level: int = INFO

    def notify(self, event_name: str, payload: Mapping[str, Any]) -> None:
        log.log(self.level, "Notification %s: %s", event_name, dict(payload))


def build_notification_emitter(config: WebhookConfig | None = None) -> NotificationEmitter:
    resolved = config if config is not None else WebhookConfig()
    if resolved.enabled:
        return WebhookNotificationEmitter(resolved)
    return LoggingNotificationEmitter()
