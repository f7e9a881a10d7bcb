"""Outbound notification (webhook) configuration values."""

from __future__ import annotations

from dataclasses import dataclass, field

from .env import env_float, env_list, optional_env_var
from .errors import ConfigurationError

WEBHOOK_TIMEOUT_SECONDS = 2.0
SIGNATURE_HEADER = "X-Usersync-Signature"


@dataclass(frozen=True, slots=True)
class WebhookConfig:
    """Subscriber endpoints notified after each reconcile."""

    urls: tuple[str, ...] = field(default_factory=tuple)
    secret: str | None = None
    timeout_seconds: float = WEBHOOK_TIMEOUT_SECONDS
    signature_header: str = SIGNATURE_HEADER

    def __post_init__(self) -> None:
        if self.timeout_seconds <= 0:
            raise ConfigurationError("Webhook timeout must be positive")
        for url in self.urls:
            if not url.startswith(("http://", "https://")):
                raise ConfigurationError(f"Webhook URL must be http(s): {url!r}")

    @property
    def enabled(self) -> bool:
        return bool(self.urls)


def get_webhook_config() -> WebhookConfig:
    return WebhookConfig(
        urls=env_list("USERSYNC_WEBHOOK_URLS"),
        secret=optional_env_var("USERSYNC_WEBHOOK_SECRET"),
        timeout_seconds=env_float("USERSYNC_WEBHOOK_TIMEOUT", WEBHOOK_TIMEOUT_SECONDS),
    )
