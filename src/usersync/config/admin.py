"""Admin identification by e-mail allowlist.

This is configuration data for the outer (CLI/API) layers only; the
reconciliation core never consults it.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from .env import env_list


@dataclass(frozen=True, slots=True)
class AdminConfig:
    admin_emails: frozenset[str] = field(default_factory=frozenset[str])

    @property
    def restricted(self) -> bool:
        """An empty allowlist means no e-mail based gating is configured."""
        return bool(self.admin_emails)

    def is_admin(self, email: str | None) -> bool:
        if email is None:
            return False
        return email.strip().lower() in self.admin_emails


def get_admin_config() -> AdminConfig:
    return AdminConfig(
        admin_emails=frozenset(email.lower() for email in env_list("ADMIN_EMAILS")),
    )
