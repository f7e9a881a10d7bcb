"""Application configuration helpers."""

from __future__ import annotations

from .admin import AdminConfig, get_admin_config
from .env import require_env_vars
from .errors import ConfigurationError, MissingConfigurationError
from .logging import configure_logging
from .notifications import WebhookConfig, get_webhook_config
from .storage import DatabaseConfig, StorageConfig, get_database_config, get_storage_config
from .sync import SyncConfig, get_sync_config

__all__ = [
    "AdminConfig",
    "ConfigurationError",
    "DatabaseConfig",
    "MissingConfigurationError",
    "StorageConfig",
    "SyncConfig",
    "WebhookConfig",
    "configure_logging",
    "get_admin_config",
    "get_database_config",
    "get_storage_config",
    "get_sync_config",
    "get_webhook_config",
    "require_env_vars",
]
