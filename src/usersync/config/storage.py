"""Where usersync keeps its user store."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Final

from sqlalchemy.engine import make_url
from sqlalchemy.exc import ArgumentError

from .env import optional_env_var
from .errors import ConfigurationError

APP_DIR_NAME: Final[str] = "usersync"
DEFAULT_DB_FILENAME: Final[str] = "usersync.db"
DATA_DIR_ENV: Final[str] = "USERSYNC_DATA_DIR"
DATABASE_URI_ENV: Final[str] = "DATABASE_URI"


@dataclass(frozen=True, slots=True)
class StorageConfig:
    """Local data directory holding the default SQLite user store."""

    data_dir: Path
    database_filename: str = DEFAULT_DB_FILENAME

    @property
    def database_path(self) -> Path:
        return self.data_dir.expanduser().resolve() / self.database_filename

    def sqlite_uri(self) -> str:
        """URI of the default store; creates the data directory on first use."""

        path = self.database_path
        path.parent.mkdir(parents=True, exist_ok=True)
        return f"sqlite+pysqlite:///{path}"


@dataclass(frozen=True, slots=True)
class DatabaseConfig:
    uri: str

    def __post_init__(self) -> None:
        try:
            make_url(self.uri)
        except ArgumentError as exc:
            raise ConfigurationError(
                f"{DATABASE_URI_ENV} is not a database URL: {self.uri!r}"
            ) from exc

    def display_uri(self) -> str:
        """The URI with any password masked, for log output."""

        return make_url(self.uri).render_as_string(hide_password=True)


def _default_data_dir() -> Path:
    if os.name == "nt":
        base = os.getenv("LOCALAPPDATA") or str(Path.home() / "AppData" / "Local")
    else:
        base = os.getenv("XDG_DATA_HOME") or str(Path.home() / ".local" / "share")
    return Path(base) / APP_DIR_NAME


def get_storage_config() -> StorageConfig:
    configured = optional_env_var(DATA_DIR_ENV)
    return StorageConfig(data_dir=Path(configured) if configured else _default_data_dir())


def get_database_config(*, storage: StorageConfig | None = None) -> DatabaseConfig:
    """``DATABASE_URI`` when set, otherwise the SQLite file in the data directory."""

    configured = optional_env_var(DATABASE_URI_ENV)
    if configured:
        return DatabaseConfig(uri=configured)
    return DatabaseConfig(uri=(storage or get_storage_config()).sqlite_uri())
