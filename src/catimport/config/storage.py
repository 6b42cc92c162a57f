"""Where the catalog database lives.

The database URI is taken from ``$DATABASE_URI`` first, then from the
``database_uri`` key of the import configuration. Without either, a SQLite file
is kept in the data directory (``$CATIMPORT_DATA_DIR``, the ``data_dir`` key or
the platform's user data directory, in that order).
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Final, Literal

if TYPE_CHECKING:
    from .importing import ImportSettings

APP_DIR_NAME: Final[str] = "catimport"
DEFAULT_DB_FILENAME: Final[str] = "catimport.db"
DATA_DIR_ENV_VAR: Final[str] = "CATIMPORT_DATA_DIR"
DATABASE_URI_ENV_VAR: Final[str] = "DATABASE_URI"

type UriSource = Literal["environment", "settings", "data_dir"]


@dataclass(frozen=True, slots=True)
class StorageConfig:
    data_dir: Path

    def database_file(self) -> Path:
        """Return the SQLite file path, creating the data directory on the way."""

        data_dir = self.data_dir.expanduser().resolve()
        data_dir.mkdir(parents=True, exist_ok=True)
        return data_dir / DEFAULT_DB_FILENAME


@dataclass(frozen=True, slots=True)
class DatabaseConfig:
    uri: str
    source: UriSource


def _platform_data_dir() -> Path:
    if os.name == "nt":
        base = os.getenv("LOCALAPPDATA")
        base_path = Path(base) if base else (Path.home() / "AppData" / "Local")
    else:
        base = os.getenv("XDG_DATA_HOME")
        base_path = Path(base) if base else (Path.home() / ".local" / "share")
    return base_path / APP_DIR_NAME


def get_storage_config(settings: ImportSettings | None = None) -> StorageConfig:
    if env_dir := os.getenv(DATA_DIR_ENV_VAR):
        return StorageConfig(data_dir=Path(env_dir))
    if settings is not None and settings.data_dir is not None:
        return StorageConfig(data_dir=Path(settings.data_dir))
    return StorageConfig(data_dir=_platform_data_dir())


def get_database_config(settings: ImportSettings | None = None) -> DatabaseConfig:
    if env_uri := os.getenv(DATABASE_URI_ENV_VAR):
        return DatabaseConfig(uri=env_uri, source="environment")
    if settings is not None and settings.database_uri:
        return DatabaseConfig(uri=settings.database_uri, source="settings")
    path = get_storage_config(settings).database_file()
    return DatabaseConfig(uri=f"sqlite+pysqlite:///{path}", source="data_dir")
