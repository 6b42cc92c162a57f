from __future__ import annotations

import logging
from pathlib import Path  # noqa: TC003

import pytest

from catimport.config import ImportSettings, configure_logging, storage


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("DATABASE_URI", raising=False)
    monkeypatch.delenv("CATIMPORT_DATA_DIR", raising=False)


def test_data_dir_env_wins_over_settings(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    custom = tmp_path / "custom-data"
    monkeypatch.setenv("CATIMPORT_DATA_DIR", str(custom))
    settings = ImportSettings.from_mapping({"data_dir": str(tmp_path / "configured")})

    config = storage.get_storage_config(settings)

    assert config.data_dir == custom


def test_database_uri_env_wins_over_settings(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DATABASE_URI", "sqlite:///override.db")
    settings = ImportSettings.from_mapping({"database_uri": "sqlite:///configured.db"})

    config = storage.get_database_config(settings)

    assert config.uri == "sqlite:///override.db"
    assert config.source == "environment"


def test_database_uri_from_settings() -> None:
    settings = ImportSettings.from_mapping({"database_uri": "postgresql://shop@db/catalog"})

    config = storage.get_database_config(settings)

    assert config.uri == "postgresql://shop@db/catalog"
    assert config.source == "settings"


def test_sqlite_file_in_configured_data_dir(tmp_path: Path) -> None:
    settings = ImportSettings.from_mapping({"data_dir": str(tmp_path / "data-dir")})

    config = storage.get_database_config(settings)

    expected_path = (tmp_path / "data-dir" / storage.DEFAULT_DB_FILENAME).resolve()
    assert config.uri == f"sqlite+pysqlite:///{expected_path}"
    assert config.source == "data_dir"
    assert expected_path.parent.is_dir()


def test_platform_data_dir_without_settings(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    monkeypatch.setattr(storage.os, "name", "posix")
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path))

    config = storage.get_storage_config()

    assert config.data_dir == tmp_path / storage.APP_DIR_NAME


def test_configure_logging_accepts_level_names() -> None:
    root = logging.getLogger()
    previous = root.level
    try:
        configure_logging("warning", force=True)

        assert root.level == logging.WARNING
    finally:
        configure_logging(previous, force=True)
