"""Tests for drsync settings."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from drsync.config import Settings, get_settings


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    for name in (
        "DRSYNC_SERVER_URL",
        "DRSYNC_CALL_TIMEOUT",
        "DRSYNC_JPEG_QUALITY",
        "DRSYNC_DATA_DIR",
        "DRSYNC_LOG_LEVEL",
        "DRSYNC_LOCATIONS_FILE",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def test_defaults():
    settings = Settings(_env_file=None)

    assert settings.server_url == "http://localhost:8787"
    assert settings.call_timeout == 60.0
    assert settings.probe_interval == 10.0
    assert settings.jpeg_quality == 85
    assert settings.locations_path is None


def test_env_overrides(monkeypatch, tmp_path: Path):
    monkeypatch.setenv("DRSYNC_SERVER_URL", "https://drm.example.org/")
    monkeypatch.setenv("DRSYNC_CALL_TIMEOUT", "15")
    monkeypatch.setenv("DRSYNC_DATA_DIR", str(tmp_path / "data"))
    monkeypatch.setenv("DRSYNC_LOG_LEVEL", "debug")

    settings = Settings(_env_file=None)

    assert settings.server_url == "https://drm.example.org"
    assert settings.call_timeout == 15.0
    assert settings.log_level == "DEBUG"
    assert settings.images_path == tmp_path / "data" / "images"
    assert settings.store_path == tmp_path / "data" / "submissions.db"


def test_dotenv_file_is_read(tmp_path: Path):
    (tmp_path / ".env").write_text("DRSYNC_JPEG_QUALITY=60\n", encoding="utf-8")

    assert Settings().jpeg_quality == 60


@pytest.mark.parametrize(
    "field,value",
    [
        ("call_timeout", 0),
        ("probe_interval", -1),
        ("jpeg_quality", 0),
        ("jpeg_quality", 101),
        ("log_level", "VERBOSE"),
    ],
)
def test_invalid_values_rejected(field, value):
    with pytest.raises(ValidationError):
        Settings(_env_file=None, **{field: value})


def test_get_settings_is_cached():
    assert get_settings() is get_settings()
