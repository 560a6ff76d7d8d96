"""drsync configuration settings using pydantic-settings."""

from functools import cached_property
from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Configuration settings for the drsync agent.

    Settings are loaded from environment variables with the DRSYNC_ prefix.
    For example, DRSYNC_SERVER_URL=https://drm.example.org sets server_url.
    """

    model_config = SettingsConfigDict(
        env_prefix="DRSYNC_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Server settings
    server_url: str = "http://localhost:8787"
    request_timeout: float = 30.0  # httpx timeout per request
    call_timeout: float = 60.0  # upper bound for one remote call in a drain

    # Connectivity
    probe_interval: float = 10.0  # seconds between reachability checks
    probe_timeout: float = 5.0

    # Photo intake
    jpeg_quality: int = 85

    # File paths
    data_dir: Path = Path("~/.local/share/drsync")
    locations_file: Path | None = None

    # Logging
    log_level: str = "INFO"
    log_file: Path | None = None

    @field_validator("request_timeout", "call_timeout", "probe_interval", "probe_timeout")
    @classmethod
    def validate_positive(cls, v: float) -> float:
        """Ensure timeouts and intervals are positive."""
        if v <= 0:
            raise ValueError("timeouts and intervals must be positive")
        return v

    @field_validator("jpeg_quality")
    @classmethod
    def validate_jpeg_quality(cls, v: int) -> int:
        """Ensure JPEG quality is within valid range."""
        if v < 1 or v > 100:
            raise ValueError("jpeg_quality must be between 1 and 100")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensure log level is valid."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid_levels:
            raise ValueError(f"log_level must be one of {valid_levels}")
        return v.upper()

    @field_validator("server_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @cached_property
    def data_path(self) -> Path:
        """Return expanded data directory path."""
        return self.data_dir.expanduser()

    @cached_property
    def images_path(self) -> Path:
        """Directory holding photos queued for upload."""
        return self.data_path / "images"

    @cached_property
    def store_path(self) -> Path:
        """SQLite file holding the submission snapshot."""
        return self.data_path / "submissions.db"

    @cached_property
    def locations_path(self) -> Path | None:
        """Return expanded location dataset path, if configured."""
        if self.locations_file is None:
            return None
        return self.locations_file.expanduser()
