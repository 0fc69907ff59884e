"""
Application settings.

Values come from environment variables prefixed with PRINTHELPER_
(e.g. PRINTHELPER_MAX_CONCURRENT_SESSIONS=2) or an optional .env file.
"""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration for the render service."""

    model_config = SettingsConfigDict(
        env_prefix="PRINTHELPER_",
        env_file=".env",
        extra="ignore",
    )

    # Server
    host: str = "0.0.0.0"
    port: int = 3000
    log_level: str = "INFO"
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])

    # Browser
    chrome_bin: str | None = Field(
        default=None,
        description="Chromium/Chrome executable; Playwright's bundled build when unset",
    )
    max_concurrent_sessions: int = Field(default=4, ge=1)

    # Pipeline timing
    navigation_timeout_ms: int = 60_000
    readiness_timeout_ms: int = 30_000
    readiness_poll_ms: int = 300
    settle_delay_seconds: float = 1.0
    final_settle_seconds: float = 0.5
    asset_fetch_timeout_seconds: float = 30.0
    request_timeout_seconds: float = 120.0

    # Debug: write mutated document markup here when set
    debug_dump_dir: Path | None = None


_settings: Settings | None = None


def get_settings() -> Settings:
    """Get the process-wide settings, building them on first use."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def init_settings(settings: Settings) -> Settings:
    """Install an explicit settings object (used by build_app and tests)."""
    global _settings
    _settings = settings
    return _settings


def reset_settings() -> None:
    """Drop cached settings so the next get_settings() re-reads the env."""
    global _settings
    _settings = None
