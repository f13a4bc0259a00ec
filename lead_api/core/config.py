"""Application configuration using Pydantic Settings.

Configuration is environment-aware:
- APP_ENV determines which .env file to load
- Supports: development, testing, staging, production
- Each environment has its own .env.{environment} file
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


# Determine which environment to load (default: development)
APP_ENV = os.getenv("APP_ENV", "development")

# Project root (so .env and data paths don't depend on current working directory)
PROJECT_ROOT = Path(__file__).resolve().parents[2]

ENV_FILE_MAP = {
    "development": ".env.development",
    "testing": ".env.testing",
    "staging": ".env.staging",
    "production": ".env.production",
}

_env_filename = ENV_FILE_MAP.get(APP_ENV, ".env.development")
_env_path = PROJECT_ROOT / _env_filename

# Only load from file if it exists (production might inject via env vars only)
_env_file = str(_env_path) if _env_path.is_file() else None


# Nested BaseSettings don't inherit env_file, so populate os.environ first
if _env_file:
    from dotenv import load_dotenv
    load_dotenv(_env_file, override=True)


def _build_app_settings() -> "AppSettings":
    """Build app settings from environment."""

    return AppSettings()  # type: ignore[call-arg]


def _build_store_settings() -> "StoreSettings":
    """Build record store settings from environment."""

    return StoreSettings()  # type: ignore[call-arg]


def _build_log_settings() -> "LogSettings":
    """Build logging settings from environment."""

    return LogSettings()  # type: ignore[call-arg]


class AppSettings(BaseSettings):
    """Application-wide configuration."""

    debug: bool = Field(
        False,
        description="Enable debug mode with verbose logging",
    )
    api_key_required: bool = Field(
        True,
        description="Whether admin endpoints require an X-API-Key header",
    )
    api_keys: str | None = Field(
        None,
        description="Comma-separated list of valid API keys for admin endpoints",
    )

    rate_limit_enabled: bool = Field(
        True,
        description="Enable per-client rate limiting on submission endpoints",
    )
    rate_limit_requests: int = Field(
        12,
        description="Maximum number of submissions accepted per window (per client and endpoint)",
        ge=1,
    )
    rate_limit_window_seconds: int = Field(
        60,
        description="Rate limit window size in seconds",
        ge=1,
    )
    rate_limit_include_headers: bool = Field(
        True,
        description="Include X-RateLimit-* and Retry-After headers when throttling",
    )

    max_body_bytes: int = Field(
        1024 * 1024,
        description="Maximum accepted JSON request body size in bytes",
        ge=1,
    )
    default_page_size: int = Field(
        20,
        description="Page size used by admin listings when pageSize is omitted",
        ge=1,
    )
    max_page_size: int = Field(
        100,
        description="Largest pageSize accepted by admin listings",
        ge=1,
    )
    recent_limit: int = Field(
        50,
        description="Number of newest records returned by the recent leads view",
        ge=1,
    )
    timezone: str | None = Field(
        None,
        description="IANA timezone used for 'today' counts (system local time when unset)",
    )

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        case_sensitive=False,
    )


class StoreSettings(BaseSettings):
    """Record store configuration.

    The backend is swappable: ``sqlite`` persists to ``db_path`` while
    ``memory`` keeps everything in-process (tests, throwaway demos).
    """

    backend: Literal["sqlite", "memory"] = Field(
        "sqlite",
        description="Snapshot persistence backend",
    )
    db_path: Path = Field(
        PROJECT_ROOT / "data" / "leads.db",
        description="SQLite database file",
    )
    legacy_json_path: Path | None = Field(
        PROJECT_ROOT / "data" / "leads.json",
        description="Legacy flat-file snapshot imported once into an empty store",
    )
    sqlite_timeout_seconds: float = Field(
        5.0,
        description="How long SQLite waits on a locked database before failing",
        gt=0,
    )
    duplicate_detector: Literal["snapshot", "memory"] = Field(
        "snapshot",
        description="Duplicate detection strategy (snapshot scan survives restarts)",
    )
    duplicate_window_seconds: int = Field(
        600,
        description="Window in which an equivalent submission is rejected as duplicate",
        ge=1,
    )

    model_config = SettingsConfigDict(
        env_prefix="STORE_",
        case_sensitive=False,
    )


class LogSettings(BaseSettings):
    """Logging output configuration."""

    level: str = Field("INFO", description="Root log level")
    format: Literal["json", "plain"] = Field("json", description="Log line format")
    request_id_header: str = Field(
        "X-Request-ID",
        description="Header used to accept and echo the request correlation id",
    )

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        case_sensitive=False,
    )


class Settings(BaseSettings):
    """Main application settings container.

    Automatically loads from the appropriate .env.{APP_ENV} file.
    Raises validation errors on startup if settings are malformed.
    """

    app_env: str = APP_ENV
    app: AppSettings = Field(default_factory=_build_app_settings)
    store: StoreSettings = Field(default_factory=_build_store_settings)
    log: LogSettings = Field(default_factory=_build_log_settings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )


# Global settings instance - composed from domain-specific settings
settings = Settings()
