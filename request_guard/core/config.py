"""Application configuration using Pydantic Settings.

Configuration is environment-aware:
- APP_ENV determines which .env file to load
- Supports: development, testing, staging, production
- Each environment has its own .env.{environment} file
"""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


# Determine which environment to load (default: development)
APP_ENV = os.getenv("APP_ENV", "development")

# Project root (so .env resolution doesn't depend on current working directory)
PROJECT_ROOT = Path(__file__).resolve().parents[2]

# Map environments to their respective .env files (relative to PROJECT_ROOT)
ENV_FILE_MAP = {
    "development": ".env.development",
    "testing": ".env.testing",
    "staging": ".env.staging",
    "production": ".env.production",
}

# Select the .env file for the current environment
_env_filename = ENV_FILE_MAP.get(APP_ENV, ".env.development")
_env_path = PROJECT_ROOT / _env_filename

# Only load from file if it exists (production might inject via env vars only)
_env_file = str(_env_path) if _env_path.is_file() else None


# Load .env file early to populate os.environ before creating nested settings
# This is necessary because Pydantic nested BaseSettings don't inherit env_file
if _env_file and os.getenv("TESTING") != "true":
    from dotenv import load_dotenv
    load_dotenv(_env_file, override=True)


def _build_app_settings() -> "AppSettings":
    """Build app settings from environment.

    Pydantic Settings (v2) populates values from environment variables, so
    the nested groups are created lazily via default_factory.
    """

    return AppSettings()


def _build_limiter_settings() -> "LimiterSettings":
    return LimiterSettings()


def _build_log_settings() -> "LogSettings":
    return LogSettings()


class AppSettings(BaseSettings):
    """Application-wide configuration."""

    debug: bool = Field(
        False,
        description="Enable debug mode with verbose logging",
    )
    api_key_required: bool = Field(
        True,
        description="Whether API key authentication is required",
    )
    api_keys: str | None = Field(
        None,
        description="Comma-separated list of valid API keys for authentication",
    )
    rate_limit_enabled: bool = Field(
        True,
        description="Enable per-subject rate limiting on guarded routes",
    )
    rate_limit_include_headers: bool = Field(
        True,
        description="Include X-RateLimit-* and Retry-After headers when throttling",
    )

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        case_sensitive=False,
    )


class LimiterSettings(BaseSettings):
    """Window limiter configuration.

    One limiter is built per operation category; each category only
    overrides its request budget; the window is shared.
    """

    default_max_requests: int = Field(
        10,
        description="Requests allowed per window for operations without a dedicated limiter",
        ge=1,
    )
    default_window_seconds: float = Field(
        60.0,
        description="Fixed window size in seconds",
        gt=0,
    )
    transaction_max_requests: int = Field(
        20,
        description="Requests per window for transaction operations",
        ge=1,
    )
    budget_max_requests: int = Field(
        10,
        description="Requests per window for budget operations",
        ge=1,
    )
    goal_max_requests: int = Field(
        15,
        description="Requests per window for financial goal operations",
        ge=1,
    )
    durable: bool = Field(
        False,
        description="Persist limiter state to the key-value store instead of process memory",
    )
    storage_dir: str | None = Field(
        None,
        description="Directory backing the durable key-value store",
    )
    storage_key: str = Field(
        "rateLimits",
        description="Store key holding the serialized limiter table",
    )
    max_entries: int | None = Field(
        10000,
        description="Upper bound on tracked keys before least recently used eviction",
        ge=1,
    )
    sweep_every: int = Field(
        256,
        description="Remove expired entries every N checks (in-memory limiter)",
        ge=1,
    )

    model_config = SettingsConfigDict(
        env_prefix="LIMITER_",
        case_sensitive=False,
    )


class LogSettings(BaseSettings):
    """Logging output configuration."""

    level: str = Field("INFO", description="Root log level")
    format: str = Field("json", description="json or plain")
    output: str = Field("stdout", description="stdout or file")
    file_path: str | None = Field(None, description="Log file path when output=file")
    max_bytes: int = Field(0, description="Rotate log file after this many bytes (0 disables)")
    backup_count: int = Field(5, description="Rotated files to keep")
    request_id_header: str = Field(
        "X-Request-ID",
        description="Header used to propagate the correlation id",
    )

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        case_sensitive=False,
    )


class Settings(BaseSettings):
    """Main application settings container.

    Automatically loads from the appropriate .env.{APP_ENV} file.
    Raises validation errors on startup if settings are invalid.
    """

    app_env: str = APP_ENV
    app: AppSettings = Field(default_factory=_build_app_settings)
    limiter: LimiterSettings = Field(default_factory=_build_limiter_settings)
    log: LogSettings = Field(default_factory=_build_log_settings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )


# Global settings instance - composed from domain-specific settings
# Nested settings are created via default_factory so env loading works.
settings = Settings()
