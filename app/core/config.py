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
if _env_file:
    from dotenv import load_dotenv
    load_dotenv(_env_file, override=True)


def _build_log_settings() -> "LogSettings":
    """Build log settings from environment.

    Pydantic Settings (v2) can populate values from environment variables.
    However, static type checkers often treat required fields as required
    constructor arguments, which is not how BaseSettings is intended to be used.
    """

    return LogSettings()  # type: ignore[call-arg]


def _build_app_settings() -> "AppSettings":
    """Build app settings from environment.

    See _build_log_settings() for rationale about the type ignore.
    """

    return AppSettings()  # type: ignore[call-arg]


def _build_captcha_settings() -> "CaptchaSettings":
    return CaptchaSettings()  # type: ignore[call-arg]


def _build_storage_settings() -> "StorageSettings":
    return StorageSettings()  # type: ignore[call-arg]


class LogSettings(BaseSettings):
    """Logging output configuration."""

    level: str = Field(
        "INFO",
        description="Root log level (DEBUG, INFO, WARNING, ERROR)",
    )
    format: str = Field(
        "json",
        description="Log line format: json or plain",
    )
    output: str = Field(
        "stdout",
        description="Log destination: stdout or file",
    )
    file_path: str | None = Field(
        None,
        description="Log file path when output=file",
    )
    max_bytes: int = Field(
        10 * 1024 * 1024,
        description="Rotate the log file after this many bytes (0 disables rotation)",
    )
    backup_count: int = Field(
        5,
        description="Number of rotated log files to keep",
    )
    request_id_header: str = Field(
        "X-Request-ID",
        description="Header used to read and propagate the request correlation id",
    )

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        case_sensitive=False,
    )


class AppSettings(BaseSettings):
    """Application-wide configuration."""

    debug: bool = Field(
        False,
        description="Enable debug mode with verbose logging",
    )
    max_upload_size_mb: int = Field(
        10,
        description="Maximum image upload size in megabytes",
    )
    image_upload_max_count: int = Field(
        100,
        description="Image uploads allowed per client before a captcha is required",
        ge=1,
    )
    image_upload_period_seconds: int = Field(
        86400,
        description="Throttle window for image uploads in seconds",
        ge=1,
    )
    admin_api_keys: str | None = Field(
        None,
        description="Comma-separated API keys allowed to delete stored images",
    )

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        case_sensitive=False,
    )


class CaptchaSettings(BaseSettings):
    """Image captcha configuration."""

    ttl_seconds: int = Field(
        3600,
        description="How long an issued captcha stays valid",
        ge=1,
    )
    width: int = Field(
        100,
        description="Default captcha image width in pixels",
        ge=1,
    )
    height: int = Field(
        36,
        description="Default captcha image height in pixels",
        ge=1,
    )
    length: int = Field(
        5,
        description="Number of characters in a captcha phrase",
        ge=1,
    )
    cache_max_entries: int | None = Field(
        100_000,
        description="Maximum captchas kept in the in-memory cache (None for unlimited)",
    )

    model_config = SettingsConfigDict(
        env_prefix="CAPTCHA_",
        case_sensitive=False,
    )


class StorageSettings(BaseSettings):
    """Object storage configuration.

    Supports multiple drivers (local, qiniu).
    Validation of driver-specific requirements happens in the factory.
    """

    driver: str = Field(
        "local",
        description="Storage driver name (local, qiniu)",
    )
    url: str = Field(
        "http://localhost:8000/static/",
        description="Public base URL that stored objects are served from",
    )
    local_root: str = Field(
        "storage",
        description="Directory used by the local driver",
    )
    local_mount_path: str | None = Field(
        "/static",
        description="Where the app serves local_root (None when a web server does it)",
    )
    qiniu_access_id: str | None = Field(
        None,
        description="Qiniu AccessKey (required for the qiniu driver)",
    )
    qiniu_access_secret: str | None = Field(
        None,
        description="Qiniu SecretKey (required for the qiniu driver)",
    )
    qiniu_bucket: str | None = Field(
        None,
        description="Qiniu bucket name (required for the qiniu driver)",
    )
    qiniu_zone: str = Field(
        "z0",
        description="Qiniu zone: z0, z1, z2, na0 or as0",
    )
    timeout_seconds: float = Field(
        30.0,
        description="Timeout for remote storage requests in seconds",
    )

    model_config = SettingsConfigDict(
        env_prefix="STORAGE_",
        case_sensitive=False,
    )


class Settings(BaseSettings):
    """Main application settings container.

    Automatically loads from the appropriate .env.{APP_ENV} file.
    Raises validation errors on startup if required settings are missing.

    Environments:
    - development: Local development (DEBUG=true)
    - testing: Automated tests (uses .env.testing)
    - staging: Pre-production (uses .env.staging)
    - production: Production deployment (uses .env.production)
    """

    app_env: str = APP_ENV
    log: LogSettings = Field(default_factory=_build_log_settings)
    app: AppSettings = Field(default_factory=_build_app_settings)
    captcha: CaptchaSettings = Field(default_factory=_build_captcha_settings)
    storage: StorageSettings = Field(default_factory=_build_storage_settings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )


# Global settings instance - composed from domain-specific settings
# Nested settings are created via default_factory so env loading works.
settings = Settings()
