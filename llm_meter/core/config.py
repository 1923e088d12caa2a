"""Service configuration using Pydantic Settings.

Configuration is environment-aware:
- APP_ENV selects which .env file is loaded (development, testing, staging,
  production)
- Every value can be overridden through plain environment variables
"""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from llm_meter.schemas.tiers import TierLimits


APP_ENV = os.getenv("APP_ENV", "development")

# Project root (so .env resolution doesn't depend on current working directory)
PROJECT_ROOT = Path(__file__).resolve().parents[2]

ENV_FILE_MAP = {
    "development": ".env.development",
    "testing": ".env.testing",
    "staging": ".env.staging",
    "production": ".env.production",
}

_env_path = PROJECT_ROOT / ENV_FILE_MAP.get(APP_ENV, ".env.development")
_env_file = str(_env_path) if _env_path.is_file() else None

# Nested BaseSettings don't inherit env_file, so populate os.environ up front.
if _env_file:
    from dotenv import load_dotenv
    load_dotenv(_env_file, override=True)


DEFAULT_TIERS: dict[str, int] = {
    "Bronze": 100,
    "Silver": 200,
    "Gold": 300,
    "Platinum": 400,
}


class LogSettings(BaseSettings):
    """Logging output configuration."""

    level: str = Field("INFO", description="Root log level")
    format: str = Field("json", description="Log format: json or plain")
    output: str = Field("stdout", description="Log destination: stdout or file")
    file_path: str | None = Field(None, description="Log file path when output=file")
    max_bytes: int = Field(
        0,
        description="Rotate the log file after this many bytes (0 disables rotation)",
        ge=0,
    )
    backup_count: int = Field(5, description="Rotated files to keep", ge=0)
    request_id_header: str = Field(
        "X-Request-ID",
        description="Header used to read and echo the request correlation id",
    )

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        case_sensitive=False,
    )


class AuthSettings(BaseSettings):
    """Shared HTTP Basic credential.

    A single username/password pair is accepted for every client.
    """

    username: str = Field("eventing", description="HTTP Basic username")
    password: str = Field("eventing123", description="HTTP Basic password")
    counter_read_requires_auth: bool = Field(
        False,
        description="Require credentials for GET /my-llm as well",
    )

    model_config = SettingsConfigDict(
        env_prefix="AUTH_",
        case_sensitive=False,
    )


class AppSettings(BaseSettings):
    """Application-wide configuration."""

    debug: bool = Field(False, description="Enable debug mode")
    host: str = Field("0.0.0.0", description="Bind address for the HTTP server")
    port: int = Field(3054, description="Bind port for the HTTP server", ge=1, le=65535)
    initial_tiers: TierLimits = Field(
        default_factory=lambda: dict(DEFAULT_TIERS),
        description="Tier name to limit mapping loaded at startup (JSON in env)",
    )

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        case_sensitive=False,
    )


def _build_log_settings() -> LogSettings:
    return LogSettings()


def _build_auth_settings() -> AuthSettings:
    return AuthSettings()


def _build_app_settings() -> AppSettings:
    return AppSettings()


class Settings(BaseSettings):
    """Main settings container.

    Nested settings are created via default_factory so each one reads its
    own prefixed environment variables.
    """

    app_env: str = APP_ENV
    log: LogSettings = Field(default_factory=_build_log_settings)
    auth: AuthSettings = Field(default_factory=_build_auth_settings)
    app: AppSettings = Field(default_factory=_build_app_settings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )


settings = Settings()
