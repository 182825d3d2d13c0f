"""Library configuration using Pydantic Settings.

Configuration is environment-aware:
- RATELIMIT_ENV determines which .env file to load
- Supports: development, testing, staging, production
- Each environment has its own .env.{environment} file

Settings are only consulted by the factories and the FastAPI dependency.
Limiters themselves read their tunables from a parameter source on every call.
"""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


# Determine which environment to load (default: development)
RATELIMIT_ENV = os.getenv("RATELIMIT_ENV", "development")

# Project root (so .env resolution doesn't depend on current working directory)
PROJECT_ROOT = Path(__file__).resolve().parents[2]

ENV_FILE_MAP = {
    "development": ".env.development",
    "testing": ".env.testing",
    "staging": ".env.staging",
    "production": ".env.production",
}

_env_filename = ENV_FILE_MAP.get(RATELIMIT_ENV, ".env.development")
_env_path = PROJECT_ROOT / _env_filename

# Only load from file if it exists (deployments may inject env vars only)
_env_file = str(_env_path) if _env_path.is_file() else None


# Nested BaseSettings don't inherit env_file, so populate os.environ up front.
if _env_file:
    from dotenv import load_dotenv
    load_dotenv(_env_file, override=False)


ALGORITHMS = ("fixed_window", "sliding_window", "leaky_bucket", "token_bucket")
STORE_BACKENDS = ("memory", "redis")


def _build_limiter_settings() -> "LimiterSettings":
    """Build limiter settings from environment.

    BaseSettings populates fields from environment variables; the wrapper
    keeps static type checkers from treating fields as constructor arguments.
    """

    return LimiterSettings()  # type: ignore[call-arg]


def _build_store_settings() -> "StoreSettings":
    """Build store settings from environment."""

    return StoreSettings()  # type: ignore[call-arg]


def _build_log_settings() -> "LogSettings":
    """Build logging settings from environment."""

    return LogSettings()  # type: ignore[call-arg]


class LimiterSettings(BaseSettings):
    """Limiter algorithm and tunables."""

    enabled: bool = Field(
        True,
        description="Enable rate limiting in the FastAPI dependency",
    )
    algorithm: str = Field(
        "fixed_window",
        description="One of: fixed_window, sliding_window, leaky_bucket, token_bucket",
    )
    max_requests: int = Field(
        10,
        description="Steady-state ceiling of requests per interval",
        ge=1,
    )
    interval_seconds: float = Field(
        60.0,
        description="Window / refill period in seconds",
        gt=0,
    )
    burst_limit: int = Field(
        0,
        description="Extra admissions tolerated above max_requests",
        ge=0,
    )
    initial_tokens: int = Field(
        0,
        description="Starting token balance (token_bucket only)",
        ge=0,
    )
    refill_poll_seconds: float | None = Field(
        None,
        description="Refill polling cadence (token_bucket only, defaults to interval)",
        gt=0,
    )
    include_headers: bool = Field(
        True,
        description="Include X-RateLimit-* and Retry-After headers when throttling",
    )

    model_config = SettingsConfigDict(
        env_prefix="RATELIMIT_",
        case_sensitive=False,
    )


class StoreSettings(BaseSettings):
    """Counter store backend selection."""

    backend: str = Field(
        "memory",
        description="Counter store backend: memory or redis",
    )
    redis_url: str | None = Field(
        None,
        description="Redis connection URL (required for the redis backend)",
    )
    key_prefix: str = Field(
        "ratewarden:",
        description="Prefix applied to every key written to a shared store",
    )

    model_config = SettingsConfigDict(
        env_prefix="RATELIMIT_STORE_",
        case_sensitive=False,
    )


class LogSettings(BaseSettings):
    """Logging output configuration."""

    level: str = Field(
        "INFO",
        description="Root log level",
    )
    format: str = Field(
        "json",
        description="Log format: json or plain",
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
        10_485_760,
        description="Rotate the log file after this many bytes (0 disables rotation)",
        ge=0,
    )
    backup_count: int = Field(
        5,
        description="Number of rotated log files to keep",
        ge=0,
    )

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        case_sensitive=False,
    )


class Settings(BaseSettings):
    """Top-level settings container.

    Automatically loads from the appropriate .env.{RATELIMIT_ENV} file.
    Raises validation errors on construction if a value is malformed.
    """

    ratelimit_env: str = RATELIMIT_ENV
    limiter: LimiterSettings = Field(default_factory=_build_limiter_settings)
    store: StoreSettings = Field(default_factory=_build_store_settings)
    log: LogSettings = Field(default_factory=_build_log_settings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )


# Nested settings are created via default_factory so env loading works.
settings = Settings()
