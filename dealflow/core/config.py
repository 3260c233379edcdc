"""Configuration module for the Dealflow CRM backend."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from urllib.parse import urlparse

from dotenv import load_dotenv

from dealflow.core.exceptions import ConfigurationError

load_dotenv()


def _as_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Config:
    """Runtime configuration with validation."""

    APP_NAME: str
    APP_VERSION: str
    ENV: str
    DEBUG: bool
    DATABASE_URL: str
    DB_CONNECTIVITY_REQUIRED: bool
    SMTP_SERVER: str | None
    SMTP_PORT: int
    SMTP_USERNAME: str | None
    SMTP_PASSWORD: str | None
    SMTP_FROM: str
    JWT_SECRET: str
    JWT_ACCESS_TTL_MINUTES: int
    REDIS_URL: str
    CELERY_BROKER_URL: str
    CELERY_RESULT_BACKEND: str
    API_HOST: str
    API_PORT: int
    API_PREFIX: str
    LOG_LEVEL: str
    LOG_FILE: str
    WEBHOOK_SECRET: str | None
    DEFAULT_TENANT_KEY: str
    OUTBOX_BATCH_SIZE: int
    OUTBOX_MAX_ATTEMPTS: int
    OUTBOX_BACKOFF_SECONDS: float
    OUTBOX_DRAIN_INTERVAL_SECONDS: float
    OUTBOX_LEASE_SECONDS: float

    @property
    def is_production(self) -> bool:
        return self.ENV == "production"


def _build_config(env: str | None = None) -> Config:
    resolved_env = (env or os.getenv("ENV", "development")).strip().lower()
    debug = _as_bool(os.getenv("DEBUG"), default=False)
    redis_url = os.getenv("REDIS_URL", "redis://localhost:6379/0")

    config = Config(
        APP_NAME="Dealflow CRM",
        APP_VERSION=os.getenv("APP_VERSION", "1.0.0"),
        ENV=resolved_env,
        DEBUG=debug if resolved_env != "production" else False,
        DATABASE_URL=os.getenv("DATABASE_URL", "sqlite:///./dealflow.db"),
        DB_CONNECTIVITY_REQUIRED=_as_bool(
            os.getenv("DB_CONNECTIVITY_REQUIRED"), default=(resolved_env == "production")
        ),
        SMTP_SERVER=os.getenv("SMTP_SERVER"),
        SMTP_PORT=int(os.getenv("SMTP_PORT", "587")),
        SMTP_USERNAME=os.getenv("SMTP_USERNAME"),
        SMTP_PASSWORD=os.getenv("SMTP_PASSWORD"),
        SMTP_FROM=os.getenv("SMTP_FROM", "noreply@dealflow.app"),
        JWT_SECRET=os.getenv("JWT_SECRET", "change_me_jwt_secret"),
        JWT_ACCESS_TTL_MINUTES=int(os.getenv("JWT_ACCESS_TTL_MINUTES", "60")),
        REDIS_URL=redis_url,
        CELERY_BROKER_URL=os.getenv("CELERY_BROKER_URL", redis_url),
        CELERY_RESULT_BACKEND=os.getenv("CELERY_RESULT_BACKEND", redis_url),
        API_HOST=os.getenv("API_HOST", "0.0.0.0"),
        API_PORT=int(os.getenv("API_PORT", "8000")),
        API_PREFIX=os.getenv("API_PREFIX", "/api").rstrip("/"),
        LOG_LEVEL=os.getenv("LOG_LEVEL", "INFO").upper(),
        LOG_FILE=os.getenv("LOG_FILE", ""),
        WEBHOOK_SECRET=os.getenv("WEBHOOK_SECRET") or None,
        DEFAULT_TENANT_KEY=os.getenv("DEFAULT_TENANT_KEY", "default"),
        OUTBOX_BATCH_SIZE=int(os.getenv("OUTBOX_BATCH_SIZE", "50")),
        OUTBOX_MAX_ATTEMPTS=int(os.getenv("OUTBOX_MAX_ATTEMPTS", "5")),
        OUTBOX_BACKOFF_SECONDS=float(os.getenv("OUTBOX_BACKOFF_SECONDS", "30")),
        OUTBOX_DRAIN_INTERVAL_SECONDS=float(os.getenv("OUTBOX_DRAIN_INTERVAL_SECONDS", "15")),
        OUTBOX_LEASE_SECONDS=float(os.getenv("OUTBOX_LEASE_SECONDS", "300")),
    )
    _validate_config(config)
    return config


def _validate_database_url(database_url: str) -> None:
    parsed = urlparse(database_url)
    if parsed.scheme not in {"sqlite", "postgresql", "postgresql+psycopg2", "mysql+pymysql"}:
        raise ConfigurationError(
            "DATABASE_URL must use sqlite://, postgresql:// or mysql+pymysql:// style URL."
        )
    if not parsed.scheme.startswith("sqlite") and not parsed.hostname:
        raise ConfigurationError("DATABASE_URL is missing hostname.")


def _validate_config(config: Config) -> None:
    _validate_database_url(config.DATABASE_URL)

    if config.JWT_ACCESS_TTL_MINUTES < 1:
        raise ConfigurationError("JWT_ACCESS_TTL_MINUTES must be >= 1.")
    if config.LOG_LEVEL not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
        raise ConfigurationError("LOG_LEVEL must be one of DEBUG/INFO/WARNING/ERROR/CRITICAL.")
    if not config.API_PREFIX.startswith("/") and config.API_PREFIX:
        raise ConfigurationError("API_PREFIX must start with '/'.")
    if config.OUTBOX_BATCH_SIZE < 1:
        raise ConfigurationError("OUTBOX_BATCH_SIZE must be >= 1.")
    if config.OUTBOX_MAX_ATTEMPTS < 1:
        raise ConfigurationError("OUTBOX_MAX_ATTEMPTS must be >= 1.")
    if config.OUTBOX_BACKOFF_SECONDS < 0:
        raise ConfigurationError("OUTBOX_BACKOFF_SECONDS must be >= 0.")
    if config.OUTBOX_DRAIN_INTERVAL_SECONDS <= 0:
        raise ConfigurationError("OUTBOX_DRAIN_INTERVAL_SECONDS must be > 0.")
    if config.OUTBOX_LEASE_SECONDS <= 0:
        raise ConfigurationError("OUTBOX_LEASE_SECONDS must be > 0.")
    if config.is_production and "change_me" in config.JWT_SECRET:
        raise ConfigurationError("Production JWT_SECRET uses the placeholder value.")


@lru_cache(maxsize=8)
def get_config(env: str | None = None) -> Config:
    """Get validated configuration for the requested environment."""
    return _build_config(env)
