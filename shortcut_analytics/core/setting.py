"""
Configuration Settings

This module defines application configuration using Pydantic Settings.
All configuration is loaded from environment variables or .env file.

Design Decisions:
- Uses pydantic-settings for type-safe configuration
- Supports multiple environments (production, staging, dev)
- Defaults to SQLite (file-based) for easy local development
- Rate limits are plain slowapi limit strings so they can be tuned per deployment
"""

from __future__ import annotations

from enum import Enum

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

__all__ = ["Settings", "settings"]


class EnvSettingsOptions(Enum):
    """Environment options for deployment."""
    production = "production"
    staging = "staging"
    development = "dev"


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings can be overridden via environment variables or .env file.
    """
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )

    # Project Configuration
    ENV_SETTING: EnvSettingsOptions = Field(
        default=EnvSettingsOptions.development,
        description="Environment setting (production, staging, dev)"
    )
    LOG_LEVEL: str = Field(
        default="INFO",
        description="Log level for the shortcut_analytics loggers"
    )

    # Database Configuration
    # For SQLite: sqlite+aiosqlite:///./shortcut_analytics.db (default)
    DATABASE_URL: str = Field(
        default="sqlite+aiosqlite:///./shortcut_analytics.db",
        description="Database connection string"
    )
    SQLITE_BUSY_TIMEOUT: float = Field(
        default=30.0,
        description="Seconds a SQLite writer waits for the database lock before failing"
    )
    AUTO_CREATE_TABLES: bool = Field(
        default=True,
        description="Create missing tables on startup (use Alembic migrations in production)"
    )

    # Redirect Configuration
    SHORTCUT_PATH_PREFIX: str = Field(
        default="s",
        description="Path prefix for shortcut redirects, e.g. 's' serves /s/{name}"
    )

    # Rate Limits (slowapi format: "count/period")
    RATE_LIMIT_WRITE: str = Field(
        default="30/minute",
        description="Limit for shortcut creation and deletion per client IP"
    )
    RATE_LIMIT_READ: str = Field(
        default="120/minute",
        description="Limit for shortcut and analytics queries per client IP"
    )
    RATE_LIMIT_INGEST: str = Field(
        default="600/minute",
        description="Limit for visit ingestion per client IP"
    )
    RATE_LIMIT_REDIRECT: str = Field(
        default="300/minute",
        description="Limit for shortcut redirects per client IP"
    )


settings = Settings()
