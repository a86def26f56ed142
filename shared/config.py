"""Base configuration with pydantic-settings.

This module provides a base Settings class that services inherit from.
Each service defines its own Settings with required fields specific to it.

Usage in service:
    from shared.config import BaseSettings, database_url_field

    class Settings(BaseSettings):
        database_url: str = database_url_field(required=True)

    settings = Settings()
"""

from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings as PydanticBaseSettings, SettingsConfigDict


class BaseSettings(PydanticBaseSettings):
    """Base application settings.

    All fields here are optional with sensible defaults.
    Services inherit this and make required fields mandatory.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # === Optional fields with defaults ===

    # Logging configuration
    service_name: str = Field(
        default="mosbot-api",
        description="Service name for structured logging",
    )
    log_format: Literal["json", "console"] = Field(
        default="console",
        description="Log output format",
    )
    log_level: str = Field(
        default="INFO",
        description="Log level (DEBUG, INFO, WARNING, ERROR)",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensure log level is valid."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper_v = v.upper()
        if upper_v not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid_levels}")
        return upper_v


# === Field definitions for reuse in service configs ===


def database_url_field(required: bool = True):
    """Database URL field definition."""
    if required:
        return Field(
            ...,
            description="PostgreSQL connection URL",
            examples=["postgresql+asyncpg://user:pass@db:5432/mosbot"],
        )
    return Field(
        default=None,
        description="PostgreSQL connection URL (optional)",
    )


def jwt_secret_field(required: bool = True):
    """JWT signing secret field definition."""
    if required:
        return Field(
            ...,
            description="HS256 secret used to verify bearer tokens",
        )
    return Field(
        default="",
        description="HS256 secret used to verify bearer tokens (optional)",
    )


def workspace_url_field():
    """OpenClaw workspace service URL.

    Left unset in local development; callers treat a missing URL as
    "service not configured".
    """
    return Field(
        default=None,
        alias="OPENCLAW_WORKSPACE_URL",
        description="OpenClaw workspace file service base URL",
        examples=["http://openclaw-workspace.agents.svc.cluster.local:8080"],
    )


def gateway_url_field():
    """OpenClaw gateway URL. Optional, enrichment is skipped without it."""
    return Field(
        default=None,
        alias="OPENCLAW_GATEWAY_URL",
        description="OpenClaw gateway base URL",
        examples=["http://openclaw.agents.svc.cluster.local:18789"],
    )
