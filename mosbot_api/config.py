"""API service configuration.

Requires: DATABASE_URL, JWT_SECRET
Optional: OPENCLAW_WORKSPACE_URL, OPENCLAW_GATEWAY_URL (and their tokens)
"""

from functools import lru_cache

from pydantic import Field

from shared.config import (
    BaseSettings,
    database_url_field,
    gateway_url_field,
    jwt_secret_field,
    workspace_url_field,
)


class Settings(BaseSettings):
    """API service settings."""

    # Required
    database_url: str = database_url_field(required=True)
    jwt_secret: str = jwt_secret_field(required=True)
    jwt_algorithm: str = Field(default="HS256")

    # OpenClaw workspace - primary source of subagent runtime state
    workspace_url: str | None = workspace_url_field()
    workspace_token: str | None = Field(default=None, alias="OPENCLAW_WORKSPACE_TOKEN")
    workspace_timeout_seconds: float = Field(
        default=10.0, gt=0, alias="OPENCLAW_WORKSPACE_TIMEOUT_SECONDS"
    )
    workspace_max_retries: int = Field(default=3, ge=0, alias="OPENCLAW_WORKSPACE_MAX_RETRIES")
    runtime_dir: str = Field(
        default="/runtime/mosbot",
        description="Workspace directory holding the subagent runtime files",
    )

    # OpenClaw gateway - optional session enrichment
    gateway_url: str | None = gateway_url_field()
    gateway_token: str | None = Field(default=None, alias="OPENCLAW_GATEWAY_TOKEN")
    gateway_timeout_seconds: float = Field(
        default=15.0, gt=0, alias="OPENCLAW_GATEWAY_TIMEOUT_SECONDS"
    )

    # Retention (purge itself runs elsewhere, these values are reported only)
    subagent_retention_days: int = Field(default=30, ge=1)
    activity_log_retention_days: int = Field(default=7, ge=1)
    purge_hour: int = Field(default=3, ge=0, le=23)
    purge_utc_offset_hours: int = Field(
        default=8, ge=-12, le=14, description="Fixed offset of the purge timezone (Asia/Singapore)"
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Validates required env vars on first call.
    Raises ValidationError if DATABASE_URL or JWT_SECRET are missing.
    """
    return Settings()
