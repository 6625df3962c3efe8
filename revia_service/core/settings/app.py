"""Application settings for FastAPI configuration."""

from __future__ import annotations

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

Environment = Literal["development", "staging", "production", "test"]


class AppSettings(BaseSettings):
    """FastAPI application settings.

    Environment variables use APP_ prefix.
    Example: APP_DEBUG=true, APP_TITLE="Revia Reminders"
    """

    service_name: str = Field(
        default="revia-service",
        min_length=1,
        max_length=100,
        pattern=r"^[a-z0-9]+(-[a-z0-9]+)*$",
        description="Service name for logging (lowercase, hyphens allowed)",
    )
    title: str = Field(default="Revia Reminder Service", min_length=1, max_length=200)
    version: str = Field(default="0.1.0")
    environment: Environment = Field(default="development")
    debug: bool = Field(default=False)
    api_prefix: str = Field(default="/api/v1", description="Prefix for versioned routes")
    user_id_header: str = Field(
        default="X-User-Id",
        description="Header carrying the authenticated user id from the identity gateway",
    )

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        frozen=True,
        extra="ignore",
        env_ignore_empty=True,
    )
