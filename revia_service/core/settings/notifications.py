"""Notification and reminder settings.

Environment variables use NOTIFY_ prefix.
Example: NOTIFY_AUTO_CLOSE_SECONDS=10, NOTIFY_TIMER_BACKEND=apscheduler
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

TimerBackendName = Literal["asyncio", "apscheduler"]


class NotificationSettings(BaseSettings):
    """Configuration for notification display and reminder scheduling."""

    # Display defaults applied to every platform notification
    icon: str = Field(default="/vite.svg", description="Notification icon URL")
    badge: str = Field(default="/vite.svg", description="Notification badge URL")
    default_tag: str = Field(
        default="revia-reminder",
        min_length=1,
        description="Tag family used when callers do not override it",
    )
    require_interaction: bool = Field(
        default=True,
        description="Keep notifications on screen until the user interacts",
    )
    auto_close_seconds: float = Field(
        default=10.0,
        ge=0.0,
        description="Close a displayed notification after this many seconds",
    )

    # Scheduling
    timer_backend: TimerBackendName = Field(
        default="asyncio",
        description="Deferred callback backend: asyncio (loop.call_later) or apscheduler",
    )
    default_minutes_before: int = Field(
        default=15,
        ge=0,
        description="Lead time for session reminders when the caller gives none",
    )
    session_tag_prefix: str = Field(
        default="session-reminder",
        description="Prefix for session reminder tags",
    )
    randomized_session_titles: bool = Field(
        default=False,
        description="Pick session reminder wording from the emoji templates instead of the fixed title",
    )

    # In-app platform behavior
    auto_grant_permission: bool = Field(
        default=True,
        description="Answer in-app permission prompts with 'granted' when no prompt is wired",
    )

    # Default preference record (applied when a user has never saved preferences)
    default_email_enabled: bool = False
    default_push_enabled: bool = False
    default_reminder_time: str = Field(default="18:00", pattern=r"^([01]\d|2[0-3]):[0-5]\d$")
    default_reminder_days: list[int] = Field(default_factory=lambda: [1, 2, 3, 4, 5])
    default_reminder_frequency: Literal["daily", "twice_weekly", "weekly"] = "twice_weekly"
    default_timezone: str = "Europe/Paris"

    # History and email sweep
    log_history_limit: int = Field(default=50, ge=1, le=1000)
    email_sweep_enabled: bool = Field(
        default=False,
        description="Run the periodic email reminder sweep inside the application",
    )
    email_sweep_interval_minutes: int = Field(default=15, ge=1, le=1440)

    @field_validator("default_reminder_days")
    @classmethod
    def _validate_days(cls, v: list[int]) -> list[int]:
        """Collapse duplicates and reject out-of-range weekday indices."""
        if any(day < 0 or day > 6 for day in v):
            msg = "reminder days must be weekday indices between 0 and 6"
            raise ValueError(msg)
        return sorted(set(v))

    def default_preferences(self) -> dict[str, Any]:
        """Field values for a freshly created preference record."""
        return {
            "email_enabled": self.default_email_enabled,
            "push_enabled": self.default_push_enabled,
            "reminder_time": self.default_reminder_time,
            "reminder_days": list(self.default_reminder_days),
            "reminder_frequency": self.default_reminder_frequency,
            "timezone": self.default_timezone,
        }

    model_config = SettingsConfigDict(
        env_prefix="NOTIFY_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        frozen=True,
        extra="ignore",
        env_ignore_empty=True,
    )
