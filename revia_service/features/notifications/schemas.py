"""Pydantic schemas for notification preferences, payloads and history."""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum
from typing import Any
from uuid import UUID
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

REMINDER_TIME_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"


class Permission(StrEnum):
    """Normalized platform notification permission."""

    UNSUPPORTED = "unsupported"
    DEFAULT = "default"
    GRANTED = "granted"
    DENIED = "denied"


class ReminderFrequency(StrEnum):
    """How often day-based reminders may repeat."""

    DAILY = "daily"
    TWICE_WEEKLY = "twice_weekly"
    WEEKLY = "weekly"


class NotificationType(StrEnum):
    """Channel recorded in the notification history."""

    EMAIL_REMINDER = "email_reminder"
    PUSH_NOTIFICATION = "push_notification"
    IN_APP = "in_app"


def _normalize_days(days: list[int]) -> list[int]:
    if any(day < 0 or day > 6 for day in days):
        msg = "reminder_days must contain weekday indices between 0 (Sunday) and 6"
        raise ValueError(msg)
    return sorted(set(days))


def _validate_timezone(tz: str) -> str:
    try:
        ZoneInfo(tz)
    except (ZoneInfoNotFoundError, ValueError) as e:
        msg = f"Unknown time zone: {tz}"
        raise ValueError(msg) from e
    return tz


# ============================================================================
# Preferences
# ============================================================================


class NotificationPreferences(BaseModel):
    """Full preference record for one user."""

    model_config = ConfigDict(from_attributes=True)

    user_id: str
    email_enabled: bool = False
    push_enabled: bool = False
    reminder_time: str = Field(default="18:00", pattern=REMINDER_TIME_PATTERN)
    reminder_days: list[int] = Field(default_factory=lambda: [1, 2, 3, 4, 5])
    reminder_frequency: ReminderFrequency = ReminderFrequency.TWICE_WEEKLY
    timezone: str = "Europe/Paris"
    last_reminded_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @field_validator("reminder_days")
    @classmethod
    def normalize_days(cls, v: list[int]) -> list[int]:
        return _normalize_days(v)


class PreferencesUpdate(BaseModel):
    """Partial preference update; only fields that are set are applied.

    Example:
        PreferencesUpdate(push_enabled=True).to_fields()
        {'push_enabled': True}
    """

    model_config = ConfigDict(extra="forbid")

    email_enabled: bool | None = None
    push_enabled: bool | None = None
    reminder_time: str | None = Field(default=None, pattern=REMINDER_TIME_PATTERN)
    reminder_days: list[int] | None = None
    reminder_frequency: ReminderFrequency | None = None
    timezone: str | None = None

    @field_validator("reminder_days")
    @classmethod
    def normalize_days(cls, v: list[int] | None) -> list[int] | None:
        return None if v is None else _normalize_days(v)

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, v: str | None) -> str | None:
        return None if v is None else _validate_timezone(v)

    @model_validator(mode="after")
    def reject_explicit_nulls(self) -> PreferencesUpdate:
        """Fields may be omitted but not cleared."""
        nulls = [name for name in self.model_fields_set if getattr(self, name) is None]
        if nulls:
            msg = f"Fields cannot be null: {', '.join(sorted(nulls))}"
            raise ValueError(msg)
        return self

    def to_fields(self) -> dict[str, Any]:
        """Fields explicitly provided by the caller, as plain values."""
        return self.model_dump(mode="json", exclude_unset=True)


# ============================================================================
# Notification payloads
# ============================================================================


class NotificationOptions(BaseModel):
    """Caller-supplied display options; unset fields fall back to settings."""

    body: str | None = None
    icon: str | None = None
    badge: str | None = None
    tag: str | None = None
    require_interaction: bool | None = None
    data: dict[str, Any] | None = None

    def overrides(self) -> dict[str, Any]:
        """Options explicitly set by the caller."""
        return self.model_dump(exclude_none=True)


class ReminderTemplate(BaseModel):
    """Rendered reminder content."""

    title: str
    body: str
    tag: str
    require_interaction: bool = True


# ============================================================================
# History
# ============================================================================


class NotificationLogCreate(BaseModel):
    """A history entry to append."""

    user_id: str
    type: NotificationType
    metadata: dict[str, Any] = Field(default_factory=dict)


class NotificationLogEntry(BaseModel):
    """A persisted history entry."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: str
    type: NotificationType
    sent_at: datetime
    metadata: dict[str, Any] = Field(
        default_factory=dict,
        validation_alias=AliasChoices("extra_metadata", "metadata"),
    )


class NotificationLogListResponse(BaseModel):
    """Newest-first slice of a user's history."""

    items: list[NotificationLogEntry]
    total: int


# ============================================================================
# Permission / compatibility
# ============================================================================


class ChannelCompatibility(BaseModel):
    """Which reminder channels can reach the user in this environment."""

    web_push: bool
    email: bool = True
    in_app: bool = True


class PermissionStatusResponse(BaseModel):
    """Current permission state of the in-process notification host."""

    supported: bool
    permission: Permission
    compatibility: ChannelCompatibility


class PreferencesResponse(BaseModel):
    """Preferences as shown on the settings screen.

    ``configured`` is False for users who never saved; ``preferences`` then
    holds the defaults a first save would start from.
    """

    configured: bool
    preferences: NotificationPreferences
