"""SQLAlchemy models for notification preferences and history."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from sqlalchemy import JSON, Boolean, Index, String
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from revia_service.core.database import UTCDateTime, UUIDBase, UUIDTimestampedBase


class NotificationPreference(UUIDTimestampedBase):
    """Per-user reminder preferences.

    One row per user (unique ``user_id``); created and updated through a
    single upsert. ``reminder_days`` holds weekday indices 0-6 with
    0 = Sunday, stored sorted without duplicates.
    """

    __tablename__ = "notification_preferences"

    user_id: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        unique=True,
        comment="User identifier from the identity provider",
    )

    email_enabled: Mapped[bool] = mapped_column(
        Boolean(),
        default=False,
        nullable=False,
        comment="Send periodic reminder emails",
    )
    push_enabled: Mapped[bool] = mapped_column(
        Boolean(),
        default=False,
        nullable=False,
        comment="Allow platform notifications for session reminders",
    )

    reminder_time: Mapped[str] = mapped_column(
        String(5),
        default="18:00",
        nullable=False,
        comment="Local time of day for reminders (HH:MM)",
    )
    reminder_days: Mapped[list[int]] = mapped_column(
        JSONB().with_variant(JSON(), "sqlite"),
        default=lambda: [1, 2, 3, 4, 5],
        nullable=False,
        comment="Weekday indices, 0 = Sunday",
    )
    reminder_frequency: Mapped[str] = mapped_column(
        String(20),
        default="twice_weekly",
        nullable=False,
        comment="daily, twice_weekly or weekly",
    )
    timezone: Mapped[str] = mapped_column(
        String(64),
        default="Europe/Paris",
        nullable=False,
        comment="IANA time zone for reminder_time",
    )

    last_reminded_at: Mapped[datetime | None] = mapped_column(
        UTCDateTime(),
        nullable=True,
        comment="When the user was last reminded",
    )


class NotificationLog(UUIDBase):
    """Append-only history of emitted notifications."""

    __tablename__ = "notification_logs"

    user_id: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Recipient user identifier",
    )
    type: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
        comment="email_reminder, push_notification or in_app",
    )
    sent_at: Mapped[datetime] = mapped_column(
        UTCDateTime(),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )
    # "metadata" is reserved on declarative classes
    extra_metadata: Mapped[dict[str, Any]] = mapped_column(
        "metadata",
        JSONB().with_variant(JSON(), "sqlite"),
        default=dict,
        nullable=False,
        comment="Title, options and emission timestamp",
    )

    __table_args__ = (Index("idx_notification_log_user_sent", "user_id", "sent_at"),)
