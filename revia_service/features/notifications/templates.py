"""Reminder wording and session tag derivation."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
import random

from revia_service.features.notifications.schemas import ReminderTemplate

DEFAULT_TAG_PREFIX = "session-reminder"

_SESSION_TEMPLATES: tuple[tuple[str, str], ...] = (
    ("🔥 {session_name}", "Get ready! Your session starts soon."),
    ("💪 Training reminder", "{session_name} - let's go!"),
    ("⚡ {session_name}", "Time to move! Your session is waiting for you."),
)


@dataclass(frozen=True, slots=True)
class ReminderData:
    """What a reminder is about."""

    session_name: str
    scheduled_at: datetime
    current_streak: int | None = None


def epoch_millis(moment: datetime) -> int:
    """Milliseconds since the Unix epoch."""
    return int(moment.timestamp() * 1000)


def session_tag(scheduled_at: datetime, prefix: str = DEFAULT_TAG_PREFIX) -> str:
    """Tag shared by every reminder for the session starting at ``scheduled_at``.

    Two sessions starting at the same millisecond share a tag.
    """
    return f"{prefix}-{epoch_millis(scheduled_at)}"


def default_session_title(session_name: str, minutes_before: int) -> str:
    return f'Reminder: your session "{session_name}" starts in {minutes_before} minutes!'


def default_session_body(session_name: str) -> str:
    return f"Get ready for your {session_name} session"


def generate_reminder_template(
    data: ReminderData,
    *,
    prefix: str = DEFAULT_TAG_PREFIX,
    rng: random.Random | None = None,
) -> ReminderTemplate:
    """Pick one of the session templates at random and personalize it.

    A positive streak appends a streak line to the body.
    """
    title, body = (rng or random).choice(_SESSION_TEMPLATES)
    title = title.format(session_name=data.session_name)
    body = body.format(session_name=data.session_name)

    if data.current_streak and data.current_streak > 0:
        body += f" {data.current_streak}-day streak!"

    return ReminderTemplate(
        title=title,
        body=body,
        tag=session_tag(data.scheduled_at, prefix),
        require_interaction=True,
    )
