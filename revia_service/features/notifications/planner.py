"""Session reminder planning."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import TYPE_CHECKING

from revia_service.core.exceptions import PastReminderError, PreferencesDisabledError
from revia_service.core.services.base import BaseService
from revia_service.core.settings import get_notification_settings
from revia_service.features.notifications.metrics import reminders_rejected_total
from revia_service.features.notifications.schemas import NotificationOptions
from revia_service.features.notifications.templates import (
    ReminderData,
    default_session_body,
    default_session_title,
    generate_reminder_template,
    session_tag,
)
from revia_service.features.notifications.timers import ensure_aware, utcnow

if TYPE_CHECKING:
    import random

    from revia_service.core.settings import NotificationSettings
    from revia_service.features.notifications.permissions import PermissionGate
    from revia_service.features.notifications.preferences import PreferenceReconciler
    from revia_service.features.notifications.scheduler import PendingReminder, ReminderScheduler
    from revia_service.features.notifications.timers import Clock


class SessionReminderPlanner(BaseService):
    """Schedules a reminder some minutes before a session starts.

    Unlike direct scheduling, planning never prompts for permission: the
    user must already have push reminders enabled and permission granted.

    With ``randomized_session_titles`` on, the title and body come from the
    emoji templates (a positive ``current_streak`` adds a streak line).
    A ``custom_message`` still wins over any template title.
    """

    def __init__(
        self,
        user_id: str | None,
        reconciler: PreferenceReconciler,
        gate: PermissionGate,
        scheduler: ReminderScheduler,
        settings: NotificationSettings | None = None,
        clock: Clock = utcnow,
        rng: random.Random | None = None,
    ) -> None:
        super().__init__()
        self._user_id = user_id
        self._reconciler = reconciler
        self._gate = gate
        self._scheduler = scheduler
        self._settings = settings or get_notification_settings()
        self._clock = clock
        self._rng = rng

    async def schedule_session_reminder(
        self,
        session_name: str,
        scheduled_at: datetime,
        *,
        minutes_before: int | None = None,
        custom_message: str | None = None,
        current_streak: int | None = None,
    ) -> PendingReminder:
        """Remind the user ``minutes_before`` minutes ahead of ``scheduled_at``.

        Raises:
            PreferencesDisabledError: Push reminders are off or permission is not granted.
            ValueError: ``scheduled_at`` is naive or ``minutes_before`` is negative.
            PastReminderError: The reminder time is not in the future.
        """
        ensure_aware(scheduled_at, "scheduled_at")
        if minutes_before is None:
            minutes_before = self._settings.default_minutes_before
        if minutes_before < 0:
            msg = "minutes_before must not be negative"
            raise ValueError(msg)

        fire_at = scheduled_at - timedelta(minutes=minutes_before)

        prefs = await self._reconciler.get(self._user_id) if self._user_id is not None else None
        if prefs is None or prefs.push_enabled is not True or not self._gate.is_granted():
            reminders_rejected_total.labels(reason="push_disabled").inc()
            raise PreferencesDisabledError(
                "Push notifications are not enabled",
                extra={"user_id": self._user_id, "permission": self._gate.current_permission().value},
            )

        if fire_at <= self._clock():
            reminders_rejected_total.labels(reason="past").inc()
            raise PastReminderError(
                "Cannot schedule a reminder in the past",
                extra={"fire_at": fire_at.isoformat(), "session_name": session_name},
            )

        tag = session_tag(scheduled_at, self._settings.session_tag_prefix)
        if self._settings.randomized_session_titles:
            template = generate_reminder_template(
                ReminderData(session_name, scheduled_at, current_streak=current_streak),
                prefix=self._settings.session_tag_prefix,
                rng=self._rng,
            )
            title, body, tag = template.title, template.body, template.tag
        else:
            title = default_session_title(session_name, minutes_before)
            body = default_session_body(session_name)

        options = NotificationOptions(
            body=body,
            tag=tag,
            require_interaction=True,
            data={"session_name": session_name, "scheduled_at": scheduled_at.isoformat()},
        )
        title = custom_message or title

        self._lazy.debug(lambda: f"planning {session_name!r} at {fire_at.isoformat()} tag={options.tag}")
        return await self._scheduler.schedule(title, options, fire_at, kind="session")
