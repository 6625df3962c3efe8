"""Reminder scheduler: absolute fire times turned into deferred dispatches.

Pending reminders are indexed by tag. Several reminders may share a tag;
cancelling the tag suppresses all of them and closes any live platform
notification carrying it. Nothing here survives a restart.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING
import uuid

from revia_service.core.exceptions import (
    PastReminderError,
    PermissionDeniedError,
    PreferencesDisabledError,
    SchedulingError,
    UnsupportedEnvironmentError,
)
from revia_service.core.services.base import BaseService
from revia_service.core.settings import get_notification_settings
from revia_service.features.notifications.metrics import (
    reminders_cancelled_total,
    reminders_fired_total,
    reminders_pending,
    reminders_rejected_total,
    reminders_scheduled_total,
)
from revia_service.features.notifications.schemas import NotificationOptions
from revia_service.features.notifications.timers import ensure_aware, utcnow

if TYPE_CHECKING:
    from revia_service.core.settings import NotificationSettings
    from revia_service.features.notifications.dispatcher import NotificationDispatcher
    from revia_service.features.notifications.permissions import PermissionGate
    from revia_service.features.notifications.preferences import PreferenceReconciler
    from revia_service.features.notifications.timers import Clock, TimerBackend, TimerHandle


@dataclass(eq=False)
class PendingReminder:
    """Handle for a reminder waiting on its timer."""

    tag: str
    title: str
    fire_at: datetime
    delay_ms: int
    options: NotificationOptions = field(default_factory=NotificationOptions, repr=False)
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    cancelled: bool = False
    fired: bool = False
    _handle: TimerHandle | None = field(default=None, repr=False)


class ReminderScheduler(BaseService):
    """Schedules, tracks and cancels reminders for one user."""

    def __init__(
        self,
        user_id: str | None,
        reconciler: PreferenceReconciler,
        gate: PermissionGate,
        dispatcher: NotificationDispatcher,
        timers: TimerBackend,
        settings: NotificationSettings | None = None,
        clock: Clock = utcnow,
    ) -> None:
        super().__init__()
        self._user_id = user_id
        self._reconciler = reconciler
        self._gate = gate
        self._dispatcher = dispatcher
        self._timers = timers
        self._settings = settings or get_notification_settings()
        self._clock = clock
        self._by_tag: defaultdict[str, list[PendingReminder]] = defaultdict(list)

    async def schedule(
        self,
        title: str,
        options: NotificationOptions | None,
        fire_at: datetime,
        *,
        kind: str = "local",
    ) -> PendingReminder:
        """Register a reminder that dispatches at ``fire_at``.

        Checks run in order and stop at the first failure: the fire time
        must not be in the past, permission must be granted (one prompt is
        attempted if it is not), and push reminders must be enabled in the
        user's preferences.

        Raises:
            PastReminderError: ``fire_at`` is before now.
            UnsupportedEnvironmentError: No platform is attached.
            PermissionDeniedError: Permission is still not granted after the prompt.
            PreferencesDisabledError: Push reminders are off or never configured.
            ValueError: ``fire_at`` is naive.
        """
        ensure_aware(fire_at)
        if fire_at < self._clock():
            reminders_rejected_total.labels(reason="past").inc()
            raise PastReminderError(extra={"fire_at": fire_at.isoformat()})

        await self._ensure_permission()
        await self._ensure_push_enabled()

        return self._register(title, options or NotificationOptions(), fire_at, kind)

    async def schedule_local_reminder(
        self,
        title: str,
        options: NotificationOptions | None = None,
    ) -> PendingReminder:
        """Same checks as ``schedule``; fires on the next loop iteration."""
        return await self.schedule(title, options, self._clock())

    def cancel(self, tag: str) -> int:
        """Suppress pending reminders and close live notifications with ``tag``.

        Returns:
            Number of pending reminders cancelled (0 when nothing matched).
        """
        entries = self._by_tag.pop(tag, [])
        for reminder in entries:
            self._suppress(reminder)

        closed = self._close_live(tag)
        if entries or closed:
            self.logger.info(
                "Reminders cancelled",
                extra={"user_id": self._user_id, "reminder_tag": tag, "pending": len(entries), "closed": closed},
            )
        return len(entries)

    def cancel_all(self) -> int:
        """Suppress every pending reminder and close every live notification."""
        count = 0
        for tag in list(self._by_tag):
            for reminder in self._by_tag.pop(tag):
                self._suppress(reminder)
                count += 1

        closed = self._close_live(None)
        self.logger.info(
            "All reminders cancelled",
            extra={"user_id": self._user_id, "pending": count, "closed": closed},
        )
        return count

    def pending(self, tag: str | None = None) -> list[PendingReminder]:
        """Snapshot of reminders still waiting, optionally for one tag."""
        if tag is not None:
            return list(self._by_tag.get(tag, []))
        return [reminder for entries in self._by_tag.values() for reminder in entries]

    async def _ensure_permission(self) -> None:
        if not self._gate.is_supported():
            reminders_rejected_total.labels(reason="unsupported").inc()
            raise UnsupportedEnvironmentError()

        if self._gate.is_granted():
            return

        if not await self._gate.request_permission():
            reminders_rejected_total.labels(reason="permission_denied").inc()
            raise PermissionDeniedError(permission=self._gate.current_permission().value)

    async def _ensure_push_enabled(self) -> None:
        prefs = await self._reconciler.get(self._user_id) if self._user_id is not None else None
        if prefs is None or prefs.push_enabled is not True:
            reminders_rejected_total.labels(reason="push_disabled").inc()
            raise PreferencesDisabledError(extra={"user_id": self._user_id})

    def _register(
        self,
        title: str,
        options: NotificationOptions,
        fire_at: datetime,
        kind: str,
    ) -> PendingReminder:
        delay_seconds = max((fire_at - self._clock()).total_seconds(), 0.0)
        reminder = PendingReminder(
            tag=options.tag or self._settings.default_tag,
            title=title,
            fire_at=fire_at,
            delay_ms=int(delay_seconds * 1000),
            options=options,
        )

        try:
            reminder._handle = self._timers.call_later(delay_seconds, lambda: self._fire(reminder))
        except Exception as e:
            raise SchedulingError(
                "Unable to register reminder timer",
                extra={"reminder_tag": reminder.tag, "error": str(e)},
            ) from e

        self._by_tag[reminder.tag].append(reminder)
        reminders_scheduled_total.labels(kind=kind).inc()
        reminders_pending.inc()
        self.logger.info(
            "Reminder scheduled",
            extra={
                "user_id": self._user_id,
                "reminder_id": reminder.id,
                "reminder_tag": reminder.tag,
                "fire_at": fire_at.isoformat(),
                "delay_ms": reminder.delay_ms,
            },
        )
        return reminder

    def _fire(self, reminder: PendingReminder) -> None:
        if reminder.cancelled or reminder.fired:
            self._lazy.debug(lambda: f"skipping cancelled reminder {reminder.id}")
            return

        reminder.fired = True
        self._forget(reminder)
        reminders_pending.dec()

        try:
            self._dispatcher.dispatch(reminder.title, reminder.options)
        except Exception:
            self.logger.exception(
                "Reminder dispatch failed",
                extra={"user_id": self._user_id, "reminder_id": reminder.id, "reminder_tag": reminder.tag},
            )
            return
        reminders_fired_total.inc()

    def _suppress(self, reminder: PendingReminder) -> None:
        if reminder.cancelled or reminder.fired:
            return
        reminder.cancelled = True
        if reminder._handle is not None:
            reminder._handle.cancel()
        reminders_pending.dec()
        reminders_cancelled_total.inc()

    def _forget(self, reminder: PendingReminder) -> None:
        entries = self._by_tag.get(reminder.tag)
        if not entries:
            return
        if reminder in entries:
            entries.remove(reminder)
        if not entries:
            del self._by_tag[reminder.tag]

    def _close_live(self, tag: str | None) -> int:
        platform = self._gate.platform
        if platform is None:
            return 0
        live = platform.get_notifications(tag=tag)
        for notification in live:
            notification.close()
        return len(live)
