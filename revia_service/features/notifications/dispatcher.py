"""Notification dispatcher: one payload, one platform notification.

Display defaults come from ``NotificationSettings`` and caller options
override them. History logging and the ``last_reminded_at`` stamp run as
background tasks; their failures are logged and never reach the caller.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable
from typing import TYPE_CHECKING, Any

from revia_service.core.exceptions import UnsupportedEnvironmentError
from revia_service.core.services.base import BaseService
from revia_service.core.settings import get_notification_settings
from revia_service.features.notifications.metrics import (
    notification_log_failures_total,
    notifications_dispatched_total,
)
from revia_service.features.notifications.schemas import (
    NotificationLogCreate,
    NotificationOptions,
    NotificationType,
)
from revia_service.features.notifications.timers import utcnow

if TYPE_CHECKING:
    from revia_service.core.settings import NotificationSettings
    from revia_service.features.notifications.platform import (
        NotificationPlatform,
        PlatformNotification,
    )
    from revia_service.features.notifications.preferences import PreferenceReconciler
    from revia_service.features.notifications.stores import LogStore
    from revia_service.features.notifications.timers import Clock, TimerBackend


class NotificationDispatcher(BaseService):
    """Builds and shows a single notification for one user."""

    def __init__(
        self,
        user_id: str | None,
        platform: NotificationPlatform | None,
        timers: TimerBackend,
        log_store: LogStore | None = None,
        reconciler: PreferenceReconciler | None = None,
        settings: NotificationSettings | None = None,
        clock: Clock = utcnow,
    ) -> None:
        super().__init__()
        self._user_id = user_id
        self._platform = platform
        self._timers = timers
        self._log_store = log_store
        self._reconciler = reconciler
        self._settings = settings or get_notification_settings()
        self._clock = clock
        self._pending: set[asyncio.Task[None]] = set()

    def build_options(self, options: NotificationOptions | None = None) -> dict[str, Any]:
        """Settings defaults with caller overrides applied on top."""
        merged: dict[str, Any] = {
            "icon": self._settings.icon,
            "badge": self._settings.badge,
            "tag": self._settings.default_tag,
            "require_interaction": self._settings.require_interaction,
        }
        if options is not None:
            merged.update(options.overrides())
        return merged

    def dispatch(self, title: str, options: NotificationOptions | None = None) -> PlatformNotification:
        """Show the notification now.

        Raises:
            UnsupportedEnvironmentError: No platform is attached.
        """
        if self._platform is None:
            raise UnsupportedEnvironmentError()

        platform = self._platform
        payload = self.build_options(options)
        notification = platform.show(title, payload)

        def on_click() -> None:
            platform.focus_application()
            notification.close()

        notification.on_click = on_click

        if self._settings.auto_close_seconds > 0:
            self._timers.call_later(self._settings.auto_close_seconds, notification.close)

        notifications_dispatched_total.inc()
        self.logger.info(
            "Notification dispatched",
            extra={"user_id": self._user_id, "notification_tag": payload.get("tag")},
        )

        if self._user_id is not None:
            sent_at = self._clock()
            caller_options = options.overrides() if options is not None else {}
            if self._log_store is not None:
                entry = NotificationLogCreate(
                    user_id=self._user_id,
                    type=NotificationType.PUSH_NOTIFICATION,
                    metadata={
                        "title": title,
                        "options": caller_options,
                        "timestamp": sent_at.isoformat(),
                    },
                )
                self._background("append_log", self._log_store.append(entry))
            if self._reconciler is not None:
                self._background("mark_reminded", self._reconciler.mark_reminded(self._user_id, sent_at))

        return notification

    def _background(self, operation: str, awaitable: Awaitable[Any]) -> None:
        task = asyncio.ensure_future(self._swallow(operation, awaitable))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _swallow(self, operation: str, awaitable: Awaitable[Any]) -> None:
        try:
            await awaitable
        except Exception as e:
            notification_log_failures_total.labels(operation=operation).inc()
            self.logger.warning(
                "Notification bookkeeping failed",
                extra={"operation": operation, "user_id": self._user_id, "error": str(e)},
            )

    async def wait_for_pending_logs(self) -> None:
        """Wait for outstanding bookkeeping tasks to finish."""
        while self._pending:
            await asyncio.gather(*list(self._pending))
