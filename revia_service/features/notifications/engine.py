"""Reminder engine wiring.

``ReminderEngine`` owns the shared pieces (stores, preference cache, timer
backend) and builds one component graph per user on demand:

    planner -> scheduler -> permission gate -> dispatcher -> platform
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, TypeAlias

from revia_service.core.services.base import BaseService
from revia_service.core.settings import get_notification_settings
from revia_service.features.notifications.dispatcher import NotificationDispatcher
from revia_service.features.notifications.email_reminders import EmailReminderJob
from revia_service.features.notifications.permissions import PermissionGate
from revia_service.features.notifications.planner import SessionReminderPlanner
from revia_service.features.notifications.platform import InAppNotificationPlatform
from revia_service.features.notifications.preferences import PreferenceReconciler
from revia_service.features.notifications.scheduler import ReminderScheduler
from revia_service.features.notifications.stores import SqlLogStore, SqlPreferenceStore
from revia_service.features.notifications.timers import create_timer_backend, utcnow

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

    from revia_service.core.settings import NotificationSettings
    from revia_service.features.notifications.email_reminders import RecipientDirectory
    from revia_service.features.notifications.events import EventSink
    from revia_service.features.notifications.platform import NotificationPlatform
    from revia_service.features.notifications.stores import LogStore, PreferenceStore
    from revia_service.features.notifications.timers import Clock, TimerBackend
    from revia_service.infra.email import EmailProvider

PlatformFactory: TypeAlias = "Callable[[str], NotificationPlatform | None]"


@dataclass
class UserReminders:
    """Per-user component graph."""

    user_id: str
    platform: NotificationPlatform | None
    gate: PermissionGate
    dispatcher: NotificationDispatcher
    scheduler: ReminderScheduler
    planner: SessionReminderPlanner


class ReminderEngine(BaseService):
    """Builds and caches per-user reminder components."""

    def __init__(
        self,
        preference_store: PreferenceStore,
        log_store: LogStore,
        settings: NotificationSettings | None = None,
        timers: TimerBackend | None = None,
        platform_factory: PlatformFactory | None = None,
        clock: Clock = utcnow,
        on_event: EventSink | None = None,
    ) -> None:
        super().__init__()
        self.settings = settings or get_notification_settings()
        self.preference_store = preference_store
        self.log_store = log_store
        self.timers = timers or create_timer_backend(self.settings, clock)
        self.reconciler = PreferenceReconciler(preference_store, self.settings, on_event)
        self._platform_factory = platform_factory or self._default_platform
        self._clock = clock
        self._on_event = on_event
        self._users: dict[str, UserReminders] = {}

    @classmethod
    def from_session_factory(
        cls,
        session_factory: async_sessionmaker[AsyncSession],
        **kwargs: Any,
    ) -> ReminderEngine:
        """Engine backed by the SQLAlchemy stores."""
        return cls(SqlPreferenceStore(session_factory), SqlLogStore(session_factory), **kwargs)

    def _default_platform(self, user_id: str) -> NotificationPlatform:
        return InAppNotificationPlatform(auto_grant=self.settings.auto_grant_permission)

    def permission_gate(self, user_id: str) -> PermissionGate:
        """Gate for reading permission state without caching a component graph.

        Users with built components get their own gate. Anyone else gets a
        throwaway gate over a fresh platform.
        """
        existing = self._users.get(user_id)
        if existing is not None:
            return existing.gate
        return PermissionGate(self._platform_factory(user_id), on_event=self._on_event)

    def for_user(self, user_id: str) -> UserReminders:
        """Get (building on first use) the components for ``user_id``."""
        existing = self._users.get(user_id)
        if existing is not None:
            return existing

        platform = self._platform_factory(user_id)
        gate = PermissionGate(platform, on_event=self._on_event)
        dispatcher = NotificationDispatcher(
            user_id,
            platform,
            self.timers,
            log_store=self.log_store,
            reconciler=self.reconciler,
            settings=self.settings,
            clock=self._clock,
        )
        scheduler = ReminderScheduler(
            user_id,
            self.reconciler,
            gate,
            dispatcher,
            self.timers,
            settings=self.settings,
            clock=self._clock,
        )
        planner = SessionReminderPlanner(
            user_id,
            self.reconciler,
            gate,
            scheduler,
            settings=self.settings,
            clock=self._clock,
        )

        components = UserReminders(user_id, platform, gate, dispatcher, scheduler, planner)
        self._users[user_id] = components
        self._lazy.debug(lambda: f"built reminder components for {user_id}")
        return components

    def email_job(self, provider: EmailProvider, directory: RecipientDirectory) -> EmailReminderJob:
        """Email sweep sharing this engine's stores and preference cache."""
        return EmailReminderJob(
            self.preference_store,
            self.log_store,
            self.reconciler,
            provider,
            directory,
            settings=self.settings,
            clock=self._clock,
        )

    async def shutdown(self) -> None:
        """Cancel every pending reminder, drain bookkeeping tasks and stop the timer backend."""
        for components in self._users.values():
            components.scheduler.cancel_all()
        for components in self._users.values():
            await components.dispatcher.wait_for_pending_logs()

        stop_timers = getattr(self.timers, "shutdown", None)
        if callable(stop_timers):
            stop_timers()
        self.logger.info("Reminder engine stopped", extra={"users": len(self._users)})
