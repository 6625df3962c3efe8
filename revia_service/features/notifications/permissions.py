"""Notification permission gate.

Normalizes the host's permission state and runs the permission prompt.
``unsupported`` is absorbing, and once the host answers ``granted`` or
``denied`` further requests return that answer without prompting again.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from revia_service.core.exceptions import PermissionRequestError, UnsupportedEnvironmentError
from revia_service.core.services.base import BaseService
from revia_service.features.notifications.events import EventLevel, EventSink, UserEvent, emit
from revia_service.features.notifications.metrics import permission_requests_total
from revia_service.features.notifications.schemas import ChannelCompatibility, Permission

if TYPE_CHECKING:
    from revia_service.features.notifications.platform import NotificationPlatform


class PermissionGate(BaseService):
    """Queries and requests notification permission.

    Example:
        gate = PermissionGate(InAppNotificationPlatform())
        if await gate.request_permission():
            ...
    """

    def __init__(
        self,
        platform: NotificationPlatform | None,
        on_event: EventSink | None = None,
    ) -> None:
        super().__init__()
        self._platform = platform
        self._on_event = on_event
        self._inflight: asyncio.Future[bool] | None = None
        self.last_error: PermissionRequestError | None = None

    @property
    def platform(self) -> NotificationPlatform | None:
        return self._platform

    @property
    def is_requesting(self) -> bool:
        return self._inflight is not None and not self._inflight.done()

    def is_supported(self) -> bool:
        return self._platform is not None

    def current_permission(self) -> Permission:
        if self._platform is None:
            return Permission.UNSUPPORTED
        return Permission(self._platform.permission)

    def is_granted(self) -> bool:
        return self.current_permission() is Permission.GRANTED

    async def request_permission(self) -> bool:
        """Ask the host for permission.

        Concurrent callers share a single prompt.

        Returns:
            True when permission ends up granted.

        Raises:
            UnsupportedEnvironmentError: No platform is attached.
        """
        if self._platform is None:
            raise UnsupportedEnvironmentError()

        if self._inflight is not None and not self._inflight.done():
            return await asyncio.shield(self._inflight)

        self._inflight = asyncio.ensure_future(self._prompt(self._platform))
        try:
            return await asyncio.shield(self._inflight)
        finally:
            if self._inflight is not None and self._inflight.done():
                self._inflight = None

    async def _prompt(self, platform: NotificationPlatform) -> bool:
        self.last_error = None
        current = self.current_permission()
        if current is Permission.GRANTED:
            return True
        if current is Permission.DENIED:
            self._lazy.debug(lambda: "permission already denied; not prompting")
            return False

        try:
            answer = Permission(await platform.request_permission())
        except Exception as e:
            self.last_error = PermissionRequestError(cause=e)
            permission_requests_total.labels(outcome="error").inc()
            self.logger.warning("Permission request failed", extra={"error": str(e)})
            emit(
                self._on_event,
                UserEvent(
                    level=EventLevel.ERROR,
                    title="Permission error",
                    description="Unable to request notification permission.",
                ),
            )
            return False

        if answer is Permission.GRANTED:
            permission_requests_total.labels(outcome="granted").inc()
            self.logger.info("Notification permission granted")
            emit(
                self._on_event,
                UserEvent(
                    level=EventLevel.SUCCESS,
                    title="Notifications enabled",
                    description="You will now receive reminders for your sessions.",
                ),
            )
            return True

        permission_requests_total.labels(outcome="refused").inc()
        self.logger.info("Notification permission refused", extra={"permission": answer.value})
        emit(
            self._on_event,
            UserEvent(
                level=EventLevel.WARNING,
                title="Notifications refused",
                description="You will not receive reminders. You can enable them in your browser settings.",
            ),
        )
        return False

    def channel_compatibility(self) -> ChannelCompatibility:
        """Which reminder channels can currently reach the user."""
        return ChannelCompatibility(
            web_push=self.is_supported() and self.current_permission() is not Permission.DENIED,
            email=True,
            in_app=True,
        )
