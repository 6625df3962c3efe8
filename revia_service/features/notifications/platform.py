"""Host notification boundary.

``NotificationPlatform`` describes what the engine needs from the host:
permission state, a way to ask for it, showing and enumerating
notifications and bringing the application to the foreground.

``InAppNotificationPlatform`` is the in-process host used by the service
itself and by tests. It keeps live notifications in memory, answers
permission prompts through an injectable coroutine and fans every shown
notification out to subscribers (for example a websocket or SSE bridge).
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
import logging
from typing import Any, Protocol, TypeAlias, runtime_checkable
import uuid

from revia_service.core.exceptions import PermissionDeniedError
from revia_service.features.notifications.schemas import Permission

logger = logging.getLogger(__name__)

PermissionPrompt: TypeAlias = "Callable[[], Awaitable[Permission | str]]"
NotificationListener: TypeAlias = "Callable[[InAppNotification], None]"


@runtime_checkable
class PlatformNotification(Protocol):
    """A notification currently owned by the host."""

    title: str
    tag: str | None
    on_click: Callable[[], None] | None

    def close(self) -> None: ...


@runtime_checkable
class NotificationPlatform(Protocol):
    """The host's notification primitive."""

    @property
    def permission(self) -> Permission: ...

    async def request_permission(self) -> Permission: ...

    def show(self, title: str, options: dict[str, Any]) -> PlatformNotification: ...

    def get_notifications(self, tag: str | None = None) -> list[PlatformNotification]: ...

    def focus_application(self) -> None: ...


@dataclass(eq=False)
class InAppNotification:
    """A notification displayed by ``InAppNotificationPlatform``."""

    title: str
    options: dict[str, Any]
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    on_click: Callable[[], None] | None = None
    closed: bool = False
    _on_close: Callable[[InAppNotification], None] | None = field(default=None, repr=False)

    @property
    def tag(self) -> str | None:
        return self.options.get("tag")

    @property
    def body(self) -> str | None:
        return self.options.get("body")

    def close(self) -> None:
        """Dismiss the notification. Closing twice is a no-op."""
        if self.closed:
            return
        self.closed = True
        if self._on_close is not None:
            self._on_close(self)

    def click(self) -> None:
        """Simulate the user activating the notification."""
        if self.on_click is not None:
            self.on_click()


class InAppNotificationPlatform:
    """In-process notification host.

    Example:
        platform = InAppNotificationPlatform(auto_grant=True)
        await platform.request_permission()
        note = platform.show("Leg Day", {"tag": "session-reminder-1"})
        assert platform.get_notifications(tag="session-reminder-1") == [note]
    """

    def __init__(
        self,
        prompt: PermissionPrompt | None = None,
        *,
        auto_grant: bool = True,
        permission: Permission = Permission.DEFAULT,
        on_focus: Callable[[], None] | None = None,
    ) -> None:
        if permission is Permission.UNSUPPORTED:
            msg = "An attached platform cannot start as unsupported"
            raise ValueError(msg)
        self._prompt = prompt
        self._auto_grant = auto_grant
        self._permission = permission
        self._on_focus = on_focus
        self._live: list[InAppNotification] = []
        self._listeners: list[NotificationListener] = []
        self.focus_count = 0

    @property
    def permission(self) -> Permission:
        return self._permission

    async def request_permission(self) -> Permission:
        """Ask for permission once; granted and denied are final."""
        if self._permission is not Permission.DEFAULT:
            return self._permission

        if self._prompt is not None:
            answer = Permission(await self._prompt())
        else:
            answer = Permission.GRANTED if self._auto_grant else Permission.DENIED

        if answer in (Permission.GRANTED, Permission.DENIED):
            self._permission = answer
        logger.info("Permission prompt answered", extra={"permission": answer.value})
        return answer

    def show(self, title: str, options: dict[str, Any]) -> InAppNotification:
        """Display a notification; a live one with the same tag is replaced."""
        if self._permission is not Permission.GRANTED:
            raise PermissionDeniedError(
                "Cannot show a notification without permission",
                permission=self._permission.value,
            )

        tag = options.get("tag")
        if tag is not None:
            for existing in self.get_notifications(tag=tag):
                existing.close()

        notification = InAppNotification(title=title, options=dict(options), _on_close=self._forget)
        self._live.append(notification)

        for listener in list(self._listeners):
            try:
                listener(notification)
            except Exception:
                logger.exception("Notification listener failed", extra={"notification_tag": tag})
        return notification

    def get_notifications(self, tag: str | None = None) -> list[InAppNotification]:
        """Live notifications, optionally restricted to one tag."""
        if tag is None:
            return list(self._live)
        return [n for n in self._live if n.tag == tag]

    def focus_application(self) -> None:
        self.focus_count += 1
        if self._on_focus is not None:
            self._on_focus()

    def subscribe(self, listener: NotificationListener) -> Callable[[], None]:
        """Register ``listener`` for shown notifications; returns an unsubscribe callable."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _forget(self, notification: InAppNotification) -> None:
        if notification in self._live:
            self._live.remove(notification)
