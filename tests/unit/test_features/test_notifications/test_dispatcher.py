"""Tests for the notification dispatcher."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from revia_service.core.exceptions import UnsupportedEnvironmentError
from revia_service.features.notifications.dispatcher import NotificationDispatcher
from revia_service.features.notifications.platform import InAppNotificationPlatform
from revia_service.features.notifications.schemas import NotificationOptions, NotificationType, Permission

USER = "u-9"


@pytest.fixture
def granted_platform() -> InAppNotificationPlatform:
    return InAppNotificationPlatform(permission=Permission.GRANTED)


@pytest.fixture
def dispatcher(granted_platform, timers, log_store, clock, notification_settings) -> NotificationDispatcher:
    return NotificationDispatcher(
        USER,
        granted_platform,
        timers,
        log_store=log_store,
        settings=notification_settings,
        clock=clock,
    )


def test_defaults_come_from_settings(dispatcher) -> None:
    assert dispatcher.build_options() == {
        "icon": "/vite.svg",
        "badge": "/vite.svg",
        "tag": "revia-reminder",
        "require_interaction": True,
    }


def test_caller_options_override_defaults(dispatcher) -> None:
    options = NotificationOptions(body="Go", tag="custom", require_interaction=False)

    merged = dispatcher.build_options(options)

    assert merged["tag"] == "custom"
    assert merged["require_interaction"] is False
    assert merged["body"] == "Go"
    assert merged["icon"] == "/vite.svg"


@pytest.mark.asyncio
async def test_dispatch_without_platform_raises(timers, notification_settings) -> None:
    dispatcher = NotificationDispatcher(USER, None, timers, settings=notification_settings)

    with pytest.raises(UnsupportedEnvironmentError):
        dispatcher.dispatch("Nope")


@pytest.mark.asyncio
async def test_click_focuses_and_closes(dispatcher, granted_platform) -> None:
    notification = dispatcher.dispatch("Session time")

    notification.click()

    assert granted_platform.focus_count == 1
    assert notification.closed is True
    assert granted_platform.get_notifications() == []


@pytest.mark.asyncio
async def test_auto_close_after_configured_delay(dispatcher, granted_platform, timers) -> None:
    notification = dispatcher.dispatch("Session time")

    await timers.advance(9)
    assert notification.closed is False

    await timers.advance(1)
    assert notification.closed is True
    assert granted_platform.get_notifications() == []


@pytest.mark.asyncio
async def test_auto_close_disabled_with_zero(granted_platform, timers, log_store, notification_settings) -> None:
    settings = notification_settings.model_copy(update={"auto_close_seconds": 0.0})
    dispatcher = NotificationDispatcher(USER, granted_platform, timers, settings=settings)

    dispatcher.dispatch("Stay")

    assert timers.timers == []


@pytest.mark.asyncio
async def test_dispatch_records_history(dispatcher, log_store, clock) -> None:
    options = NotificationOptions(body="Ten squats", tag="squats")

    dispatcher.dispatch("Squats", options)
    await dispatcher.wait_for_pending_logs()

    [entry] = await log_store.list_for_user(USER)
    assert entry.type is NotificationType.PUSH_NOTIFICATION
    assert entry.metadata == {
        "title": "Squats",
        "options": {"body": "Ten squats", "tag": "squats"},
        "timestamp": clock().isoformat(),
    }


@pytest.mark.asyncio
async def test_failing_log_store_does_not_break_dispatch(granted_platform, timers, notification_settings) -> None:
    store = AsyncMock()
    store.append.side_effect = RuntimeError("disk full")
    dispatcher = NotificationDispatcher(USER, granted_platform, timers, log_store=store, settings=notification_settings)

    notification = dispatcher.dispatch("Still shown")
    await dispatcher.wait_for_pending_logs()

    assert notification in granted_platform.get_notifications()
    store.append.assert_awaited_once()


@pytest.mark.asyncio
async def test_same_tag_replaces_live_notification(dispatcher, granted_platform) -> None:
    first = dispatcher.dispatch("First", NotificationOptions(tag="same"))
    second = dispatcher.dispatch("Second", NotificationOptions(tag="same"))

    assert first.closed is True
    assert granted_platform.get_notifications(tag="same") == [second]


@pytest.mark.asyncio
async def test_anonymous_dispatch_skips_history(granted_platform, timers, notification_settings) -> None:
    store = AsyncMock()
    dispatcher = NotificationDispatcher(None, granted_platform, timers, log_store=store, settings=notification_settings)

    dispatcher.dispatch("Hello")
    await dispatcher.wait_for_pending_logs()

    store.append.assert_not_called()
