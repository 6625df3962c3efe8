"""Tests for the reminder scheduler."""

from __future__ import annotations

from datetime import timedelta

import pytest

from revia_service.core.exceptions import (
    PastReminderError,
    PermissionDeniedError,
    PreferencesDisabledError,
    SchedulingError,
    UnsupportedEnvironmentError,
)
from revia_service.features.notifications.dispatcher import NotificationDispatcher
from revia_service.features.notifications.permissions import PermissionGate
from revia_service.features.notifications.scheduler import ReminderScheduler
from revia_service.features.notifications.schemas import NotificationOptions, NotificationType

USER = "u-42"


@pytest.fixture
async def user(reminder_engine):
    await reminder_engine.reconciler.update(USER, {"push_enabled": True})
    return reminder_engine.for_user(USER)


class BrokenTimers:
    def call_later(self, delay_seconds, callback):
        msg = "timer wheel full"
        raise RuntimeError(msg)


# ============================================================================
# Rejections
# ============================================================================


@pytest.mark.asyncio
async def test_past_fire_time_rejected_before_prompting(user, clock, prompt) -> None:
    with pytest.raises(PastReminderError):
        await user.scheduler.schedule("Too late", None, clock() - timedelta(seconds=1))

    assert prompt.calls == 0
    assert user.scheduler.pending() == []


@pytest.mark.asyncio
async def test_naive_fire_time_is_invalid(user, clock, prompt, timers) -> None:
    naive = (clock() + timedelta(minutes=5)).replace(tzinfo=None)

    with pytest.raises(ValueError, match="timezone"):
        await user.scheduler.schedule("Stretch", None, naive)

    assert prompt.calls == 0
    assert timers.active == []


@pytest.mark.asyncio
async def test_fire_time_equal_to_now_is_accepted(user, clock, timers) -> None:
    reminder = await user.scheduler.schedule("Right now", None, clock())

    assert reminder.delay_ms == 0
    assert len(timers.active) == 1


@pytest.mark.asyncio
async def test_default_permission_escalates_once_and_schedules(user, clock, prompt) -> None:
    reminder = await user.scheduler.schedule("Stretch", None, clock() + timedelta(minutes=5))

    assert prompt.calls == 1
    assert user.gate.is_granted() is True
    assert reminder.delay_ms == 300_000
    assert user.scheduler.pending() == [reminder]


@pytest.mark.asyncio
async def test_refused_permission_rejects_and_never_prompts_again(user, clock, prompt, timers) -> None:
    prompt.answer = "denied"

    with pytest.raises(PermissionDeniedError) as exc_info:
        await user.scheduler.schedule("Stretch", None, clock() + timedelta(minutes=5))
    assert exc_info.value.extra["permission"] == "denied"

    with pytest.raises(PermissionDeniedError):
        await user.scheduler.schedule("Stretch", None, clock() + timedelta(minutes=5))

    assert prompt.calls == 1
    assert timers.timers == []


@pytest.mark.asyncio
async def test_push_disabled_rejected_even_when_granted(reminder_engine, clock, prompt) -> None:
    await reminder_engine.reconciler.update(USER, {"push_enabled": False})
    user = reminder_engine.for_user(USER)
    assert await user.gate.request_permission() is True

    with pytest.raises(PreferencesDisabledError):
        await user.scheduler.schedule("Stretch", None, clock() + timedelta(minutes=5))

    assert user.scheduler.pending() == []


@pytest.mark.asyncio
async def test_never_configured_user_is_rejected(reminder_engine, clock) -> None:
    user = reminder_engine.for_user("u-new")

    with pytest.raises(PreferencesDisabledError):
        await user.scheduler.schedule("Stretch", None, clock() + timedelta(minutes=5))


@pytest.mark.asyncio
async def test_no_platform_is_unsupported(reminder_engine, timers, clock, notification_settings) -> None:
    gate = PermissionGate(None)
    dispatcher = NotificationDispatcher(USER, None, timers, settings=notification_settings)
    scheduler = ReminderScheduler(
        USER,
        reminder_engine.reconciler,
        gate,
        dispatcher,
        timers,
        settings=notification_settings,
        clock=clock,
    )

    with pytest.raises(UnsupportedEnvironmentError):
        await scheduler.schedule("Stretch", None, clock() + timedelta(minutes=5))
    assert scheduler.cancel_all() == 0


@pytest.mark.asyncio
async def test_timer_failure_becomes_scheduling_error(user, reminder_engine, clock, notification_settings) -> None:
    scheduler = ReminderScheduler(
        USER,
        reminder_engine.reconciler,
        user.gate,
        user.dispatcher,
        BrokenTimers(),
        settings=notification_settings,
        clock=clock,
    )

    with pytest.raises(SchedulingError):
        await scheduler.schedule("Stretch", None, clock() + timedelta(minutes=5))
    assert scheduler.pending() == []


# ============================================================================
# Firing
# ============================================================================


@pytest.mark.asyncio
async def test_reminder_fires_at_its_time(user, clock, timers, platform, log_store) -> None:
    options = NotificationOptions(body="Ten squats", tag="stretch")
    await user.scheduler.schedule("Stretch", options, clock() + timedelta(minutes=5))

    assert await timers.advance(299) == 0
    assert platform.get_notifications() == []

    assert await timers.advance(1) == 1
    [shown] = platform.get_notifications(tag="stretch")
    assert shown.title == "Stretch"
    assert shown.body == "Ten squats"
    assert user.scheduler.pending() == []

    await user.dispatcher.wait_for_pending_logs()
    [entry] = await log_store.list_for_user(USER)
    assert entry.type is NotificationType.PUSH_NOTIFICATION
    assert entry.metadata["title"] == "Stretch"


@pytest.mark.asyncio
async def test_local_reminder_fires_immediately(user, timers, platform) -> None:
    reminder = await user.scheduler.schedule_local_reminder("Drink water")

    assert reminder.tag == "revia-reminder"
    assert await timers.advance() == 1
    assert [n.title for n in platform.get_notifications()] == ["Drink water"]


@pytest.mark.asyncio
async def test_fired_reminder_stamps_last_reminded_at(user, reminder_engine, timers, clock) -> None:
    await user.scheduler.schedule("Stretch", None, clock() + timedelta(minutes=1))
    await timers.advance(60)
    await user.dispatcher.wait_for_pending_logs()

    reminder_engine.reconciler.invalidate(USER)
    prefs = await reminder_engine.reconciler.get(USER)
    assert prefs.last_reminded_at == clock()


# ============================================================================
# Cancellation
# ============================================================================


@pytest.mark.asyncio
async def test_cancel_all_suppresses_racing_timers(user, clock, timers, platform) -> None:
    for minutes in (1, 2, 3):
        await user.scheduler.schedule(f"R{minutes}", None, clock() + timedelta(minutes=minutes))

    assert user.scheduler.cancel_all() == 3
    assert user.scheduler.pending() == []

    await timers.fire_everything()
    assert platform.get_notifications() == []


@pytest.mark.asyncio
async def test_cancel_by_tag_removes_all_sharing_reminders(user, clock, timers, platform) -> None:
    shared = NotificationOptions(tag="leg-day")
    other = NotificationOptions(tag="arm-day")
    await user.scheduler.schedule("A", shared, clock() + timedelta(minutes=1))
    await user.scheduler.schedule("B", shared, clock() + timedelta(minutes=2))
    kept = await user.scheduler.schedule("C", other, clock() + timedelta(minutes=3))

    assert user.scheduler.cancel("leg-day") == 2
    assert user.scheduler.pending() == [kept]

    await timers.advance(180)
    assert [n.title for n in platform.get_notifications()] == ["C"]


@pytest.mark.asyncio
async def test_cancel_unknown_tag_is_noop(user) -> None:
    assert user.scheduler.cancel("nothing-here") == 0


@pytest.mark.asyncio
async def test_cancel_closes_live_notification(user, timers, platform) -> None:
    await user.scheduler.schedule_local_reminder("Now", NotificationOptions(tag="now"))
    await timers.advance()
    assert len(platform.get_notifications(tag="now")) == 1

    user.scheduler.cancel("now")
    assert platform.get_notifications(tag="now") == []


@pytest.mark.asyncio
async def test_cancelled_reminder_cannot_be_cancelled_twice(user, clock) -> None:
    await user.scheduler.schedule("A", None, clock() + timedelta(minutes=1))

    assert user.scheduler.cancel_all() == 1
    assert user.scheduler.cancel_all() == 0
