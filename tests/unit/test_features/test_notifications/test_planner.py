"""Tests for session reminder planning."""

from __future__ import annotations

from datetime import timedelta
import random

import pytest

from revia_service.core.exceptions import PastReminderError, PreferencesDisabledError
from revia_service.core.settings import NotificationSettings
from revia_service.features.notifications.planner import SessionReminderPlanner
from revia_service.features.notifications.templates import (
    ReminderData,
    epoch_millis,
    generate_reminder_template,
    session_tag,
)

USER = "u-7"


@pytest.fixture
async def ready_user(reminder_engine):
    """User with push reminders on and permission already granted."""
    await reminder_engine.reconciler.update(USER, {"push_enabled": True})
    user = reminder_engine.for_user(USER)
    await user.gate.request_permission()
    return user


@pytest.mark.asyncio
async def test_leg_day_fires_fifteen_minutes_early(ready_user, clock) -> None:
    scheduled_at = clock() + timedelta(hours=1)

    reminder = await ready_user.planner.schedule_session_reminder("Leg Day", scheduled_at, minutes_before=15)

    assert reminder.fire_at == clock() + timedelta(minutes=45)
    assert reminder.delay_ms == 2_700_000
    assert reminder.cancelled is False
    assert reminder.tag == f"session-reminder-{epoch_millis(scheduled_at)}"
    assert reminder.title == 'Reminder: your session "Leg Day" starts in 15 minutes!'
    assert reminder.options.body == "Get ready for your Leg Day session"
    assert reminder.options.require_interaction is True
    assert reminder.options.data["session_name"] == "Leg Day"


@pytest.mark.asyncio
async def test_default_lead_time_comes_from_settings(ready_user, clock, notification_settings) -> None:
    scheduled_at = clock() + timedelta(hours=2)

    reminder = await ready_user.planner.schedule_session_reminder("Yoga", scheduled_at)

    lead = timedelta(minutes=notification_settings.default_minutes_before)
    assert reminder.fire_at == scheduled_at - lead


@pytest.mark.asyncio
async def test_custom_message_replaces_title(ready_user, clock) -> None:
    reminder = await ready_user.planner.schedule_session_reminder(
        "Yoga",
        clock() + timedelta(hours=1),
        custom_message="Mat out, phone away",
    )

    assert reminder.title == "Mat out, phone away"


@pytest.mark.asyncio
async def test_reminder_time_now_is_rejected(ready_user, clock) -> None:
    with pytest.raises(PastReminderError):
        await ready_user.planner.schedule_session_reminder("Yoga", clock() + timedelta(minutes=15), minutes_before=15)


@pytest.mark.asyncio
async def test_reminder_one_second_ahead_is_accepted(ready_user, clock) -> None:
    reminder = await ready_user.planner.schedule_session_reminder(
        "Yoga",
        clock() + timedelta(minutes=15, seconds=1),
        minutes_before=15,
    )

    assert reminder.delay_ms == 1000


@pytest.mark.asyncio
async def test_negative_lead_time_is_invalid(ready_user, clock) -> None:
    with pytest.raises(ValueError, match="minutes_before"):
        await ready_user.planner.schedule_session_reminder("Yoga", clock() + timedelta(hours=1), minutes_before=-5)


@pytest.mark.asyncio
async def test_naive_session_time_is_invalid(ready_user, clock, timers) -> None:
    naive = (clock() + timedelta(hours=1)).replace(tzinfo=None)

    with pytest.raises(ValueError, match="timezone"):
        await ready_user.planner.schedule_session_reminder("Leg Day", naive)

    assert ready_user.scheduler.pending() == []
    assert timers.active == []


@pytest.mark.asyncio
async def test_planning_never_prompts_for_permission(reminder_engine, clock, prompt) -> None:
    await reminder_engine.reconciler.update(USER, {"push_enabled": True})
    user = reminder_engine.for_user(USER)

    with pytest.raises(PreferencesDisabledError):
        await user.planner.schedule_session_reminder("Yoga", clock() + timedelta(hours=1))

    assert prompt.calls == 0


@pytest.mark.asyncio
async def test_push_disabled_is_rejected(reminder_engine, clock) -> None:
    await reminder_engine.reconciler.update(USER, {"push_enabled": False})
    user = reminder_engine.for_user(USER)
    await user.gate.request_permission()

    with pytest.raises(PreferencesDisabledError):
        await user.planner.schedule_session_reminder("Yoga", clock() + timedelta(hours=1))


@pytest.mark.asyncio
async def test_same_start_time_shares_tag(ready_user, clock) -> None:
    scheduled_at = clock() + timedelta(hours=3)

    first = await ready_user.planner.schedule_session_reminder("Legs", scheduled_at)
    second = await ready_user.planner.schedule_session_reminder("Arms", scheduled_at, minutes_before=30)

    assert first.tag == second.tag == session_tag(scheduled_at)
    assert ready_user.scheduler.cancel(first.tag) == 2


@pytest.mark.asyncio
async def test_planned_reminder_shows_when_due(ready_user, clock, timers, platform) -> None:
    scheduled_at = clock() + timedelta(hours=1)
    await ready_user.planner.schedule_session_reminder("Leg Day", scheduled_at, minutes_before=15)

    await timers.advance(45 * 60)

    [shown] = platform.get_notifications(tag=session_tag(scheduled_at))
    assert shown.options["require_interaction"] is True
    assert shown.options["icon"] == "/vite.svg"


@pytest.mark.asyncio
async def test_randomized_wording_uses_session_templates(ready_user, reminder_engine, clock) -> None:
    settings = NotificationSettings(randomized_session_titles=True)
    planner = SessionReminderPlanner(
        USER,
        reminder_engine.reconciler,
        ready_user.gate,
        ready_user.scheduler,
        settings=settings,
        clock=clock,
        rng=random.Random(0),
    )
    scheduled_at = clock() + timedelta(hours=1)

    reminder = await planner.schedule_session_reminder("Leg Day", scheduled_at, current_streak=4)

    expected = generate_reminder_template(
        ReminderData("Leg Day", scheduled_at, current_streak=4),
        rng=random.Random(0),
    )
    assert reminder.title == expected.title
    assert reminder.options.body == expected.body
    assert reminder.options.body.endswith(" 4-day streak!")
    assert reminder.tag == session_tag(scheduled_at)


@pytest.mark.asyncio
async def test_custom_message_wins_over_randomized_title(ready_user, reminder_engine, clock) -> None:
    planner = SessionReminderPlanner(
        USER,
        reminder_engine.reconciler,
        ready_user.gate,
        ready_user.scheduler,
        settings=NotificationSettings(randomized_session_titles=True),
        clock=clock,
        rng=random.Random(1),
    )

    reminder = await planner.schedule_session_reminder(
        "Yoga",
        clock() + timedelta(hours=1),
        custom_message="Mat out, phone away",
    )

    assert reminder.title == "Mat out, phone away"
    assert "streak" not in reminder.options.body
