"""Tests for preference reconciliation."""

from __future__ import annotations

from unittest.mock import AsyncMock

from pydantic import ValidationError
import pytest

from revia_service.core.exceptions import PersistenceError
from revia_service.features.notifications.events import EventLevel
from revia_service.features.notifications.preferences import PreferenceReconciler
from revia_service.features.notifications.schemas import (
    NotificationPreferences,
    PreferencesUpdate,
    ReminderFrequency,
)

USER = "u-1"


@pytest.fixture
def reconciler(preference_store, notification_settings, events) -> PreferenceReconciler:
    return PreferenceReconciler(preference_store, notification_settings, on_event=events.append)


@pytest.mark.asyncio
async def test_unknown_user_reads_none(reconciler) -> None:
    assert await reconciler.get(USER) is None


@pytest.mark.asyncio
async def test_first_update_starts_from_defaults(reconciler, notification_settings) -> None:
    saved = await reconciler.update(USER, {"push_enabled": True})

    defaults = notification_settings.default_preferences()
    assert saved.push_enabled is True
    assert saved.email_enabled is defaults["email_enabled"]
    assert saved.reminder_time == defaults["reminder_time"]
    assert saved.reminder_days == defaults["reminder_days"]
    assert saved.timezone == defaults["timezone"]


@pytest.mark.asyncio
async def test_later_updates_only_touch_submitted_fields(reconciler) -> None:
    await reconciler.update(USER, {"push_enabled": True, "reminder_time": "07:30"})

    saved = await reconciler.update(USER, PreferencesUpdate(reminder_frequency=ReminderFrequency.WEEKLY))

    assert saved.push_enabled is True
    assert saved.reminder_time == "07:30"
    assert saved.reminder_frequency is ReminderFrequency.WEEKLY


@pytest.mark.asyncio
async def test_update_is_visible_through_store(reconciler, preference_store) -> None:
    await reconciler.update(USER, {"reminder_days": [5, 1, 1]})

    stored = await preference_store.get(USER)
    assert stored.reminder_days == [1, 5]


@pytest.mark.asyncio
async def test_success_emits_event(reconciler, events) -> None:
    await reconciler.update(USER, {"email_enabled": True})

    assert events[-1].level is EventLevel.SUCCESS
    assert events[-1].title == "Preferences updated"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "payload",
    [
        {"reminder_time": "25:00"},
        {"reminder_days": [7]},
        {"timezone": "Mars/Olympus_Mons"},
        {"push_enabled": None},
        {"unknown": True},
    ],
)
async def test_invalid_partial_is_rejected(reconciler, payload) -> None:
    with pytest.raises(ValidationError):
        await reconciler.update(USER, payload)

    assert await reconciler.get(USER) is None


@pytest.mark.asyncio
async def test_store_write_failure_keeps_previous_state(notification_settings, events) -> None:
    previous = NotificationPreferences(user_id=USER, push_enabled=True)
    store = AsyncMock()
    store.get.return_value = previous
    store.upsert.side_effect = RuntimeError("connection reset")
    reconciler = PreferenceReconciler(store, notification_settings, on_event=events.append)

    with pytest.raises(PersistenceError) as exc_info:
        await reconciler.update(USER, {"push_enabled": False})

    assert exc_info.value.extra["operation"] == "upsert"
    assert exc_info.value.status_code == 503
    assert (await reconciler.get(USER)).push_enabled is True
    assert events[-1].level is EventLevel.ERROR
    assert events[-1].title == "Save failed"


@pytest.mark.asyncio
async def test_store_read_failure_is_wrapped(notification_settings) -> None:
    store = AsyncMock()
    store.get.side_effect = RuntimeError("timeout")
    reconciler = PreferenceReconciler(store, notification_settings)

    with pytest.raises(PersistenceError) as exc_info:
        await reconciler.get(USER)

    assert exc_info.value.extra["operation"] == "get"
    assert isinstance(exc_info.value.__cause__, RuntimeError)


@pytest.mark.asyncio
async def test_reads_are_cached(notification_settings) -> None:
    store = AsyncMock()
    store.get.return_value = NotificationPreferences(user_id=USER)
    reconciler = PreferenceReconciler(store, notification_settings)

    await reconciler.get(USER)
    await reconciler.get(USER)
    assert store.get.await_count == 1

    reconciler.invalidate(USER)
    await reconciler.get(USER)
    assert store.get.await_count == 2


@pytest.mark.asyncio
async def test_missing_record_is_not_cached(notification_settings) -> None:
    store = AsyncMock()
    store.get.return_value = None
    reconciler = PreferenceReconciler(store, notification_settings)

    await reconciler.get(USER)
    await reconciler.get(USER)

    assert store.get.await_count == 2


@pytest.mark.asyncio
async def test_mark_reminded_ignores_unconfigured_users(reconciler, clock, preference_store) -> None:
    assert await reconciler.mark_reminded(USER, clock()) is None
    assert await preference_store.get(USER) is None


@pytest.mark.asyncio
async def test_mark_reminded_stamps_existing_record(reconciler, clock) -> None:
    await reconciler.update(USER, {"email_enabled": True})

    saved = await reconciler.mark_reminded(USER, clock())

    assert saved.last_reminded_at == clock()
    assert saved.email_enabled is True
