"""Tests for day-based reminder eligibility."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from revia_service.features.notifications.eligibility import (
    evaluate_reminder,
    should_send_reminder,
    sunday_based_weekday,
)
from revia_service.features.notifications.schemas import NotificationPreferences

# Monday 10 March 2025, 19:00 in Paris (UTC+1)
MONDAY_EVENING = datetime(2025, 3, 10, 18, 0, tzinfo=UTC)


def prefs(**overrides) -> NotificationPreferences:
    values = {
        "user_id": "u-1",
        "email_enabled": True,
        "reminder_time": "18:00",
        "reminder_days": [1, 3, 5],
        "reminder_frequency": "daily",
        "timezone": "Europe/Paris",
    }
    values.update(overrides)
    return NotificationPreferences(**values)


def test_weekday_numbering_starts_on_sunday() -> None:
    sunday = datetime(2025, 3, 9, 12, 0, tzinfo=UTC)

    assert sunday_based_weekday(sunday) == 0
    assert sunday_based_weekday(sunday + timedelta(days=1)) == 1
    assert sunday_based_weekday(sunday + timedelta(days=6)) == 6


def test_never_reminded_user_is_due() -> None:
    decision = evaluate_reminder(prefs(), MONDAY_EVENING)

    assert decision.eligible is True
    assert decision.reason == "never_reminded"


def test_empty_days_never_due() -> None:
    assert evaluate_reminder(prefs(reminder_days=[]), MONDAY_EVENING).reason == "no_reminder_days"


def test_other_weekday_is_not_due() -> None:
    assert evaluate_reminder(prefs(reminder_days=[2, 4]), MONDAY_EVENING).reason == "not_a_reminder_day"


def test_before_local_reminder_time() -> None:
    decision = evaluate_reminder(prefs(reminder_time="19:30"), MONDAY_EVENING)

    assert decision.eligible is False
    assert decision.reason == "before_reminder_time"


def test_weekday_uses_local_date() -> None:
    # 23:30 UTC Monday is already Tuesday in Tokyo
    late_monday_utc = datetime(2025, 3, 10, 23, 30, tzinfo=UTC)
    tokyo = prefs(timezone="Asia/Tokyo", reminder_days=[2], reminder_time="08:00")

    assert should_send_reminder(tokyo, late_monday_utc) is True


@pytest.mark.parametrize(
    ("frequency", "days_ago", "expected"),
    [
        ("daily", 0, False),
        ("daily", 1, True),
        ("twice_weekly", 2, False),
        ("twice_weekly", 3, True),
        ("weekly", 6, False),
        ("weekly", 7, True),
    ],
)
def test_frequency_spacing(frequency: str, days_ago: int, expected: bool) -> None:
    last = MONDAY_EVENING - timedelta(days=days_ago, hours=1)
    decision = evaluate_reminder(
        prefs(reminder_frequency=frequency, reminder_days=[0, 1, 2, 3, 4, 5, 6], last_reminded_at=last),
        MONDAY_EVENING,
    )

    assert decision.eligible is expected
    assert decision.reason == ("due" if expected else "reminded_recently")
