"""Day-based reminder eligibility.

Decides whether a user is due a periodic reminder right now, from their
preferred weekdays, time of day, frequency and time zone. Weekday indices
follow the settings screen: 0 = Sunday through 6 = Saturday.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, time
from zoneinfo import ZoneInfo

from revia_service.features.notifications.schemas import NotificationPreferences, ReminderFrequency

# Minimum whole local days between two reminders
MIN_DAYS_BETWEEN: dict[ReminderFrequency, int] = {
    ReminderFrequency.DAILY: 1,
    ReminderFrequency.TWICE_WEEKLY: 3,
    ReminderFrequency.WEEKLY: 7,
}


@dataclass(frozen=True, slots=True)
class ReminderDecision:
    eligible: bool
    reason: str


def sunday_based_weekday(moment: datetime) -> int:
    """0 = Sunday ... 6 = Saturday."""
    return (moment.weekday() + 1) % 7


def _parse_time(value: str) -> time:
    hours, minutes = value.split(":")
    return time(int(hours), int(minutes))


def evaluate_reminder(prefs: NotificationPreferences, now: datetime) -> ReminderDecision:
    """Explain whether ``prefs`` call for a reminder at ``now`` (aware datetime)."""
    tz = ZoneInfo(prefs.timezone)
    local_now = now.astimezone(tz)

    if not prefs.reminder_days:
        return ReminderDecision(False, "no_reminder_days")

    if sunday_based_weekday(local_now) not in prefs.reminder_days:
        return ReminderDecision(False, "not_a_reminder_day")

    if local_now.time() < _parse_time(prefs.reminder_time):
        return ReminderDecision(False, "before_reminder_time")

    if prefs.last_reminded_at is None:
        return ReminderDecision(True, "never_reminded")

    last_local = prefs.last_reminded_at.astimezone(tz)
    days_since = (local_now.date() - last_local.date()).days
    if days_since < MIN_DAYS_BETWEEN[ReminderFrequency(prefs.reminder_frequency)]:
        return ReminderDecision(False, "reminded_recently")

    return ReminderDecision(True, "due")


def should_send_reminder(prefs: NotificationPreferences, now: datetime) -> bool:
    """True when a day-based reminder is due for ``prefs`` at ``now``."""
    return evaluate_reminder(prefs, now).eligible
