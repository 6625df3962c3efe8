"""Session reminders: preferences, permission, scheduling and dispatch."""

from .dispatcher import NotificationDispatcher
from .eligibility import should_send_reminder
from .email_reminders import EmailReminderJob, ReminderRecipient, StaticRecipientDirectory
from .engine import ReminderEngine, UserReminders
from .permissions import PermissionGate
from .planner import SessionReminderPlanner
from .platform import InAppNotificationPlatform, NotificationPlatform
from .preferences import PreferenceReconciler
from .router import router
from .scheduler import PendingReminder, ReminderScheduler
from .schemas import NotificationOptions, NotificationPreferences, Permission, PreferencesUpdate

__all__ = [
    "EmailReminderJob",
    "InAppNotificationPlatform",
    "NotificationDispatcher",
    "NotificationOptions",
    "NotificationPlatform",
    "NotificationPreferences",
    "PendingReminder",
    "Permission",
    "PermissionGate",
    "PreferenceReconciler",
    "PreferencesUpdate",
    "ReminderEngine",
    "ReminderRecipient",
    "ReminderScheduler",
    "SessionReminderPlanner",
    "StaticRecipientDirectory",
    "UserReminders",
    "router",
    "should_send_reminder",
]
