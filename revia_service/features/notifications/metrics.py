"""Prometheus metrics for reminder scheduling and notification dispatch.

Usage:
    from revia_service.features.notifications.metrics import reminders_scheduled_total

    reminders_scheduled_total.labels(kind="session").inc()
"""

from __future__ import annotations

from prometheus_client import Counter, Gauge

# =============================================================================
# Reminder lifecycle
# =============================================================================

reminders_scheduled_total = Counter(
    "revia_reminders_scheduled_total",
    "Total number of reminders registered with a timer",
    labelnames=["kind"],
)
"""
Labels:
    kind: session (planner) or local (direct scheduling)
"""

reminders_fired_total = Counter(
    "revia_reminders_fired_total",
    "Total number of reminders whose timer fired and dispatched",
)

reminders_cancelled_total = Counter(
    "revia_reminders_cancelled_total",
    "Total number of pending reminders cancelled before firing",
)

reminders_rejected_total = Counter(
    "revia_reminders_rejected_total",
    "Total number of schedule requests rejected by validation",
    labelnames=["reason"],
)
"""
Labels:
    reason: past, permission_denied, push_disabled, unsupported
"""

reminders_pending = Gauge(
    "revia_reminders_pending",
    "Reminders currently waiting on a timer",
)

# =============================================================================
# Dispatch and history
# =============================================================================

notifications_dispatched_total = Counter(
    "revia_notifications_dispatched_total",
    "Total number of notifications shown through the platform",
)

notification_log_failures_total = Counter(
    "revia_notification_log_failures_total",
    "Best-effort bookkeeping writes that failed after a dispatch",
    labelnames=["operation"],
)
"""
Labels:
    operation: append_log or mark_reminded
"""

email_reminders_total = Counter(
    "revia_email_reminders_total",
    "Email reminders attempted by the periodic sweep",
    labelnames=["status"],
)
"""
Labels:
    status: sent, failed, skipped
"""

# =============================================================================
# Permission and preferences
# =============================================================================

permission_requests_total = Counter(
    "revia_permission_requests_total",
    "Notification permission requests by outcome",
    labelnames=["outcome"],
)
"""
Labels:
    outcome: granted, refused, error
"""

preference_updates_total = Counter(
    "revia_preference_updates_total",
    "Preference upserts by outcome",
    labelnames=["outcome"],
)
"""
Labels:
    outcome: created, updated, failed
"""
