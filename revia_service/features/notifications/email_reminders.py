"""Periodic email reminder sweep.

Every run walks the users who enabled reminder emails, keeps those whose
day-based reminder is due, sends one email each and records the send in
the notification history. A failure for one user never stops the sweep.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from apscheduler.triggers.interval import IntervalTrigger  # type: ignore[import-untyped]
from pydantic import BaseModel, EmailStr

from revia_service.core.services.base import BaseService
from revia_service.core.settings import get_notification_settings
from revia_service.features.notifications.eligibility import evaluate_reminder
from revia_service.features.notifications.metrics import email_reminders_total
from revia_service.features.notifications.schemas import NotificationLogCreate, NotificationType
from revia_service.features.notifications.timers import utcnow
from revia_service.infra.email import EmailMessage
from revia_service.infra.logging import remove_from_log_context, set_log_context

if TYPE_CHECKING:
    from datetime import datetime

    from apscheduler.schedulers.asyncio import AsyncIOScheduler  # type: ignore[import-untyped]

    from revia_service.core.settings import NotificationSettings
    from revia_service.features.notifications.preferences import PreferenceReconciler
    from revia_service.features.notifications.schemas import NotificationPreferences
    from revia_service.features.notifications.stores import LogStore, PreferenceStore
    from revia_service.features.notifications.timers import Clock
    from revia_service.infra.email import EmailProvider

EMAIL_SWEEP_JOB_ID = "email_reminders"


class ReminderRecipient(BaseModel):
    """Contact details for a user, supplied by the identity provider."""

    user_id: str
    email: EmailStr
    first_name: str | None = None
    last_name: str | None = None


@runtime_checkable
class RecipientDirectory(Protocol):
    """Resolves a user id to an email recipient."""

    async def resolve(self, user_id: str) -> ReminderRecipient | None: ...


class StaticRecipientDirectory:
    """In-memory directory, filled by the caller."""

    def __init__(self, recipients: list[ReminderRecipient] | None = None) -> None:
        self._by_user = {r.user_id: r for r in recipients or []}

    def add(self, recipient: ReminderRecipient) -> None:
        self._by_user[recipient.user_id] = recipient

    async def resolve(self, user_id: str) -> ReminderRecipient | None:
        return self._by_user.get(user_id)


@dataclass
class EmailSweepResult:
    sent: list[str] = field(default_factory=list)
    skipped: dict[str, str] = field(default_factory=dict)
    failed: dict[str, str] = field(default_factory=dict)


def build_reminder_email(recipient: ReminderRecipient) -> EmailMessage:
    greeting = f"Hi {recipient.first_name}," if recipient.first_name else "Hi,"
    return EmailMessage(
        to=[recipient.email],
        subject="Time for your session",
        body_text=(
            f"{greeting}\n\n"
            "This is your reminder to get today's session done. "
            "Every session counts towards your progress.\n\n"
            "You can change how often we remind you in your notification settings."
        ),
        tags=["reminder"],
    )


class EmailReminderJob(BaseService):
    """Sends due reminder emails and records them."""

    def __init__(
        self,
        preference_store: PreferenceStore,
        log_store: LogStore,
        reconciler: PreferenceReconciler,
        provider: EmailProvider,
        directory: RecipientDirectory,
        settings: NotificationSettings | None = None,
        clock: Clock = utcnow,
    ) -> None:
        super().__init__()
        self._preference_store = preference_store
        self._log_store = log_store
        self._reconciler = reconciler
        self._provider = provider
        self._directory = directory
        self._settings = settings or get_notification_settings()
        self._clock = clock

    async def run_once(self) -> EmailSweepResult:
        """One sweep over all email-enabled users."""
        result = EmailSweepResult()
        now = self._clock()

        for prefs in await self._preference_store.list_email_enabled():
            set_log_context(user_id=prefs.user_id)
            try:
                await self._remind(prefs, now, result)
            except Exception as e:
                result.failed[prefs.user_id] = str(e)
                email_reminders_total.labels(status="failed").inc()
                self.logger.exception("Email reminder failed")
            finally:
                remove_from_log_context("user_id")

        self.logger.info(
            "Email reminder sweep finished",
            extra={"sent": len(result.sent), "skipped": len(result.skipped), "failed": len(result.failed)},
        )
        return result

    async def _remind(self, prefs: NotificationPreferences, now: datetime, result: EmailSweepResult) -> None:
        decision = evaluate_reminder(prefs, now)
        if not decision.eligible:
            result.skipped[prefs.user_id] = decision.reason
            email_reminders_total.labels(status="skipped").inc()
            return

        recipient = await self._directory.resolve(prefs.user_id)
        if recipient is None:
            result.skipped[prefs.user_id] = "no_recipient"
            email_reminders_total.labels(status="skipped").inc()
            self.logger.warning("No email address for user", extra={"user_id": prefs.user_id})
            return

        message = build_reminder_email(recipient)
        delivery = await self._provider.send(message)
        if not delivery.success:
            result.failed[prefs.user_id] = delivery.error or "delivery failed"
            email_reminders_total.labels(status="failed").inc()
            return

        await self._log_store.append(
            NotificationLogCreate(
                user_id=prefs.user_id,
                type=NotificationType.EMAIL_REMINDER,
                metadata={
                    "subject": message.subject,
                    "message_id": delivery.message_id,
                    "provider": delivery.provider,
                    "timestamp": now.isoformat(),
                },
            )
        )
        await self._reconciler.mark_reminded(prefs.user_id, now)
        result.sent.append(prefs.user_id)
        email_reminders_total.labels(status="sent").inc()

    def register(self, scheduler: AsyncIOScheduler) -> None:
        """Add the sweep to ``scheduler`` as an interval job."""
        scheduler.add_job(
            func=self.run_once,
            trigger=IntervalTrigger(minutes=self._settings.email_sweep_interval_minutes),
            id=EMAIL_SWEEP_JOB_ID,
            name="Send due reminder emails",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        self.logger.info(
            "Email reminder sweep scheduled",
            extra={"interval_minutes": self._settings.email_sweep_interval_minutes},
        )
