"""Deferred callback backends for pending reminders.

A ``TimerBackend`` runs a callback once after a delay and hands back a
handle that can cancel it. Callbacks may be plain functions or return an
awaitable; awaitables are scheduled as tasks on the running loop.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime, timedelta
import inspect
import logging
from typing import TYPE_CHECKING, Protocol, TypeAlias, runtime_checkable
import uuid

from apscheduler.jobstores.base import JobLookupError  # type: ignore[import-untyped]
from apscheduler.schedulers.asyncio import AsyncIOScheduler  # type: ignore[import-untyped]
from apscheduler.triggers.date import DateTrigger  # type: ignore[import-untyped]

if TYPE_CHECKING:
    from revia_service.core.settings import NotificationSettings

logger = logging.getLogger(__name__)

TimerCallback: TypeAlias = "Callable[[], Awaitable[None] | None]"
Clock: TypeAlias = "Callable[[], datetime]"


def utcnow() -> datetime:
    """Default clock."""
    return datetime.now(UTC)


def ensure_aware(moment: datetime, name: str = "fire_at") -> datetime:
    """Return ``moment`` unchanged, or raise ``ValueError`` if it is naive."""
    if moment.tzinfo is None or moment.utcoffset() is None:
        msg = f"{name} must carry a timezone"
        raise ValueError(msg)
    return moment


@runtime_checkable
class TimerHandle(Protocol):
    def cancel(self) -> None: ...


@runtime_checkable
class TimerBackend(Protocol):
    """Runs a callback once after ``delay_seconds``."""

    def call_later(self, delay_seconds: float, callback: TimerCallback) -> TimerHandle: ...


def _run_callback(callback: TimerCallback, background: set[asyncio.Task[None]]) -> None:
    result = callback()
    if inspect.isawaitable(result):
        task = asyncio.ensure_future(result)
        background.add(task)
        task.add_done_callback(background.discard)


class AsyncioTimerBackend:
    """``loop.call_later`` on the running event loop.

    A zero delay fires on the next loop iteration, never synchronously.
    """

    def __init__(self) -> None:
        self._tasks: set[asyncio.Task[None]] = set()

    def call_later(self, delay_seconds: float, callback: TimerCallback) -> asyncio.TimerHandle:
        loop = asyncio.get_running_loop()
        return loop.call_later(max(delay_seconds, 0.0), _run_callback, callback, self._tasks)


class _JobHandle:
    __slots__ = ("_scheduler", "job_id")

    def __init__(self, scheduler: AsyncIOScheduler, job_id: str) -> None:
        self._scheduler = scheduler
        self.job_id = job_id

    def cancel(self) -> None:
        try:
            self._scheduler.remove_job(self.job_id)
        except JobLookupError:
            # Already fired or removed
            pass


class APSchedulerTimerBackend:
    """One-shot ``DateTrigger`` jobs on an ``AsyncIOScheduler``.

    The scheduler is started lazily on first use and stopped by
    ``shutdown``; pass an existing one to share it with the periodic email
    sweep.
    """

    def __init__(self, scheduler: AsyncIOScheduler | None = None, clock: Clock = utcnow) -> None:
        self.scheduler = scheduler or AsyncIOScheduler(
            timezone="UTC",
            job_defaults={"coalesce": True, "misfire_grace_time": 60},
        )
        self._clock = clock

    def call_later(self, delay_seconds: float, callback: TimerCallback) -> _JobHandle:
        if not self.scheduler.running:
            self.scheduler.start()

        run_date = self._clock() + timedelta(seconds=max(delay_seconds, 0.0))
        job_id = f"reminder-{uuid.uuid4()}"
        self.scheduler.add_job(
            func=self._invoke,
            args=[callback],
            trigger=DateTrigger(run_date=run_date),
            id=job_id,
            name="Deferred reminder",
        )
        logger.debug("Reminder job added", extra={"job_id": job_id, "run_date": run_date.isoformat()})
        return _JobHandle(self.scheduler, job_id)

    def shutdown(self) -> None:
        """Stop the scheduler without waiting for running jobs."""
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
            logger.debug("Reminder job scheduler stopped")

    @staticmethod
    async def _invoke(callback: TimerCallback) -> None:
        result = callback()
        if inspect.isawaitable(result):
            await result


def create_timer_backend(settings: NotificationSettings, clock: Clock = utcnow) -> TimerBackend:
    """Build the backend selected by ``NotificationSettings.timer_backend``."""
    if settings.timer_backend == "apscheduler":
        return APSchedulerTimerBackend(clock=clock)
    return AsyncioTimerBackend()
