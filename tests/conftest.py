"""Pytest configuration and shared fixtures.

Organization:
    - Environment: settings that keep tests off real infrastructure
    - Time Fixtures: a controllable clock and a manual timer backend
    - Database Fixtures: in-memory SQLite engine, session and stores
    - Notification Fixtures: platform, event sink and a wired engine
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
import inspect
import os
from typing import TYPE_CHECKING, Any

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

# Ensure tests run without external infrastructure
os.environ.setdefault("DB_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("EMAIL_BACKEND", "console")
os.environ.setdefault("NOTIFY_EMAIL_SWEEP_ENABLED", "false")

from revia_service.core.database import Base  # noqa: E402
from revia_service.core.settings import NotificationSettings, clear_all_settings_caches  # noqa: E402
from revia_service.features.notifications.engine import ReminderEngine  # noqa: E402
from revia_service.features.notifications.platform import InAppNotificationPlatform  # noqa: E402
from revia_service.features.notifications.stores import SqlLogStore, SqlPreferenceStore  # noqa: E402

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncEngine

    from revia_service.features.notifications.events import UserEvent
    from revia_service.features.notifications.timers import TimerCallback


# Monday 10 March 2025, 08:00 UTC
START = datetime(2025, 3, 10, 8, 0, tzinfo=UTC)


@pytest.fixture(autouse=True)
def _reset_settings_cache():
    clear_all_settings_caches()
    yield
    clear_all_settings_caches()


# ============================================================================
# Time Fixtures
# ============================================================================


class FakeClock:
    """Clock that only moves when told to."""

    def __init__(self, now: datetime = START) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


@dataclass(eq=False)
class ManualTimer:
    due: datetime
    callback: TimerCallback
    cancelled: bool = False
    ran: bool = False

    def cancel(self) -> None:
        self.cancelled = True


@dataclass
class ManualTimerBackend:
    """Timer backend driven by ``FakeClock``; nothing runs until ``advance``."""

    clock: FakeClock
    timers: list[ManualTimer] = field(default_factory=list)

    def call_later(self, delay_seconds: float, callback: TimerCallback) -> ManualTimer:
        timer = ManualTimer(due=self.clock() + timedelta(seconds=max(delay_seconds, 0.0)), callback=callback)
        self.timers.append(timer)
        return timer

    @property
    def active(self) -> list[ManualTimer]:
        return [t for t in self.timers if not t.cancelled and not t.ran]

    async def advance(self, seconds: float = 0.0) -> int:
        """Move the clock and run every live timer now due, in due order."""
        self.clock.advance(seconds=seconds)
        ran = 0
        for timer in sorted(self.active, key=lambda t: t.due):
            if timer.due > self.clock():
                break
            timer.ran = True
            result = timer.callback()
            if inspect.isawaitable(result):
                await result
            ran += 1
        return ran

    async def fire_everything(self) -> int:
        """Run every registered timer, cancelled or not (simulates a racing expiry)."""
        ran = 0
        for timer in list(self.timers):
            if timer.ran:
                continue
            timer.ran = True
            result = timer.callback()
            if inspect.isawaitable(result):
                await result
            ran += 1
        return ran


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def timers(clock: FakeClock) -> ManualTimerBackend:
    return ManualTimerBackend(clock)


# ============================================================================
# Database Fixtures
# ============================================================================


@pytest.fixture
async def db_engine(tmp_path) -> AsyncGenerator[AsyncEngine]:
    """Async SQLAlchemy engine on a throwaway SQLite file.

    A file (not :memory:) so concurrent sessions each get their own connection.
    """
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'revia.db'}", echo=False)

    import revia_service.features.notifications.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    try:
        yield engine
    finally:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)
        await engine.dispose()


@pytest.fixture
def session_factory(db_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest.fixture
async def db_session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession]:
    """Database session rolled back after the test."""
    async with session_factory() as session:
        try:
            yield session
        finally:
            await session.rollback()


@pytest.fixture
def preference_store(session_factory: async_sessionmaker[AsyncSession]) -> SqlPreferenceStore:
    return SqlPreferenceStore(session_factory)


@pytest.fixture
def log_store(session_factory: async_sessionmaker[AsyncSession]) -> SqlLogStore:
    return SqlLogStore(session_factory)


# ============================================================================
# Notification Fixtures
# ============================================================================


@pytest.fixture
def notification_settings() -> NotificationSettings:
    return NotificationSettings(auto_close_seconds=10.0, default_minutes_before=15)


@pytest.fixture
def events() -> list[UserEvent]:
    return []


class CountingPrompt:
    """Permission prompt that answers with a fixed value and counts calls."""

    def __init__(self, answer: str = "granted") -> None:
        self.answer = answer
        self.calls = 0

    async def __call__(self) -> str:
        self.calls += 1
        return self.answer


@pytest.fixture
def prompt() -> CountingPrompt:
    return CountingPrompt("granted")


@pytest.fixture
def platform(prompt: CountingPrompt) -> InAppNotificationPlatform:
    return InAppNotificationPlatform(prompt)


@pytest.fixture
def reminder_engine(
    preference_store: SqlPreferenceStore,
    log_store: SqlLogStore,
    notification_settings: NotificationSettings,
    timers: ManualTimerBackend,
    platform: InAppNotificationPlatform,
    clock: FakeClock,
    events: list[Any],
) -> ReminderEngine:
    return ReminderEngine(
        preference_store,
        log_store,
        settings=notification_settings,
        timers=timers,
        platform_factory=lambda _user_id: platform,
        clock=clock,
        on_event=events.append,
    )
