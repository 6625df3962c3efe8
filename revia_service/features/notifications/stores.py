"""Persistence ports for preferences and notification history.

``PreferenceStore`` and ``LogStore`` are the seams the engine depends on.
The SQLAlchemy implementations open one session per call and commit
before returning; errors propagate unchanged for the caller to classify.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from revia_service.features.notifications.models import NotificationLog
from revia_service.features.notifications.repository import (
    get_log_repository,
    get_preference_repository,
)
from revia_service.features.notifications.schemas import (
    NotificationLogCreate,
    NotificationLogEntry,
    NotificationPreferences,
)

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker


@runtime_checkable
class PreferenceStore(Protocol):
    """Keyed by user id; at most one record per user."""

    async def get(self, user_id: str) -> NotificationPreferences | None: ...

    async def upsert(self, user_id: str, fields: dict[str, Any]) -> NotificationPreferences: ...

    async def list_email_enabled(self) -> list[NotificationPreferences]: ...


@runtime_checkable
class LogStore(Protocol):
    """Append-only notification history."""

    async def append(self, entry: NotificationLogCreate) -> NotificationLogEntry: ...

    async def list_for_user(self, user_id: str, limit: int = 50) -> list[NotificationLogEntry]: ...

    async def count_for_user(self, user_id: str) -> int: ...


class SqlPreferenceStore:
    """PreferenceStore backed by the ``notification_preferences`` table."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory
        self._repository = get_preference_repository()

    async def get(self, user_id: str) -> NotificationPreferences | None:
        async with self._session_factory() as session:
            row = await self._repository.get_for_user(session, user_id)
            return NotificationPreferences.model_validate(row) if row else None

    async def upsert(self, user_id: str, fields: dict[str, Any]) -> NotificationPreferences:
        async with self._session_factory() as session:
            row, _created = await self._repository.upsert(session, user_id, fields)
            await session.commit()
            return NotificationPreferences.model_validate(row)

    async def list_email_enabled(self) -> list[NotificationPreferences]:
        async with self._session_factory() as session:
            rows = await self._repository.list_email_enabled(session)
            return [NotificationPreferences.model_validate(row) for row in rows]


class SqlLogStore:
    """LogStore backed by the ``notification_logs`` table."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory
        self._repository = get_log_repository()

    async def append(self, entry: NotificationLogCreate) -> NotificationLogEntry:
        async with self._session_factory() as session:
            row = NotificationLog(
                user_id=entry.user_id,
                type=entry.type.value,
                extra_metadata=entry.metadata,
            )
            row = await self._repository.create(session, row)
            await session.commit()
            return NotificationLogEntry.model_validate(row)

    async def list_for_user(self, user_id: str, limit: int = 50) -> list[NotificationLogEntry]:
        async with self._session_factory() as session:
            rows = await self._repository.list_for_user(session, user_id, limit=limit)
            return [NotificationLogEntry.model_validate(row) for row in rows]

    async def count_for_user(self, user_id: str) -> int:
        async with self._session_factory() as session:
            return await self._repository.count_for_user(session, user_id)
