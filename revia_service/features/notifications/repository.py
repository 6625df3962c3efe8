"""Repositories for notification preferences and history."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from sqlalchemy import func, select

from revia_service.core.database import BaseRepository
from revia_service.features.notifications.models import NotificationLog, NotificationPreference

if TYPE_CHECKING:
    from collections.abc import Sequence

    from sqlalchemy.ext.asyncio import AsyncSession


class NotificationPreferenceRepository(BaseRepository[NotificationPreference]):
    """Repository for NotificationPreference model."""

    def __init__(self) -> None:
        super().__init__(NotificationPreference)

    async def get_for_user(
        self,
        session: AsyncSession,
        user_id: str,
    ) -> NotificationPreference | None:
        """Get the preference row for a user, if any."""
        return await self.get_by(session, NotificationPreference.user_id, user_id)

    async def upsert(
        self,
        session: AsyncSession,
        user_id: str,
        fields: dict[str, Any],
        defaults: dict[str, Any] | None = None,
    ) -> tuple[NotificationPreference, bool]:
        """Create or update the row for ``user_id``.

        On create, ``defaults`` are applied first and ``fields`` on top.
        On update only ``fields`` are written.

        Returns:
            Tuple of (row, created)
        """
        existing = await self.get_for_user(session, user_id)

        if existing:
            for key, value in fields.items():
                setattr(existing, key, value)
            await session.flush()
            await session.refresh(existing)
            self._lazy.debug(lambda: f"db.upsert: updated preferences for {user_id}: {sorted(fields)}")
            return existing, False

        row = NotificationPreference(user_id=user_id, **{**(defaults or {}), **fields})
        return await self.create(session, row), True

    async def list_email_enabled(self, session: AsyncSession) -> Sequence[NotificationPreference]:
        """All users who opted into reminder emails."""
        stmt = (
            select(NotificationPreference)
            .where(NotificationPreference.email_enabled.is_(True))
            .order_by(NotificationPreference.user_id)
        )
        result = await session.execute(stmt)
        return result.scalars().all()


class NotificationLogRepository(BaseRepository[NotificationLog]):
    """Repository for the append-only NotificationLog model."""

    def __init__(self) -> None:
        super().__init__(NotificationLog)

    async def list_for_user(
        self,
        session: AsyncSession,
        user_id: str,
        *,
        limit: int = 50,
    ) -> Sequence[NotificationLog]:
        """History for a user, newest first."""
        stmt = (
            select(NotificationLog)
            .where(NotificationLog.user_id == user_id)
            .order_by(NotificationLog.sent_at.desc())
            .limit(limit)
        )
        result = await session.execute(stmt)
        return result.scalars().all()

    async def count_for_user(self, session: AsyncSession, user_id: str) -> int:
        """Total number of history entries for a user."""
        stmt = select(func.count()).select_from(NotificationLog).where(NotificationLog.user_id == user_id)
        result = await session.execute(stmt)
        return result.scalar_one()


# Singleton instances for dependency injection
_preference_repository: NotificationPreferenceRepository | None = None
_log_repository: NotificationLogRepository | None = None


def get_preference_repository() -> NotificationPreferenceRepository:
    """Get NotificationPreferenceRepository instance."""
    global _preference_repository
    if _preference_repository is None:
        _preference_repository = NotificationPreferenceRepository()
    return _preference_repository


def get_log_repository() -> NotificationLogRepository:
    """Get NotificationLogRepository instance."""
    global _log_repository
    if _log_repository is None:
        _log_repository = NotificationLogRepository()
    return _log_repository
