"""Preference reconciliation: partial updates merged over stored records."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from revia_service.core.exceptions import PersistenceError
from revia_service.core.services.base import BaseService
from revia_service.core.settings import get_notification_settings
from revia_service.features.notifications.events import EventLevel, EventSink, UserEvent, emit
from revia_service.features.notifications.metrics import preference_updates_total
from revia_service.features.notifications.schemas import NotificationPreferences, PreferencesUpdate

if TYPE_CHECKING:
    from datetime import datetime

    from revia_service.core.settings import NotificationSettings
    from revia_service.features.notifications.stores import PreferenceStore


class PreferenceReconciler(BaseService):
    """Reads and merges notification preferences through a ``PreferenceStore``.

    Records are cached per user after the first successful read or write.
    A user without a record reads as ``None`` (never configured); the first
    update creates the record from the configured defaults plus the
    submitted fields. Later updates only touch the submitted fields.
    """

    def __init__(
        self,
        store: PreferenceStore,
        settings: NotificationSettings | None = None,
        on_event: EventSink | None = None,
    ) -> None:
        super().__init__()
        self._store = store
        self._settings = settings or get_notification_settings()
        self._on_event = on_event
        self._cache: dict[str, NotificationPreferences] = {}

    async def get(self, user_id: str) -> NotificationPreferences | None:
        """Current preferences, or None if the user never saved any."""
        cached = self._cache.get(user_id)
        if cached is not None:
            return cached

        try:
            prefs = await self._store.get(user_id)
        except Exception as e:
            self.logger.exception("Failed to load preferences", extra={"user_id": user_id})
            raise PersistenceError(
                "Unable to load notification preferences",
                operation="get",
                extra={"user_id": user_id},
            ) from e

        if prefs is not None:
            self._cache[user_id] = prefs
        self._lazy.debug(lambda: f"preferences for {user_id}: {'found' if prefs else 'none'}")
        return prefs

    async def update(
        self,
        user_id: str,
        partial: PreferencesUpdate | dict[str, Any],
    ) -> NotificationPreferences:
        """Merge ``partial`` into the user's record and persist it.

        Raises:
            ValidationError: ``partial`` is a dict that fails validation.
            PersistenceError: The store rejected the read or the write.
        """
        update = partial if isinstance(partial, PreferencesUpdate) else PreferencesUpdate.model_validate(partial)
        fields = update.to_fields()

        existing = await self.get(user_id)
        if existing is None:
            to_write = {**self._settings.default_preferences(), **fields}
        else:
            to_write = fields

        try:
            saved = await self._store.upsert(user_id, to_write)
        except Exception as e:
            preference_updates_total.labels(outcome="failed").inc()
            self.logger.exception(
                "Failed to save preferences",
                extra={"user_id": user_id, "fields": sorted(fields)},
            )
            emit(
                self._on_event,
                UserEvent(
                    level=EventLevel.ERROR,
                    title="Save failed",
                    description="Unable to save your notification preferences.",
                ),
            )
            raise PersistenceError(
                "Unable to save notification preferences",
                operation="upsert",
                extra={"user_id": user_id},
            ) from e

        self._cache[user_id] = saved
        preference_updates_total.labels(outcome="created" if existing is None else "updated").inc()
        self.logger.info(
            "Preferences updated",
            extra={"user_id": user_id, "fields": sorted(fields), "record_created": existing is None},
        )
        emit(
            self._on_event,
            UserEvent(
                level=EventLevel.SUCCESS,
                title="Preferences updated",
                description="Your notification preferences have been saved.",
            ),
        )
        return saved

    async def mark_reminded(self, user_id: str, at: datetime) -> NotificationPreferences | None:
        """Stamp ``last_reminded_at``; users without a record are left alone."""
        if await self.get(user_id) is None:
            return None

        try:
            saved = await self._store.upsert(user_id, {"last_reminded_at": at})
        except Exception as e:
            raise PersistenceError(
                "Unable to record reminder time",
                operation="mark_reminded",
                extra={"user_id": user_id},
            ) from e

        self._cache[user_id] = saved
        return saved

    def invalidate(self, user_id: str | None = None) -> None:
        """Drop cached records so the next read goes to the store."""
        if user_id is None:
            self._cache.clear()
        else:
            self._cache.pop(user_id, None)
