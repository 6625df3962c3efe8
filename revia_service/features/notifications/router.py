"""API router for notification settings.

Endpoints:
- GET /notifications/preferences - Read the user's preferences (defaults if never saved)
- PUT /notifications/preferences - Merge a partial update into the preferences
- GET /notifications/logs - Notification history, newest first
- GET /notifications/permission - Permission state and channel compatibility
"""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Query

from revia_service.features.notifications.dependencies import CurrentUserIdDep, ReminderEngineDep
from revia_service.features.notifications.schemas import (
    NotificationLogEntry,
    NotificationLogListResponse,
    NotificationPreferences,
    PermissionStatusResponse,
    PreferencesResponse,
    PreferencesUpdate,
)
from revia_service.infra.logging import get_lazy_logger

logger = logging.getLogger(__name__)
lazy_logger = get_lazy_logger(__name__)

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get(
    "/preferences",
    response_model=PreferencesResponse,
    summary="Get notification preferences",
)
async def read_preferences(
    user_id: CurrentUserIdDep,
    engine: ReminderEngineDep,
) -> PreferencesResponse:
    """Current preferences, or the defaults for users who never saved."""
    prefs = await engine.reconciler.get(user_id)
    if prefs is None:
        defaults = NotificationPreferences(user_id=user_id, **engine.settings.default_preferences())
        return PreferencesResponse(configured=False, preferences=defaults)
    return PreferencesResponse(configured=True, preferences=prefs)


@router.put(
    "/preferences",
    response_model=NotificationPreferences,
    summary="Update notification preferences",
    description="""
Merge the submitted fields into the user's preferences.

Fields left out keep their stored value. The first save creates the record
from the defaults plus the submitted fields.
""",
)
async def update_preferences(
    payload: PreferencesUpdate,
    user_id: CurrentUserIdDep,
    engine: ReminderEngineDep,
) -> NotificationPreferences:
    """Merge and persist a partial preference update."""
    prefs = await engine.reconciler.update(user_id, payload)
    lazy_logger.debug(lambda: f"preferences saved for {user_id}: {payload.to_fields()}")
    return prefs


@router.get(
    "/logs",
    response_model=NotificationLogListResponse,
    summary="List notification history",
)
async def list_logs(
    user_id: CurrentUserIdDep,
    engine: ReminderEngineDep,
    limit: Annotated[int | None, Query(ge=1, le=1000)] = None,
) -> NotificationLogListResponse:
    """Newest-first notification history for the user."""
    limit = limit or engine.settings.log_history_limit
    entries = await engine.log_store.list_for_user(user_id, limit=limit)
    total = await engine.log_store.count_for_user(user_id)
    return NotificationLogListResponse(
        items=[NotificationLogEntry.model_validate(e) for e in entries],
        total=total,
    )


@router.get(
    "/permission",
    response_model=PermissionStatusResponse,
    summary="Get notification permission state",
)
async def read_permission(
    user_id: CurrentUserIdDep,
    engine: ReminderEngineDep,
) -> PermissionStatusResponse:
    """Permission of the user's notification host and reachable channels."""
    gate = engine.permission_gate(user_id)
    return PermissionStatusResponse(
        supported=gate.is_supported(),
        permission=gate.current_permission(),
        compatibility=gate.channel_compatibility(),
    )
