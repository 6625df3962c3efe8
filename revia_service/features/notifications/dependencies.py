"""FastAPI dependencies for the notifications feature.

Example usage:
    @router.get("/preferences")
    async def read_preferences(
        user_id: CurrentUserIdDep,
        engine: ReminderEngineDep,
    ) -> PreferencesResponse:
        ...
"""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Request

from revia_service.core.exceptions import UnauthorizedException
from revia_service.core.settings import get_app_settings
from revia_service.features.notifications.engine import ReminderEngine


def get_reminder_engine(request: Request) -> ReminderEngine:
    """The engine created during application startup."""
    engine = getattr(request.app.state, "reminder_engine", None)
    if engine is None:
        msg = "Reminder engine is not initialized"
        raise RuntimeError(msg)
    return engine


def get_current_user_id(request: Request) -> str:
    """User id forwarded by the identity gateway.

    Raises:
        UnauthorizedException: The header is missing or blank.
    """
    header = get_app_settings().user_id_header
    user_id = (request.headers.get(header) or "").strip()
    if not user_id:
        raise UnauthorizedException(f"Missing {header} header")
    return user_id


ReminderEngineDep = Annotated[ReminderEngine, Depends(get_reminder_engine)]
CurrentUserIdDep = Annotated[str, Depends(get_current_user_id)]
