"""User-facing events emitted by the reminder engine.

Callers render these on their own surface (toast, banner, log line). The
engine never waits on a sink and never lets a failing sink break the
operation that emitted the event.
"""

from __future__ import annotations

from collections.abc import Callable
from enum import StrEnum
import logging
from typing import TypeAlias

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


class EventLevel(StrEnum):
    """Severity of a user-facing event."""

    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


class UserEvent(BaseModel):
    """A short message for the user.

    Example:
        UserEvent(level=EventLevel.SUCCESS, title="Notifications enabled")
    """

    level: EventLevel
    title: str = Field(min_length=1)
    description: str | None = None


EventSink: TypeAlias = "Callable[[UserEvent], None]"


def emit(sink: EventSink | None, event: UserEvent) -> None:
    """Deliver ``event`` to ``sink`` if one is attached."""
    if sink is None:
        return
    try:
        sink(event)
    except Exception:
        logger.exception("User event sink failed", extra={"event_title": event.title})
