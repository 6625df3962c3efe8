"""Email provider factory."""

from __future__ import annotations

from typing import TYPE_CHECKING

from revia_service.core.settings import get_email_settings

from .console import ConsoleProvider
from .smtp import SMTPProvider

if TYPE_CHECKING:
    from revia_service.core.settings import EmailSettings

    from .base import BaseEmailProvider


def create_email_provider(settings: EmailSettings | None = None) -> BaseEmailProvider:
    """Build the provider selected by ``EmailSettings.backend``."""
    settings = settings or get_email_settings()
    if settings.backend == "smtp":
        return SMTPProvider(settings)
    return ConsoleProvider(settings)
