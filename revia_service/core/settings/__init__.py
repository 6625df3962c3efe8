"""Modular Pydantic Settings v2 configuration.

Settings are split by domain (app, database, email, logging, notifications),
read from environment variables (and an optional .env file) and cached by
the loaders in ``loader.py``.

    from revia_service.core.settings import get_notification_settings

    settings = get_notification_settings()
    print(settings.auto_close_seconds)
"""

from __future__ import annotations

from .app import AppSettings
from .database import DatabaseSettings
from .email import EmailSettings
from .loader import (
    clear_all_settings_caches,
    get_app_settings,
    get_db_settings,
    get_email_settings,
    get_logging_settings,
    get_notification_settings,
)
from .logs import LoggingSettings
from .notifications import NotificationSettings

__all__ = [
    "AppSettings",
    "DatabaseSettings",
    "EmailSettings",
    "LoggingSettings",
    "NotificationSettings",
    "clear_all_settings_caches",
    "get_app_settings",
    "get_db_settings",
    "get_email_settings",
    "get_logging_settings",
    "get_notification_settings",
]
