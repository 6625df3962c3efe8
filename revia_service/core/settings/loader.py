"""LRU-cached settings loaders.

Settings are loaded and validated once, then cached for the lifetime of
the process.

Usage:
    from revia_service.core.settings import get_notification_settings

    settings = get_notification_settings()

Testing:
    Clear the cache to force reload:
    get_notification_settings.cache_clear()

    Or construct directly with overrides:
    settings = NotificationSettings(auto_close_seconds=1)
"""

from __future__ import annotations

from functools import lru_cache

from .app import AppSettings
from .database import DatabaseSettings
from .email import EmailSettings
from .logs import LoggingSettings
from .notifications import NotificationSettings


@lru_cache(maxsize=1)
def get_app_settings() -> AppSettings:
    """Get cached application settings."""
    return AppSettings()


@lru_cache(maxsize=1)
def get_db_settings() -> DatabaseSettings:
    """Get cached database settings."""
    return DatabaseSettings()


@lru_cache(maxsize=1)
def get_email_settings() -> EmailSettings:
    """Get cached email settings."""
    return EmailSettings()


@lru_cache(maxsize=1)
def get_logging_settings() -> LoggingSettings:
    """Get cached logging settings."""
    return LoggingSettings()


@lru_cache(maxsize=1)
def get_notification_settings() -> NotificationSettings:
    """Get cached notification settings."""
    return NotificationSettings()


def clear_all_settings_caches() -> None:
    """Clear every settings cache (tests and reloads)."""
    get_app_settings.cache_clear()
    get_db_settings.cache_clear()
    get_email_settings.cache_clear()
    get_logging_settings.cache_clear()
    get_notification_settings.cache_clear()
