"""Application lifespan management.

Startup Order:
1. Logging
2. Database (connectivity check, table creation)
3. Reminder engine
4. Email reminder sweep (optional)

Shutdown Order: Reverse of startup
"""

from __future__ import annotations

from contextlib import asynccontextmanager
import logging
from typing import TYPE_CHECKING

from apscheduler.schedulers.asyncio import AsyncIOScheduler  # type: ignore[import-untyped]

from revia_service.core.settings import (
    get_app_settings,
    get_email_settings,
    get_logging_settings,
    get_notification_settings,
)
from revia_service.features.notifications.email_reminders import StaticRecipientDirectory
from revia_service.features.notifications.engine import ReminderEngine
from revia_service.infra.database import close_database, get_session_factory, init_database
from revia_service.infra.email import create_email_provider
from revia_service.infra.logging import setup_logging
from revia_service.infra.logging import shutdown as shutdown_logging

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from fastapi import FastAPI

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage application lifecycle.

    Args:
        app: FastAPI application instance.

    Yields:
        None during application runtime.
    """
    # =========================================================================
    # STARTUP PHASE
    # =========================================================================
    setup_logging(get_logging_settings())
    app_settings = get_app_settings()
    notification_settings = get_notification_settings()
    logger.info(
        "Application starting",
        extra={"service": app_settings.service_name, "environment": app_settings.environment},
    )

    await init_database()

    engine = ReminderEngine.from_session_factory(get_session_factory(), settings=notification_settings)
    app.state.reminder_engine = engine
    if not hasattr(app.state, "recipient_directory"):
        app.state.recipient_directory = StaticRecipientDirectory()

    sweep_scheduler: AsyncIOScheduler | None = None
    if notification_settings.email_sweep_enabled:
        sweep_scheduler = AsyncIOScheduler(timezone="UTC")
        job = engine.email_job(
            create_email_provider(get_email_settings()),
            app.state.recipient_directory,
        )
        job.register(sweep_scheduler)
        sweep_scheduler.start()

    logger.info("Application started")

    try:
        yield
    finally:
        # =====================================================================
        # SHUTDOWN PHASE
        # =====================================================================
        logger.info("Application shutting down")

        if sweep_scheduler is not None and sweep_scheduler.running:
            sweep_scheduler.shutdown(wait=False)

        await engine.shutdown()
        await close_database()

        logger.info("Application stopped")
        shutdown_logging()
