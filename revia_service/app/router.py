"""Router registry and setup."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from fastapi import APIRouter, Response
from prometheus_client import CONTENT_TYPE_LATEST, REGISTRY, generate_latest

from revia_service.core.settings import get_app_settings
from revia_service.features.notifications.router import router as notifications_router

if TYPE_CHECKING:
    from fastapi import FastAPI

    from revia_service.core.settings import AppSettings

logger = logging.getLogger(__name__)

observability_router = APIRouter(tags=["observability"])


@observability_router.get("/metrics")
async def metrics() -> Response:
    """Expose Prometheus metrics for scraping."""
    return Response(
        content=generate_latest(REGISTRY),
        media_type=CONTENT_TYPE_LATEST,
        headers={"Cache-Control": "no-cache, no-store, must-revalidate"},
    )


@observability_router.get("/health")
async def health() -> dict[str, str]:
    """Liveness probe."""
    return {"status": "ok"}


def setup_routers(app: FastAPI, app_settings: AppSettings | None = None) -> None:
    """Register all routers with the application."""
    settings = app_settings or get_app_settings()
    app.include_router(notifications_router, prefix=settings.api_prefix)
    app.include_router(observability_router)
    logger.debug("Routers registered", extra={"api_prefix": settings.api_prefix})
