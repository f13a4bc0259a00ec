"""Application factory for FastAPI app.

Centralizes app construction (metadata, middleware, handlers, routers and
the intake service lifecycle) so tests can build isolated instances.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from starlette.concurrency import run_in_threadpool

from lead_api.api.routes import admin_router, health_router, leads_router
from lead_api.core.config import settings
from lead_api.core.exception_handlers import setup_exception_handlers
from lead_api.core.logging import configure_logging
from lead_api.core.middleware import request_id_middleware
from lead_api.core.openapi import apply_openapi_customizations
from lead_api.services.intake_service import LeadIntakeService, build_intake_service

logger = logging.getLogger(__name__)


def create_app(service: LeadIntakeService | None = None) -> FastAPI:
    """Create and configure the FastAPI application instance.

    Args:
        service: Pre-built intake service (tests inject one with a fake
            clock or backend); built from settings when omitted.

    Returns:
        Configured FastAPI app with middleware, handlers, routers and docs.
    """
    # Logging first so subsequent init logs are formatted as desired
    configure_logging(settings.log)

    intake_service = service or build_intake_service()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        # Migration and the initial load touch the disk; keep them off the loop.
        await run_in_threadpool(intake_service.start)
        logger.info("app.started")
        try:
            yield
        finally:
            await run_in_threadpool(intake_service.close)
            logger.info("app.stopped")

    app = FastAPI(
        title="Lead Intake API",
        description=(
            "Collects consultation requests and phone leads from website forms, "
            "with per-client rate limiting, duplicate suppression and durable "
            "storage, plus filtered listings and aggregates for the admin panel."
        ),
        version="0.1.0",
        debug=settings.app.debug,
        lifespan=lifespan,
    )
    app.state.intake_service = intake_service

    # Middleware
    app.middleware("http")(request_id_middleware)

    # Exception handlers
    setup_exception_handlers(app)

    # Routers
    app.include_router(leads_router)
    app.include_router(admin_router)
    app.include_router(health_router)

    apply_openapi_customizations(app)

    return app
