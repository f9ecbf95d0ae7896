"""
FastAPI application factory and configuration.
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from ..config import Settings, get_settings
from ..services.container import Services, build_services
from ..utils.logging import configure_logging, get_logger
from .handlers import HealthHandler, JobsHandler
from .middleware import LoggingMiddleware, SecurityHeaders
from .webhooks import WhatsAppWebhook

logger = get_logger("app")


def create_app(settings: Optional[Settings] = None, services: Optional[Services] = None) -> FastAPI:
    """Create and configure FastAPI application."""
    if services is not None:
        settings = services.settings
    settings = settings or get_settings()
    services = services or build_services(settings)
    configure_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await services.db.initialize()
        logger.info("%s %s started", settings.app_name, settings.app_version)
        yield

    app = FastAPI(
        title=settings.app_name,
        description="WhatsApp booking assistant for MediConnect hospitals",
        version=settings.app_version,
        debug=settings.debug,
        lifespan=lifespan,
    )
    app.state.services = services

    # Add custom middleware
    app.add_middleware(SecurityHeaders)
    app.add_middleware(LoggingMiddleware)

    # Initialize handlers
    health_handler = HealthHandler(settings, services.db)
    whatsapp_webhook = WhatsAppWebhook(services)
    jobs_handler = JobsHandler(settings, services.slots, services.reminders)

    # Register routes
    app.include_router(health_handler.router, prefix="/health", tags=["health"])
    app.include_router(whatsapp_webhook.router, prefix="/webhook", tags=["webhooks"])
    app.include_router(jobs_handler.router, prefix="/jobs", tags=["jobs"])

    return app
