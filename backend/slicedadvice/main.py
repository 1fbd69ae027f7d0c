# backend/slicedadvice/main.py
from __future__ import annotations

from contextlib import asynccontextmanager
import logging
from typing import AsyncGenerator, Dict

from fastapi import APIRouter, FastAPI

from .core.config import is_running_tests, settings
from .core.constants import API_DESCRIPTION, API_TITLE, API_VERSION, BRAND_NAME
from .errors import register_error_handlers
from .routes.v1 import bookings as bookings_v1, payments as payments_v1, pricing as pricing_v1
from .services.email import build_email_service
from .services.notification_service import NotificationService
from .services.stripe_service import StripeService

# Configure logging
logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def app_lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Build the process-wide payment gateway and notifier, then serve."""
    logger.info(f"{BRAND_NAME} API starting up...")
    logger.info(f"Environment: {settings.environment}")
    if is_running_tests():
        logger.info("Running under pytest (test mode active)")

    # Tests install their own doubles before startup
    if not hasattr(app.state, "stripe_service"):
        app.state.stripe_service = StripeService()
    if not hasattr(app.state, "notification_service"):
        app.state.notification_service = NotificationService(build_email_service())

    yield

    logger.info(f"{BRAND_NAME} API shutting down...")


def create_app() -> FastAPI:
    app = FastAPI(
        title=API_TITLE,
        description=API_DESCRIPTION,
        version=API_VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=app_lifespan,
    )
    # Register unified error envelope handlers
    register_error_handlers(app)

    # Create API v1 router
    api_v1 = APIRouter(prefix="/api/v1")
    api_v1.include_router(bookings_v1.router, prefix="/bookings")
    api_v1.include_router(payments_v1.router, prefix="/stripe")
    api_v1.include_router(pricing_v1.router, prefix="/pricing")
    app.include_router(api_v1)

    @app.get("/health", tags=["health"])
    async def health_check() -> Dict[str, str]:
        return {"status": "healthy", "service": API_TITLE, "version": API_VERSION}

    return app


app = create_app()
