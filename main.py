"""School Management Platform - FastAPI Application."""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI

from app.api.v1.router import api_router
from app.core.config import settings
from app.core.database import async_session_maker
from app.core.exceptions import AppError, app_error_handler
from app.core.logging import configure_logging
from app.services.seed import ensure_platform_admin

configure_logging()
logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Seed the first platform admin when configured."""
    if settings.FIRST_ADMIN_EMAIL and settings.FIRST_ADMIN_PASSWORD:
        async with async_session_maker() as db:
            await ensure_platform_admin(
                db,
                email=settings.FIRST_ADMIN_EMAIL,
                password=settings.FIRST_ADMIN_PASSWORD,
                first_name=settings.FIRST_ADMIN_FIRST_NAME,
                last_name=settings.FIRST_ADMIN_LAST_NAME,
            )
    logger.info("application_started", app_name=settings.APP_NAME)
    yield
    logger.info("application_stopped")


app = FastAPI(
    title=settings.APP_NAME,
    version="0.1.0",
    openapi_url=f"{settings.API_V1_PREFIX}/openapi.json",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_exception_handler(AppError, app_error_handler)

# Include API routes
app.include_router(api_router, prefix=settings.API_V1_PREFIX)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "ok"}
