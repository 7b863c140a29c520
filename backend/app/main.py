"""
FastAPI Application Entry Point.

This is the main application file for the Parcel Delivery Backend.
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI, Depends, HTTPException
from fastapi.exceptions import RequestValidationError
from redis.exceptions import RedisError
from backend.app.core.config import settings
from backend.app.api.v1.router import router as api_v1_router
from backend.app.core.observability import ObservabilityMiddleware, configure_logging
from backend.app.core.redis_client import close_redis, get_redis
from backend.app.db.session import init_db, close_db
from backend.app.core.exceptions import (
    AppException,
    app_exception_handler,
    http_exception_handler,
    validation_exception_handler,
    generic_exception_handler
)

# Import models to ensure they are registered with Base
from backend.app.models.user import User
from backend.app.models.audit_log import AuditLog
from backend.app.models.rider import Rider  # before parcel for FK
from backend.app.models.parcel import Parcel
from backend.app.models.tracking_log import TrackingLog
from backend.app.models.payment_receipt import PaymentReceipt


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for application startup/shutdown.

    1. Configures logging and creates database tables on startup.
    2. Disposes the engine and Redis pool on shutdown.
    """
    configure_logging(settings.log_level)
    await init_db()
    yield
    await close_db()
    await close_redis()

# Initialize FastAPI application
app = FastAPI(
    title=settings.app_name,
    version=settings.api_version,
    debug=settings.debug,
    description="Parcel booking, payment, rider assignment and delivery tracking",
    lifespan=lifespan,
)

app.add_middleware(ObservabilityMiddleware)

# Register global exception handlers
app.add_exception_handler(AppException, app_exception_handler)
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, generic_exception_handler)


@app.get("/health", tags=["Health"])
async def health_check(redis=Depends(get_redis)):
    """
    Health check endpoint.

    Reports ``degraded`` while Redis is unreachable; entity locks are
    skipped until it returns.

    Returns:
        dict: Status and application information
    """
    try:
        redis_up = bool(await redis.ping())
    except RedisError:
        redis_up = False

    return {
        "status": "healthy" if redis_up else "degraded",
        "redis": "up" if redis_up else "down",
        "app_name": settings.app_name,
        "version": settings.api_version,
    }


# Include API v1 router
app.include_router(api_v1_router, prefix=f"/{settings.api_version}")


@app.get("/", tags=["Root"])
async def root():
    """
    Root endpoint.

    Returns:
        dict: Welcome message and API documentation links
    """
    return {
        "message": "Welcome to the Parcel Delivery Backend API",
        "docs": "/docs",
        "health": "/health",
    }
