"""
FastAPI Application Entry Point.

This is the main application file for the RentalDesk back office.
"""

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from starlette.exceptions import HTTPException as StarletteHTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from rentaldesk.app.core.config import settings
from rentaldesk.app.api.router import router as api_router
from rentaldesk.app.core.observability import ObservabilityMiddleware, configure_logging
from rentaldesk.app.core.redis_client import ping_redis
from rentaldesk.app.db.session import engine, Base
from rentaldesk.app.core.exceptions import (
    AppException,
    app_exception_handler,
    http_exception_handler,
    validation_exception_handler,
    generic_exception_handler
)

# Import models to ensure they are registered with Base
from rentaldesk.app.models.user import User  # noqa: F401
from rentaldesk.app.models.customer import Customer  # noqa: F401
from rentaldesk.app.models.vehicle import Vehicle, MaintenanceRecord  # noqa: F401
from rentaldesk.app.models.booking import Booking  # noqa: F401
from rentaldesk.app.models.payment import Payment  # noqa: F401
from rentaldesk.app.models.settings import BusinessSettings  # noqa: F401
from rentaldesk.app.models.audit_log import AuditLog  # noqa: F401

configure_logging(settings.log_level)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Startup/shutdown hook.

    Creates any missing tables from the models on startup. Schema changes are
    never made while serving requests.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("%s %s started", settings.app_name, settings.app_version)
    yield
    await engine.dispose()


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    debug=settings.debug,
    description="Back-office API for a vehicle rental business",
    lifespan=lifespan,
)

app.add_middleware(ObservabilityMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register global exception handlers
app.add_exception_handler(AppException, app_exception_handler)
app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, generic_exception_handler)


@app.get("/health", tags=["Health"])
async def health_check():
    """Liveness plus Redis reachability."""
    return {
        "status": "healthy",
        "app_name": settings.app_name,
        "version": settings.app_version,
        "redis": "up" if await ping_redis() else "down",
    }


app.include_router(api_router, prefix=settings.api_prefix)


@app.get("/", tags=["Root"])
async def root():
    return {
        "message": "Welcome to the RentalDesk back-office API",
        "docs": "/docs",
        "health": "/health",
    }
