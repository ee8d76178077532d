"""
Shipment Tracking Microservice

Shipments and their tracking history are public to read; creating
shipments, adding events and managing roles require an admin.
"""

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
import os
from alembic import command
from alembic.config import Config

from shared.core import ServiceHealth, setup_logging, RequestLoggingMiddleware, get_logger
from tracking_service.core_settings import get_settings
from tracking_service.domain.errors import (
    TrackingError,
    NotFound,
    NoEvents,
    Conflict,
    Forbidden,
    InvalidToken,
    AlreadyBootstrapped,
    ValidationError,
)
from tracking_service.api.routes import router as shipments_router, users_router, auth_router
from tracking_service.infrastructure.db import engine, init_models

settings = get_settings()

# Service configuration
SERVICE_NAME = "tracking-service"
SERVICE_VERSION = settings.SERVICE_VERSION
SERVICE_DESCRIPTION = "Shipment tracking microservice with role-gated mutation"

setup_logging(
    service_name=SERVICE_NAME,
    level=settings.LOG_LEVEL
)

logger = get_logger(__name__)

ERROR_STATUS = {
    NotFound: 404,
    NoEvents: 404,
    Conflict: 409,
    Forbidden: 403,
    InvalidToken: 403,
    AlreadyBootstrapped: 409,
    ValidationError: 422,
}

def run_migrations():
    config = Config(os.path.join(os.path.dirname(__file__), "..", "alembic.ini"))
    config.set_main_option("script_location", os.path.join(os.path.dirname(__file__), "..", "alembic"))
    command.upgrade(config, "head")

@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Starting {SERVICE_NAME} version {SERVICE_VERSION}")

    if settings.RUN_MIGRATIONS:
        logger.info("Running database migrations")
        run_migrations()
        logger.info("Database migrations completed")

    try:
        init_models()
        logger.info("Database models initialized")
    except Exception as e:
        logger.error(f"Failed to initialize database models: {e}")
        raise

    if not settings.ADMIN_TOKEN:
        logger.warning("ADMIN_TOKEN is not set; initial admin bootstrap is disabled")

    logger.info(f"{SERVICE_NAME} started successfully")

    yield

    logger.info(f"Shutting down {SERVICE_NAME}")

app = FastAPI(
    title=SERVICE_NAME,
    description=SERVICE_DESCRIPTION,
    version=SERVICE_VERSION,
    lifespan=lifespan,
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(RequestLoggingMiddleware)

@app.exception_handler(TrackingError)
async def tracking_error_handler(request: Request, exc: TrackingError) -> JSONResponse:
    status_code = ERROR_STATUS.get(type(exc), 400)
    return JSONResponse(status_code=status_code, content={"detail": exc.message, "code": exc.code})

health_service = ServiceHealth(
    SERVICE_NAME,
    SERVICE_VERSION,
    engine=engine,
    required_tables=["shipments", "tracking_events", "user_roles", "bootstrap_state"],
)
app.include_router(health_service.create_health_router())

app.include_router(auth_router)
app.include_router(shipments_router)
app.include_router(users_router)

@app.get("/")
async def root():
    return {
        "service": SERVICE_NAME,
        "version": SERVICE_VERSION,
        "status": "running",
        "docs": "/api/docs"
    }

@app.get("/info")
async def info():
    return {
        "service": SERVICE_NAME,
        "version": SERVICE_VERSION,
        "description": SERVICE_DESCRIPTION,
        "environment": os.getenv("ENVIRONMENT", "development"),
        "endpoints": {
            "health": "/health",
            "ready": "/health/ready",
            "live": "/health/live",
            "metrics": "/metrics",
            "docs": "/api/docs"
        }
    }
