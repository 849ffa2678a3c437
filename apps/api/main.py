"""Household Ledger API Gateway: FastAPI entry point.

Routes are served from domain modules under apps/api/domains/; the health
probes live in apps/api/routers/.
"""

import os
import structlog
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from apps.api.core.config import settings
from apps.api.core.errors import register_error_handlers
from apps.api.core.logging import setup_logging

from apps.api.domains.ingestion.router import router as ingestion_router
from apps.api.routers import health

logger = structlog.get_logger()

APP_VERSION = settings.APP_VERSION if settings else "0.1.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: startup/shutdown hooks."""
    setup_logging(
        log_level=settings.log_level if settings else "INFO",
        json_output=(os.getenv("ENVIRONMENT", "development") == "production"),
    )
    logger.info("app_starting", version=APP_VERSION)
    yield
    logger.info("app_stopping")


app = FastAPI(
    title="Household Ledger API Gateway",
    description="Imports household-ledger archives into per-user expense storage.",
    version=APP_VERSION,
    lifespan=lifespan,
)

register_error_handlers(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins if settings else ["http://localhost:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(ingestion_router, prefix="/api/v1")
app.include_router(health.router, prefix="/api/v1")
