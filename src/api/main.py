"""
FastAPI application factory and configuration.

This module creates the FastAPI application instance,
configures logging, routers and lifespan events.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request

from src.adapters.identity import InMemoryIdentityService
from src.adapters.storage import InMemoryDocumentStorage
from src.api.surfaces import SurfaceRegistry
from src.api.v1 import router as v1_router
from src.config.settings import get_settings

logger = logging.getLogger(__name__)

# OpenAPI tags for documentation grouping
tags_metadata = [
    {
        "name": "v1",
        "description": "Onboarding API v1 - Log in or register through a multi-step wizard",
    },
]


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    FastAPI lifespan context manager.

    Manages application startup and shutdown:
    - Configures the log level
    - Creates the identity service and seeds demo credentials
    - Creates document storage and the surface registry
    """
    settings = get_settings()
    logging.basicConfig(level=settings.log_level.upper())

    logger.info("Starting application...")

    identity = InMemoryIdentityService(
        latency=settings.identity_latency_seconds,
        bcrypt_cost=settings.bcrypt_cost,
    )
    for identifier, secret in settings.demo_accounts.items():
        identity.enroll(identifier, secret)

    # Store registry in app state for dependency injection
    app.state.registry = SurfaceRegistry(
        identity=identity,
        storage=InMemoryDocumentStorage(),
        submission_timeout=settings.submission_timeout_seconds,
    )

    logger.info("Application startup complete")

    yield

    logger.info("Shutting down application, dropping %d open surfaces", len(app.state.registry))


app = FastAPI(
    title="onboarding-gateway",
    description="Onboarding API - Role-conditional registration wizard and login for the investment-matching platform",
    version="0.1.0",
    openapi_tags=tags_metadata,
    lifespan=lifespan,
)

# Include v1 API routes
app.include_router(v1_router, prefix="/v1")


@app.get("/health")
async def health_check(request: Request) -> dict[str, str | int]:
    """
    Health check endpoint.

    Returns 200 OK with the number of open authentication surfaces.
    """
    registry = request.app.state.registry
    return {"status": "healthy", "open_surfaces": len(registry)}
