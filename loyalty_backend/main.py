"""
FastAPI application entry point for the Loyalty Onboarding API.

This module configures logging, CORS and the API routers, and creates the
in-memory onboarding store on startup.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from loyalty_backend import __version__
from loyalty_backend.api import api_router
from loyalty_backend.core.config import get_settings
from loyalty_backend.core.store import init_store

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Lifespan context manager for FastAPI application startup and shutdown events.

    On startup:
        - Create the onboarding store seeded with Settings.default_entity
    """
    logger.info("Loyalty Onboarding API starting")
    store = init_store()
    logger.info(
        f"Onboarding store ready: entity={store.state.entityAttributes.entity}, "
        f"{len(store.state.queues)} queues"
    )

    yield

    logger.info("Loyalty Onboarding API shutting down")


# Create FastAPI application
app = FastAPI(
    title="Loyalty Onboarding API",
    version=__version__,
    description=(
        "Rule configuration and derivation engine for the loyalty onboarding "
        "wizard. Provides endpoints for the organization hierarchy, entity "
        "attributes and KPI counters, the value program and tiers, and alert "
        "queues with signal templates."
    ),
    lifespan=lifespan,
)

# Configure CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register API routers
app.include_router(api_router)


@app.get("/health")
async def health_check():
    """
    Health check endpoint for monitoring and load balancer probes.

    Returns:
        Dict with status 'healthy'
    """
    return {"status": "healthy"}


@app.get("/")
async def root():
    """
    Root endpoint providing API information.

    Returns:
        Dict with API name and version
    """
    return {
        "name": "Loyalty Onboarding API",
        "version": __version__,
        "docs": "/docs",
        "openapi": "/openapi.json",
    }


# Run with uvicorn when executed directly
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "loyalty_backend.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
