"""
TV Catalog API - FastAPI application.

Provides endpoints for:
- Browsing shows with filters, sorting and pagination
- Creating and updating shows together with their relation lists
- Browsing and maintaining actors, networks, genres, creators and studios
"""
from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.auth import require_api_key
from api.errors import register_error_handlers
from api.routers import entities, shows
from tv_catalog.db.pool import ConnectionPool
from tv_catalog.db.transaction import TransactionCoordinator
from tv_catalog.utils.env import load_env

logger = logging.getLogger(__name__)


def get_cors_origins() -> list[str]:
    """
    Get CORS allowed origins from environment.
    Set CORS_ALLOW_ORIGINS as comma-separated list of origins.
    Example: CORS_ALLOW_ORIGINS=https://catalog.example.com,https://admin.example.com
    """
    origins_str = os.getenv("CORS_ALLOW_ORIGINS", "")
    if not origins_str:
        return []
    return [origin.strip() for origin in origins_str.split(",") if origin.strip()]


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown events."""
    # Startup
    logger.info("Starting up TV Catalog API...")
    load_env()
    pool = None
    if getattr(app.state, "coordinator", None) is None:
        pool = ConnectionPool.from_env()
        app.state.coordinator = TransactionCoordinator(pool)
    yield
    # Shutdown
    logger.info("Shutting down TV Catalog API...")
    if pool is not None:
        pool.close()
        app.state.coordinator = None


app = FastAPI(
    title="TV Catalog API",
    description="Catalog of TV shows and the actors, networks, genres, creators and studios linked to them",
    version="0.1.0",
    lifespan=lifespan,
)

register_error_handlers(app)

# CORS configuration
# If no origins configured, allows all origins but disables credentials
cors_origins = get_cors_origins()
allow_credentials = len(cors_origins) > 0  # Only allow credentials with explicit origins

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins if cors_origins else ["*"],
    allow_credentials=allow_credentials,
    allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)

# Include routers
api_dependencies = [Depends(require_api_key)]
app.include_router(shows.router, prefix="/api/v1", dependencies=api_dependencies)
for entity_router in entities.routers:
    app.include_router(entity_router, prefix="/api/v1", dependencies=api_dependencies)


@app.get("/")
def root():
    """Health check endpoint."""
    return {"status": "ok", "service": "tv-catalog"}


@app.get("/health")
def health():
    """Health check endpoint."""
    return {"status": "healthy"}
