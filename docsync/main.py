"""
docsync Connector Service - FastAPI Application.

Exposes the SharePoint Online and ADLS Gen2 connectors: connector status,
health summaries, connection tests and sync triggers.

Run with:
    uvicorn docsync.main:app --host 0.0.0.0 --port 8000
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import settings
from .services.connector_registry import connector_registry
from .api.v1.routers import connectors as connectors_router
from .api.v1.routers import system as system_router

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger("docsync.main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler - build, initialize and close connectors."""
    # Startup
    logger.info("Starting docsync Connector Service")
    connector_registry.build_from_settings()
    results = await connector_registry.initialize_all()
    for connector_id, ok in results.items():
        if not ok:
            logger.warning(f"Connector {connector_id} is unavailable until its configuration is fixed")
    yield
    # Shutdown
    logger.info("Shutting down docsync Connector Service")
    await connector_registry.close_all()


app = FastAPI(
    title=settings.api_title,
    version=settings.api_version,
    debug=settings.debug,
    openapi_url="/api/v1/openapi.json",
    docs_url="/api/v1/docs",
    redoc_url="/api/v1/redoc",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_credentials,
    allow_methods=settings.cors_methods,
    allow_headers=settings.cors_headers,
)

# Include routers
app.include_router(system_router.router, prefix="/api/v1")
app.include_router(connectors_router.router, prefix="/api/v1")

# Root-level health check for container healthchecks
app.include_router(system_router.router, prefix="")
