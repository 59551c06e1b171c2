"""FastAPI application configuration."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ..env import get_settings
from ..infrastructure.database import get_database_client
from ..infrastructure.scripts import ALL_SCRIPTS
from ..infrastructure.storage import RedisKeyValueStore
from .dependencies import close_payment_gateway
from .errors import register_exception_handlers
from .metrics import create_metrics_app
from .routers import customers, dashboard, pricing, token_requests, tokens, vendors

logger = logging.getLogger(__name__)

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    db_client = get_database_client(settings)
    store = RedisKeyValueStore(db_client)
    for name, script in ALL_SCRIPTS.items():
        await store.register_script(name, script)
    logger.info("Registered %d Lua scripts", len(ALL_SCRIPTS))
    yield
    await close_payment_gateway()
    await db_client.close()


def create_app() -> FastAPI:
    """Create and configure FastAPI application."""
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="TokenVend prepaid electricity token API",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.api_cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_exception_handlers(app)

    # Include routers
    app.include_router(vendors.router, prefix="/api/v1")
    app.include_router(customers.router, prefix="/api/v1")
    app.include_router(pricing.router, prefix="/api/v1")
    app.include_router(token_requests.router, prefix="/api/v1")
    app.include_router(tokens.router, prefix="/api/v1")
    app.include_router(dashboard.router, prefix="/api/v1")

    app.mount("/metrics", create_metrics_app())

    @app.get("/")
    async def root() -> dict[str, str]:
        """Root endpoint."""
        return {
            "message": f"Welcome to {settings.app_name} API",
            "version": settings.app_version,
            "docs": "/docs",
        }

    @app.get("/health")
    async def health_check() -> dict[str, str]:
        """Health check endpoint; reports degraded while Redis is unreachable."""
        redis_up = await get_database_client(settings).ping()
        return {
            "status": "healthy" if redis_up else "degraded",
            "redis": "up" if redis_up else "down",
            "service": settings.app_name,
            "version": settings.app_version,
        }

    return app


app = create_app()
