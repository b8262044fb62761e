"""
FastAPI application factory.

create_app() builds an app that owns the token service for its lifetime.
Host applications mount their own routes on it and reach the service via
dependencies.get_token_service.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI

from config import AppSettings
from dependencies import close_token_service, init_token_service
from errors import register_error_handlers
from routes.health_routes import router as health_router
from shared.logging import setup_logging


def create_app(settings: Optional[AppSettings] = None) -> FastAPI:
    """Create and return a configured FastAPI application."""
    if settings is None:
        settings = AppSettings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        # ── Startup ──────────────────────────────────────────────────────────
        setup_logging(settings.logging)
        await init_token_service(app, settings)

        yield

        # ── Shutdown ─────────────────────────────────────────────────────────
        await close_token_service(app)

    app = FastAPI(
        title=settings.app_name,
        version="1.0.0",
        docs_url=None,
        redoc_url=None,
        lifespan=lifespan,
    )

    register_error_handlers(app)
    app.include_router(health_router)

    return app
