"""
Token service wiring and FastAPI dependency providers.

init_token_service() builds the MongoDB-backed service once at startup and
parks it on app.state; route handlers receive it through Depends():

    @router.post("/verify")
    async def verify(body: VerifyBody,
                     tokens: TokenService = Depends(get_token_service)):
        ...
"""

from __future__ import annotations

from datetime import timedelta

from fastapi import FastAPI, Request

from config import AppSettings
from infrastructure import db
from infrastructure.storage.mongo_store import MongoTokenStore
from services.token_service import StoreBackedTokenService, TokenService


async def init_token_service(app: FastAPI, settings: AppSettings) -> TokenService:
    """Connect to MongoDB, build the token service and run its one-time setup."""
    client, database = await db.connect(settings.db)
    try:
        store = MongoTokenStore.from_database(
            database, settings.tokens.token_collection
        )
        service = StoreBackedTokenService(
            store,
            cleanup_after_expiry=timedelta(
                seconds=settings.tokens.cleanup_after_expiry_seconds
            ),
        )
        await service.setup()
    except Exception:
        # Nothing is on app.state yet, so close_token_service cannot reach it
        await db.close(client)
        raise

    app.state.settings = settings
    app.state.mongo_client = client
    app.state.db = database
    app.state.token_service = service
    return service


async def close_token_service(app: FastAPI) -> None:
    client = getattr(app.state, "mongo_client", None)
    if client is not None:
        await db.close(client)
        app.state.mongo_client = None


def get_settings(request: Request) -> AppSettings:
    """Return the AppSettings instance stored on app.state."""
    return request.app.state.settings


def get_token_service(request: Request) -> TokenService:
    """Return the TokenService instance stored on app.state."""
    return request.app.state.token_service
