"""Async MongoDB connection lifecycle."""

from __future__ import annotations

from pymongo import AsyncMongoClient
from pymongo.asynchronous.database import AsyncDatabase

from config import DatabaseSettings
from shared.logging import get_logger

log = get_logger(__name__)


async def connect(settings: DatabaseSettings) -> tuple[AsyncMongoClient, AsyncDatabase]:
    # tz_aware so expires_at comes back as an aware UTC datetime
    client = AsyncMongoClient(settings.mongodb_uri, tz_aware=True)
    # Explicitly connect
    await client.aconnect()
    log.info("mongodb_connected", db_name=settings.db_name)
    return client, client[settings.db_name]


async def close(client: AsyncMongoClient) -> None:
    await client.close()
    log.info("mongodb_closed")
