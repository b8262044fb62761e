"""
MongoDB-backed token store.

One document per identity key (``_id`` = key). All writes are single-document
operations, so each is atomic on the server:

- upsert          → replace_one(..., upsert=True)
- record_attempt  → find_one_and_update with $inc, returning the new document
- delete          → delete_one (deleting nothing is fine)

Driver failures and undecodable documents are logged and re-raised as
StorageError; they are never reported as an invalid code.
"""

from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime, timedelta
from typing import Iterator, Optional

import pydantic
from pymongo import ASCENDING, ReturnDocument
from pymongo.asynchronous.collection import AsyncCollection
from pymongo.asynchronous.database import AsyncDatabase
from pymongo.errors import PyMongoError
from pymongo.read_concern import ReadConcern
from pymongo.write_concern import WriteConcern

from errors import StorageError
from schemas.models.token import FIELD_ATTEMPTS, FIELD_LAST_ATTEMPT_AT, TokenDoc
from shared.logging import get_logger, hash_identity

log = get_logger(__name__)


@contextmanager
def _storage_errors(operation: str, key: Optional[str] = None) -> Iterator[None]:
    try:
        yield
    except PyMongoError as e:
        log.error(
            "token_store_error",
            operation=operation,
            identity=hash_identity(key),
            error=str(e),
            error_type=type(e).__name__,
        )
        raise StorageError(f"token store {operation} failed") from e
    except pydantic.ValidationError as e:
        log.error(
            "token_store_decode_error",
            operation=operation,
            identity=hash_identity(key),
            error_count=e.error_count(),
        )
        raise StorageError("token store returned a malformed document") from e


class MongoTokenStore:
    def __init__(self, collection: AsyncCollection) -> None:
        self._collection = collection

    @classmethod
    def from_database(
        cls, db: AsyncDatabase, collection_name: str = "tokens"
    ) -> "MongoTokenStore":
        """Open *collection_name* with majority read and write concern."""
        collection = db.get_collection(
            collection_name,
            read_concern=ReadConcern("majority"),
            write_concern=WriteConcern("majority"),
        )
        return cls(collection)

    async def find(self, key: str) -> Optional[TokenDoc]:
        with _storage_errors("find", key):
            raw = await self._collection.find_one({"_id": key})
            return TokenDoc.from_mongo(raw)

    async def upsert(self, key: str, record: TokenDoc) -> None:
        doc = record.to_mongo()
        doc["_id"] = key
        with _storage_errors("upsert", key):
            await self._collection.replace_one({"_id": key}, doc, upsert=True)

    async def delete(self, key: str) -> None:
        with _storage_errors("delete", key):
            await self._collection.delete_one({"_id": key})

    async def record_attempt(self, key: str, at: datetime) -> Optional[TokenDoc]:
        with _storage_errors("record_attempt", key):
            raw = await self._collection.find_one_and_update(
                {"_id": key},
                {"$inc": {FIELD_ATTEMPTS: 1}, "$set": {FIELD_LAST_ATTEMPT_AT: at}},
                return_document=ReturnDocument.AFTER,
            )
            return TokenDoc.from_mongo(raw)

    async def ensure_expiry_index(self, field: str, after: timedelta) -> None:
        """Create the TTL index that lets MongoDB reap records *after* past *field*.

        The TTL monitor runs roughly once a minute, so removal is approximate.
        """
        expire_after = int(after.total_seconds())
        with _storage_errors("ensure_expiry_index"):
            name = await self._collection.create_index(
                [(field, ASCENDING)],
                expireAfterSeconds=expire_after,
                name=f"{field}_ttl",
            )
        log.info("token_ttl_index_ready", index=name, expire_after_seconds=expire_after)
