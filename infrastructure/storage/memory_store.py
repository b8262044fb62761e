"""
In-memory token store.

For tests and single-process deployments without MongoDB. Records are
copied on the way in and out so callers never hold a live reference.
There is no await between read and write in record_attempt, so the
increment is atomic within one event loop.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional

from schemas.models.token import TokenDoc
from shared.logging import get_logger

log = get_logger(__name__)


class InMemoryTokenStore:
    def __init__(self) -> None:
        self._records: dict[str, TokenDoc] = {}
        self._expiry_field: Optional[str] = None
        self._expire_after = timedelta(0)

    def __len__(self) -> int:
        return len(self._records)

    async def find(self, key: str) -> Optional[TokenDoc]:
        record = self._records.get(key)
        return record.model_copy() if record is not None else None

    async def upsert(self, key: str, record: TokenDoc) -> None:
        self._records[key] = record.model_copy(update={"id": key})

    async def delete(self, key: str) -> None:
        self._records.pop(key, None)

    async def record_attempt(self, key: str, at: datetime) -> Optional[TokenDoc]:
        record = self._records.get(key)
        if record is None:
            return None
        updated = record.model_copy(
            update={"attempts": record.attempts + 1, "last_attempt_at": at}
        )
        self._records[key] = updated
        return updated.model_copy()

    async def ensure_expiry_index(self, field: str, after: timedelta) -> None:
        self._expiry_field = field
        self._expire_after = after

    def purge_expired(self, now: Optional[datetime] = None) -> int:
        """Drop records whose expiry field is older than the grace window.

        Stands in for MongoDB's TTL monitor. A no-op until
        ensure_expiry_index() has been called.
        """
        if self._expiry_field is None:
            return 0
        now = now or datetime.now(timezone.utc)
        cutoff = now - self._expire_after
        dead = [
            key
            for key, record in self._records.items()
            if getattr(record, self._expiry_field) < cutoff
        ]
        for key in dead:
            del self._records[key]
        if dead:
            log.debug("token_records_purged", count=len(dead))
        return len(dead)
