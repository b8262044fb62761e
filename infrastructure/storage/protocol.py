"""TokenStore protocol — the token service depends on this, not on MongoDB."""

from datetime import datetime, timedelta
from typing import Optional, Protocol, runtime_checkable

from schemas.models.token import TokenDoc


@runtime_checkable
class TokenStore(Protocol):
    async def find(self, key: str) -> Optional[TokenDoc]: ...

    async def upsert(self, key: str, record: TokenDoc) -> None: ...

    async def delete(self, key: str) -> None: ...

    async def record_attempt(self, key: str, at: datetime) -> Optional[TokenDoc]:
        """Atomically bump the attempt counter; None when no record exists."""
        ...

    async def ensure_expiry_index(self, field: str, after: timedelta) -> None: ...
