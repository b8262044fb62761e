"""
One-time token document model.

Maps to the `tokens` MongoDB collection (name configurable).

One document per identity key: `_id` is the canonical key, so issuing a new
code replaces the previous document in place.
code_hash stores SHA-512(identity_key | code); the plain code is never stored.
attempts counts validation tries; the token is dead once it reaches
MAX_VALIDATION_ATTEMPTS.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import Field

from schemas.models.base import MongoBaseModel, UtcDatetime

MAX_VALIDATION_ATTEMPTS = 5

FIELD_EXPIRES_AT = "expires_at"
FIELD_ATTEMPTS = "attempts"
FIELD_LAST_ATTEMPT_AT = "last_attempt_at"


class TokenDoc(MongoBaseModel):
    """Document model for the `tokens` collection."""

    log_id: str
    code_hash: str
    expires_at: UtcDatetime
    created_at: Optional[UtcDatetime] = None
    attempts: int = Field(default=0, ge=0)
    last_attempt_at: Optional[UtcDatetime] = None

    def is_expired(self, now: datetime) -> bool:
        return now > self.expires_at

    @property
    def attempts_exhausted(self) -> bool:
        return self.attempts >= MAX_VALIDATION_ATTEMPTS
