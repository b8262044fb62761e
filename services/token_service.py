"""
One-time token lifecycle: issue, check, burn.

Per identity key a token moves through:

    Absent → Active → Expired | AttemptsExhausted → Consumed (= Absent)

generate() always lands in Active, whatever state it starts from: the
previous code is overwritten and can no longer be validated. Expired and
exhausted records are left in place; consume() or the TTL index removes
them.

validate() answers with a bare bool. Empty input, missing record, wrong
code, expiry and exhaustion all look the same to the caller; the reason is
only logged. Storage failures raise StorageError instead.

Attempt accounting is one atomic increment in the store, awaited before
the result is returned. Concurrent validations of the same key therefore
each count, and no result is handed out before its attempt is durable.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from errors import ValidationError
from infrastructure.storage.protocol import TokenStore
from schemas.dto.responses.token import GeneratedCode
from schemas.models.token import FIELD_EXPIRES_AT, TokenDoc
from shared.crypto import hash_code, verify_code
from shared.generators import CodeGenerator
from shared.identity import TokenIdentifier
from shared.logging import get_logger, hash_identity, log_with_context

log = get_logger(__name__)

Clock = Callable[[], datetime]

DEFAULT_CLEANUP_AFTER_EXPIRY = timedelta(hours=24)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class TokenService(ABC):
    """Capability interface shared by every token backend."""

    @abstractmethod
    async def generate(
        self,
        log_id: str,
        identity: TokenIdentifier,
        validity_seconds: int,
        digit_count: int = 0,
    ) -> str:
        """Issue a fresh code for *identity*, replacing any existing one."""

    @abstractmethod
    async def validate(self, identity: TokenIdentifier, code: str) -> bool:
        """Check *code* without consuming it. Counts as one attempt."""

    @abstractmethod
    async def consume(self, identity: TokenIdentifier) -> None:
        """Remove the token for *identity*. Missing tokens are fine."""

    async def consume_and_validate(self, identity: TokenIdentifier, code: str) -> bool:
        """Validate *code*, then burn the token whatever the outcome.

        If validation raises, the token is still consumed and the validation
        error is the one that propagates.
        """
        try:
            valid = await self.validate(identity, code)
        except Exception:
            try:
                await self.consume(identity)
            except Exception as e:
                log.error(
                    "token_consume_failed",
                    identity=hash_identity(str(identity)),
                    error=str(e),
                    error_type=type(e).__name__,
                )
            raise
        await self.consume(identity)
        return valid

    async def generate_code(
        self,
        log_id: str,
        identity: TokenIdentifier,
        validity_seconds: int,
        relative_url_prefix: str,
        digit_count: int = 0,
    ) -> GeneratedCode:
        """Issue a code and the relative URL to encode in a QR image."""
        code = await self.generate(log_id, identity, validity_seconds, digit_count)
        return GeneratedCode(
            code=code,
            qr_url=f"{relative_url_prefix}{code}/{identity}",
        )


class StoreBackedTokenService(TokenService):
    """TokenService over any TokenStore (MongoDB in production, memory in tests)."""

    def __init__(
        self,
        store: TokenStore,
        *,
        generator: Optional[CodeGenerator] = None,
        clock: Optional[Clock] = None,
        cleanup_after_expiry: timedelta = DEFAULT_CLEANUP_AFTER_EXPIRY,
    ) -> None:
        self._store = store
        self._generator = generator or CodeGenerator()
        self._clock = clock or utc_now
        self._cleanup_after_expiry = cleanup_after_expiry

    async def setup(self) -> None:
        """One-time storage setup: TTL cleanup keyed on expires_at."""
        await self._store.ensure_expiry_index(
            FIELD_EXPIRES_AT, self._cleanup_after_expiry
        )

    async def generate(
        self,
        log_id: str,
        identity: TokenIdentifier,
        validity_seconds: int,
        digit_count: int = 0,
    ) -> str:
        if validity_seconds <= 0:
            raise ValidationError(
                "validity_seconds must be positive", field="validity_seconds"
            )

        key = str(identity)
        code = self._generator.generate(digit_count)
        now = self._clock()
        expires_at = now + timedelta(seconds=validity_seconds)

        await self._store.upsert(
            key,
            TokenDoc(
                id=key,
                log_id=log_id,
                code_hash=hash_code(key, code),
                expires_at=expires_at,
                created_at=now,
            ),
        )

        log_with_context(log, log_id=log_id).info(
            "token_generated",
            identity=hash_identity(key),
            digit_count=digit_count,
            expires_at=expires_at.isoformat(),
        )
        return code

    async def validate(self, identity: TokenIdentifier, code: str) -> bool:
        key = str(identity)
        vlog = log_with_context(log, identity=hash_identity(key))
        if not code or not code.strip():
            vlog.debug("token_validation_failed", reason="empty_input")
            return False

        now = self._clock()
        record = await self._store.record_attempt(key, now)

        if record is None:
            vlog.debug("token_validation_failed", reason="not_found")
            return False

        # Counted before the check: the attempt that reaches the cap fails too
        if record.attempts_exhausted:
            vlog.warning(
                "token_validation_failed",
                log_id=record.log_id,
                reason="max_attempts",
                attempts=record.attempts,
            )
            return False

        if not verify_code(key, code, record.code_hash):
            vlog.info(
                "token_validation_failed",
                log_id=record.log_id,
                reason="mismatch",
                attempts=record.attempts,
            )
            return False

        if record.is_expired(now):
            vlog.info(
                "token_validation_failed",
                log_id=record.log_id,
                reason="expired",
            )
            return False

        vlog.info("token_validated", log_id=record.log_id)
        return True

    async def consume(self, identity: TokenIdentifier) -> None:
        key = str(identity)
        await self._store.delete(key)
        log.info("token_consumed", identity=hash_identity(key))
