"""
Issue and consume emailed single-use tokens (password reset, email verification).

The raw token is returned to the caller for the emailed link and is never
stored or logged; only SHA-256(raw) is persisted. Issuing for an identifier
first deletes whatever token that identifier already had, so at most one
link per address is live. Consuming is a single find-and-delete filtered on
hash, purpose and expiry, so "unknown" and "expired" look the same and a
token works exactly once.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Callable, Optional

from repositories.protocol import VerificationTokenRepository
from schemas.models.token import VerificationTokenDoc
from shared.crypto import hash_token
from shared.datetime_utils import utcnow
from shared.generators import generate_secure_token
from shared.logging import get_logger

log = get_logger(__name__)

RAW_TOKEN_BYTES = 32


class TokenLedger:
    def __init__(
        self,
        repository: VerificationTokenRepository,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._repo = repository
        self._clock = clock

    async def issue(self, identifier: str, purpose: str, ttl: timedelta) -> str:
        """Create a token for *identifier* and return the raw value."""
        replaced = await self._repo.delete_for_identifier(identifier)

        raw = generate_secure_token(RAW_TOKEN_BYTES)
        now = self._clock()
        await self._repo.create(
            VerificationTokenDoc(
                identifier=identifier,
                token_hash=hash_token(raw),
                purpose=purpose,
                expires_at=now + ttl,
                created_at=now,
            )
        )

        log.info(
            "verification_token_issued",
            purpose=purpose,
            replaced=replaced,
            expires_in_seconds=int(ttl.total_seconds()),
        )
        return raw

    async def consume(self, raw_token: str, purpose: str) -> Optional[str]:
        """Redeem *raw_token*; return the identifier it was bound to, or None."""
        if not raw_token:
            return None

        doc = await self._repo.consume(hash_token(raw_token), purpose, self._clock())
        if doc is None:
            log.warning("verification_token_rejected", purpose=purpose)
            return None

        log.info("verification_token_consumed", purpose=purpose)
        return doc.identifier
