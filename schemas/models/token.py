"""
Verification token document model.

Maps to the `verification-tokens` MongoDB collection.

Used for both email verification and password reset links.
token_hash stores SHA-256(raw token) — the raw value only ever travels in the
emailed link. Documents are created and deleted, never updated. At most one
document exists per identifier.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from schemas.models.base import MongoBaseModel


TOKEN_PURPOSE_EMAIL_VERIFY = "email_verify"
TOKEN_PURPOSE_PASSWORD_RESET = "password_reset"


class VerificationTokenDoc(MongoBaseModel):
    """Document model for the `verification-tokens` collection."""

    identifier: str
    token_hash: str
    purpose: str
    expires_at: datetime
    created_at: Optional[datetime] = None
