"""
Account document model.

Maps to the `accounts` MongoDB collection.

Invariants the auth core relies on:
- email is stored case-folded and is unique (index in repositories.indexes)
- locked_until in the future blocks login regardless of the password
- email_verified is None until the verification link is consumed
- mfa_enabled=True implies mfa_secret is set; a secret with
  mfa_enabled=False is a pending enrollment and protects nothing
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import ConfigDict, Field

from schemas.models.base import MongoBaseModel


class AccountRole(str, Enum):
    CUSTOMER = "customer"
    ADMIN = "admin"


class AccountDoc(MongoBaseModel):
    """Document model for the `accounts` collection."""

    model_config = ConfigDict(use_enum_values=True)

    email: str
    password_hash: Optional[str] = None
    role: AccountRole = Field(default=AccountRole.CUSTOMER, validate_default=True)
    first_name: Optional[str] = None
    last_name: Optional[str] = None

    failed_login_attempts: int = Field(default=0, ge=0)
    locked_until: Optional[datetime] = None

    email_verified: Optional[datetime] = None
    password_changed_at: Optional[datetime] = None

    mfa_enabled: bool = False
    mfa_secret: Optional[str] = None
    mfa_backup_codes: list[str] = []

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def mfa_protected(self) -> bool:
        """True only for a confirmed enrollment, never a pending one."""
        return self.mfa_enabled and bool(self.mfa_secret)

    @property
    def display_name(self) -> Optional[str]:
        if self.first_name:
            return f"{self.first_name} {self.last_name or ''}".strip()
        return None
