"""Repository protocols — services depend on these, not on MongoDB.

Every mutation is a single-document atomic operation; the auth core never
needs a multi-document transaction.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol

from schemas.models.account import AccountDoc
from schemas.models.token import VerificationTokenDoc


class AccountRepository(Protocol):
    async def find_by_email(self, email: str) -> Optional[AccountDoc]: ...

    async def find_by_id(self, account_id: str) -> Optional[AccountDoc]: ...

    async def create(self, account: AccountDoc) -> Optional[str]: ...

    async def increment_failed_attempts(self, account_id: str) -> int: ...

    async def lock_until(self, account_id: str, until: datetime) -> None: ...

    async def reset_lockout(self, account_id: str) -> None: ...

    async def update_password(
        self, account_id: str, password_hash: str, changed_at: datetime
    ) -> None: ...

    async def mark_email_verified(self, account_id: str, at: datetime) -> None: ...

    async def store_pending_mfa(
        self, account_id: str, encrypted_secret: str, backup_code_hashes: list[str]
    ) -> None: ...

    async def enable_mfa(self, account_id: str) -> None: ...

    async def clear_mfa(self, account_id: str) -> None: ...

    async def remove_backup_code(self, account_id: str, code_hash: str) -> bool: ...


class VerificationTokenRepository(Protocol):
    async def delete_for_identifier(self, identifier: str) -> int: ...

    async def create(self, token: VerificationTokenDoc) -> None: ...

    async def consume(
        self, token_hash: str, purpose: str, now: datetime
    ) -> Optional[VerificationTokenDoc]: ...
