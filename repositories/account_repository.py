"""MongoDB implementation of AccountRepository (`accounts` collection)."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pymongo import ReturnDocument
from pymongo.asynchronous.collection import AsyncCollection
from pymongo.errors import DuplicateKeyError

from schemas.models.account import AccountDoc
from schemas.models.base import to_object_id
from shared.datetime_utils import utcnow
from shared.logging import get_logger

log = get_logger(__name__)

ACCOUNTS_COLLECTION = "accounts"


class MongoAccountRepository:
    def __init__(self, collection: AsyncCollection) -> None:
        self._col = collection

    async def find_by_email(self, email: str) -> Optional[AccountDoc]:
        doc = await self._col.find_one({"email": email})
        return AccountDoc.from_mongo(doc)

    async def find_by_id(self, account_id: str) -> Optional[AccountDoc]:
        oid = to_object_id(account_id)
        if oid is None:
            return None
        doc = await self._col.find_one({"_id": oid})
        return AccountDoc.from_mongo(doc)

    async def create(self, account: AccountDoc) -> Optional[str]:
        """Insert *account*; None when the email is already taken."""
        try:
            result = await self._col.insert_one(account.to_mongo())
        except DuplicateKeyError:
            return None
        return str(result.inserted_id)

    async def increment_failed_attempts(self, account_id: str) -> int:
        doc = await self._col.find_one_and_update(
            {"_id": to_object_id(account_id)},
            {"$inc": {"failed_login_attempts": 1}, "$set": {"updated_at": utcnow()}},
            projection={"failed_login_attempts": 1},
            return_document=ReturnDocument.AFTER,
        )
        return int(doc["failed_login_attempts"]) if doc else 0

    async def lock_until(self, account_id: str, until: datetime) -> None:
        await self._set(account_id, {"locked_until": until})

    async def reset_lockout(self, account_id: str) -> None:
        await self._set(account_id, {"failed_login_attempts": 0, "locked_until": None})

    async def update_password(
        self, account_id: str, password_hash: str, changed_at: datetime
    ) -> None:
        await self._set(
            account_id,
            {
                "password_hash": password_hash,
                "password_changed_at": changed_at,
                "failed_login_attempts": 0,
                "locked_until": None,
            },
        )

    async def mark_email_verified(self, account_id: str, at: datetime) -> None:
        await self._set(account_id, {"email_verified": at})

    async def store_pending_mfa(
        self, account_id: str, encrypted_secret: str, backup_code_hashes: list[str]
    ) -> None:
        await self._set(
            account_id,
            {
                "mfa_enabled": False,
                "mfa_secret": encrypted_secret,
                "mfa_backup_codes": list(backup_code_hashes),
            },
        )

    async def enable_mfa(self, account_id: str) -> None:
        await self._set(account_id, {"mfa_enabled": True})

    async def clear_mfa(self, account_id: str) -> None:
        await self._set(
            account_id,
            {"mfa_enabled": False, "mfa_secret": None, "mfa_backup_codes": []},
        )

    async def remove_backup_code(self, account_id: str, code_hash: str) -> bool:
        # Filtering on the hash makes a concurrent replay of the same code a no-op.
        result = await self._col.update_one(
            {"_id": to_object_id(account_id), "mfa_backup_codes": code_hash},
            {"$pull": {"mfa_backup_codes": code_hash}, "$set": {"updated_at": utcnow()}},
        )
        return result.modified_count == 1

    async def _set(self, account_id: str, fields: dict[str, Any]) -> None:
        oid = to_object_id(account_id)
        if oid is None:
            log.warning("account_update_skipped", reason="invalid_id")
            return
        await self._col.update_one(
            {"_id": oid}, {"$set": {**fields, "updated_at": utcnow()}}
        )
