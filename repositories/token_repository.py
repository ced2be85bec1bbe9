"""MongoDB implementation of VerificationTokenRepository (`verification-tokens`)."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pymongo.asynchronous.collection import AsyncCollection

from schemas.models.token import VerificationTokenDoc

TOKENS_COLLECTION = "verification-tokens"


class MongoVerificationTokenRepository:
    def __init__(self, collection: AsyncCollection) -> None:
        self._col = collection

    async def delete_for_identifier(self, identifier: str) -> int:
        result = await self._col.delete_many({"identifier": identifier})
        return result.deleted_count

    async def create(self, token: VerificationTokenDoc) -> None:
        await self._col.insert_one(token.to_mongo())

    async def consume(
        self, token_hash: str, purpose: str, now: datetime
    ) -> Optional[VerificationTokenDoc]:
        # Lookup and delete in one step: two concurrent submissions of the
        # same link cannot both see the document.
        doc = await self._col.find_one_and_delete(
            {"token_hash": token_hash, "purpose": purpose, "expires_at": {"$gt": now}}
        )
        return VerificationTokenDoc.from_mongo(doc)
