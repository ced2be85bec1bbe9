"""Index bootstrap for the auth collections, run once from the app lifespan."""

from __future__ import annotations

from pymongo import ASCENDING
from pymongo.asynchronous.database import AsyncDatabase
from pymongo.errors import PyMongoError

from repositories.account_repository import ACCOUNTS_COLLECTION
from repositories.token_repository import TOKENS_COLLECTION
from shared.logging import get_logger

log = get_logger(__name__)


async def ensure_indexes(db: AsyncDatabase) -> None:
    try:
        accounts = db[ACCOUNTS_COLLECTION]
        await accounts.create_index([("email", ASCENDING)], unique=True)

        tokens = db[TOKENS_COLLECTION]
        await tokens.create_index([("token_hash", ASCENDING)], unique=True)
        await tokens.create_index([("identifier", ASCENDING)])
        # Expired rows are already inert (consume filters on expires_at);
        # the TTL index just clears them out eventually.
        await tokens.create_index([("expires_at", ASCENDING)], expireAfterSeconds=0)

        log.info("indexes_ensured")
    except PyMongoError as e:
        log.error("index_creation_failed", error=str(e), error_type=type(e).__name__)
