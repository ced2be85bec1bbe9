"""
Counter storage for the auth rate limiter.

Redis when a URI is configured, so every worker shares one count per
client; otherwise counters live in process memory.
"""

from __future__ import annotations

from typing import Optional

from limits.aio.storage import MemoryStorage, Storage
from limits.storage import storage_from_string


def build_rate_limit_storage(redis_uri: Optional[str] = None) -> Storage:
    """Return an async ``limits`` storage for *redis_uri*, or in-memory if unset."""
    if redis_uri:
        return storage_from_string(f"async+{redis_uri}")
    return MemoryStorage()
