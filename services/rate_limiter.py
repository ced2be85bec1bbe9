"""
Fixed-window request throttling for the auth endpoints.

The first request for a key opens a window of ``window_ms``. Every request
inside the window is counted; once the count passes ``max_requests`` the
request is denied until the window ends, after which the next request
opens a fresh window with a count of 1.

Counting is done by ``limits``' fixed-window strategy over whatever async
storage is injected (in-memory or Redis). This is friction against brute
force, not a hard security boundary: a small overshoot under heavy
concurrency is tolerated, unbounded bypass is not.
"""

from __future__ import annotations

import math
import time
from dataclasses import dataclass

from limits import RateLimitItemPerSecond
from limits.aio.storage import Storage
from limits.aio.strategies import FixedWindowRateLimiter

from shared.limits import RateLimitPolicy
from shared.logging import get_logger

log = get_logger(__name__)


def _now_ms() -> int:
    return int(time.time() * 1000)


@dataclass(frozen=True)
class RateLimitResult:
    allowed: bool
    remaining: int
    reset_at_ms: int
    limit: int

    def headers(self, now_ms: int) -> dict[str, str]:
        """Standard rate-limit response headers, with Retry-After in seconds."""
        retry_after = max(0, math.ceil((self.reset_at_ms - now_ms) / 1000))
        return {
            "X-RateLimit-Limit": str(self.limit),
            "X-RateLimit-Remaining": str(self.remaining),
            "X-RateLimit-Reset": str(math.ceil(self.reset_at_ms / 1000)),
            "Retry-After": str(retry_after),
        }


class RateLimiter:
    def __init__(self, storage: Storage) -> None:
        self._strategy = FixedWindowRateLimiter(storage)

    def now_ms(self) -> int:
        return _now_ms()

    async def check(self, key: str, window_ms: int, max_requests: int) -> RateLimitResult:
        # limits windows are whole seconds
        item = RateLimitItemPerSecond(max_requests, max(1, math.ceil(window_ms / 1000)))
        allowed = await self._strategy.hit(item, key)
        stats = await self._strategy.get_window_stats(item, key)
        if not allowed:
            log.debug("rate_limit_denied", limit=max_requests)
        return RateLimitResult(
            allowed=allowed,
            remaining=stats.remaining,
            reset_at_ms=math.ceil(stats.reset_time * 1000),
            limit=max_requests,
        )

    async def check_policy(self, policy: RateLimitPolicy, client_id: str) -> RateLimitResult:
        """Check *policy* for one client, keyed ``<action>:<client_id>``."""
        return await self.check(
            f"{policy.action}:{client_id}", policy.window_ms, policy.max_requests
        )
