"""
Single source of truth for the auth endpoint rate limits.

Each policy is keyed ``<action>:<client ip>`` by the rate-limit dependency,
so repeated attempts from one address are throttled across all accounts,
independently of per-account lockout.
"""

from __future__ import annotations

from dataclasses import dataclass

_MINUTE_MS = 60 * 1000
_HOUR_MS = 60 * _MINUTE_MS


@dataclass(frozen=True)
class RateLimitPolicy:
    action: str
    max_requests: int
    window_ms: int


class Limits:
    LOGIN = RateLimitPolicy("login", 5, 15 * _MINUTE_MS)
    REGISTER = RateLimitPolicy("register", 3, _HOUR_MS)
    PASSWORD_RESET_REQUEST = RateLimitPolicy("forgot-password", 3, _HOUR_MS)
    PASSWORD_RESET_CONFIRM = RateLimitPolicy("reset-password", 5, _HOUR_MS)
    RESEND_VERIFICATION = RateLimitPolicy("resend-verification", 3, _HOUR_MS)
    EMAIL_VERIFY = RateLimitPolicy("verify-email", 10, _HOUR_MS)
    MFA = RateLimitPolicy("mfa", 10, 15 * _MINUTE_MS)
    CHANGE_PASSWORD = RateLimitPolicy("change-password", 5, 15 * _MINUTE_MS)
