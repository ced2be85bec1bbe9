"""
FastAPI dependency providers.

All injectable dependencies are defined here as plain functions used with
FastAPI's Depends() system. Services are built once in the app lifespan and
stored on app.state; the providers below only hand them out.
"""

from __future__ import annotations

from typing import Awaitable, Callable, Optional

import jwt
from fastapi import Request, Response

from config import AppSettings
from errors import AuthenticationError, RateLimitError
from repositories.protocol import AccountRepository
from schemas.models.account import AccountDoc
from services.credential_gate import CredentialGate
from services.mfa_service import MfaService
from services.rate_limiter import RateLimiter
from services.recovery import RecoveryService
from services.registration import RegistrationService
from services.sessions import SESSION_COOKIE, SessionTokenService, password_stamp
from shared.ip_utils import get_client_ip
from shared.limits import RateLimitPolicy
from shared.logging import get_logger, hash_ip

log = get_logger(__name__)


def get_settings(request: Request) -> AppSettings:
    """Return the AppSettings instance stored on app.state."""
    return request.app.state.settings


def get_account_repository(request: Request) -> AccountRepository:
    return request.app.state.account_repo


def get_credential_gate(request: Request) -> CredentialGate:
    return request.app.state.credential_gate


def get_mfa_service(request: Request) -> MfaService:
    return request.app.state.mfa_service


def get_recovery_service(request: Request) -> RecoveryService:
    return request.app.state.recovery_service


def get_registration_service(request: Request) -> RegistrationService:
    return request.app.state.registration_service


def get_session_service(request: Request) -> SessionTokenService:
    return request.app.state.session_service


def get_rate_limiter(request: Request) -> RateLimiter:
    return request.app.state.rate_limiter


def rate_limit(
    policy: RateLimitPolicy, message: Optional[str] = None
) -> Callable[[Request, Response], Awaitable[None]]:
    """Build a dependency that throttles *policy* per client address.

    Allowed requests get the X-RateLimit-* headers on their response; denied
    ones raise RateLimitError (429) carrying the same headers plus Retry-After.
    """
    denied_message = message or "Too many requests. Please try again later."

    async def _check(request: Request, response: Response) -> None:
        limiter = get_rate_limiter(request)
        client_ip = get_client_ip(
            request, get_settings(request).security.trusted_proxies
        )
        result = await limiter.check_policy(policy, client_ip)
        headers = result.headers(limiter.now_ms())

        if not result.allowed:
            log.warning(
                "rate_limit_exceeded",
                action=policy.action,
                client_ip=hash_ip(client_ip),
                limit=policy.max_requests,
            )
            raise RateLimitError(denied_message, headers=headers)

        headers.pop("Retry-After")
        response.headers.update(headers)

    return _check


def _session_token(request: Request) -> Optional[str]:
    auth_header = request.headers.get("Authorization", "")
    if auth_header.lower().startswith("bearer "):
        return auth_header.split(" ", 1)[1].strip() or None
    return request.cookies.get(SESSION_COOKIE)


async def get_current_account(request: Request) -> AccountDoc:
    """Resolve the signed-in account from the session token.

    Tokens issued before the account's last password change are rejected.
    """
    token = _session_token(request)
    if not token:
        raise AuthenticationError("Authentication required")

    try:
        claims = get_session_service(request).verify(token)
    except jwt.InvalidTokenError as e:
        log.info("session_rejected", reason=type(e).__name__)
        raise AuthenticationError("Invalid or expired session") from None

    account = await get_account_repository(request).find_by_id(str(claims["sub"]))
    if account is None:
        log.info("session_rejected", reason="account_missing")
        raise AuthenticationError("Invalid or expired session")

    if password_stamp(account.password_changed_at) > int(claims.get("pwd_at", 0)):
        log.info("session_rejected", reason="password_changed", account_id=str(account.id))
        raise AuthenticationError("Session expired. Please sign in again.")

    return account
