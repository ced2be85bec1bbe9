"""
Signed session tokens for authenticated accounts.

RS256 when a key pair is configured, otherwise HS256 with the shared secret.
Each token carries ``pwd_at``, the account's password-change stamp at issue
time; a token whose stamp is older than the account's current one was issued
before a password change and is no longer honoured.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import jwt
from fastapi import Response

from config import JWTSettings
from errors import ConfigurationError
from services.outcomes import SessionClaims

SESSION_COOKIE = "session_token"


def password_stamp(changed_at: Optional[datetime]) -> int:
    """Whole-second form of password_changed_at used in the ``pwd_at`` claim."""
    if changed_at is None:
        return 0
    if changed_at.tzinfo is None:
        changed_at = changed_at.replace(tzinfo=timezone.utc)
    return int(changed_at.timestamp())


class SessionTokenService:
    def __init__(self, settings: JWTSettings) -> None:
        self._settings = settings
        if settings.use_rs256:
            # Keys supplied via env may carry literal \n sequences
            self._algorithm = "RS256"
            self._signing_key: Any = settings.jwt_private_key.replace("\\n", "\n")
            self._verify_key: Any = settings.jwt_public_key.replace("\\n", "\n")
        elif settings.jwt_secret:
            self._algorithm = "HS256"
            self._signing_key = self._verify_key = settings.jwt_secret
        else:
            raise ConfigurationError(
                "JWT_SECRET or AUTH_SECRET must be set when RS256 keys are not provided"
            )

    @property
    def ttl_seconds(self) -> int:
        return self._settings.session_ttl_seconds

    def issue(self, claims: SessionClaims, mfa: bool = False) -> str:
        now = datetime.now(timezone.utc)
        payload = {
            "iss": self._settings.jwt_issuer,
            "aud": self._settings.jwt_audience,
            "sub": claims.account_id,
            "email": claims.email,
            "role": claims.role,
            "pwd_at": password_stamp(claims.password_changed_at),
            "iat": int(now.timestamp()),
            "exp": int((now + timedelta(seconds=self.ttl_seconds)).timestamp()),
            "amr": ["pwd", "otp"] if mfa else ["pwd"],  # Authentication Methods References
        }
        return jwt.encode(payload, self._signing_key, algorithm=self._algorithm)

    def verify(self, token: str) -> dict[str, Any]:
        """Decode *token*; raises jwt.InvalidTokenError when it is not acceptable."""
        return jwt.decode(
            token,
            self._verify_key,
            algorithms=[self._algorithm],
            audience=self._settings.jwt_audience,
            issuer=self._settings.jwt_issuer,
            options={"require": ["sub", "exp", "iat"]},
        )

    def set_cookie(self, response: Response, token: str) -> None:
        response.set_cookie(
            SESSION_COOKIE,
            value=token,
            httponly=True,
            secure=self._settings.cookie_secure,
            samesite="lax",
            path="/",
            max_age=self.ttl_seconds,
        )
