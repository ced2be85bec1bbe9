"""
Response DTOs for authentication endpoints.

AccountSummary      — account shape embedded in login/register responses
LoginResponse       — POST /auth/login  (200)
RegisterResponse    — POST /auth/register  (201)
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict


class AccountSummary(BaseModel):
    """Public view of an account. Never carries hashes or MFA material."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    email: str
    role: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email_verified: bool
    mfa_enabled: bool = False


class LoginResponse(BaseModel):
    """Response body for POST /auth/login (200).

    The session token is also set as an httponly cookie.
    """

    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    message: str
    access_token: str
    token_type: str = "Bearer"
    expires_in: int
    account: AccountSummary


class RegisterResponse(BaseModel):
    """Response body for POST /auth/register (201)."""

    model_config = ConfigDict(populate_by_name=True)

    message: str
    account: AccountSummary
    requires_verification: bool = True
