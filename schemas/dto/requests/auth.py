"""
Request DTOs for authentication and account endpoints.

LoginRequest                — POST /auth/login
RegisterRequest             — POST /auth/register
ForgotPasswordRequest       — POST /auth/forgot-password
ResetPasswordRequest        — POST /auth/reset-password
ResendVerificationRequest   — POST /auth/resend-verification
VerifyEmailRequest          — POST /auth/verify-email
ChangePasswordRequest       — PUT /account/password
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from shared.validators import password_policy_violations


def _enforce_password_policy(value: str) -> str:
    violations = password_policy_violations(value)
    if violations:
        raise ValueError(violations[0])
    return value


class LoginRequest(BaseModel):
    """Request body for POST /auth/login.

    ``mfa_code`` is sent on the second round trip, after the server answered
    ``mfa_required``. It may be a 6-digit TOTP code or a backup code.
    """

    model_config = ConfigDict(populate_by_name=True)

    email: EmailStr
    password: str = Field(min_length=1, max_length=256)
    mfa_code: Optional[str] = Field(default=None, max_length=32, alias="mfaCode")


class RegisterRequest(BaseModel):
    """Request body for POST /auth/register."""

    model_config = ConfigDict(populate_by_name=True)

    email: EmailStr
    password: str
    first_name: str = Field(min_length=1, max_length=100, alias="firstName")
    last_name: str = Field(min_length=1, max_length=100, alias="lastName")

    @field_validator("password")
    @classmethod
    def check_password_policy(cls, value: str) -> str:
        return _enforce_password_policy(value)


class ForgotPasswordRequest(BaseModel):
    """Request body for POST /auth/forgot-password."""

    model_config = ConfigDict(populate_by_name=True)

    email: EmailStr


class ResetPasswordRequest(BaseModel):
    """Request body for POST /auth/reset-password.

    ``token`` is the raw value from the emailed link.
    """

    model_config = ConfigDict(populate_by_name=True)

    token: str = Field(min_length=1, max_length=256)
    password: str

    @field_validator("password")
    @classmethod
    def check_password_policy(cls, value: str) -> str:
        return _enforce_password_policy(value)


class ResendVerificationRequest(BaseModel):
    """Request body for POST /auth/resend-verification."""

    model_config = ConfigDict(populate_by_name=True)

    email: EmailStr


class VerifyEmailRequest(BaseModel):
    """Request body for POST /auth/verify-email."""

    model_config = ConfigDict(populate_by_name=True)

    token: str = Field(min_length=1, max_length=256)


class ChangePasswordRequest(BaseModel):
    """Request body for PUT /account/password."""

    model_config = ConfigDict(populate_by_name=True)

    current_password: str = Field(min_length=1, alias="currentPassword")
    new_password: str = Field(alias="newPassword")

    @field_validator("new_password")
    @classmethod
    def check_password_policy(cls, value: str) -> str:
        return _enforce_password_policy(value)
