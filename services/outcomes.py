"""
Typed results of the auth flows and the one place that turns them into text.

Services return these values instead of raising, so a handler can never leak
internals by accident. ``public_message`` is the only mapping from an
internal outcome to what a client sees. The disclosure policy lives here:
"account locked" and "email not verified" are shown as such, while an
unknown email, a wrong password and a wrong second factor all read as
"Invalid credentials".
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional, Union


class LoginStatus(str, Enum):
    SUCCESS = "success"
    MFA_REQUIRED = "mfa_required"
    INVALID_CREDENTIALS = "invalid_credentials"
    ACCOUNT_LOCKED = "account_locked"
    EMAIL_UNVERIFIED = "email_unverified"


class MfaStatus(str, Enum):
    ENABLED = "enabled"
    DISABLED = "disabled"
    INVALID_CODE = "invalid_code"


class PasswordResetStatus(str, Enum):
    SUCCESS = "success"
    INVALID_OR_EXPIRED_TOKEN = "invalid_or_expired_token"


class EmailVerificationStatus(str, Enum):
    SUCCESS = "success"
    ALREADY_VERIFIED = "already_verified"
    INVALID_OR_EXPIRED_TOKEN = "invalid_or_expired_token"


class PasswordChangeStatus(str, Enum):
    SUCCESS = "success"
    WRONG_PASSWORD = "wrong_password"
    NO_PASSWORD = "no_password"


@dataclass(frozen=True)
class SessionClaims:
    account_id: str
    email: str
    role: str
    password_changed_at: Optional[datetime] = None


@dataclass(frozen=True)
class LoginResult:
    status: LoginStatus
    claims: Optional[SessionClaims] = None
    remaining_minutes: Optional[int] = None
    second_factor: bool = False

    @property
    def ok(self) -> bool:
        return self.status is LoginStatus.SUCCESS


# Response bodies of the enumeration-resistant endpoints. They never vary.
PASSWORD_RESET_REQUESTED_MESSAGE = (
    "If an account with that email exists, we sent a password reset link."
)
VERIFICATION_REQUESTED_MESSAGE = (
    "If an account with that email exists and is not verified, "
    "we sent a verification link."
)

_LOGIN_MESSAGES = {
    LoginStatus.SUCCESS: "Signed in successfully.",
    LoginStatus.MFA_REQUIRED: "Enter the code from your authenticator app.",
    LoginStatus.INVALID_CREDENTIALS: "Invalid credentials",
    LoginStatus.EMAIL_UNVERIFIED: (
        "Please verify your email before signing in. "
        "Check your inbox for the verification link."
    ),
}

_OTHER_MESSAGES: dict[Enum, str] = {
    MfaStatus.ENABLED: "Two-factor authentication has been enabled successfully",
    MfaStatus.DISABLED: "Two-factor authentication has been disabled",
    MfaStatus.INVALID_CODE: "Invalid verification code",
    PasswordResetStatus.SUCCESS: (
        "Password reset successfully. You can now sign in with your new password."
    ),
    PasswordResetStatus.INVALID_OR_EXPIRED_TOKEN: (
        "Invalid or expired reset link. Please request a new one."
    ),
    EmailVerificationStatus.SUCCESS: "Email verified successfully! You can now sign in.",
    EmailVerificationStatus.ALREADY_VERIFIED: "Email already verified. You can sign in.",
    EmailVerificationStatus.INVALID_OR_EXPIRED_TOKEN: (
        "Invalid or expired verification link. Please request a new verification email."
    ),
    PasswordChangeStatus.SUCCESS: "Password updated successfully",
    PasswordChangeStatus.WRONG_PASSWORD: "Current password is incorrect",
    PasswordChangeStatus.NO_PASSWORD: "Unable to change password for this account",
}


def public_message(outcome: Union[LoginResult, Enum]) -> str:
    """Return the client-facing text for *outcome*."""
    if isinstance(outcome, LoginResult):
        if outcome.status is LoginStatus.ACCOUNT_LOCKED:
            minutes = outcome.remaining_minutes or 1
            plural = "" if minutes == 1 else "s"
            return f"Account locked. Try again in {minutes} minute{plural}."
        return _LOGIN_MESSAGES[outcome.status]
    return _OTHER_MESSAGES[outcome]
