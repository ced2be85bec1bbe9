"""
Input validators — framework-agnostic, pure functions.

These produce field-specific messages: they run before any account lookup,
so being precise here leaks nothing about account state.
"""

from __future__ import annotations

import re

PASSWORD_MIN_LENGTH = 10
PASSWORD_MAX_LENGTH = 128

COMMON_PASSWORDS = frozenset(
    {
        "password",
        "12345678",
        "password123",
        "admin123",
        "qwerty123",
        "letmein",
        "welcome",
    }
)

_TOTP_CODE_RE = re.compile(r"^[0-9]{6}$")


def normalize_email(email: str) -> str:
    """Canonical form used for every account lookup and token identifier."""
    return email.strip().casefold()


def password_policy_violations(password: str) -> list[str]:
    """Return human-readable reasons *password* is rejected (empty when valid).

    Rules:
    - At least 10 characters, at most 128
    - At least one uppercase letter, one lowercase letter and one digit
    - At least one character that is not a letter or digit
    - Not one of the well-known weak passwords
    """
    if not password:
        return ["Password is required"]

    missing: list[str] = []
    if len(password) < PASSWORD_MIN_LENGTH:
        missing.append(f"Password must be at least {PASSWORD_MIN_LENGTH} characters")
    if len(password) > PASSWORD_MAX_LENGTH:
        missing.append(f"Password must be at most {PASSWORD_MAX_LENGTH} characters")
    if not re.search(r"[A-Z]", password):
        missing.append("Password must contain at least one uppercase letter")
    if not re.search(r"[a-z]", password):
        missing.append("Password must contain at least one lowercase letter")
    if not re.search(r"[0-9]", password):
        missing.append("Password must contain at least one number")
    if not re.search(r"[^A-Za-z0-9]", password):
        missing.append("Password must contain at least one special character")
    if password.lower() in COMMON_PASSWORDS:
        missing.append("Password is too common. Please choose a stronger password.")
    return missing


def is_totp_code_format(code: str) -> bool:
    """True when *code* is exactly six ASCII digits."""
    return bool(_TOTP_CODE_RE.match(code or ""))
