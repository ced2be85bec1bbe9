"""
Random code and token generators — pure, side-effect-free functions.

All generators use the ``secrets`` module.
"""

from __future__ import annotations

import secrets


def generate_secure_token(length: int = 32) -> str:
    """Generate a cryptographically secure hex token for emailed links.

    Args:
        length: Number of random bytes (default 32). The resulting string is
            ``2 * length`` hex characters.

    Returns:
        Lowercase hex string.
    """
    return secrets.token_hex(length)


def generate_backup_code() -> str:
    """Generate one MFA recovery code formatted as ``XXXX-XXXX``.

    Four random bytes rendered as eight uppercase hex characters, split by a
    hyphen after the fourth character.
    """
    raw = secrets.token_hex(4).upper()
    return f"{raw[:4]}-{raw[4:]}"
