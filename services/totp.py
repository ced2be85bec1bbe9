"""
TOTP (Time-based One-Time Password) engine.
RFC 6238 — compatible with Google Authenticator, Authy, 1Password, Aegis.

Fixed parameters (enrollment and validation must agree):
- HMAC-SHA1
- 6-digit codes
- 30-second time step
- Base32 secret from 20 random bytes (160 bits)

Validation accepts the current step and one step either side, i.e. up to
90 seconds of clock skew. Codes two steps away are rejected.
"""

from __future__ import annotations

import base64
import binascii
import io
from datetime import datetime
from typing import Optional, Union
from urllib.parse import quote, urlencode

import pyotp
import qrcode
from qrcode.constants import ERROR_CORRECT_M

from shared.logging import get_logger
from shared.validators import is_totp_code_format

log = get_logger(__name__)

TOTP_DIGITS = 6
TOTP_INTERVAL_SECONDS = 30
TOTP_VALID_WINDOW = 1
SECRET_LENGTH = 32  # Base32 characters, 160 bits

_QR_DARK = "#c9a962"
_QR_LIGHT = "#0a0a0a"


class TotpEngine:
    def __init__(self, issuer: str) -> None:
        self._issuer = issuer

    @staticmethod
    def generate_secret() -> str:
        """Return a new Base32 secret (32 characters, no padding)."""
        return pyotp.random_base32(length=SECRET_LENGTH)

    def _totp(self, secret: str) -> pyotp.TOTP:
        return pyotp.TOTP(secret, digits=TOTP_DIGITS, interval=TOTP_INTERVAL_SECONDS)

    def build_enrollment_uri(self, secret: str, account_label: str) -> str:
        """
        Build the otpauth:// URI authenticator apps scan.

        Format: otpauth://totp/{issuer}:{label}?secret=...&issuer=...&algorithm=SHA1&digits=6&period=30
        Algorithm, digits and period are always written out, even though they
        are the RFC defaults.
        """
        label = f"{quote(self._issuer)}:{quote(account_label)}"
        query = urlencode(
            {
                "secret": secret,
                "issuer": self._issuer,
                "algorithm": "SHA1",
                "digits": TOTP_DIGITS,
                "period": TOTP_INTERVAL_SECONDS,
            },
            quote_via=quote,
        )
        return f"otpauth://totp/{label}?{query}"

    @staticmethod
    def render_enrollment_image(uri: str) -> str:
        """
        Encode *uri* as a QR code and return it as a PNG data URL.

        Frontend can display this directly: <img src="{result}">
        """
        qr = qrcode.QRCode(
            error_correction=ERROR_CORRECT_M,
            box_size=8,
            border=2,
        )
        qr.add_data(uri)
        qr.make(fit=True)

        img = qr.make_image(fill_color=_QR_DARK, back_color=_QR_LIGHT)

        buffer = io.BytesIO()
        img.save(buffer, format="PNG")
        encoded = base64.b64encode(buffer.getvalue()).decode("ascii")
        return f"data:image/png;base64,{encoded}"

    def validate_code(
        self,
        secret: str,
        code: str,
        account_label: Optional[str] = None,
        for_time: Optional[Union[int, datetime]] = None,
    ) -> bool:
        """
        Verify a 6-digit TOTP code against *secret*.

        Returns False (never raises) for malformed codes or secrets.
        *for_time* overrides "now" and exists for tests.
        """
        if not secret or not is_totp_code_format(code):
            return False

        try:
            totp = self._totp(secret)
            if for_time is None:
                return totp.verify(code, valid_window=TOTP_VALID_WINDOW)
            return totp.verify(code, for_time=for_time, valid_window=TOTP_VALID_WINDOW)
        except (binascii.Error, ValueError, TypeError) as e:
            log.warning(
                "totp_secret_unusable",
                account=account_label,
                error_type=type(e).__name__,
            )
            return False
