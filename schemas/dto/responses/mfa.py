"""
Response DTOs for MFA endpoints.

MfaSetupResponse  — POST /account/mfa/setup  (200)
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class MfaSetupResponse(BaseModel):
    """Enrollment material, shown to the user exactly once.

    ``qr_code`` is a PNG data URL of the otpauth URI.
    """

    model_config = ConfigDict(populate_by_name=True)

    secret: str
    otpauth_url: str
    qr_code: str
    backup_codes: list[str]
