"""
Request DTOs for MFA endpoints.

EnableMfaRequest   — POST /account/mfa/enable
DisableMfaRequest  — POST /account/mfa/disable
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class EnableMfaRequest(BaseModel):
    """Request body for POST /account/mfa/enable. Only a TOTP code confirms setup."""

    model_config = ConfigDict(populate_by_name=True)

    code: str = Field(pattern=r"^[0-9]{6}$")


class DisableMfaRequest(BaseModel):
    """Request body for POST /account/mfa/disable. Accepts a TOTP or backup code."""

    model_config = ConfigDict(populate_by_name=True)

    code: str = Field(min_length=6, max_length=32)
