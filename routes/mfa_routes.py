"""
MFA enrollment routes for the signed-in account.

POST /account/mfa/setup    — generate secret, QR code and backup codes
POST /account/mfa/enable   — confirm setup with a TOTP code
POST /account/mfa/disable  — remove MFA with a TOTP or backup code
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from dependencies import get_current_account, get_mfa_service, rate_limit
from errors import ValidationError
from schemas.dto.requests.mfa import DisableMfaRequest, EnableMfaRequest
from schemas.dto.responses.common import ErrorResponse, MessageResponse
from schemas.dto.responses.mfa import MfaSetupResponse
from schemas.models.account import AccountDoc
from services.mfa_service import MfaService
from services.outcomes import MfaStatus, public_message
from shared.limits import Limits

router = APIRouter(
    prefix="/account/mfa",
    tags=["mfa"],
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        429: {"model": ErrorResponse},
    },
    dependencies=[Depends(rate_limit(Limits.MFA))],
)


@router.post("/setup", response_model=MfaSetupResponse)
async def setup_mfa(
    account: AccountDoc = Depends(get_current_account),
    mfa: MfaService = Depends(get_mfa_service),
) -> MfaSetupResponse:
    enrollment = await mfa.begin_enrollment(str(account.id))
    return MfaSetupResponse(
        secret=enrollment.secret,
        otpauth_url=enrollment.enrollment_uri,
        qr_code=enrollment.qr_image,
        backup_codes=enrollment.backup_codes,
    )


@router.post("/enable", response_model=MessageResponse)
async def enable_mfa(
    body: EnableMfaRequest,
    account: AccountDoc = Depends(get_current_account),
    mfa: MfaService = Depends(get_mfa_service),
) -> MessageResponse:
    status = await mfa.confirm_enrollment(str(account.id), body.code)
    if status is MfaStatus.INVALID_CODE:
        raise ValidationError(public_message(status), field="code")
    return MessageResponse(success=True, message=public_message(status))


@router.post("/disable", response_model=MessageResponse)
async def disable_mfa(
    body: DisableMfaRequest,
    account: AccountDoc = Depends(get_current_account),
    mfa: MfaService = Depends(get_mfa_service),
) -> MessageResponse:
    status = await mfa.disable(str(account.id), body.code)
    if status is MfaStatus.INVALID_CODE:
        raise ValidationError(public_message(status), field="code")
    return MessageResponse(success=True, message=public_message(status))
