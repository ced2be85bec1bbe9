"""
Authentication routes.

POST /auth/register             — create a customer account, mail verification link
POST /auth/login                — password (+ second factor) sign-in
POST /auth/forgot-password      — mail a reset link (constant response)
POST /auth/reset-password       — redeem a reset link
POST /auth/resend-verification  — mail a new verification link (constant response)
POST /auth/verify-email         — redeem a verification link
PUT  /account/password          — change password while signed in

Every client-visible message comes from services.outcomes.public_message.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Response

from dependencies import (
    get_account_repository,
    get_credential_gate,
    get_current_account,
    get_recovery_service,
    get_registration_service,
    get_session_service,
    rate_limit,
)
from errors import (
    AccountLockedError,
    AppError,
    AuthenticationError,
    EmailUnverifiedError,
    MfaRequiredError,
    ValidationError,
)
from repositories.protocol import AccountRepository
from schemas.dto.requests.auth import (
    ChangePasswordRequest,
    ForgotPasswordRequest,
    LoginRequest,
    RegisterRequest,
    ResendVerificationRequest,
    ResetPasswordRequest,
    VerifyEmailRequest,
)
from schemas.dto.responses.auth import AccountSummary, LoginResponse, RegisterResponse
from schemas.dto.responses.common import ErrorResponse, MessageResponse
from schemas.models.account import AccountDoc, AccountRole
from services.credential_gate import CredentialGate
from services.outcomes import (
    PASSWORD_RESET_REQUESTED_MESSAGE,
    VERIFICATION_REQUESTED_MESSAGE,
    EmailVerificationStatus,
    LoginResult,
    LoginStatus,
    PasswordChangeStatus,
    PasswordResetStatus,
    public_message,
)
from services.recovery import RecoveryService
from services.registration import RegistrationService
from services.sessions import SessionTokenService
from shared.limits import Limits

router = APIRouter(
    tags=["auth"],
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        423: {"model": ErrorResponse},
        429: {"model": ErrorResponse},
    },
)

_LOGIN_ERRORS: dict[LoginStatus, type[AppError]] = {
    LoginStatus.INVALID_CREDENTIALS: AuthenticationError,
    LoginStatus.MFA_REQUIRED: MfaRequiredError,
    LoginStatus.ACCOUNT_LOCKED: AccountLockedError,
    LoginStatus.EMAIL_UNVERIFIED: EmailUnverifiedError,
}


def login_error(result: LoginResult) -> AppError:
    """The AppError a failed login is reported as."""
    return _LOGIN_ERRORS[result.status](public_message(result))


def account_summary(account: AccountDoc) -> AccountSummary:
    return AccountSummary(
        id=str(account.id),
        email=account.email,
        role=AccountRole(account.role).value,
        first_name=account.first_name,
        last_name=account.last_name,
        email_verified=account.email_verified is not None,
        mfa_enabled=account.mfa_protected,
    )


@router.post(
    "/auth/register",
    status_code=201,
    response_model=RegisterResponse,
    dependencies=[
        Depends(
            rate_limit(
                Limits.REGISTER,
                "Too many registration attempts. Please try again later.",
            )
        )
    ],
)
async def register(
    body: RegisterRequest,
    registration: RegistrationService = Depends(get_registration_service),
) -> RegisterResponse:
    account = await registration.register(
        body.email, body.password, body.first_name, body.last_name
    )
    return RegisterResponse(
        message=(
            "Account created successfully. "
            "Please check your email to verify your account."
        ),
        account=account_summary(account),
    )


@router.post(
    "/auth/login",
    response_model=LoginResponse,
    dependencies=[
        Depends(
            rate_limit(Limits.LOGIN, "Too many login attempts. Please try again later.")
        )
    ],
)
async def login(
    body: LoginRequest,
    response: Response,
    gate: CredentialGate = Depends(get_credential_gate),
    sessions: SessionTokenService = Depends(get_session_service),
) -> LoginResponse:
    result = await gate.login(body.email, body.password, body.mfa_code)
    if not result.ok:
        raise login_error(result)

    token = sessions.issue(result.claims, mfa=result.second_factor)
    sessions.set_cookie(response, token)
    claims = result.claims
    return LoginResponse(
        message=public_message(result),
        access_token=token,
        expires_in=sessions.ttl_seconds,
        account=AccountSummary(
            id=claims.account_id,
            email=claims.email,
            role=claims.role,
            email_verified=True,
            mfa_enabled=result.second_factor,
        ),
    )


@router.post(
    "/auth/forgot-password",
    response_model=MessageResponse,
    dependencies=[
        Depends(
            rate_limit(
                Limits.PASSWORD_RESET_REQUEST,
                "Too many password reset requests. Please try again later.",
            )
        )
    ],
)
async def forgot_password(
    body: ForgotPasswordRequest,
    recovery: RecoveryService = Depends(get_recovery_service),
) -> MessageResponse:
    await recovery.request_password_reset(body.email)
    return MessageResponse(success=True, message=PASSWORD_RESET_REQUESTED_MESSAGE)


@router.post(
    "/auth/reset-password",
    response_model=MessageResponse,
    dependencies=[
        Depends(
            rate_limit(
                Limits.PASSWORD_RESET_CONFIRM,
                "Too many password reset attempts. Please try again later.",
            )
        )
    ],
)
async def reset_password(
    body: ResetPasswordRequest,
    recovery: RecoveryService = Depends(get_recovery_service),
) -> MessageResponse:
    status = await recovery.complete_password_reset(body.token, body.password)
    if status is not PasswordResetStatus.SUCCESS:
        raise ValidationError(public_message(status), field="token")
    return MessageResponse(success=True, message=public_message(status))


@router.post(
    "/auth/resend-verification",
    response_model=MessageResponse,
    dependencies=[
        Depends(
            rate_limit(
                Limits.RESEND_VERIFICATION,
                "Too many verification requests. Please try again later.",
            )
        )
    ],
)
async def resend_verification(
    body: ResendVerificationRequest,
    recovery: RecoveryService = Depends(get_recovery_service),
) -> MessageResponse:
    await recovery.request_email_verification(body.email)
    return MessageResponse(success=True, message=VERIFICATION_REQUESTED_MESSAGE)


@router.post(
    "/auth/verify-email",
    response_model=MessageResponse,
    dependencies=[Depends(rate_limit(Limits.EMAIL_VERIFY))],
)
async def verify_email(
    body: VerifyEmailRequest,
    recovery: RecoveryService = Depends(get_recovery_service),
) -> MessageResponse:
    status = await recovery.complete_email_verification(body.token)
    if status is EmailVerificationStatus.INVALID_OR_EXPIRED_TOKEN:
        raise ValidationError(public_message(status), field="token")
    return MessageResponse(success=True, message=public_message(status))


@router.put(
    "/account/password",
    response_model=MessageResponse,
    dependencies=[Depends(rate_limit(Limits.CHANGE_PASSWORD))],
)
async def change_password(
    body: ChangePasswordRequest,
    response: Response,
    account: AccountDoc = Depends(get_current_account),
    gate: CredentialGate = Depends(get_credential_gate),
    accounts: AccountRepository = Depends(get_account_repository),
    sessions: SessionTokenService = Depends(get_session_service),
) -> MessageResponse:
    account_id = str(account.id)
    status = await gate.change_password(
        account_id, body.current_password, body.new_password
    )
    if status is PasswordChangeStatus.WRONG_PASSWORD:
        raise ValidationError(public_message(status), field="currentPassword")
    if status is PasswordChangeStatus.NO_PASSWORD:
        raise ValidationError(public_message(status))

    # The change invalidated every earlier session, this one included.
    refreshed = await accounts.find_by_id(account_id)
    if refreshed is None:
        raise AuthenticationError("Session expired. Please sign in again.")
    token = sessions.issue(
        gate.session_claims(refreshed), mfa=refreshed.mfa_protected
    )
    sessions.set_cookie(response, token)
    return MessageResponse(success=True, message=public_message(status))
