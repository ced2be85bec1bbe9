"""
Password-reset and email-verification flows.

The two "request" operations return nothing on purpose: the HTTP layer
answers with one constant message whether or not the address belongs to an
account, whether or not a token was issued, and whether or not the mail
provider accepted the message.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Callable

from config import SecuritySettings
from infrastructure.email.protocol import EmailProvider
from repositories.protocol import AccountRepository
from schemas.models.token import (
    TOKEN_PURPOSE_EMAIL_VERIFY,
    TOKEN_PURPOSE_PASSWORD_RESET,
)
from services.credential_gate import CredentialGate
from services.outcomes import EmailVerificationStatus, PasswordResetStatus
from services.token_ledger import TokenLedger
from shared.datetime_utils import utcnow
from shared.logging import get_logger
from shared.validators import normalize_email

log = get_logger(__name__)


class RecoveryService:
    def __init__(
        self,
        accounts: AccountRepository,
        ledger: TokenLedger,
        gate: CredentialGate,
        mailer: EmailProvider,
        settings: SecuritySettings,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._accounts = accounts
        self._ledger = ledger
        self._gate = gate
        self._mailer = mailer
        self._reset_ttl = timedelta(seconds=settings.password_reset_ttl_seconds)
        self._verify_ttl = timedelta(seconds=settings.email_verification_ttl_seconds)
        self._clock = clock

    async def request_password_reset(self, email: str) -> None:
        identifier = normalize_email(email)
        account = await self._accounts.find_by_email(identifier)

        # Accounts without a password (external sign-in) have nothing to reset.
        if account is None or not account.password_hash:
            log.info("password_reset_skipped", account_exists=account is not None)
            return

        raw = await self._ledger.issue(
            identifier, TOKEN_PURPOSE_PASSWORD_RESET, self._reset_ttl
        )
        sent = await self._mailer.send_password_reset_email(
            account.email, account.display_name, raw
        )
        if not sent:
            log.error("password_reset_email_failed", account_id=str(account.id))

    async def complete_password_reset(
        self, raw_token: str, new_password: str
    ) -> PasswordResetStatus:
        identifier = await self._ledger.consume(raw_token, TOKEN_PURPOSE_PASSWORD_RESET)
        if identifier is None:
            return PasswordResetStatus.INVALID_OR_EXPIRED_TOKEN

        account = await self._accounts.find_by_email(identifier)
        if account is None:
            log.warning("password_reset_orphan_token")
            return PasswordResetStatus.INVALID_OR_EXPIRED_TOKEN

        await self._gate.set_password(str(account.id), new_password)
        log.info("password_reset_completed", account_id=str(account.id))
        return PasswordResetStatus.SUCCESS

    async def request_email_verification(self, email: str) -> None:
        identifier = normalize_email(email)
        account = await self._accounts.find_by_email(identifier)

        if account is None or account.email_verified is not None:
            log.info("verification_email_skipped", account_exists=account is not None)
            return

        await self.send_verification(account.email, account.display_name)

    async def send_verification(self, email: str, name: str | None) -> bool:
        """Issue a fresh verification token for *email* and mail the link."""
        identifier = normalize_email(email)
        raw = await self._ledger.issue(
            identifier, TOKEN_PURPOSE_EMAIL_VERIFY, self._verify_ttl
        )
        sent = await self._mailer.send_verification_email(identifier, name, raw)
        if not sent:
            log.error("verification_email_failed")
        return sent

    async def complete_email_verification(
        self, raw_token: str
    ) -> EmailVerificationStatus:
        identifier = await self._ledger.consume(raw_token, TOKEN_PURPOSE_EMAIL_VERIFY)
        if identifier is None:
            return EmailVerificationStatus.INVALID_OR_EXPIRED_TOKEN

        account = await self._accounts.find_by_email(identifier)
        if account is None:
            log.warning("email_verification_orphan_token")
            return EmailVerificationStatus.INVALID_OR_EXPIRED_TOKEN

        if account.email_verified is not None:
            return EmailVerificationStatus.ALREADY_VERIFIED

        await self._accounts.mark_email_verified(str(account.id), self._clock())
        log.info("email_verified", account_id=str(account.id))
        return EmailVerificationStatus.SUCCESS
