"""
MFA enrollment, confirmation, removal, and second-factor checks.

Enrollment is two-step. ``begin_enrollment`` generates a secret and backup
codes and stores them (secret encrypted) with ``mfa_enabled`` still False.
That pending state protects nothing; running setup again simply overwrites
it. ``confirm_enrollment`` flips the flag only after the user proves
possession with a valid code.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass

from config import SecuritySettings
from errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from repositories.protocol import AccountRepository
from schemas.models.account import AccountDoc, AccountRole
from services.backup_codes import BackupCodeVault
from services.outcomes import MfaStatus
from services.secret_codec import SecretCodec
from services.totp import TotpEngine
from shared.logging import get_logger

log = get_logger(__name__)


@dataclass(frozen=True)
class MfaEnrollment:
    secret: str
    enrollment_uri: str
    qr_image: str
    backup_codes: list[str]


class MfaService:
    def __init__(
        self,
        accounts: AccountRepository,
        totp: TotpEngine,
        codec: SecretCodec,
        vault: BackupCodeVault,
        settings: SecuritySettings,
    ) -> None:
        self._accounts = accounts
        self._totp = totp
        self._codec = codec
        self._vault = vault
        self._settings = settings

    async def verify_second_factor(self, account: AccountDoc, code: str) -> bool:
        """Accept a current TOTP code, else burn a matching backup code.

        SecretIntegrityError from a tampered secret propagates.
        """
        if not account.mfa_secret or not code:
            return False

        secret = self._codec.decrypt(account.mfa_secret)
        if self._totp.validate_code(secret, code.strip(), account.email):
            return True

        index = self._vault.verify(code, account.mfa_backup_codes)
        if index is None:
            return False

        account_id = str(account.id)
        removed = await self._accounts.remove_backup_code(
            account_id, account.mfa_backup_codes[index]
        )
        if not removed:
            # Another request redeemed the same code first.
            log.warning("backup_code_replay_rejected", account_id=account_id)
            return False

        log.warning(
            "backup_code_used",
            account_id=account_id,
            remaining=len(account.mfa_backup_codes) - 1,
        )
        return True

    async def begin_enrollment(self, account_id: str) -> MfaEnrollment:
        account = await self._load_for_enrollment(account_id)
        if account.mfa_enabled:
            raise ConflictError(
                "MFA is already enabled. Disable it first to set up again."
            )

        secret = self._totp.generate_secret()
        uri = self._totp.build_enrollment_uri(secret, account.email)
        qr_image = await asyncio.to_thread(self._totp.render_enrollment_image, uri)
        batch = self._vault.generate(self._settings.backup_code_count)

        await self._accounts.store_pending_mfa(
            account_id, self._codec.encrypt(secret), batch.hashes
        )

        log.info("mfa_enrollment_started", account_id=account_id)
        return MfaEnrollment(
            secret=secret,
            enrollment_uri=uri,
            qr_image=qr_image,
            backup_codes=batch.codes,
        )

    async def confirm_enrollment(self, account_id: str, code: str) -> MfaStatus:
        account = await self._load_for_enrollment(account_id)
        if account.mfa_enabled:
            raise ConflictError("MFA is already enabled")
        if not account.mfa_secret:
            raise ValidationError("Please set up MFA first", field="code")

        secret = self._codec.decrypt(account.mfa_secret)
        if not self._totp.validate_code(secret, code, account.email):
            log.warning("mfa_enrollment_code_rejected", account_id=account_id)
            return MfaStatus.INVALID_CODE

        await self._accounts.enable_mfa(account_id)
        log.info("mfa_enabled", account_id=account_id)
        return MfaStatus.ENABLED

    async def disable(self, account_id: str, code: str) -> MfaStatus:
        account = await self._accounts.find_by_id(account_id)
        if account is None:
            raise NotFoundError("Account not found")
        if not account.mfa_enabled:
            raise ValidationError("MFA is not enabled")

        if not await self.verify_second_factor(account, code):
            log.warning("mfa_disable_code_rejected", account_id=account_id)
            return MfaStatus.INVALID_CODE

        await self._accounts.clear_mfa(account_id)
        log.warning("mfa_disabled", account_id=account_id)
        return MfaStatus.DISABLED

    async def _load_for_enrollment(self, account_id: str) -> AccountDoc:
        account = await self._accounts.find_by_id(account_id)
        if account is None:
            raise NotFoundError("Account not found")
        if self._settings.mfa_admin_only and account.role != AccountRole.ADMIN:
            raise ForbiddenError("MFA is only available for admin accounts")
        return account
