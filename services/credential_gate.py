"""
Password login with lockout and second-factor branching.

Order of checks for one attempt (each step can end the attempt):

1. account lookup by normalised email; unknown account or no password hash
   -> INVALID_CREDENTIALS
2. email not verified -> EMAIL_UNVERIFIED
3. locked_until in the future -> ACCOUNT_LOCKED, password not compared
4. password compared; a miss bumps failed_login_attempts and, at the
   threshold, locks the account
5. MFA-protected account: no code -> MFA_REQUIRED, bad code ->
   INVALID_CREDENTIALS
6. success: lockout counters cleared, session claims returned

The caller never learns how many attempts remain before lockout.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta
from typing import Callable, Optional

from config import SecuritySettings
from errors import NotFoundError
from repositories.protocol import AccountRepository
from schemas.models.account import AccountDoc, AccountRole
from services.mfa_service import MfaService
from services.outcomes import (
    LoginResult,
    LoginStatus,
    PasswordChangeStatus,
    SessionClaims,
)
from shared.crypto import burn_password_check, hash_password, verify_password
from shared.datetime_utils import as_utc, minutes_until, utcnow
from shared.logging import get_logger
from shared.validators import normalize_email

log = get_logger(__name__)


class CredentialGate:
    def __init__(
        self,
        accounts: AccountRepository,
        mfa: MfaService,
        settings: SecuritySettings,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._accounts = accounts
        self._mfa = mfa
        self._max_attempts = settings.max_failed_login_attempts
        self._lockout = timedelta(minutes=settings.lockout_minutes)
        self._clock = clock

    async def login(
        self, email: str, password: str, mfa_code: Optional[str] = None
    ) -> LoginResult:
        account = await self._accounts.find_by_email(normalize_email(email))

        if account is None or not account.password_hash:
            await asyncio.to_thread(burn_password_check, password)
            log.warning(
                "login_failed",
                reason="invalid_credentials",
                account_exists=account is not None,
            )
            return LoginResult(LoginStatus.INVALID_CREDENTIALS)

        account_id = str(account.id)

        if account.email_verified is None:
            log.warning("login_failed", reason="email_unverified", account_id=account_id)
            return LoginResult(LoginStatus.EMAIL_UNVERIFIED)

        now = self._clock()
        locked_until = as_utc(account.locked_until)
        if locked_until is not None and locked_until > now:
            log.warning("login_failed", reason="account_locked", account_id=account_id)
            return LoginResult(
                LoginStatus.ACCOUNT_LOCKED,
                remaining_minutes=minutes_until(locked_until, now),
            )

        password_ok = await asyncio.to_thread(
            verify_password, password, account.password_hash
        )
        if not password_ok:
            return await self._record_failure(account_id, now)

        if account.mfa_protected:
            if not mfa_code:
                log.info("login_mfa_challenge", account_id=account_id)
                return LoginResult(LoginStatus.MFA_REQUIRED)
            if not await self._mfa.verify_second_factor(account, mfa_code):
                log.warning("login_failed", reason="invalid_mfa_code", account_id=account_id)
                return LoginResult(LoginStatus.INVALID_CREDENTIALS)

        if account.failed_login_attempts > 0 or account.locked_until is not None:
            await self._accounts.reset_lockout(account_id)

        log.info("login_success", account_id=account_id, mfa=account.mfa_protected)
        return LoginResult(
            LoginStatus.SUCCESS,
            claims=self.session_claims(account),
            second_factor=account.mfa_protected,
        )

    async def _record_failure(self, account_id: str, now: datetime) -> LoginResult:
        attempts = await self._accounts.increment_failed_attempts(account_id)
        if attempts >= self._max_attempts:
            await self._accounts.lock_until(account_id, now + self._lockout)
            log.warning(
                "account_locked",
                account_id=account_id,
                attempts=attempts,
                lockout_minutes=int(self._lockout.total_seconds() // 60),
            )
            return LoginResult(
                LoginStatus.ACCOUNT_LOCKED,
                remaining_minutes=int(self._lockout.total_seconds() // 60),
            )

        log.warning("login_failed", reason="invalid_password", account_id=account_id)
        return LoginResult(LoginStatus.INVALID_CREDENTIALS)

    async def set_password(self, account_id: str, new_password: str) -> None:
        """Store a new password hash and stamp password_changed_at.

        Sessions issued before the stamp are rejected by the session check.
        """
        password_hash = await asyncio.to_thread(hash_password, new_password)
        await self._accounts.update_password(account_id, password_hash, self._clock())
        log.info("password_updated", account_id=account_id)

    async def change_password(
        self, account_id: str, current_password: str, new_password: str
    ) -> PasswordChangeStatus:
        account = await self._accounts.find_by_id(account_id)
        if account is None:
            raise NotFoundError("Account not found")
        if not account.password_hash:
            return PasswordChangeStatus.NO_PASSWORD

        if not await asyncio.to_thread(
            verify_password, current_password, account.password_hash
        ):
            log.warning("password_change_rejected", account_id=account_id)
            return PasswordChangeStatus.WRONG_PASSWORD

        await self.set_password(account_id, new_password)
        return PasswordChangeStatus.SUCCESS

    @staticmethod
    def session_claims(account: AccountDoc) -> SessionClaims:
        return SessionClaims(
            account_id=str(account.id),
            email=account.email,
            role=AccountRole(account.role).value,
            password_changed_at=as_utc(account.password_changed_at),
        )
