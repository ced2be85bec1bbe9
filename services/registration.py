"""Customer sign-up: create an unverified account and mail the verification link."""

from __future__ import annotations

import asyncio
from datetime import datetime
from typing import Callable

from errors import ValidationError
from repositories.protocol import AccountRepository
from schemas.models.account import AccountDoc, AccountRole
from schemas.models.base import to_object_id
from services.recovery import RecoveryService
from shared.crypto import hash_password
from shared.datetime_utils import utcnow
from shared.logging import get_logger
from shared.validators import normalize_email, password_policy_violations

log = get_logger(__name__)

# Same text whether the address is taken or the insert lost a race.
REGISTRATION_REJECTED_MESSAGE = (
    "Unable to create account. Please try again or use a different email."
)


class RegistrationService:
    def __init__(
        self,
        accounts: AccountRepository,
        recovery: RecoveryService,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._accounts = accounts
        self._recovery = recovery
        self._clock = clock

    async def register(
        self, email: str, password: str, first_name: str, last_name: str
    ) -> AccountDoc:
        violations = password_policy_violations(password)
        if violations:
            raise ValidationError(violations[0], field="password")

        identifier = normalize_email(email)
        if await self._accounts.find_by_email(identifier) is not None:
            log.info("registration_rejected", reason="email_taken")
            raise ValidationError(REGISTRATION_REJECTED_MESSAGE)

        now = self._clock()
        account = AccountDoc(
            email=identifier,
            password_hash=await asyncio.to_thread(hash_password, password),
            role=AccountRole.CUSTOMER,
            first_name=first_name.strip(),
            last_name=last_name.strip(),
            email_verified=None,
            created_at=now,
            updated_at=now,
        )
        account_id = await self._accounts.create(account)
        if account_id is None:
            log.info("registration_rejected", reason="duplicate_insert")
            raise ValidationError(REGISTRATION_REJECTED_MESSAGE)

        account = account.model_copy(update={"id": to_object_id(account_id)})
        log.info("account_registered", account_id=account_id)

        # The account exists either way; a failed send is retried via resend.
        await self._recovery.send_verification(account.email, account.display_name)
        return account
