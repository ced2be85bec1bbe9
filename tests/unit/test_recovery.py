"""Unit tests for the password-reset and email-verification flows."""

from datetime import timedelta

import pytest

from schemas.models.token import TOKEN_PURPOSE_EMAIL_VERIFY
from services.outcomes import EmailVerificationStatus, PasswordResetStatus
from services.recovery import RecoveryService
from shared.crypto import verify_password
from tests.fakes import RecordingMailer

NEW_PASSWORD = "Fr3sh!Password"


class TestRequestPasswordReset:
    async def test_known_account_gets_link(self, recovery, accounts, mailer, token_repo):
        accounts.add(first_name="Jane", last_name="Doe")

        assert await recovery.request_password_reset("Jane@Example.com") is None

        [(email, name, raw)] = mailer.password_reset
        assert email == "jane@example.com"
        assert name == "Jane Doe"
        assert len(token_repo.docs) == 1
        assert token_repo.docs[0].token_hash != raw

    async def test_unknown_account_silently_ignored(self, recovery, mailer, token_repo):
        assert await recovery.request_password_reset("nobody@example.com") is None
        assert mailer.password_reset == []
        assert token_repo.docs == []

    async def test_passwordless_account_ignored(self, recovery, accounts, mailer):
        accounts.add(password=None)
        await recovery.request_password_reset("jane@example.com")
        assert mailer.password_reset == []

    async def test_mail_failure_not_surfaced(self, accounts, ledger, gate, security_settings, clock):
        failing = RecordingMailer(succeed=False)
        service = RecoveryService(accounts, ledger, gate, failing, security_settings, clock=clock)
        accounts.add()

        assert await service.request_password_reset("jane@example.com") is None
        assert len(failing.password_reset) == 1


class TestCompletePasswordReset:
    async def test_reset_updates_password_once(self, recovery, accounts, mailer, clock):
        account = accounts.add(failed_login_attempts=3)
        await recovery.request_password_reset("jane@example.com")
        raw = mailer.password_reset[0][2]

        first = await recovery.complete_password_reset(raw, NEW_PASSWORD)
        second = await recovery.complete_password_reset(raw, "An0ther!Password")

        assert first is PasswordResetStatus.SUCCESS
        assert second is PasswordResetStatus.INVALID_OR_EXPIRED_TOKEN
        stored = accounts.get(account.id)
        assert verify_password(NEW_PASSWORD, stored.password_hash)
        assert stored.password_changed_at == clock.now
        assert stored.failed_login_attempts == 0

    async def test_expired_link(self, recovery, accounts, mailer, clock):
        accounts.add()
        await recovery.request_password_reset("jane@example.com")
        clock.advance(hours=1, seconds=1)

        status = await recovery.complete_password_reset(mailer.password_reset[0][2], NEW_PASSWORD)
        assert status is PasswordResetStatus.INVALID_OR_EXPIRED_TOKEN

    async def test_verification_token_cannot_reset_password(self, recovery, accounts, mailer):
        accounts.add(verified=False)
        await recovery.request_email_verification("jane@example.com")
        raw = mailer.verification[0][2]

        status = await recovery.complete_password_reset(raw, NEW_PASSWORD)
        assert status is PasswordResetStatus.INVALID_OR_EXPIRED_TOKEN

    async def test_garbage_token(self, recovery):
        status = await recovery.complete_password_reset("nope", NEW_PASSWORD)
        assert status is PasswordResetStatus.INVALID_OR_EXPIRED_TOKEN


class TestEmailVerification:
    async def test_request_only_for_unverified(self, recovery, accounts, mailer):
        accounts.add(email="new@example.com", verified=False)
        accounts.add(email="old@example.com", verified=True)

        await recovery.request_email_verification("new@example.com")
        await recovery.request_email_verification("old@example.com")
        await recovery.request_email_verification("ghost@example.com")

        assert [sent[0] for sent in mailer.verification] == ["new@example.com"]

    async def test_verify_marks_account(self, recovery, accounts, mailer, clock):
        account = accounts.add(verified=False)
        await recovery.request_email_verification("jane@example.com")

        status = await recovery.complete_email_verification(mailer.verification[0][2])

        assert status is EmailVerificationStatus.SUCCESS
        assert accounts.get(account.id).email_verified == clock.now

    async def test_link_is_single_use(self, recovery, accounts, mailer):
        accounts.add(verified=False)
        await recovery.request_email_verification("jane@example.com")
        raw = mailer.verification[0][2]

        await recovery.complete_email_verification(raw)
        assert (
            await recovery.complete_email_verification(raw)
            is EmailVerificationStatus.INVALID_OR_EXPIRED_TOKEN
        )

    async def test_already_verified(self, recovery, accounts, ledger):
        accounts.add(verified=True)
        raw = await ledger.issue("jane@example.com", TOKEN_PURPOSE_EMAIL_VERIFY, timedelta(hours=1))
        status = await recovery.complete_email_verification(raw)
        assert status is EmailVerificationStatus.ALREADY_VERIFIED

    async def test_resend_invalidates_previous_link(self, recovery, accounts, mailer):
        accounts.add(verified=False)
        await recovery.request_email_verification("jane@example.com")
        await recovery.request_email_verification("jane@example.com")
        first, second = (sent[2] for sent in mailer.verification)

        assert (
            await recovery.complete_email_verification(first)
            is EmailVerificationStatus.INVALID_OR_EXPIRED_TOKEN
        )
        assert (
            await recovery.complete_email_verification(second)
            is EmailVerificationStatus.SUCCESS
        )

    @pytest.mark.parametrize("hours, expected", [(23, True), (25, False)])
    async def test_verification_link_lifetime(self, recovery, accounts, mailer, clock, hours, expected):
        accounts.add(verified=False)
        await recovery.request_email_verification("jane@example.com")
        clock.advance(hours=hours)

        status = await recovery.complete_email_verification(mailer.verification[0][2])
        assert (status is EmailVerificationStatus.SUCCESS) is expected
