"""Shared fixtures wiring the services to the in-memory fakes."""

import pytest

from config import SecuritySettings
from services.backup_codes import BackupCodeVault
from services.credential_gate import CredentialGate
from services.mfa_service import MfaService
from services.recovery import RecoveryService
from services.registration import RegistrationService
from services.secret_codec import SecretCodec
from services.token_ledger import TokenLedger
from services.totp import TotpEngine
from tests.fakes import (
    TEST_MASTER_SECRET,
    FakeAccountRepository,
    FakeTokenRepository,
    FrozenClock,
    RecordingMailer,
)


@pytest.fixture
def clock():
    return FrozenClock()


@pytest.fixture
def accounts():
    return FakeAccountRepository()


@pytest.fixture
def token_repo():
    return FakeTokenRepository()


@pytest.fixture
def mailer():
    return RecordingMailer()


@pytest.fixture
def security_settings():
    return SecuritySettings(auth_secret=TEST_MASTER_SECRET)


@pytest.fixture
def codec():
    return SecretCodec(TEST_MASTER_SECRET)


@pytest.fixture
def totp():
    return TotpEngine("Bucci Products")


@pytest.fixture
def mfa_service(accounts, totp, codec, security_settings):
    return MfaService(accounts, totp, codec, BackupCodeVault(), security_settings)


@pytest.fixture
def gate(accounts, mfa_service, security_settings, clock):
    return CredentialGate(accounts, mfa_service, security_settings, clock=clock)


@pytest.fixture
def ledger(token_repo, clock):
    return TokenLedger(token_repo, clock=clock)


@pytest.fixture
def recovery(accounts, ledger, gate, mailer, security_settings, clock):
    return RecoveryService(accounts, ledger, gate, mailer, security_settings, clock=clock)


@pytest.fixture
def registration(accounts, recovery, clock):
    return RegistrationService(accounts, recovery, clock=clock)
