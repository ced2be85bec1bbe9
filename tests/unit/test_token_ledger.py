"""Unit tests for the emailed single-use token ledger."""

from datetime import timedelta

from schemas.models.token import TOKEN_PURPOSE_EMAIL_VERIFY, TOKEN_PURPOSE_PASSWORD_RESET
from shared.crypto import hash_token

RESET = TOKEN_PURPOSE_PASSWORD_RESET
VERIFY = TOKEN_PURPOSE_EMAIL_VERIFY
HOUR = timedelta(hours=1)


class TestIssue:
    async def test_only_hash_is_stored(self, ledger, token_repo):
        raw = await ledger.issue("jane@example.com", RESET, HOUR)

        assert len(raw) == 64
        [doc] = token_repo.docs
        assert doc.token_hash == hash_token(raw)
        assert raw not in doc.model_dump_json()

    async def test_expiry_from_ttl(self, ledger, token_repo, clock):
        await ledger.issue("jane@example.com", VERIFY, timedelta(hours=24))
        assert token_repo.docs[0].expires_at == clock.now + timedelta(hours=24)

    async def test_second_issue_invalidates_first(self, ledger, token_repo):
        first = await ledger.issue("jane@example.com", RESET, HOUR)
        second = await ledger.issue("jane@example.com", RESET, HOUR)

        assert len(token_repo.docs) == 1
        assert await ledger.consume(first, RESET) is None
        assert await ledger.consume(second, RESET) == "jane@example.com"

    async def test_other_identifiers_untouched(self, ledger, token_repo):
        await ledger.issue("a@example.com", RESET, HOUR)
        await ledger.issue("b@example.com", RESET, HOUR)
        assert len(token_repo.docs) == 2


class TestConsume:
    async def test_single_use(self, ledger):
        raw = await ledger.issue("jane@example.com", RESET, HOUR)

        assert await ledger.consume(raw, RESET) == "jane@example.com"
        assert await ledger.consume(raw, RESET) is None

    async def test_expired_token_rejected(self, ledger, clock):
        raw = await ledger.issue("jane@example.com", RESET, HOUR)
        clock.advance(hours=1, seconds=1)
        assert await ledger.consume(raw, RESET) is None

    async def test_still_valid_just_before_expiry(self, ledger, clock):
        raw = await ledger.issue("jane@example.com", RESET, HOUR)
        clock.advance(minutes=59)
        assert await ledger.consume(raw, RESET) == "jane@example.com"

    async def test_unknown_token_rejected(self, ledger):
        await ledger.issue("jane@example.com", RESET, HOUR)
        assert await ledger.consume("f" * 64, RESET) is None

    async def test_empty_token_rejected(self, ledger):
        assert await ledger.consume("", RESET) is None

    async def test_purpose_must_match(self, ledger):
        raw = await ledger.issue("jane@example.com", VERIFY, HOUR)

        assert await ledger.consume(raw, RESET) is None
        assert await ledger.consume(raw, VERIFY) == "jane@example.com"
