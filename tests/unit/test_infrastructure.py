"""Unit tests for the infrastructure layer: HTTP client, mail provider, Redis factory."""

from unittest.mock import AsyncMock, MagicMock
from urllib.parse import parse_qs, urlparse

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from config import EmailSettings
from infrastructure.email.resend import ResendMailProvider
from infrastructure.http_client import HttpClient
from infrastructure.redis_client import create_redis_client


# ── HttpClient ────────────────────────────────────────────────────────────────


class TestHttpClient:
    async def test_post_delegates_to_httpx(self, mocker):
        client = HttpClient()
        fake_resp = MagicMock(status_code=200)
        mocker.patch.object(client._client, "post", return_value=fake_resp)
        resp = await client.post("http://example.com")
        assert resp.status_code == 200
        await client.aclose()

    async def test_post_propagates_exception(self, mocker):
        client = HttpClient()
        mocker.patch.object(client._client, "post", side_effect=Exception("timeout"))
        with pytest.raises(Exception, match="timeout"):
            await client.post("http://example.com")
        await client.aclose()

    async def test_context_manager(self):
        async with HttpClient() as client:
            assert client is not None


# ── ResendMailProvider ────────────────────────────────────────────────────────


class TestResendMailProvider:
    def _make(self, api_key="re_test_key"):
        settings = EmailSettings(
            resend_api_key=api_key,
            email_from="Bucci Products <noreply@bucciproducts.com>",
        )
        http = MagicMock()
        provider = ResendMailProvider(
            settings=settings, http_client=http, app_url="https://shop.example/"
        )
        return provider, http

    async def test_password_reset_posts_link(self):
        provider, http = self._make()
        http.post = AsyncMock(return_value=MagicMock(status_code=200))

        result = await provider.send_password_reset_email("u@example.com", "Ada", "abc123")

        assert result is True
        url = http.post.await_args.args[0]
        kwargs = http.post.await_args.kwargs
        assert url == "https://api.resend.com/emails"
        assert kwargs["headers"]["Authorization"] == "Bearer re_test_key"
        payload = kwargs["json"]
        assert payload["to"] == ["u@example.com"]
        assert payload["from"] == "Bucci Products <noreply@bucciproducts.com>"
        assert "https://shop.example/auth/reset-password?token=abc123" in payload["html"]
        assert "https://shop.example/auth/reset-password?token=abc123" in payload["text"]
        assert "Ada" in payload["html"]

    async def test_verification_link(self):
        provider, http = self._make()
        http.post = AsyncMock(return_value=MagicMock(status_code=200))

        await provider.send_verification_email("u@example.com", None, "tok")

        html = http.post.await_args.kwargs["json"]["html"]
        start = html.index("https://shop.example/auth/verify-email")
        link = html[start : html.index('"', start)]
        assert parse_qs(urlparse(link).query) == {"token": ["tok"]}

    async def test_user_name_is_escaped(self):
        provider, http = self._make()
        http.post = AsyncMock(return_value=MagicMock(status_code=200))

        await provider.send_verification_email("u@example.com", "<script>", "tok")

        html = http.post.await_args.kwargs["json"]["html"]
        assert "<script>" not in html
        assert "&lt;script&gt;" in html

    async def test_returns_false_when_key_empty(self):
        provider, http = self._make(api_key="")
        http.post = AsyncMock()
        assert await provider.send_verification_email("u@e.com", None, "tok") is False
        http.post.assert_not_awaited()

    async def test_returns_false_on_non_2xx(self):
        provider, http = self._make()
        http.post = AsyncMock(return_value=MagicMock(status_code=422, text="Unprocessable"))
        assert await provider.send_password_reset_email("u@e.com", None, "tok") is False

    async def test_returns_false_on_exception(self):
        provider, http = self._make()
        http.post = AsyncMock(side_effect=Exception("network down"))
        assert await provider.send_password_reset_email("u@e.com", None, "tok") is False


# ── create_redis_client ───────────────────────────────────────────────────────


class TestCreateRedisClient:
    async def test_returns_client_when_ping_succeeds(self, mocker):
        fake = MagicMock()
        fake.ping = AsyncMock(return_value=True)
        mocker.patch("infrastructure.redis_client.aioredis.from_url", return_value=fake)

        assert await create_redis_client("redis://localhost:6379") is fake

    async def test_returns_none_when_unreachable(self, mocker):
        fake = MagicMock()
        fake.ping = AsyncMock(side_effect=RedisConnectionError("refused"))
        fake.aclose = AsyncMock()
        mocker.patch("infrastructure.redis_client.aioredis.from_url", return_value=fake)

        assert await create_redis_client("redis://localhost:6379") is None
        fake.aclose.assert_awaited_once()
