"""
Unit tests for the shared/ utility modules.

Covers:
- shared.validators      (normalize_email, password_policy_violations,
                          is_totp_code_format)
- shared.generators      (generate_secure_token, generate_backup_code)
- shared.datetime_utils  (as_utc, minutes_until)
- shared.ip_utils        (get_client_ip, parse_trusted_proxies)
- shared.crypto          (hash_password, verify_password, hash_token,
                          digests_equal)
- shared.logging         (redact_sensitive_fields, hash_ip)
- shared.limits          (Limits)
"""

from __future__ import annotations

import hashlib
import re
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest

import shared.logging as shared_logging
from shared.crypto import digests_equal, hash_password, hash_token, verify_password
from shared.datetime_utils import as_utc, minutes_until
from shared.generators import generate_backup_code, generate_secure_token
from shared.ip_utils import get_client_ip, parse_trusted_proxies
from shared.limits import Limits
from shared.logging import hash_ip, redact_sensitive_fields
from shared.validators import (
    is_totp_code_format,
    normalize_email,
    password_policy_violations,
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _make_request(headers: dict, client_host: str = "10.0.0.1") -> MagicMock:
    """Minimal mock of a FastAPI Request."""
    req = MagicMock()
    req.headers = headers
    req.client = MagicMock()
    req.client.host = client_host
    return req


# ---------------------------------------------------------------------------
# shared.validators
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("jane@example.com", "jane@example.com"),
        ("  Jane@Example.COM\n", "jane@example.com"),
    ],
    ids=["already_normal", "mixed_case_whitespace"],
)
def test_normalize_email(raw, expected):
    assert normalize_email(raw) == expected


@pytest.mark.parametrize(
    "password, valid",
    [
        ("Sup3r$ecretPass", True),
        ("Aa1!aaaaa", False),  # 9 chars
        ("Aa1!aaaaaa", True),  # exactly 10
        ("nouppercase1!", False),
        ("NOLOWERCASE1!", False),
        ("NoDigitsHere!", False),
        ("NoSpecials123", False),
        ("", False),
        ("A1!" + "a" * 126, False),  # 129 chars
    ],
    ids=[
        "strong",
        "too_short",
        "min_length",
        "no_upper",
        "no_lower",
        "no_digit",
        "no_special",
        "empty",
        "too_long",
    ],
)
def test_password_policy(password, valid):
    assert (password_policy_violations(password) == []) is valid


def test_common_password_rejected():
    # Every rule satisfied by case-folding aside, the list check still applies
    assert "Password is too common. Please choose a stronger password." in (
        password_policy_violations("Password123")
    )


@pytest.mark.parametrize(
    "code, expected",
    [("123456", True), ("000000", True), ("12345", False), ("12345a", False), ("", False)],
    ids=["valid", "zeros", "short", "letter", "empty"],
)
def test_is_totp_code_format(code, expected):
    assert is_totp_code_format(code) is expected


# ---------------------------------------------------------------------------
# shared.generators
# ---------------------------------------------------------------------------


class TestGenerateSecureToken:
    def test_default_is_64_hex_chars(self):
        token = generate_secure_token()
        assert re.fullmatch(r"[0-9a-f]{64}", token)

    def test_custom_length(self):
        assert len(generate_secure_token(16)) == 32

    def test_unique(self):
        assert generate_secure_token() != generate_secure_token()


def test_generate_backup_code_format():
    for _ in range(20):
        assert re.fullmatch(r"[0-9A-F]{4}-[0-9A-F]{4}", generate_backup_code())


# ---------------------------------------------------------------------------
# shared.datetime_utils
# ---------------------------------------------------------------------------


def test_as_utc_naive_assumed_utc():
    naive = datetime(2025, 1, 1, 12, 0)
    assert as_utc(naive) == datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc)


def test_as_utc_none():
    assert as_utc(None) is None


@pytest.mark.parametrize(
    "delta, expected",
    [
        (timedelta(minutes=30), 30),
        (timedelta(minutes=29, seconds=1), 30),
        (timedelta(seconds=5), 1),
        (timedelta(seconds=-5), 1),
    ],
    ids=["exact", "rounds_up", "under_a_minute", "past"],
)
def test_minutes_until(delta, expected):
    now = datetime(2025, 1, 1, tzinfo=timezone.utc)
    assert minutes_until(now + delta, now) == expected


# ---------------------------------------------------------------------------
# shared.ip_utils: get_client_ip
# ---------------------------------------------------------------------------


PROXY = "10.0.0.1"
TRUSTED = ["10.0.0.0/8"]


@pytest.mark.parametrize(
    "headers, expected_ip",
    [
        ({"CF-Connecting-IP": "1.2.3.4", "X-Real-IP": "9.9.9.9"}, "1.2.3.4"),
        ({"X-Forwarded-For": "11.22.33.44, 99.99.99.99"}, "99.99.99.99"),
        ({"X-Forwarded-For": "6.6.6.6, 11.22.33.44, 10.0.0.7"}, "11.22.33.44"),
        ({"X-Real-IP": "55.66.77.88"}, "55.66.77.88"),
        ({}, PROXY),
    ],
    ids=[
        "cloudflare",
        "x_forwarded_for_rightmost_untrusted",
        "x_forwarded_for_skips_trusted_hops",
        "x_real_ip",
        "no_headers",
    ],
)
def test_get_client_ip_behind_trusted_proxy(headers, expected_ip):
    assert get_client_ip(_make_request(headers, PROXY), TRUSTED) == expected_ip


@pytest.mark.parametrize(
    "headers",
    [
        {"CF-Connecting-IP": "1.2.3.4"},
        {"X-Forwarded-For": "203.0.113.9"},
        {"X-Real-IP": "55.66.77.88"},
    ],
    ids=["cloudflare", "x_forwarded_for", "x_real_ip"],
)
def test_get_client_ip_ignores_headers_from_untrusted_peer(headers):
    req = _make_request(headers, "192.168.1.50")
    assert get_client_ip(req) == "192.168.1.50"
    assert get_client_ip(req, TRUSTED) == "192.168.1.50"


def test_get_client_ip_non_ip_peer_is_never_trusted():
    req = _make_request({"X-Forwarded-For": "203.0.113.9"}, "testclient")
    assert get_client_ip(req, TRUSTED) == "testclient"


def test_get_client_ip_all_hops_trusted_returns_first():
    req = _make_request({"X-Forwarded-For": "10.1.1.1, 10.2.2.2"}, PROXY)
    assert get_client_ip(req, TRUSTED) == "10.1.1.1"


def test_get_client_ip_no_client_returns_unknown():
    req = MagicMock()
    req.headers = {"X-Forwarded-For": "203.0.113.9"}
    req.client = None
    assert get_client_ip(req, TRUSTED) == "unknown"


def test_parse_trusted_proxies_accepts_hosts_and_ranges():
    networks = parse_trusted_proxies(["127.0.0.1", " 10.0.0.0/8 ", "", "::1"])
    assert [str(n) for n in networks] == ["127.0.0.1/32", "10.0.0.0/8", "::1/128"]


# ---------------------------------------------------------------------------
# shared.crypto
# ---------------------------------------------------------------------------


class TestHashPassword:
    def test_is_argon2id(self):
        assert hash_password("secret").startswith("$argon2id$")

    def test_unique_salts(self):
        # argon2 produces a new salt each call
        assert hash_password("same") != hash_password("same")


class TestVerifyPassword:
    @pytest.mark.parametrize(
        "candidate, expected",
        [("correct_password", True), ("wrong_password", False)],
        ids=["correct", "wrong"],
    )
    def test_verify(self, candidate, expected):
        h = hash_password("correct_password")
        assert verify_password(candidate, h) is expected

    def test_invalid_hash_returns_false(self):
        assert verify_password("any", "not-a-valid-hash") is False


def test_hash_token_known_value():
    assert hash_token("test") == hashlib.sha256(b"test").hexdigest()


def test_digests_equal():
    assert digests_equal(hash_token("a"), hash_token("a")) is True
    assert digests_equal(hash_token("a"), hash_token("b")) is False


# ---------------------------------------------------------------------------
# shared.logging
# ---------------------------------------------------------------------------


class TestRedaction:
    def test_sensitive_keys_redacted(self):
        event = {
            "event": "login_failed",
            "password": "hunter2",
            "mfa_code": "123456",
            "raw_token": "abc",
            "client_secret": "shh",
            "account_id": "42",
        }
        redacted = redact_sensitive_fields(None, "info", dict(event))

        assert redacted["event"] == "login_failed"
        assert redacted["account_id"] == "42"
        for key in ("password", "mfa_code", "raw_token", "client_secret"):
            assert redacted[key] == "***REDACTED***"


def test_hash_ip_only_in_production(monkeypatch):
    monkeypatch.setattr(shared_logging, "_IS_PRODUCTION", False)
    assert hash_ip("1.2.3.4") == "1.2.3.4"

    monkeypatch.setattr(shared_logging, "_IS_PRODUCTION", True)
    hashed = hash_ip("1.2.3.4")
    assert hashed != "1.2.3.4"
    assert len(hashed) == 16


# ---------------------------------------------------------------------------
# shared.limits
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "policy, max_requests, window_minutes",
    [
        (Limits.LOGIN, 5, 15),
        (Limits.REGISTER, 3, 60),
        (Limits.PASSWORD_RESET_REQUEST, 3, 60),
        (Limits.PASSWORD_RESET_CONFIRM, 5, 60),
    ],
    ids=["login", "register", "forgot_password", "reset_password"],
)
def test_limits(policy, max_requests, window_minutes):
    assert policy.max_requests == max_requests
    assert policy.window_ms == window_minutes * 60 * 1000
