"""
Application configuration via pydantic-settings.

All settings are loaded from environment variables (and .env file).

AUTH_SECRET is the server-wide master secret. The MFA secret codec derives
its encryption key from it, so an empty value is a deployment error and is
refused when the codec is built (see services.secret_codec).
"""

from __future__ import annotations

import ipaddress
from typing import Optional

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    mongodb_uri: str
    db_name: str = "storefront"


class RedisSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Optional; without Redis the rate limiter keeps its counters in process
    redis_uri: Optional[str] = None


class JWTSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    jwt_issuer: str = "bucci-products"
    jwt_audience: str = "bucci-products.storefront"
    session_ttl_seconds: int = 86400
    cookie_secure: bool = True

    # RS256 keys (preferred)
    jwt_private_key: str = ""
    jwt_public_key: str = ""

    # HS256 fallback (used when RS256 keys are absent)
    jwt_secret: str = ""

    @property
    def use_rs256(self) -> bool:
        return bool(self.jwt_private_key and self.jwt_public_key)


class SecuritySettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    auth_secret: str = ""

    # Account lockout
    max_failed_login_attempts: int = 5
    lockout_minutes: int = 30

    # Emailed token lifetimes
    password_reset_ttl_seconds: int = 3600
    email_verification_ttl_seconds: int = 86400

    # MFA
    mfa_issuer: str = "Bucci Products"
    mfa_admin_only: bool = True
    backup_code_count: int = 10

    # Reverse proxies (addresses or CIDR ranges) whose forwarding headers are
    # believed. Empty means the socket peer is always the client.
    trusted_proxies: list[str] = []

    @field_validator("trusted_proxies")
    @classmethod
    def check_trusted_proxies(cls, value: list[str]) -> list[str]:
        for entry in filter(str.strip, value):
            ipaddress.ip_network(entry.strip(), strict=False)  # ValueError on bad entries
        return value


class EmailSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    resend_api_key: str = ""
    email_from: str = "Bucci Products <noreply@bucciproducts.com>"


class LoggingSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    log_level: str = "INFO"
    log_format: str = "console"  # "json" in production


class SentrySettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    sentry_dsn: str = ""
    sentry_send_pii: bool = False
    sentry_traces_sample_rate: float = 0.1


class AppSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Core
    env: str = "development"
    app_url: str = "http://localhost:3000"
    app_name: str = "Bucci Products"

    cors_origins: list[str] = ["http://localhost:3000"]

    # OpenAPI docs URL (None disables the docs UI in production)
    docs_url: Optional[str] = "/docs"

    # Sub-configs (composed via model_validator below)
    db: Optional[DatabaseSettings] = None
    redis: Optional[RedisSettings] = None
    jwt: Optional[JWTSettings] = None
    security: Optional[SecuritySettings] = None
    email: Optional[EmailSettings] = None
    logging: Optional[LoggingSettings] = None
    sentry: Optional[SentrySettings] = None

    @model_validator(mode="after")
    def _populate_sub_configs(self) -> "AppSettings":
        # Populate sub-configs from the same env/dotenv source
        if self.db is None:
            self.db = DatabaseSettings()
        if self.redis is None:
            self.redis = RedisSettings()
        if self.jwt is None:
            self.jwt = JWTSettings()
        if self.security is None:
            self.security = SecuritySettings()
        if self.email is None:
            self.email = EmailSettings()
        if self.logging is None:
            self.logging = LoggingSettings()
        if self.sentry is None:
            self.sentry = SentrySettings()

        # Sessions fall back to the master secret when no JWT key is set
        if not self.jwt.use_rs256 and not self.jwt.jwt_secret:
            self.jwt.jwt_secret = self.security.auth_secret

        return self

    @property
    def is_production(self) -> bool:
        return self.env == "production"
