"""
FastAPI application factory.
create_app() is the single entry point for building the app.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import sentry_sdk
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from pymongo.asynchronous.mongo_client import AsyncMongoClient

from config import AppSettings
from errors import register_error_handlers
from infrastructure.email.resend import ResendMailProvider
from infrastructure.http_client import HttpClient
from infrastructure.ratelimit.storage import build_rate_limit_storage
from infrastructure.redis_client import create_redis_client
from repositories.account_repository import ACCOUNTS_COLLECTION, MongoAccountRepository
from repositories.indexes import ensure_indexes
from repositories.token_repository import (
    TOKENS_COLLECTION,
    MongoVerificationTokenRepository,
)
from routes.auth_routes import router as auth_router
from routes.health_routes import router as health_router
from routes.mfa_routes import router as mfa_router
from services.backup_codes import BackupCodeVault
from services.credential_gate import CredentialGate
from services.mfa_service import MfaService
from services.rate_limiter import RateLimiter
from services.recovery import RecoveryService
from services.registration import RegistrationService
from services.secret_codec import SecretCodec
from services.sessions import SessionTokenService
from services.token_ledger import TokenLedger
from services.totp import TotpEngine
from shared.logging import get_logger, setup_logging

log = get_logger(__name__)


def create_app(settings: Optional[AppSettings] = None) -> FastAPI:
    """Create and return a fully configured FastAPI application."""
    if settings is None:
        settings = AppSettings()

    setup_logging(
        settings.logging.log_level,
        settings.logging.log_format,
        production=settings.is_production,
    )

    # Initialise Sentry before anything else so it captures startup errors
    if settings.sentry.sentry_dsn:
        sentry_sdk.init(
            dsn=settings.sentry.sentry_dsn,
            send_default_pii=settings.sentry.sentry_send_pii,
            traces_sample_rate=settings.sentry.sentry_traces_sample_rate,
            environment=settings.env,
        )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        # ── Startup ──────────────────────────────────────────────────────────
        security = settings.security

        # Refuse to boot without the master secret rather than fail at first MFA use
        codec = SecretCodec(security.auth_secret)
        sessions = SessionTokenService(settings.jwt)

        mongo_client: AsyncMongoClient = AsyncMongoClient(
            settings.db.mongodb_uri, tz_aware=True
        )
        db = mongo_client[settings.db.db_name]
        app.state.mongo_client = mongo_client
        app.state.db = db
        app.state.settings = settings
        await ensure_indexes(db)

        # Redis is optional; without it the rate limiter counts in process
        redis_client = None
        if settings.redis.redis_uri:
            redis_client = await create_redis_client(settings.redis.redis_uri)
        app.state.redis = redis_client
        limiter_storage = build_rate_limit_storage(
            settings.redis.redis_uri if redis_client is not None else None
        )
        log.info("rate_limiter_ready", backend=type(limiter_storage).__name__)

        http_client = HttpClient(timeout=10.0)
        mailer = ResendMailProvider(
            settings.email,
            http_client,
            app_url=settings.app_url,
            app_name=settings.app_name,
            reset_ttl_minutes=security.password_reset_ttl_seconds // 60,
            verify_ttl_hours=security.email_verification_ttl_seconds // 3600,
        )

        accounts = MongoAccountRepository(db[ACCOUNTS_COLLECTION])
        ledger = TokenLedger(MongoVerificationTokenRepository(db[TOKENS_COLLECTION]))
        mfa = MfaService(
            accounts,
            TotpEngine(security.mfa_issuer),
            codec,
            BackupCodeVault(),
            security,
        )
        gate = CredentialGate(accounts, mfa, security)
        recovery = RecoveryService(accounts, ledger, gate, mailer, security)

        app.state.account_repo = accounts
        app.state.session_service = sessions
        app.state.rate_limiter = RateLimiter(limiter_storage)
        app.state.mfa_service = mfa
        app.state.credential_gate = gate
        app.state.recovery_service = recovery
        app.state.registration_service = RegistrationService(accounts, recovery)

        yield

        # ── Shutdown ─────────────────────────────────────────────────────────
        await http_client.aclose()
        await mongo_client.close()
        if redis_client is not None:
            await redis_client.aclose()

    app = FastAPI(
        title=settings.app_name,
        version="1.0.0",
        docs_url=settings.docs_url,
        redoc_url=None,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_error_handlers(app)
    app.include_router(health_router)
    app.include_router(auth_router)
    app.include_router(mfa_router)

    return app
