"""
Dependency providers wiring settings, storage clients and services.

Tests replace `get_auth_db`, `get_redis`, `get_password_hasher`,
`get_hcaptcha_verifier` and `get_notification_dispatcher` through
`app.dependency_overrides`.
"""
from functools import lru_cache

from fastapi import Depends, Request
from motor.motor_asyncio import AsyncIOMotorDatabase
from redis.asyncio import Redis

from nakama_auth.config import Settings, get_settings
from nakama_auth.core.rate_limit import LoginRateLimiter
from nakama_auth.core.security import PasswordHasher
from nakama_auth.core.session import SessionStore
from nakama_auth.database.connections import get_auth_database, get_redis_client
from nakama_auth.services.admin_service import AdminService
from nakama_auth.services.auth_service import AuthService
from nakama_auth.services.captcha_service import (
    CaptchaChallengeManager,
    HCaptchaVerifier,
    get_hcaptcha_verifier,
)
from nakama_auth.services.credential_store import CredentialStore
from nakama_auth.services.notifier import NotificationDispatcher, get_notification_dispatcher
from nakama_auth.services.password_reset_service import PasswordResetService
from nakama_auth.services.profile_service import ProfileService
from nakama_auth.services.registration_service import RegistrationService


def get_client_ip(request: Request) -> str:
    """Extract client IP from request (Cloudflare header first)."""
    cf_ip = request.headers.get("CF-Connecting-IP")
    if cf_ip:
        return cf_ip.strip()
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


async def get_auth_db() -> AsyncIOMotorDatabase:
    """Dependency to get the auth database."""
    return await get_auth_database()


async def get_redis() -> Redis:
    return await get_redis_client()


@lru_cache
def get_password_hasher() -> PasswordHasher:
    return PasswordHasher(rounds=get_settings().bcrypt_rounds)


def get_credential_store(db: AsyncIOMotorDatabase = Depends(get_auth_db)) -> CredentialStore:
    return CredentialStore(db)


def get_session_store(
    redis: Redis = Depends(get_redis),
    settings: Settings = Depends(get_settings),
) -> SessionStore:
    return SessionStore(redis, settings)


def get_rate_limiter(
    redis: Redis = Depends(get_redis),
    settings: Settings = Depends(get_settings),
) -> LoginRateLimiter:
    return LoginRateLimiter(
        redis,
        limit=settings.login_rate_limit_attempts,
        window_seconds=settings.login_rate_limit_window_seconds,
    )


def get_captcha_manager(
    sessions: SessionStore = Depends(get_session_store),
    settings: Settings = Depends(get_settings),
) -> CaptchaChallengeManager:
    return CaptchaChallengeManager(sessions, settings)


def get_registration_service(
    store: CredentialStore = Depends(get_credential_store),
    verifier: HCaptchaVerifier = Depends(get_hcaptcha_verifier),
    hasher: PasswordHasher = Depends(get_password_hasher),
    settings: Settings = Depends(get_settings),
) -> RegistrationService:
    """Dependency to get RegistrationService instance."""
    return RegistrationService(store, verifier, hasher, settings)


def get_auth_service(
    store: CredentialStore = Depends(get_credential_store),
    sessions: SessionStore = Depends(get_session_store),
    captcha: CaptchaChallengeManager = Depends(get_captcha_manager),
    rate_limiter: LoginRateLimiter = Depends(get_rate_limiter),
    hasher: PasswordHasher = Depends(get_password_hasher),
) -> AuthService:
    """Dependency to get AuthService instance."""
    return AuthService(store, sessions, captcha, rate_limiter, hasher)


def get_password_reset_service(
    store: CredentialStore = Depends(get_credential_store),
    notifier: NotificationDispatcher = Depends(get_notification_dispatcher),
    hasher: PasswordHasher = Depends(get_password_hasher),
    settings: Settings = Depends(get_settings),
) -> PasswordResetService:
    """Dependency to get PasswordResetService instance."""
    return PasswordResetService(store, notifier, hasher, settings)


def get_profile_service(
    store: CredentialStore = Depends(get_credential_store),
    sessions: SessionStore = Depends(get_session_store),
    hasher: PasswordHasher = Depends(get_password_hasher),
) -> ProfileService:
    return ProfileService(store, sessions, hasher)


def get_admin_service(store: CredentialStore = Depends(get_credential_store)) -> AdminService:
    return AdminService(store)
