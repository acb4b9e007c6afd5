"""
Global test fixtures for the NakamaStream accounts service.

This module provides shared fixtures for all tests including:
- Mock MongoDB (mongomock-motor) with the production indexes
- Mock Redis (fakeredis)
- Test settings with a cheap bcrypt cost
- A scripted hCaptcha endpoint and a recording notifier
- Account factories
"""

import sys
from pathlib import Path
from typing import Optional
from urllib.parse import parse_qsl

import fakeredis.aioredis
import httpx
import pytest
import pytest_asyncio
from mongomock_motor import AsyncMongoMockClient

# Add backend to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "backend"))

from nakama_auth.config import ResetEmailTemplate, Settings  # noqa: E402
from nakama_auth.core.errors import NotificationError  # noqa: E402
from nakama_auth.core.rate_limit import LoginRateLimiter  # noqa: E402
from nakama_auth.core.security import PasswordHasher, utcnow  # noqa: E402
from nakama_auth.core.session import SessionStore  # noqa: E402
from nakama_auth.database.registry import create_indexes  # noqa: E402
from nakama_auth.services.captcha_service import (  # noqa: E402
    CaptchaChallengeManager,
    HCaptchaVerifier,
)
from nakama_auth.services.credential_store import CredentialStore  # noqa: E402
from testdata import CAPTCHA_WORD, TEST_PASSWORD, VALID_HCAPTCHA_PROOF  # noqa: E402


# =============================================================================
# Settings
# =============================================================================

@pytest.fixture
def test_settings() -> Settings:
    """Settings with a fast bcrypt cost and a single captcha word."""
    return Settings(
        mongo_uri="mongodb://localhost:27017",
        redis_host="localhost",
        jwt_secret_key="test-secret-key",
        bcrypt_rounds=4,
        captcha_words=[CAPTCHA_WORD],
        hcaptcha_verify_url="https://hcaptcha.test/siteverify",
        hcaptcha_secret_key="0xtestsecret",
        reset_password_base_url="https://nakamastream.test",
        reset_password_templates=[
            ResetEmailTemplate(subject="Reset your password", message="Open {link} to continue."),
        ],
    )


# =============================================================================
# MongoDB Fixtures (mongomock-motor)
# =============================================================================

@pytest_asyncio.fixture
async def mock_async_mongo_client():
    """
    Create an async mock MongoDB client using mongomock-motor.
    """
    client = AsyncMongoMockClient()
    yield client
    client.close()


@pytest_asyncio.fixture
async def mock_auth_db(mock_async_mongo_client):
    """Provide mock auth_db database with the real indexes."""
    db = mock_async_mongo_client["auth_db"]
    await create_indexes(db)
    yield db


# =============================================================================
# Redis Fixtures (fakeredis)
# =============================================================================

@pytest_asyncio.fixture
async def mock_async_redis():
    """
    Create an async mock Redis client using fakeredis.
    """
    redis_client = fakeredis.aioredis.FakeRedis(decode_responses=True)
    yield redis_client
    await redis_client.flushall()
    await redis_client.aclose()


@pytest_asyncio.fixture
async def down_redis():
    """
    Redis client whose server is unreachable; every command raises ConnectionError.
    """
    server = fakeredis.FakeServer()
    server.connected = False
    redis_client = fakeredis.aioredis.FakeRedis(server=server, decode_responses=True)
    yield redis_client
    await redis_client.aclose()


# =============================================================================
# Collaborators
# =============================================================================

def hcaptcha_handler(request: httpx.Request) -> httpx.Response:
    """Scripted hCaptcha siteverify: only VALID_HCAPTCHA_PROOF passes."""
    form = dict(parse_qsl(request.content.decode()))
    if form.get("response") == VALID_HCAPTCHA_PROOF and form.get("secret") == "0xtestsecret":
        return httpx.Response(200, json={"success": True})
    return httpx.Response(200, json={"success": False, "error-codes": ["invalid-input-response"]})


@pytest_asyncio.fixture
async def hcaptcha_verifier(test_settings):
    client = httpx.AsyncClient(transport=httpx.MockTransport(hcaptcha_handler))
    verifier = HCaptchaVerifier(test_settings, client=client)
    yield verifier
    await verifier.close()


class RecordingNotifier:
    """Notification dispatcher that keeps sent messages in memory."""

    def __init__(self):
        self.sent: list[dict] = []
        self.fail = False

    async def send(self, to: str, subject: str, body: str) -> None:
        if self.fail:
            raise NotificationError("smtp down")
        self.sent.append({"to": to, "subject": subject, "body": body})


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def hasher(test_settings) -> PasswordHasher:
    return PasswordHasher(rounds=test_settings.bcrypt_rounds)


@pytest.fixture
def store(mock_auth_db) -> CredentialStore:
    return CredentialStore(mock_auth_db)


@pytest.fixture
def session_store(mock_async_redis, test_settings) -> SessionStore:
    return SessionStore(mock_async_redis, test_settings)


@pytest.fixture
def rate_limiter(mock_async_redis, test_settings) -> LoginRateLimiter:
    return LoginRateLimiter(
        mock_async_redis,
        limit=test_settings.login_rate_limit_attempts,
        window_seconds=test_settings.login_rate_limit_window_seconds,
    )


@pytest.fixture
def captcha_manager(session_store, test_settings) -> CaptchaChallengeManager:
    return CaptchaChallengeManager(session_store, test_settings)


# =============================================================================
# Account Fixtures
# =============================================================================

@pytest.fixture
def create_account(store, hasher):
    """
    Factory inserting an account directly into the credential store.

    Usage:
        account_id = await create_account("ana", banned=True)
    """
    async def _create(
        username: str = "ana",
        email: Optional[str] = None,
        password: str = TEST_PASSWORD,
        registration_ip: str = "203.0.113.10",
        **fields,
    ) -> str:
        user_id = await store.insert_account(
            username=username,
            email=email or f"{username}@gmail.com",
            password_hash=hasher.hash_password(password),
            registration_ip=registration_ip,
            created_at=utcnow(),
            is_admin=fields.pop("is_admin", False),
        )
        if fields:
            await store.update_fields(user_id, fields)
        return user_id

    return _create
