"""
Backend-specific test fixtures and configuration.

These fixtures extend the global fixtures with the service objects and an
ASGI client whose dependencies point at the mock databases.
"""

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from nakama_auth.config import get_settings
from nakama_auth.dependencies.providers import (
    get_auth_db,
    get_password_hasher,
    get_redis,
)
from nakama_auth.services.admin_service import AdminService
from nakama_auth.services.auth_service import AuthService
from nakama_auth.services.captcha_service import get_hcaptcha_verifier
from nakama_auth.services.notifier import get_notification_dispatcher
from nakama_auth.services.password_reset_service import PasswordResetService
from nakama_auth.services.profile_service import ProfileService
from nakama_auth.services.registration_service import RegistrationService


# =============================================================================
# Service Fixtures
# =============================================================================

@pytest.fixture
def registration_service(store, hcaptcha_verifier, hasher, test_settings):
    return RegistrationService(store, hcaptcha_verifier, hasher, test_settings)


@pytest.fixture
def auth_service(store, session_store, captcha_manager, rate_limiter, hasher):
    return AuthService(store, session_store, captcha_manager, rate_limiter, hasher)


@pytest.fixture
def reset_service(store, notifier, hasher, test_settings):
    return PasswordResetService(store, notifier, hasher, test_settings)


@pytest.fixture
def profile_service(store, session_store, hasher):
    return ProfileService(store, session_store, hasher)


@pytest.fixture
def admin_service(store):
    return AdminService(store)


@pytest_asyncio.fixture
async def challenged_session(session_store, captcha_manager):
    """Anonymous session with the login captcha already issued."""
    session = await session_store.create()
    await captcha_manager.issue_challenge(session)
    return session


# =============================================================================
# App Override Helpers
# =============================================================================

@pytest.fixture
def app_with_mocks(
    mock_auth_db,
    mock_async_redis,
    hasher,
    hcaptcha_verifier,
    notifier,
    test_settings,
):
    """
    FastAPI app with every storage and network collaborator replaced.
    """
    from nakama_auth.main import app

    async def _db():
        return mock_auth_db

    async def _redis():
        return mock_async_redis

    async def _verifier():
        return hcaptcha_verifier

    app.dependency_overrides[get_auth_db] = _db
    app.dependency_overrides[get_redis] = _redis
    app.dependency_overrides[get_password_hasher] = lambda: hasher
    app.dependency_overrides[get_hcaptcha_verifier] = _verifier
    app.dependency_overrides[get_notification_dispatcher] = lambda: notifier
    app.dependency_overrides[get_settings] = lambda: test_settings
    yield app
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def async_client(app_with_mocks):
    """
    Async test client bound to the mocked app.

    Cookies set by the app persist across requests on the same client.
    """
    async with AsyncClient(
        transport=ASGITransport(app=app_with_mocks),
        base_url="http://test",
    ) as ac:
        yield ac


# =============================================================================
# Response Assertion Helpers
# =============================================================================

@pytest.fixture
def assert_error_response():
    """Helper to assert error response structure."""
    def _assert(response, status_code: int, detail_contains: str = None):
        assert response.status_code == status_code
        data = response.json()
        assert "detail" in data
        if detail_contains:
            assert detail_contains.lower() in data["detail"].lower()
    return _assert
