"""
End-to-end tests for the HTTP surface.

Each test drives the FastAPI app through an httpx AsyncClient; MongoDB,
Redis, hCaptcha and mail delivery are mocked by the backend conftest.
"""

from urllib.parse import parse_qs, urlparse

import pytest

from nakama_auth.core.errors import GENERIC_INTERNAL_MESSAGE
from nakama_auth.core.security import create_session_token
from nakama_auth.dependencies import get_redis

from testdata import CAPTCHA_WORD, TEST_PASSWORD, VALID_HCAPTCHA_PROOF

NEW_PASSWORD = "BrandNewPassword456!"


def registration(username="ana", email=None, proof=VALID_HCAPTCHA_PROOF):
    body = {
        "username": username,
        "email": email or f"{username}@gmail.com",
        "password": TEST_PASSWORD,
    }
    if proof is not None:
        body["h-captcha-response"] = proof
    return body


async def login(client, username="ana", password=TEST_PASSWORD, ip="192.0.2.1"):
    captcha = await client.get("/login")
    assert captcha.status_code == 200
    return await client.post(
        "/login",
        json={
            "username": username,
            "password": password,
            "captchaInput": captcha.json()["captcha_phrase"],
        },
        headers={"X-Forwarded-For": ip},
    )


# =============================================================================
# Registration
# =============================================================================

class TestRegisterEndpoint:

    @pytest.mark.asyncio
    async def test_register_page_exposes_site_key(self, async_client):
        response = await async_client.get("/register")

        assert response.status_code == 200
        assert "hcaptcha_site_key" in response.json()

    @pytest.mark.asyncio
    async def test_register_success(self, async_client):
        response = await async_client.post("/register", json=registration())

        assert response.status_code == 201
        data = response.json()
        assert data["user_id"]
        assert data["message"] == "Registration successful."

    @pytest.mark.asyncio
    async def test_register_missing_captcha(self, async_client, assert_error_response):
        response = await async_client.post("/register", json=registration(proof=None))

        assert_error_response(response, 400, "captcha")

    @pytest.mark.asyncio
    async def test_register_disallowed_domain(self, async_client, assert_error_response):
        response = await async_client.post("/register", json=registration(email="ana@protonmail.com"))

        assert_error_response(response, 400, "not allowed")

    @pytest.mark.asyncio
    async def test_register_duplicate_username(self, async_client, assert_error_response):
        await async_client.post("/register", json=registration())

        response = await async_client.post("/register", json=registration(email="other@gmail.com"))

        assert_error_response(response, 409, "username")

    @pytest.mark.asyncio
    async def test_register_ip_limit(self, async_client, assert_error_response):
        headers = {"X-Forwarded-For": "203.0.113.99"}
        for name in ("ana", "ben", "cai"):
            ok = await async_client.post("/register", json=registration(name), headers=headers)
            assert ok.status_code == 201

        response = await async_client.post("/register", json=registration("dee"), headers=headers)

        assert_error_response(response, 403, "limit")

    @pytest.mark.asyncio
    async def test_register_empty_password_rejected(self, async_client):
        body = registration()
        body["password"] = ""

        response = await async_client.post("/register", json=body)

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_register_accepts_short_password(self, async_client):
        """No length policy beyond a non-empty password."""
        body = registration()
        body["password"] = "abc"

        response = await async_client.post("/register", json=body)

        assert response.status_code == 201


# =============================================================================
# Login / Logout
# =============================================================================

class TestLoginEndpoint:

    @pytest.mark.asyncio
    async def test_login_sets_cookie_and_me_works(self, async_client, test_settings):
        await async_client.post("/register", json=registration())

        response = await login(async_client)

        assert response.status_code == 200
        user = response.json()["user"]
        assert user["username"] == "ana"
        assert user["email"] == "ana@gmail.com"
        assert user["is_admin"] is False
        assert test_settings.session_cookie_name in response.cookies

        me = await async_client.get("/me")
        assert me.status_code == 200
        assert me.json()["username"] == "ana"

    @pytest.mark.asyncio
    async def test_new_captcha_keeps_session(self, async_client, test_settings):
        first = await async_client.get("/login")
        cookie = first.cookies[test_settings.session_cookie_name]

        second = await async_client.get("/api/auth/new-captcha")

        assert second.status_code == 200
        assert second.json() == {"captcha_phrase": CAPTCHA_WORD}
        assert test_settings.session_cookie_name not in second.cookies
        assert async_client.cookies[test_settings.session_cookie_name] == cookie

    @pytest.mark.asyncio
    async def test_bad_captcha(self, async_client, assert_error_response):
        await async_client.post("/register", json=registration())
        await async_client.get("/login")

        response = await async_client.post(
            "/login",
            json={"username": "ana", "password": TEST_PASSWORD, "captchaInput": "wrong"},
        )

        assert_error_response(response, 400, "Incorrect captcha")

    @pytest.mark.asyncio
    async def test_bad_credentials(self, async_client, assert_error_response):
        response = await login(async_client, username="ghost")

        assert_error_response(response, 401, "Incorrect credentials")

    @pytest.mark.asyncio
    async def test_rate_limited_after_five_failures(self, async_client, assert_error_response):
        await async_client.post("/register", json=registration())
        for _ in range(5):
            failed = await login(async_client, password="WrongPassword!", ip="192.0.2.77")
            assert failed.status_code == 401

        response = await login(async_client, ip="192.0.2.77")

        assert_error_response(response, 429, "Too many login attempts")
        assert response.headers["Retry-After"] == "900"
        assert (await login(async_client, ip="192.0.2.78")).status_code == 200

    @pytest.mark.asyncio
    async def test_banned_user(self, async_client, store, assert_error_response):
        created = await async_client.post("/register", json=registration())
        await store.set_ban(created.json()["user_id"], True)

        response = await login(async_client)

        assert_error_response(response, 403, "permanently banned")

    @pytest.mark.asyncio
    async def test_logout_destroys_session(self, async_client):
        await async_client.post("/register", json=registration())
        await login(async_client)

        response = await async_client.get("/logout")

        assert response.status_code == 200
        assert (await async_client.get("/me")).status_code == 401

    @pytest.mark.asyncio
    async def test_me_requires_session(self, async_client, assert_error_response):
        response = await async_client.get("/me")

        assert_error_response(response, 401, "Not authorized")


class TestSessionStoreUnavailable:
    """Requests fail with a generic 500 when Redis cannot be reached."""

    @pytest.fixture
    def redis_down(self, app_with_mocks, down_redis):
        async def _redis():
            return down_redis

        app_with_mocks.dependency_overrides[get_redis] = _redis

    @pytest.mark.asyncio
    async def test_login_page(self, async_client, redis_down):
        response = await async_client.get("/login")

        assert response.status_code == 500
        assert response.json()["detail"] == GENERIC_INTERNAL_MESSAGE

    @pytest.mark.asyncio
    async def test_cookie_lookup(self, async_client, redis_down, test_settings):
        async_client.cookies.set(
            test_settings.session_cookie_name,
            create_session_token("0123456789abcdef", test_settings),
        )

        for path in ("/me", "/logout", "/api/auth/new-captcha"):
            response = await async_client.get(path)
            assert response.status_code == 500
            assert response.json()["detail"] == GENERIC_INTERNAL_MESSAGE


# =============================================================================
# Password recovery
# =============================================================================

class TestPasswordRecovery:

    @pytest.mark.asyncio
    async def test_full_recovery_flow(self, async_client, notifier):
        """Register, request a reset, use the link, log in with the new password."""
        await async_client.post("/register", json=registration())

        forgot = await async_client.post("/password/forgot", json={"email": "ana@gmail.com"})
        assert forgot.status_code == 200
        assert forgot.json()["message"] == "Recovery email sent."

        url = next(w for w in notifier.sent[-1]["body"].split() if w.startswith("https://"))
        query = parse_qs(urlparse(url).query)
        token, user_id = query["token"][0], query["id"][0]

        page = await async_client.get("/reset-password", params={"token": token, "id": user_id})
        assert page.status_code == 200
        assert page.json()["valid"] is True

        reset = await async_client.post(
            "/password/reset",
            json={"token": token, "userId": user_id, "newPassword": NEW_PASSWORD},
        )
        assert reset.status_code == 200

        reused = await async_client.post(
            "/password/reset",
            json={"token": token, "userId": user_id, "newPassword": "YetAnother789!"},
        )
        assert reused.status_code == 400
        assert reused.json()["detail"] == "Invalid or expired token."

        assert (await login(async_client, password=TEST_PASSWORD)).status_code == 401
        assert (await login(async_client, password=NEW_PASSWORD)).status_code == 200

    @pytest.mark.asyncio
    async def test_forgot_unknown_email(self, async_client, assert_error_response):
        response = await async_client.post("/password/forgot", json={"email": "nobody@gmail.com"})

        assert_error_response(response, 404, "not registered")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("params", [{}, {"token": "abc"}, {"id": "507f1f77bcf86cd799439011"}])
    async def test_reset_page_missing_parameters(self, async_client, params, store, monkeypatch):
        async def unexpected(*args, **kwargs):
            raise AssertionError("store consulted without parameters")

        monkeypatch.setattr(type(store), "find_valid_reset_token", unexpected)

        response = await async_client.get("/reset-password", params=params)

        assert response.status_code == 400
        assert response.json()["detail"] == "Missing parameters: token and id are required."

    @pytest.mark.asyncio
    async def test_reset_page_invalid_token(self, async_client, assert_error_response):
        response = await async_client.get(
            "/reset-password",
            params={"token": "00" * 32, "id": "507f1f77bcf86cd799439011"},
        )

        assert_error_response(response, 400, "Invalid or expired token")


# =============================================================================
# Profile and admin
# =============================================================================

class TestProfileEndpoints:

    @pytest.mark.asyncio
    async def test_update_password_requires_login(self, async_client, assert_error_response):
        response = await async_client.post(
            "/profile/update-password",
            json={"currentPassword": TEST_PASSWORD, "newPassword": NEW_PASSWORD},
        )

        assert_error_response(response, 401, "Not authorized")

    @pytest.mark.asyncio
    async def test_update_password_wrong_current(self, async_client, assert_error_response):
        await async_client.post("/register", json=registration())
        await login(async_client)

        response = await async_client.post(
            "/profile/update-password",
            json={"currentPassword": "WrongPassword!", "newPassword": NEW_PASSWORD},
        )

        assert_error_response(response, 400, "current password")

    @pytest.mark.asyncio
    async def test_update_info_refreshes_session(self, async_client):
        await async_client.post("/register", json=registration())
        await login(async_client)

        response = await async_client.post(
            "/profile/update-info",
            json={"newUsername": "ana2", "email": "ana2@gmail.com", "bio": "hi"},
        )

        assert response.status_code == 200
        assert (await async_client.get("/me")).json()["username"] == "ana2"


class TestAdminEndpoints:

    @pytest.mark.asyncio
    async def test_non_admin_cannot_ban(self, async_client, assert_error_response):
        target = await async_client.post("/register", json=registration("ben"))
        await async_client.post("/register", json=registration())
        await login(async_client)

        response = await async_client.post("/admin/ban-user", json={"userId": target.json()["user_id"]})

        assert_error_response(response, 403, "Administrator")

    @pytest.mark.asyncio
    async def test_admin_bans_user(self, async_client, store):
        target = await async_client.post("/register", json=registration("ben"))
        admin = await async_client.post("/register", json=registration("root"))
        await store.set_admin(admin.json()["user_id"], True)
        await login(async_client, username="root")

        response = await async_client.post(
            "/admin/ban-user",
            json={"userId": target.json()["user_id"], "banExpiration": "2099-01-01T00:00:00Z"},
        )

        assert response.status_code == 200
        account = await store.get_by_id(target.json()["user_id"])
        assert account.banned is True
        assert account.ban_expiration.year == 2099


# =============================================================================
# Health
# =============================================================================

class TestHealth:

    @pytest.mark.asyncio
    async def test_health(self, async_client):
        response = await async_client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}

    @pytest.mark.asyncio
    async def test_readiness_reports_checks(self, async_client):
        response = await async_client.get("/health/ready")

        assert response.status_code == 200
        checks = response.json()["checks"]
        assert checks["api"] == "healthy"
        assert checks["redis"] == "healthy"
        assert "mongodb" in checks
