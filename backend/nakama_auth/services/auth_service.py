"""
Authentication service for login and logout.
"""
import logging
from typing import Optional

from redis.exceptions import RedisError

from nakama_auth.core.errors import StoreError
from nakama_auth.core.rate_limit import LoginRateLimiter
from nakama_auth.core.security import PasswordHasher, utcnow
from nakama_auth.core.session import Session, SessionStore
from nakama_auth.models.account import BanState
from nakama_auth.models.results import LoginResult, LoginStatus
from nakama_auth.services.captcha_service import CaptchaChallengeManager
from nakama_auth.services.credential_store import CredentialStore

logger = logging.getLogger(__name__)

LOGIN_ROUTE = "/login"


class AuthService:
    """Service for authentication operations."""

    def __init__(
        self,
        store: CredentialStore,
        sessions: SessionStore,
        captcha: CaptchaChallengeManager,
        rate_limiter: LoginRateLimiter,
        hasher: PasswordHasher,
    ):
        self.store = store
        self.sessions = sessions
        self.captcha = captcha
        self.rate_limiter = rate_limiter
        self.hasher = hasher

    async def login(
        self,
        username: str,
        password: str,
        captcha_input: Optional[str],
        client_ip: str,
        session: Optional[Session],
    ) -> LoginResult:
        """
        Authenticate a user and establish a logged-in session.

        Each attempt reserves a rate-limit slot for the client IP before
        anything else runs. The slot is handed back on SUCCESS, RATE_LIMITED
        and INTERNAL_ERROR; every other outcome stays counted as a failure,
        including a correct password on a banned account. Unknown usernames
        and wrong passwords produce the same BAD_CREDENTIALS result.

        Args:
            username: Submitted username (exact match)
            password: Submitted password
            captcha_input: Answer to the session captcha phrase
            client_ip: Address the request came from
            session: Current (possibly anonymous) session

        Returns:
            LoginResult; on SUCCESS `session` holds the rotated, logged-in
            session
        """
        try:
            window = await self.rate_limiter.reserve(client_ip, LOGIN_ROUTE)
        except RedisError:
            logger.exception("Rate limiter unavailable during login")
            return LoginResult(status=LoginStatus.INTERNAL_ERROR)

        if window.limited:
            await self._release(client_ip)
            logger.warning(f"Login rate limit hit for {client_ip} ({window.failures - 1} failures)")
            return LoginResult(
                status=LoginStatus.RATE_LIMITED,
                retry_after_minutes=window.retry_after_minutes,
            )

        # From here the reserved slot stays counted unless the attempt
        # succeeds or ends in an internal error.
        if not self.captcha.verify(session, captcha_input):
            return self._fail(client_ip, window.failures, LoginResult(status=LoginStatus.BAD_CAPTCHA))

        try:
            account = await self.store.get_by_username(username)
        except StoreError:
            logger.exception(f"Account lookup failed for login of '{username}'")
            await self._release(client_ip)
            return LoginResult(status=LoginStatus.INTERNAL_ERROR)

        if account is None:
            await self.hasher.verify_dummy(password)
            return self._fail(client_ip, window.failures, LoginResult(status=LoginStatus.BAD_CREDENTIALS))

        if not await self.hasher.verify(password, account.password_hash):
            return self._fail(client_ip, window.failures, LoginResult(status=LoginStatus.BAD_CREDENTIALS))

        ban = account.ban_state(utcnow())
        if ban is not BanState.NONE:
            logger.info(f"Banned user '{account.username}' tried to log in ({ban.value})")
            return self._fail(
                client_ip,
                window.failures,
                LoginResult(
                    status=LoginStatus.BANNED,
                    ban=ban,
                    ban_expiration=account.ban_expiration if ban is BanState.TEMPORARY else None,
                ),
            )

        try:
            if session is None:
                session = await self.sessions.create()
            established = await self.sessions.rotate(
                session,
                loggedin=True,
                user_id=account.id,
                username=account.username,
                email=account.email,
                created_at=account.created_at,
                is_admin=account.is_admin,
            )
        except RedisError:
            logger.exception(f"Could not persist session for '{account.username}'")
            await self._release(client_ip)
            return LoginResult(status=LoginStatus.INTERNAL_ERROR)

        await self._release(client_ip)
        logger.info(f"User '{account.username}' logged in from {client_ip}")
        return LoginResult(status=LoginStatus.SUCCESS, session=established)

    @staticmethod
    def _fail(client_ip: str, failures: int, result: LoginResult) -> LoginResult:
        logger.info(f"Failed login from {client_ip}: {result.status.value} ({failures} in window)")
        return result

    async def _release(self, client_ip: str) -> None:
        try:
            await self.rate_limiter.release(client_ip, LOGIN_ROUTE)
        except RedisError:
            logger.warning(f"Could not release rate-limit slot for {client_ip}")

    async def logout(self, session: Optional[Session]) -> bool:
        """
        Destroy the whole session, not just the logged-in flag.

        Returns:
            False when the session store could not be reached
        """
        if session is None:
            return True
        try:
            await self.sessions.destroy(session)
        except RedisError:
            logger.exception(f"Could not destroy session for '{session.username or 'anonymous'}'")
            return False
        logger.info(f"Session for '{session.username or 'anonymous'}' destroyed")
        return True
