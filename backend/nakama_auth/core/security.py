"""
Security utilities for password hashing, session cookies and reset tokens.
"""
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

from anyio import to_thread
from jose import JWTError, jwt
from passlib.context import CryptContext

from nakama_auth.config import Settings

RESET_TOKEN_BYTES = 32


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


class PasswordHasher:
    """
    Bcrypt password hashing.

    bcrypt is CPU-bound on purpose, so the async methods run it in a worker
    thread and keep the event loop free for other requests.
    """

    def __init__(self, rounds: int = 10):
        self.rounds = rounds
        self._context = CryptContext(
            schemes=["bcrypt"],
            deprecated="auto",
            bcrypt__rounds=rounds,
        )
        self._dummy_hash: Optional[str] = None

    def hash_password(self, plain_password: str) -> str:
        """
        Hash a plain password using bcrypt.

        Args:
            plain_password: The plain text password to hash

        Returns:
            Hashed password string
        """
        return self._context.hash(plain_password)

    def verify_password(self, plain_password: str, hashed_password: str) -> bool:
        """
        Verify a plain password against a hashed password.

        Malformed hashes verify as False instead of raising.
        """
        try:
            return self._context.verify(plain_password, hashed_password)
        except (ValueError, TypeError):
            return False

    async def hash(self, plain_password: str) -> str:
        return await to_thread.run_sync(self.hash_password, plain_password)

    async def verify(self, plain_password: str, hashed_password: str) -> bool:
        return await to_thread.run_sync(self.verify_password, plain_password, hashed_password)

    async def verify_dummy(self, plain_password: str) -> bool:
        """
        Burn one bcrypt verification for a user that does not exist.

        Keeps unknown-username and wrong-password failures in the same
        timing category. Always returns False.
        """
        if self._dummy_hash is None:
            self._dummy_hash = await self.hash(secrets.token_urlsafe(16))
        await self.verify(plain_password, self._dummy_hash)
        return False


def generate_session_id() -> str:
    return secrets.token_urlsafe(32)


def generate_reset_token() -> str:
    """256-bit random token, hex encoded."""
    return secrets.token_hex(RESET_TOKEN_BYTES)


def create_session_token(
    session_id: str,
    settings: Settings,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """
    Create the signed cookie value for a session.

    Args:
        session_id: Server-side session identifier
        settings: Application settings (secret, algorithm, lifetime)
        expires_delta: Optional custom expiration time

    Returns:
        Encoded JWT token string
    """
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.session_ttl_minutes)

    now = utcnow()
    payload = {
        "sub": session_id,
        "exp": now + expires_delta,
        "iat": now,
    }

    return jwt.encode(
        payload,
        settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm,
    )


def decode_session_token(token: str, settings: Settings) -> Optional[str]:
    """
    Decode a session cookie and return the session id.

    Returns None for tampered, expired or malformed cookies.
    """
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
        )
    except JWTError:
        return None

    session_id = payload.get("sub")
    if not isinstance(session_id, str) or not session_id:
        return None
    return session_id
