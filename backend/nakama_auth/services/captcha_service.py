"""
Human-verification challenges.

Two flavours:
- a local word phrase bound to the session, asked for on login
- hCaptcha proof tokens, verified against the hCaptcha API on registration
"""
import logging
import secrets
from typing import Optional

import httpx
from redis.exceptions import RedisError

from nakama_auth.config import Settings, get_settings
from nakama_auth.core.session import Session, SessionStore

logger = logging.getLogger(__name__)


class CaptchaChallengeManager:
    """Issues and checks the per-session captcha phrase."""

    def __init__(self, session_store: SessionStore, settings: Settings):
        if not settings.captcha_words:
            raise ValueError("captcha_words must not be empty")
        self.sessions = session_store
        self.words = tuple(settings.captcha_words)

    async def issue_challenge(self, session: Session) -> Optional[str]:
        """
        Bind a fresh random phrase to the session, replacing any previous one.

        Returns:
            The phrase to show to the user, or None when the session could
            not be saved
        """
        phrase = secrets.choice(self.words)
        session.captcha_phrase = phrase
        try:
            await self.sessions.save(session)
        except RedisError:
            logger.exception("Could not store captcha phrase in the session")
            return None
        return phrase

    def verify(self, session: Optional[Session], submitted: Optional[str]) -> bool:
        """
        Compare a submitted answer with the phrase bound to the session.

        The phrase is left in place; callers issue a new one when needed.
        """
        expected = session.captcha_phrase if session else None
        if not expected or submitted is None:
            return False
        return secrets.compare_digest(submitted.encode("utf-8"), expected.encode("utf-8"))


class HCaptchaVerifier:
    """
    Async client for the hCaptcha siteverify endpoint.

    Any failure to get a clear `success: true` counts as a failed
    verification.
    """

    def __init__(self, settings: Settings, client: Optional[httpx.AsyncClient] = None):
        self.verify_url = settings.hcaptcha_verify_url
        self.secret = settings.hcaptcha_secret_key
        self.timeout = settings.hcaptcha_timeout_seconds
        self._client = client

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client with connection pooling."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    async def close(self) -> None:
        """Close HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def verify(self, proof: str, remote_ip: Optional[str] = None) -> bool:
        """
        Verify a client-submitted hCaptcha response token.

        Args:
            proof: Value of the `h-captcha-response` form field
            remote_ip: Optional client IP forwarded to hCaptcha

        Returns:
            True only when hCaptcha answered with success
        """
        if not proof:
            return False

        data = {"response": proof, "secret": self.secret}
        if remote_ip:
            data["remoteip"] = remote_ip

        try:
            client = await self._get_client()
            response = await client.post(self.verify_url, data=data)
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPError as e:
            logger.warning(f"hCaptcha verification request failed: {e}")
            return False
        except ValueError as e:
            logger.warning(f"hCaptcha returned an unreadable body: {e}")
            return False

        if not isinstance(payload, dict):
            return False
        if payload.get("success") is not True:
            logger.info(f"hCaptcha rejected proof: {payload.get('error-codes', [])}")
            return False
        return True


# Shared instance
_hcaptcha_verifier: Optional[HCaptchaVerifier] = None


async def get_hcaptcha_verifier() -> HCaptchaVerifier:
    """Get shared HCaptchaVerifier instance."""
    global _hcaptcha_verifier
    if _hcaptcha_verifier is None:
        _hcaptcha_verifier = HCaptchaVerifier(get_settings())
    return _hcaptcha_verifier


async def close_hcaptcha_verifier() -> None:
    global _hcaptcha_verifier
    if _hcaptcha_verifier is not None:
        await _hcaptcha_verifier.close()
        _hcaptcha_verifier = None
