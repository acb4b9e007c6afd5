"""
Server-side sessions stored in Redis.

The browser only holds a signed cookie with the session id; everything else
lives under "session:{sid}" and expires with the session lifetime.
"""
import logging
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, ValidationError
from redis.asyncio import Redis

from nakama_auth.config import Settings
from nakama_auth.core.security import generate_session_id

logger = logging.getLogger(__name__)


class Session(BaseModel):
    """Session state threaded through request handlers."""
    sid: str = Field(..., description="Server-side session id")
    loggedin: bool = False
    user_id: Optional[str] = None
    username: Optional[str] = None
    email: Optional[str] = None
    created_at: Optional[datetime] = Field(None, description="Account creation timestamp")
    is_admin: bool = False
    captcha_phrase: Optional[str] = None

    @property
    def is_authenticated(self) -> bool:
        return self.loggedin and self.user_id is not None


class SessionStore:
    """Create, load, persist, rotate and destroy sessions."""

    KEY_PREFIX = "session:"

    def __init__(self, redis: Redis, settings: Settings):
        self.redis = redis
        self.ttl_seconds = settings.session_ttl_minutes * 60

    def _key(self, sid: str) -> str:
        return f"{self.KEY_PREFIX}{sid}"

    async def create(self) -> Session:
        """Start an anonymous session."""
        session = Session(sid=generate_session_id())
        await self.save(session)
        return session

    async def load(self, sid: str) -> Optional[Session]:
        raw = await self.redis.get(self._key(sid))
        if raw is None:
            return None
        try:
            return Session.model_validate_json(raw)
        except ValidationError:
            logger.warning("Discarding unreadable session record")
            await self.redis.delete(self._key(sid))
            return None

    async def save(self, session: Session) -> None:
        await self.redis.set(
            self._key(session.sid),
            session.model_dump_json(),
            ex=self.ttl_seconds,
        )

    async def rotate(self, session: Session, **changes) -> Session:
        """
        Move session data to a fresh id, applying `changes`.

        The old record is deleted so a pre-login id cannot be reused.
        """
        rotated = session.model_copy(update={**changes, "sid": generate_session_id()})
        await self.save(rotated)
        await self.redis.delete(self._key(session.sid))
        return rotated

    async def destroy(self, session: Session) -> None:
        """Tear down the whole session record."""
        await self.redis.delete(self._key(session.sid))
