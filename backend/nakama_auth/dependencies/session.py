"""
Session dependencies and cookie helpers.
"""
import logging
from typing import Optional

from fastapi import Depends, HTTPException, Request, Response, status
from redis.exceptions import RedisError

from nakama_auth.config import Settings, get_settings
from nakama_auth.core.errors import GENERIC_INTERNAL_MESSAGE
from nakama_auth.core.security import create_session_token, decode_session_token
from nakama_auth.core.session import Session, SessionStore
from nakama_auth.dependencies.providers import get_session_store

logger = logging.getLogger(__name__)


def session_unavailable() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=GENERIC_INTERNAL_MESSAGE,
    )


async def get_optional_session(
    request: Request,
    sessions: SessionStore = Depends(get_session_store),
    settings: Settings = Depends(get_settings),
) -> Optional[Session]:
    """
    Session referenced by the request cookie, if any.

    Tampered, expired or unknown cookies resolve to None.
    """
    cookie = request.cookies.get(settings.session_cookie_name)
    if not cookie:
        return None
    sid = decode_session_token(cookie, settings)
    if sid is None:
        return None
    try:
        return await sessions.load(sid)
    except RedisError:
        logger.exception("Session store unavailable while loading session")
        raise session_unavailable()


async def get_or_create_session(
    response: Response,
    session: Optional[Session] = Depends(get_optional_session),
    sessions: SessionStore = Depends(get_session_store),
    settings: Settings = Depends(get_settings),
) -> Session:
    """Existing session, or a new anonymous one with its cookie set."""
    if session is None:
        try:
            session = await sessions.create()
        except RedisError:
            logger.exception("Session store unavailable while creating session")
            raise session_unavailable()
        set_session_cookie(response, session, settings)
    return session


def set_session_cookie(response: Response, session: Session, settings: Settings) -> None:
    response.set_cookie(
        key=settings.session_cookie_name,
        value=create_session_token(session.sid, settings),
        max_age=settings.session_ttl_minutes * 60,
        httponly=True,
        samesite="lax",
        secure=settings.session_cookie_secure,
    )


def clear_session_cookie(response: Response, settings: Settings) -> None:
    response.delete_cookie(key=settings.session_cookie_name)
