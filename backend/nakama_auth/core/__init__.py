"""
Core module - Security, rate limiting, sessions and error types.
"""
from nakama_auth.core.errors import (
    ErrorKind,
    NotificationError,
    StoreError,
    UniquenessConflict,
)
from nakama_auth.core.rate_limit import LoginRateLimiter, RateLimitStatus
from nakama_auth.core.security import (
    PasswordHasher,
    create_session_token,
    decode_session_token,
    generate_reset_token,
    utcnow,
)
from nakama_auth.core.session import Session, SessionStore

__all__ = [
    "ErrorKind",
    "NotificationError",
    "StoreError",
    "UniquenessConflict",
    "LoginRateLimiter",
    "RateLimitStatus",
    "PasswordHasher",
    "create_session_token",
    "decode_session_token",
    "generate_reset_token",
    "utcnow",
    "Session",
    "SessionStore",
]
