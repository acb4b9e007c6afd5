"""
Pydantic models for database documents and service outcomes.
"""
from nakama_auth.models.account import Account, BanState
from nakama_auth.models.password_reset import PasswordResetToken
from nakama_auth.models.results import (
    AccountUpdateResult,
    AccountUpdateStatus,
    LoginResult,
    LoginStatus,
    RegistrationDecision,
    RegistrationStatus,
    ResetConsumeResult,
    ResetConsumeStatus,
    ResetRequestResult,
    ResetRequestStatus,
)

__all__ = [
    "Account",
    "BanState",
    "PasswordResetToken",
    "AccountUpdateResult",
    "AccountUpdateStatus",
    "LoginResult",
    "LoginStatus",
    "RegistrationDecision",
    "RegistrationStatus",
    "ResetConsumeResult",
    "ResetConsumeStatus",
    "ResetRequestResult",
    "ResetRequestStatus",
]
