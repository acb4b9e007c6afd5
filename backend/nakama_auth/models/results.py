"""
Tagged outcomes returned by the account services.

Each result carries a status enum; callers branch on the status, never on
message text. `kind` places every failure in the shared error taxonomy and
`message` is the user-facing text.
"""
from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel

from nakama_auth.core.errors import GENERIC_INTERNAL_MESSAGE, ErrorKind
from nakama_auth.core.session import Session
from nakama_auth.models.account import BanState

BAN_DATE_FORMAT = "%d/%m/%Y %H:%M:%S"


# ==================== Registration ====================

class RegistrationStatus(str, Enum):
    ALLOWED = "allowed"
    CAPTCHA_MISSING = "captcha_missing"
    CAPTCHA_FAILED = "captcha_failed"
    EMAIL_DOMAIN_NOT_ALLOWED = "email_domain_not_allowed"
    IP_LIMIT_EXCEEDED = "ip_limit_exceeded"
    USERNAME_TAKEN = "username_taken"
    EMAIL_TAKEN = "email_taken"
    INTERNAL_ERROR = "internal_error"


_REGISTRATION_MESSAGES = {
    RegistrationStatus.ALLOWED: "Registration successful.",
    RegistrationStatus.CAPTCHA_MISSING: "Please complete the captcha.",
    RegistrationStatus.CAPTCHA_FAILED: "Captcha verification failed.",
    RegistrationStatus.EMAIL_DOMAIN_NOT_ALLOWED: "This email provider is not allowed.",
    RegistrationStatus.IP_LIMIT_EXCEEDED: "The account limit for this IP address has been reached.",
    RegistrationStatus.USERNAME_TAKEN: "The username is already in use.",
    RegistrationStatus.EMAIL_TAKEN: "The email address is already registered.",
    RegistrationStatus.INTERNAL_ERROR: GENERIC_INTERNAL_MESSAGE,
}

_REGISTRATION_KINDS = {
    RegistrationStatus.CAPTCHA_MISSING: ErrorKind.VALIDATION,
    RegistrationStatus.CAPTCHA_FAILED: ErrorKind.POLICY,
    RegistrationStatus.EMAIL_DOMAIN_NOT_ALLOWED: ErrorKind.POLICY,
    RegistrationStatus.IP_LIMIT_EXCEEDED: ErrorKind.POLICY,
    RegistrationStatus.USERNAME_TAKEN: ErrorKind.POLICY,
    RegistrationStatus.EMAIL_TAKEN: ErrorKind.POLICY,
    RegistrationStatus.INTERNAL_ERROR: ErrorKind.INTERNAL,
}


class RegistrationDecision(BaseModel):
    """Allow (with the new account id) or a rejection reason."""
    status: RegistrationStatus
    user_id: Optional[str] = None

    @property
    def allowed(self) -> bool:
        return self.status is RegistrationStatus.ALLOWED

    @property
    def kind(self) -> Optional[ErrorKind]:
        return _REGISTRATION_KINDS.get(self.status)

    @property
    def message(self) -> str:
        return _REGISTRATION_MESSAGES[self.status]


# ==================== Login ====================

class LoginStatus(str, Enum):
    SUCCESS = "success"
    BAD_CAPTCHA = "bad_captcha"
    BAD_CREDENTIALS = "bad_credentials"
    BANNED = "banned"
    RATE_LIMITED = "rate_limited"
    INTERNAL_ERROR = "internal_error"


_LOGIN_KINDS = {
    LoginStatus.BAD_CAPTCHA: ErrorKind.POLICY,
    LoginStatus.BAD_CREDENTIALS: ErrorKind.AUTHENTICATION,
    LoginStatus.BANNED: ErrorKind.POLICY,
    LoginStatus.RATE_LIMITED: ErrorKind.POLICY,
    LoginStatus.INTERNAL_ERROR: ErrorKind.INTERNAL,
}


class LoginResult(BaseModel):
    """Outcome of a login attempt."""
    status: LoginStatus
    session: Optional[Session] = None
    ban: Optional[BanState] = None
    ban_expiration: Optional[datetime] = None
    retry_after_minutes: Optional[int] = None

    @property
    def succeeded(self) -> bool:
        return self.status is LoginStatus.SUCCESS

    @property
    def kind(self) -> Optional[ErrorKind]:
        return _LOGIN_KINDS.get(self.status)

    @property
    def message(self) -> str:
        if self.status is LoginStatus.SUCCESS:
            return "Login successful."
        if self.status is LoginStatus.BAD_CAPTCHA:
            return "Incorrect captcha."
        if self.status is LoginStatus.BAD_CREDENTIALS:
            return "Incorrect credentials."
        if self.status is LoginStatus.BANNED:
            if self.ban is BanState.TEMPORARY and self.ban_expiration is not None:
                until = self.ban_expiration.strftime(BAN_DATE_FORMAT)
                return f"You have been temporarily banned until {until}."
            return "You have been permanently banned."
        if self.status is LoginStatus.RATE_LIMITED:
            return (
                "Too many login attempts from this IP. Please wait "
                f"{self.retry_after_minutes} minutes before trying again."
            )
        return GENERIC_INTERNAL_MESSAGE


# ==================== Password reset ====================

class ResetRequestStatus(str, Enum):
    ACCEPTED = "accepted"
    NOT_FOUND = "not_found"
    INTERNAL_ERROR = "internal_error"


class ResetRequestResult(BaseModel):
    status: ResetRequestStatus

    @property
    def kind(self) -> Optional[ErrorKind]:
        return {
            ResetRequestStatus.NOT_FOUND: ErrorKind.POLICY,
            ResetRequestStatus.INTERNAL_ERROR: ErrorKind.INTERNAL,
        }.get(self.status)

    @property
    def message(self) -> str:
        return {
            ResetRequestStatus.ACCEPTED: "Recovery email sent.",
            ResetRequestStatus.NOT_FOUND: "The email address is not registered.",
            ResetRequestStatus.INTERNAL_ERROR: "The recovery email could not be sent. Please try again.",
        }[self.status]


class ResetConsumeStatus(str, Enum):
    SUCCESS = "success"
    INVALID_OR_EXPIRED = "invalid_or_expired"
    INTERNAL_ERROR = "internal_error"


class ResetConsumeResult(BaseModel):
    status: ResetConsumeStatus

    @property
    def kind(self) -> Optional[ErrorKind]:
        return {
            ResetConsumeStatus.INVALID_OR_EXPIRED: ErrorKind.AUTHENTICATION,
            ResetConsumeStatus.INTERNAL_ERROR: ErrorKind.INTERNAL,
        }.get(self.status)

    @property
    def message(self) -> str:
        return {
            ResetConsumeStatus.SUCCESS: "Password updated successfully.",
            ResetConsumeStatus.INVALID_OR_EXPIRED: "Invalid or expired token.",
            ResetConsumeStatus.INTERNAL_ERROR: GENERIC_INTERNAL_MESSAGE,
        }[self.status]


# ==================== Profile / re-authentication ====================

class AccountUpdateStatus(str, Enum):
    SUCCESS = "success"
    UNAUTHORIZED = "unauthorized"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"
    MISSING_FIELDS = "missing_fields"
    WRONG_CURRENT_PASSWORD = "wrong_current_password"
    CONFLICT = "conflict"
    INTERNAL_ERROR = "internal_error"


_ACCOUNT_UPDATE_MESSAGES = {
    AccountUpdateStatus.SUCCESS: "Account updated successfully.",
    AccountUpdateStatus.UNAUTHORIZED: "Not authorized.",
    AccountUpdateStatus.FORBIDDEN: "Administrator privileges are required.",
    AccountUpdateStatus.NOT_FOUND: "User not found.",
    AccountUpdateStatus.MISSING_FIELDS: "Username and email are required.",
    AccountUpdateStatus.WRONG_CURRENT_PASSWORD: "The current password is incorrect.",
    AccountUpdateStatus.CONFLICT: "The username or email is already in use.",
    AccountUpdateStatus.INTERNAL_ERROR: GENERIC_INTERNAL_MESSAGE,
}

_ACCOUNT_UPDATE_KINDS = {
    AccountUpdateStatus.UNAUTHORIZED: ErrorKind.AUTHENTICATION,
    AccountUpdateStatus.FORBIDDEN: ErrorKind.POLICY,
    AccountUpdateStatus.NOT_FOUND: ErrorKind.VALIDATION,
    AccountUpdateStatus.MISSING_FIELDS: ErrorKind.VALIDATION,
    AccountUpdateStatus.WRONG_CURRENT_PASSWORD: ErrorKind.AUTHENTICATION,
    AccountUpdateStatus.CONFLICT: ErrorKind.POLICY,
    AccountUpdateStatus.INTERNAL_ERROR: ErrorKind.INTERNAL,
}


class AccountUpdateResult(BaseModel):
    """Outcome of password/profile changes and admin account mutations."""
    status: AccountUpdateStatus
    session: Optional[Session] = None

    @property
    def succeeded(self) -> bool:
        return self.status is AccountUpdateStatus.SUCCESS

    @property
    def kind(self) -> Optional[ErrorKind]:
        return _ACCOUNT_UPDATE_KINDS.get(self.status)

    @property
    def message(self) -> str:
        return _ACCOUNT_UPDATE_MESSAGES[self.status]
