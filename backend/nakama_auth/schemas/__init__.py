"""
Request and response schemas for API endpoints.
"""
from nakama_auth.schemas.admin import AdminUserRequest, BanUserRequest
from nakama_auth.schemas.auth import (
    CaptchaResponse,
    LoginRequest,
    LoginResponse,
    MessageResponse,
    RegisterPageResponse,
    RegisterRequest,
    RegisterResponse,
    SessionUser,
)
from nakama_auth.schemas.password import (
    ForgotPasswordRequest,
    ResetLinkResponse,
    ResetPasswordRequest,
)
from nakama_auth.schemas.profile import (
    ChangePasswordRequest,
    UpdateBioRequest,
    UpdateInfoRequest,
)

__all__ = [
    # Admin
    "AdminUserRequest",
    "BanUserRequest",
    # Auth
    "CaptchaResponse",
    "LoginRequest",
    "LoginResponse",
    "MessageResponse",
    "RegisterPageResponse",
    "RegisterRequest",
    "RegisterResponse",
    "SessionUser",
    # Password
    "ForgotPasswordRequest",
    "ResetLinkResponse",
    "ResetPasswordRequest",
    # Profile
    "ChangePasswordRequest",
    "UpdateBioRequest",
    "UpdateInfoRequest",
]
