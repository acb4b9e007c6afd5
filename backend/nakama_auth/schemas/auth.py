"""
Registration, login and captcha request/response schemas.
"""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class RegisterPageResponse(BaseModel):
    """Data needed to render the registration form."""
    hcaptcha_site_key: str = Field(..., description="Public hCaptcha site key")


class RegisterRequest(BaseModel):
    """Registration request body."""
    model_config = ConfigDict(populate_by_name=True)

    username: str = Field(..., min_length=1, max_length=50, description="Unique username")
    email: EmailStr = Field(..., description="User email address")
    password: str = Field(
        ...,
        min_length=1,
        description="User password"
    )
    captcha_proof: Optional[str] = Field(
        None,
        alias="h-captcha-response",
        description="hCaptcha response token",
    )


class RegisterResponse(BaseModel):
    """Registration response."""
    success: bool = True
    user_id: str = Field(..., description="Created user ID")
    message: str = Field(
        default="Registration successful.",
        description="Success message"
    )


class CaptchaResponse(BaseModel):
    """Freshly issued login captcha phrase."""
    captcha_phrase: str = Field(..., description="Word the user must type back")


class LoginRequest(BaseModel):
    """Login request body."""
    model_config = ConfigDict(populate_by_name=True)

    username: str = Field(..., min_length=1, description="Username")
    password: str = Field(..., min_length=1, description="User password")
    captcha_input: str = Field(..., alias="captchaInput", description="Answer to the captcha phrase")


class SessionUser(BaseModel):
    """Logged-in user as stored in the session."""
    user_id: str
    username: str
    email: str
    is_admin: bool
    created_at: Optional[datetime] = None


class LoginResponse(BaseModel):
    """Successful login."""
    success: bool = True
    message: str = "Login successful."
    user: SessionUser


class MessageResponse(BaseModel):
    """Generic success indicator with a human-readable message."""
    success: bool = True
    message: str
