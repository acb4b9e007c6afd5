"""
Password reset request/response schemas.
"""
from pydantic import BaseModel, ConfigDict, EmailStr, Field


class ForgotPasswordRequest(BaseModel):
    """Request a password reset email."""
    email: EmailStr = Field(..., description="Registered email address")


class ResetPasswordRequest(BaseModel):
    """Consume a reset token."""
    model_config = ConfigDict(populate_by_name=True)

    token: str = Field(..., min_length=1, description="Reset token from the email link")
    user_id: str = Field(..., alias="userId", min_length=1, description="Account id from the email link")
    new_password: str = Field(..., alias="newPassword", min_length=1, description="New password")


class ResetLinkResponse(BaseModel):
    """Reset page data for a link that still works."""
    token: str
    user_id: str
    valid: bool
