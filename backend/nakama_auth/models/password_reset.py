"""
Password reset token model.
"""
from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from nakama_auth.models.account import as_utc


class PasswordResetToken(BaseModel):
    """Document in auth_db.password_reset_tokens."""
    user_id: str = Field(..., description="Owner account id")
    token: str = Field(..., description="Hex encoded random token")
    expiration: datetime = Field(..., description="Absolute expiry (created_at + ttl)")
    created_at: datetime

    @field_validator("expiration", "created_at", mode="after")
    @classmethod
    def _aware(cls, value):
        return as_utc(value)

    def is_valid(self, now: datetime) -> bool:
        return self.expiration > now
