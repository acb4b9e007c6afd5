"""
Admin request schemas.
"""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class AdminUserRequest(BaseModel):
    """Target account of an admin action."""
    model_config = ConfigDict(populate_by_name=True)

    user_id: str = Field(..., alias="userId", min_length=1)


class BanUserRequest(AdminUserRequest):
    """Ban request; no expiration means a permanent ban."""
    ban_expiration: Optional[datetime] = Field(None, alias="banExpiration")
