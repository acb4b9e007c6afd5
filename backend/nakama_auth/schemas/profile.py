"""
Profile and re-authentication request schemas.
"""
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ChangePasswordRequest(BaseModel):
    """Password change for the logged-in user."""
    model_config = ConfigDict(populate_by_name=True)

    current_password: str = Field(..., alias="currentPassword", description="Current password")
    new_password: str = Field(..., alias="newPassword", min_length=1, description="New password")


class UpdateInfoRequest(BaseModel):
    """
    Profile info update.

    Image fields take URIs of already-stored uploads.
    """
    model_config = ConfigDict(populate_by_name=True)

    new_username: Optional[str] = Field(None, alias="newUsername", max_length=50)
    email: Optional[str] = Field(None, description="New email address")
    current_password: Optional[str] = Field(None, alias="currentPassword")
    new_password: Optional[str] = Field(None, alias="newPassword")
    bio: Optional[str] = Field(None, max_length=1000)
    profile_image: Optional[str] = Field(None, alias="profileImage")
    banner_image: Optional[str] = Field(None, alias="bannerImage")


class UpdateBioRequest(BaseModel):
    bio: Optional[str] = Field(None, max_length=1000)
