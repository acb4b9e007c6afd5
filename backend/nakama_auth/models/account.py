"""
Account model for the auth database.
"""
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class BanState(str, Enum):
    """Effective ban state of an account at a point in time."""
    NONE = "none"
    TEMPORARY = "temporary"
    PERMANENT = "permanent"


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """MongoDB hands back naive UTC datetimes; make them aware."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class Account(BaseModel):
    """
    User document model for MongoDB auth_db.users collection.
    """
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., alias="_id", description="MongoDB ObjectId as string")
    username: str = Field(..., description="Unique username")
    email: str = Field(..., description="Unique email address")
    password_hash: str = Field(..., min_length=1, description="Bcrypt hashed password")
    created_at: datetime = Field(..., description="Account creation timestamp")
    is_admin: bool = False
    banned: bool = False
    ban_expiration: Optional[datetime] = Field(
        None,
        description="End of a temporary ban; None with banned=True means permanent",
    )
    registration_ip: str = Field(..., description="Client IP that registered the account")
    bio: Optional[str] = None
    profile_image: Optional[str] = None
    banner_image: Optional[str] = None

    @field_validator("id", mode="before")
    @classmethod
    def _stringify_id(cls, value):
        return str(value)

    @field_validator("created_at", "ban_expiration", mode="after")
    @classmethod
    def _aware(cls, value):
        return as_utc(value)

    def ban_state(self, now: datetime) -> BanState:
        """
        Resolve the ban flag against the clock.

        A temporary ban whose expiration has passed no longer applies, even
        though the stored flag is still set.
        """
        if not self.banned:
            return BanState.NONE
        if self.ban_expiration is None:
            return BanState.PERMANENT
        if self.ban_expiration > now:
            return BanState.TEMPORARY
        return BanState.NONE
