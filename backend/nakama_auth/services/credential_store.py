"""
Credential store backed by MongoDB auth_db.

Every motor call goes through here so that PyMongoError never leaves this
module untranslated: duplicate keys become UniquenessConflict, anything else
becomes StoreError.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Optional

from bson import ObjectId
from bson.errors import InvalidId
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError, PyMongoError

from nakama_auth.core.errors import StoreError, UniquenessConflict
from nakama_auth.database.databases import auth_db
from nakama_auth.models.account import Account
from nakama_auth.models.password_reset import PasswordResetToken

logger = logging.getLogger(__name__)

UNIQUE_ACCOUNT_FIELDS = ("username", "email")


def to_db_datetime(value: Optional[datetime]) -> Optional[datetime]:
    """Store datetimes as naive UTC, the way MongoDB returns them."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def _object_id(user_id: str) -> Optional[ObjectId]:
    try:
        return ObjectId(user_id)
    except (InvalidId, TypeError):
        return None


def _conflict_field(error: DuplicateKeyError) -> str:
    details = error.details or {}
    key_pattern = details.get("keyPattern") or details.get("keyValue") or {}
    for field in UNIQUE_ACCOUNT_FIELDS:
        if field in key_pattern:
            return field
    message = str(error)
    for field in UNIQUE_ACCOUNT_FIELDS:
        if field in message:
            return field
    return "unknown"


class CredentialStore:
    """Account and reset-token persistence."""

    def __init__(self, db: AsyncIOMotorDatabase):
        """Initialize with auth database."""
        self.db = db
        self.users = db[auth_db.Collections.USERS]
        self.reset_tokens = db[auth_db.Collections.PASSWORD_RESET_TOKENS]
        self.ip_slots = db[auth_db.Collections.REGISTRATION_IP_SLOTS]

    # ==================== Accounts ====================

    async def _find_account(self, query: dict[str, Any]) -> Optional[Account]:
        try:
            doc = await self.users.find_one(query)
        except PyMongoError as e:
            raise StoreError(f"account lookup failed: {e}") from e
        if not doc:
            return None
        return Account(**doc)

    async def get_by_id(self, user_id: str) -> Optional[Account]:
        oid = _object_id(user_id)
        if oid is None:
            return None
        return await self._find_account({"_id": oid})

    async def get_by_username(self, username: str) -> Optional[Account]:
        return await self._find_account({"username": username})

    async def get_by_email(self, email: str) -> Optional[Account]:
        return await self._find_account({"email": email})

    async def count_by_registration_ip(self, ip: str) -> int:
        try:
            return await self.users.count_documents({"registration_ip": ip})
        except PyMongoError as e:
            raise StoreError(f"ip count failed: {e}") from e

    async def reserve_registration_slot(self, ip: str, now: datetime) -> int:
        """
        Atomically claim an in-flight registration slot for an IP.

        Returns:
            Number of registrations from this IP currently in flight,
            including the one just claimed
        """
        try:
            doc = await self.ip_slots.find_one_and_update(
                {"_id": ip},
                {"$inc": {"pending": 1}, "$set": {"updated_at": to_db_datetime(now)}},
                upsert=True,
                return_document=ReturnDocument.AFTER,
            )
        except PyMongoError as e:
            raise StoreError(f"registration slot claim failed: {e}") from e
        return int(doc["pending"])

    async def release_registration_slot(self, ip: str) -> None:
        """Hand back a slot taken by `reserve_registration_slot`."""
        try:
            await self.ip_slots.update_one(
                {"_id": ip, "pending": {"$gt": 0}},
                {"$inc": {"pending": -1}},
            )
        except PyMongoError as e:
            raise StoreError(f"registration slot release failed: {e}") from e

    async def username_taken(self, username: str) -> bool:
        try:
            return await self.users.count_documents({"username": username}, limit=1) > 0
        except PyMongoError as e:
            raise StoreError(f"username lookup failed: {e}") from e

    async def email_taken(self, email: str) -> bool:
        try:
            return await self.users.count_documents({"email": email}, limit=1) > 0
        except PyMongoError as e:
            raise StoreError(f"email lookup failed: {e}") from e

    async def insert_account(
        self,
        username: str,
        email: str,
        password_hash: str,
        registration_ip: str,
        created_at: datetime,
        is_admin: bool = False,
    ) -> str:
        """
        Insert a new account and return its id.

        Raises:
            UniquenessConflict: username or email collided with the unique index
            StoreError: any other storage failure
        """
        if not password_hash:
            raise ValueError("password_hash must not be empty")

        user_doc = {
            "username": username,
            "email": email,
            "password_hash": password_hash,
            "created_at": to_db_datetime(created_at),
            "is_admin": is_admin,
            "banned": False,
            "ban_expiration": None,
            "registration_ip": registration_ip,
            "bio": None,
            "profile_image": None,
            "banner_image": None,
        }
        try:
            result = await self.users.insert_one(user_doc)
        except DuplicateKeyError as e:
            raise UniquenessConflict(_conflict_field(e)) from e
        except PyMongoError as e:
            raise StoreError(f"account insert failed: {e}") from e
        return str(result.inserted_id)

    async def update_fields(self, user_id: str, fields: dict[str, Any]) -> bool:
        """
        Set fields on an account.

        Returns:
            True if an account matched
        """
        oid = _object_id(user_id)
        if oid is None:
            return False
        if "password_hash" in fields and not fields["password_hash"]:
            raise ValueError("password_hash must not be empty")
        values = {key: to_db_datetime(value) if isinstance(value, datetime) else value
                  for key, value in fields.items()}
        try:
            result = await self.users.update_one({"_id": oid}, {"$set": values})
        except DuplicateKeyError as e:
            raise UniquenessConflict(_conflict_field(e)) from e
        except PyMongoError as e:
            raise StoreError(f"account update failed: {e}") from e
        return result.matched_count > 0

    async def update_password(self, user_id: str, password_hash: str) -> bool:
        return await self.update_fields(user_id, {"password_hash": password_hash})

    async def set_admin(self, user_id: str, is_admin: bool) -> bool:
        return await self.update_fields(user_id, {"is_admin": is_admin})

    async def set_ban(
        self,
        user_id: str,
        banned: bool,
        ban_expiration: Optional[datetime] = None,
    ) -> bool:
        return await self.update_fields(
            user_id,
            {"banned": banned, "ban_expiration": ban_expiration if banned else None},
        )

    # ==================== Password reset tokens ====================

    async def insert_reset_token(self, token: PasswordResetToken) -> None:
        doc = {
            "user_id": token.user_id,
            "token": token.token,
            "expiration": to_db_datetime(token.expiration),
            "created_at": to_db_datetime(token.created_at),
        }
        try:
            await self.reset_tokens.insert_one(doc)
        except PyMongoError as e:
            raise StoreError(f"reset token insert failed: {e}") from e

    async def find_valid_reset_token(
        self,
        token: str,
        user_id: str,
        now: datetime,
    ) -> Optional[PasswordResetToken]:
        try:
            doc = await self.reset_tokens.find_one(
                {"token": token, "user_id": user_id, "expiration": {"$gt": to_db_datetime(now)}}
            )
        except PyMongoError as e:
            raise StoreError(f"reset token lookup failed: {e}") from e
        return PasswordResetToken(**doc) if doc else None

    async def claim_reset_token(
        self,
        token: str,
        user_id: str,
        now: datetime,
    ) -> Optional[PasswordResetToken]:
        """
        Atomically remove and return a matching, unexpired token.

        Two concurrent claims of the same token cannot both succeed.
        """
        try:
            doc = await self.reset_tokens.find_one_and_delete(
                {"token": token, "user_id": user_id, "expiration": {"$gt": to_db_datetime(now)}}
            )
        except PyMongoError as e:
            raise StoreError(f"reset token claim failed: {e}") from e
        return PasswordResetToken(**doc) if doc else None

    async def restore_reset_token(self, token: PasswordResetToken) -> None:
        """Put back a claimed token after a failed reset."""
        await self.insert_reset_token(token)
        logger.debug(f"Restored reset token for user {token.user_id}")

    async def delete_reset_tokens_for_user(self, user_id: str) -> int:
        try:
            result = await self.reset_tokens.delete_many({"user_id": user_id})
        except PyMongoError as e:
            raise StoreError(f"reset token purge failed: {e}") from e
        return result.deleted_count

    async def get_reset_tokens_for_user(self, user_id: str) -> list[PasswordResetToken]:
        try:
            docs = await self.reset_tokens.find({"user_id": user_id}).to_list(length=None)
        except PyMongoError as e:
            raise StoreError(f"reset token listing failed: {e}") from e
        return [PasswordResetToken(**doc) for doc in docs]
