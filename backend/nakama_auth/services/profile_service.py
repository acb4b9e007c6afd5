"""
Profile mutations guarded by re-authentication.

The stored password hash is always re-read from the credential store; the
session is only trusted for *who* is asking.
"""
import logging
from typing import Optional

from pydantic import BaseModel
from redis.exceptions import RedisError

from nakama_auth.core.errors import StoreError, UniquenessConflict
from nakama_auth.core.security import PasswordHasher
from nakama_auth.core.session import Session, SessionStore
from nakama_auth.models.account import Account
from nakama_auth.models.results import AccountUpdateResult, AccountUpdateStatus
from nakama_auth.services.credential_store import CredentialStore

logger = logging.getLogger(__name__)


class ProfileUpdate(BaseModel):
    """Fields accepted by the profile info update."""
    new_username: Optional[str] = None
    email: Optional[str] = None
    current_password: Optional[str] = None
    new_password: Optional[str] = None
    bio: Optional[str] = None
    profile_image: Optional[str] = None
    banner_image: Optional[str] = None


def _result(status: AccountUpdateStatus, session: Optional[Session] = None) -> AccountUpdateResult:
    return AccountUpdateResult(status=status, session=session)


class ProfileService:
    """Password and profile changes for the logged-in user."""

    def __init__(self, store: CredentialStore, sessions: SessionStore, hasher: PasswordHasher):
        self.store = store
        self.sessions = sessions
        self.hasher = hasher

    async def _reauthenticate(
        self,
        session: Session,
        current_password: str,
    ) -> tuple[Optional[Account], AccountUpdateStatus]:
        """Fetch the account fresh and check the current password against it."""
        account = await self.store.get_by_id(session.user_id)
        if account is None:
            return None, AccountUpdateStatus.UNAUTHORIZED
        if not await self.hasher.verify(current_password, account.password_hash):
            return account, AccountUpdateStatus.WRONG_CURRENT_PASSWORD
        return account, AccountUpdateStatus.SUCCESS

    async def change_password(
        self,
        session: Optional[Session],
        current_password: str,
        new_password: str,
    ) -> AccountUpdateResult:
        """
        Change the password after verifying the current one.

        Returns:
            SUCCESS, UNAUTHORIZED, WRONG_CURRENT_PASSWORD or INTERNAL_ERROR;
            the stored hash is untouched unless the result is SUCCESS
        """
        if session is None or not session.is_authenticated:
            return _result(AccountUpdateStatus.UNAUTHORIZED)

        try:
            account, status = await self._reauthenticate(session, current_password)
            if status is not AccountUpdateStatus.SUCCESS:
                return _result(status)

            new_hash = await self.hasher.hash(new_password)
            if not await self.store.update_password(account.id, new_hash):
                return _result(AccountUpdateStatus.UNAUTHORIZED)
        except StoreError:
            logger.exception(f"Password change failed for user {session.user_id}")
            return _result(AccountUpdateStatus.INTERNAL_ERROR)

        logger.info(f"User {session.user_id} changed their password")
        return _result(AccountUpdateStatus.SUCCESS, session)

    async def update_info(
        self,
        session: Optional[Session],
        update: ProfileUpdate,
    ) -> AccountUpdateResult:
        """
        Update username, email, bio and images, and optionally the password.

        When `current_password` is supplied it is verified before anything
        is written, and `new_password` (if any) is applied in the same
        update. Without it the update goes through unverified and
        `new_password` is ignored.
        """
        if session is None or not session.is_authenticated:
            return _result(AccountUpdateStatus.UNAUTHORIZED)

        if not update.new_username or not update.email:
            return _result(AccountUpdateStatus.MISSING_FIELDS)

        fields = {"username": update.new_username, "email": update.email}
        if update.bio is not None:
            fields["bio"] = update.bio
        if update.profile_image is not None:
            fields["profile_image"] = update.profile_image
        if update.banner_image is not None:
            fields["banner_image"] = update.banner_image

        try:
            if update.current_password:
                _, status = await self._reauthenticate(session, update.current_password)
                if status is not AccountUpdateStatus.SUCCESS:
                    return _result(status)
                if update.new_password:
                    fields["password_hash"] = await self.hasher.hash(update.new_password)

            if not await self.store.update_fields(session.user_id, fields):
                return _result(AccountUpdateStatus.UNAUTHORIZED)
        except UniquenessConflict as e:
            logger.info(f"Profile update for {session.user_id} collided on {e.field}")
            return _result(AccountUpdateStatus.CONFLICT)
        except StoreError:
            logger.exception(f"Profile update failed for user {session.user_id}")
            return _result(AccountUpdateStatus.INTERNAL_ERROR)

        session.username = update.new_username
        session.email = update.email
        try:
            await self.sessions.save(session)
        except RedisError:
            logger.exception(f"Profile updated but session refresh failed for {session.user_id}")
            return _result(AccountUpdateStatus.INTERNAL_ERROR)

        return _result(AccountUpdateStatus.SUCCESS, session)

    async def update_bio(self, session: Optional[Session], bio: Optional[str]) -> AccountUpdateResult:
        if session is None or not session.is_authenticated:
            return _result(AccountUpdateStatus.UNAUTHORIZED)
        try:
            if not await self.store.update_fields(session.user_id, {"bio": bio}):
                return _result(AccountUpdateStatus.UNAUTHORIZED)
        except StoreError:
            logger.exception(f"Bio update failed for user {session.user_id}")
            return _result(AccountUpdateStatus.INTERNAL_ERROR)
        return _result(AccountUpdateStatus.SUCCESS, session)
