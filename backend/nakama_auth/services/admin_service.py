"""
Administrative account mutations: demotion and bans.
"""
import logging
from datetime import datetime
from typing import Optional

from nakama_auth.core.errors import StoreError
from nakama_auth.core.session import Session
from nakama_auth.models.results import AccountUpdateResult, AccountUpdateStatus
from nakama_auth.services.credential_store import CredentialStore

logger = logging.getLogger(__name__)


class AdminService:
    """Account mutations reserved to administrators."""

    def __init__(self, store: CredentialStore):
        self.store = store

    async def _check_admin(self, session: Optional[Session]) -> Optional[AccountUpdateStatus]:
        """Re-read the acting account; a demoted admin's session is not enough."""
        if session is None or not session.is_authenticated:
            return AccountUpdateStatus.UNAUTHORIZED
        actor = await self.store.get_by_id(session.user_id)
        if actor is None:
            return AccountUpdateStatus.UNAUTHORIZED
        if not actor.is_admin:
            return AccountUpdateStatus.FORBIDDEN
        return None

    async def _apply(self, session: Optional[Session], action: str, user_id: str, mutate) -> AccountUpdateResult:
        try:
            denied = await self._check_admin(session)
            if denied is not None:
                return AccountUpdateResult(status=denied)
            if not await mutate():
                return AccountUpdateResult(status=AccountUpdateStatus.NOT_FOUND)
        except StoreError:
            logger.exception(f"Admin action '{action}' on {user_id} failed")
            return AccountUpdateResult(status=AccountUpdateStatus.INTERNAL_ERROR)

        logger.info(f"Admin {session.user_id} performed '{action}' on user {user_id}")
        return AccountUpdateResult(status=AccountUpdateStatus.SUCCESS)

    async def demote_user(self, session: Optional[Session], user_id: str) -> AccountUpdateResult:
        """Remove the admin flag from an account."""
        return await self._apply(
            session, "demote", user_id,
            lambda: self.store.set_admin(user_id, False),
        )

    async def ban_user(
        self,
        session: Optional[Session],
        user_id: str,
        until: Optional[datetime] = None,
    ) -> AccountUpdateResult:
        """Ban an account; permanently when `until` is None."""
        return await self._apply(
            session, "ban", user_id,
            lambda: self.store.set_ban(user_id, True, until),
        )

    async def unban_user(self, session: Optional[Session], user_id: str) -> AccountUpdateResult:
        return await self._apply(
            session, "unban", user_id,
            lambda: self.store.set_ban(user_id, False),
        )
