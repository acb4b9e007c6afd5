"""
Password reset token lifecycle: issue, check, consume.
"""
import logging
import random
from datetime import timedelta
from urllib.parse import urlencode

from nakama_auth.config import ResetEmailTemplate, Settings
from nakama_auth.core.errors import NotificationError, StoreError
from nakama_auth.core.security import PasswordHasher, generate_reset_token, utcnow
from nakama_auth.models.password_reset import PasswordResetToken
from nakama_auth.models.results import (
    ResetConsumeResult,
    ResetConsumeStatus,
    ResetRequestResult,
    ResetRequestStatus,
)
from nakama_auth.services.credential_store import CredentialStore
from nakama_auth.services.notifier import NotificationDispatcher

logger = logging.getLogger(__name__)


def build_reset_link(base_url: str, token: str, user_id: str) -> str:
    """`<base>/reset-password?token=<token>&id=<user_id>`"""
    query = urlencode({"token": token, "id": user_id})
    return f"{base_url.rstrip('/')}/reset-password?{query}"


class PasswordResetService:
    """Issues and consumes single-use, time-limited reset tokens."""

    def __init__(
        self,
        store: CredentialStore,
        notifier: NotificationDispatcher,
        hasher: PasswordHasher,
        settings: Settings,
    ):
        if not settings.reset_password_templates:
            raise ValueError("reset_password_templates must not be empty")
        self.store = store
        self.notifier = notifier
        self.hasher = hasher
        self.token_ttl = timedelta(seconds=settings.reset_token_ttl_seconds)
        self.base_url = settings.reset_password_base_url
        self.templates = tuple(settings.reset_password_templates)

    def _render(self, link: str) -> ResetEmailTemplate:
        template = random.choice(self.templates)
        return ResetEmailTemplate(
            subject=template.subject,
            message=template.message.replace("{link}", link),
        )

    async def request_reset(self, email: str) -> ResetRequestResult:
        """
        Issue a reset token for the account with this email and mail the link.

        Earlier tokens for the same user stay valid until a reset completes.
        """
        try:
            account = await self.store.get_by_email(email)
        except StoreError:
            logger.exception("Account lookup failed for password reset request")
            return ResetRequestResult(status=ResetRequestStatus.INTERNAL_ERROR)

        if account is None:
            return ResetRequestResult(status=ResetRequestStatus.NOT_FOUND)

        now = utcnow()
        token = PasswordResetToken(
            user_id=account.id,
            token=generate_reset_token(),
            expiration=now + self.token_ttl,
            created_at=now,
        )
        try:
            await self.store.insert_reset_token(token)
        except StoreError:
            logger.exception(f"Could not store reset token for user {account.id}")
            return ResetRequestResult(status=ResetRequestStatus.INTERNAL_ERROR)

        rendered = self._render(build_reset_link(self.base_url, token.token, account.id))
        try:
            await self.notifier.send(account.email, rendered.subject, rendered.message)
        except NotificationError:
            logger.exception(f"Reset email for user {account.id} could not be sent")
            return ResetRequestResult(status=ResetRequestStatus.INTERNAL_ERROR)

        logger.info(f"Password reset requested for user {account.id}")
        return ResetRequestResult(status=ResetRequestStatus.ACCEPTED)

    async def check_link(self, token: str, user_id: str) -> bool:
        """Whether a reset link still points at a valid token."""
        try:
            return await self.store.find_valid_reset_token(token, user_id, utcnow()) is not None
        except StoreError:
            logger.exception("Reset token lookup failed")
            return False

    async def consume_reset(
        self,
        token: str,
        user_id: str,
        new_password: str,
    ) -> ResetConsumeResult:
        """
        Replace the password using a reset token.

        The password update and the purge of every token of the user form
        one unit: if anything fails after the password was written, the old
        hash and the claimed token are put back.

        Returns:
            SUCCESS, INVALID_OR_EXPIRED (missing, mismatched and expired
            tokens are indistinguishable) or INTERNAL_ERROR
        """
        try:
            claimed = await self.store.claim_reset_token(token, user_id, utcnow())
        except StoreError:
            logger.exception("Reset token claim failed")
            return ResetConsumeResult(status=ResetConsumeStatus.INTERNAL_ERROR)

        if claimed is None:
            return ResetConsumeResult(status=ResetConsumeStatus.INVALID_OR_EXPIRED)

        try:
            account = await self.store.get_by_id(user_id)
        except StoreError:
            logger.exception(f"Account lookup failed during reset for user {user_id}")
            await self._restore_token(claimed)
            return ResetConsumeResult(status=ResetConsumeStatus.INTERNAL_ERROR)

        if account is None:
            # Token for an account that no longer exists.
            await self._purge_quietly(user_id)
            return ResetConsumeResult(status=ResetConsumeStatus.INVALID_OR_EXPIRED)

        new_hash = await self.hasher.hash(new_password)
        try:
            await self.store.update_password(user_id, new_hash)
        except StoreError:
            logger.exception(f"Password update failed during reset for user {user_id}")
            await self._restore_token(claimed)
            return ResetConsumeResult(status=ResetConsumeStatus.INTERNAL_ERROR)

        try:
            purged = await self.store.delete_reset_tokens_for_user(user_id)
        except StoreError:
            logger.exception(f"Token purge failed for user {user_id}; rolling back password")
            await self._rollback_password(user_id, account.password_hash)
            await self._restore_token(claimed)
            return ResetConsumeResult(status=ResetConsumeStatus.INTERNAL_ERROR)

        logger.info(f"Password reset completed for user {user_id} ({purged + 1} tokens invalidated)")
        return ResetConsumeResult(status=ResetConsumeStatus.SUCCESS)

    async def _rollback_password(self, user_id: str, previous_hash: str) -> None:
        try:
            await self.store.update_password(user_id, previous_hash)
        except StoreError:
            logger.critical(f"Password rollback failed for user {user_id}")

    async def _restore_token(self, claimed: PasswordResetToken) -> None:
        try:
            await self.store.restore_reset_token(claimed)
        except StoreError:
            logger.error(f"Claimed reset token for user {claimed.user_id} was lost")

    async def _purge_quietly(self, user_id: str) -> None:
        try:
            await self.store.delete_reset_tokens_for_user(user_id)
        except StoreError:
            logger.warning(f"Could not purge orphan reset tokens for {user_id}")
