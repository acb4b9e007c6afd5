"""
Registration with anti-abuse gating.
"""
import logging
from typing import Optional

from pydantic import BaseModel

from nakama_auth.config import Settings
from nakama_auth.core.errors import StoreError, UniquenessConflict
from nakama_auth.core.security import PasswordHasher, utcnow
from nakama_auth.models.results import RegistrationDecision, RegistrationStatus
from nakama_auth.services.captcha_service import HCaptchaVerifier
from nakama_auth.services.credential_store import CredentialStore

logger = logging.getLogger(__name__)


class RegistrationCandidate(BaseModel):
    """Fields submitted on the registration form."""
    username: str
    email: str
    password: str
    captcha_proof: Optional[str] = None


def email_domain(email: str) -> Optional[str]:
    _, sep, domain = email.rpartition("@")
    if not sep or not domain:
        return None
    return domain.strip().lower()


class RegistrationService:
    """Service for the registration abuse gate."""

    def __init__(
        self,
        store: CredentialStore,
        captcha_verifier: HCaptchaVerifier,
        hasher: PasswordHasher,
        settings: Settings,
    ):
        self.store = store
        self.captcha_verifier = captcha_verifier
        self.hasher = hasher
        self.allowed_domains = frozenset(d.lower() for d in settings.allowed_email_domains)
        self.max_accounts_per_ip = settings.max_accounts_per_ip

    async def evaluate_registration(
        self,
        candidate: RegistrationCandidate,
        client_ip: str,
    ) -> RegistrationDecision:
        """
        Run the registration checks in order and create the account on success.

        Checks short-circuit on the first failure:
        1. captcha proof present and verified
        2. email domain allowlisted
        3. fewer than `max_accounts_per_ip` accounts from this IP, counting
           registrations from the same IP that are still in flight
        4. username free
        5. email free

        Args:
            candidate: Submitted registration fields
            client_ip: Address the request came from

        Returns:
            RegistrationDecision; exactly one account exists afterwards only
            when the decision is ALLOWED
        """
        if not candidate.captcha_proof:
            return self._reject(RegistrationStatus.CAPTCHA_MISSING, candidate, client_ip)

        if not await self.captcha_verifier.verify(candidate.captcha_proof, client_ip):
            return self._reject(RegistrationStatus.CAPTCHA_FAILED, candidate, client_ip)

        if email_domain(candidate.email) not in self.allowed_domains:
            return self._reject(RegistrationStatus.EMAIL_DOMAIN_NOT_ALLOWED, candidate, client_ip)

        try:
            in_flight = await self.store.reserve_registration_slot(client_ip, utcnow())
        except StoreError:
            logger.exception(f"Could not claim a registration slot for {client_ip}")
            return RegistrationDecision(status=RegistrationStatus.INTERNAL_ERROR)

        try:
            return await self._register(candidate, client_ip, in_flight)
        finally:
            await self._release_slot(client_ip)

    async def _register(
        self,
        candidate: RegistrationCandidate,
        client_ip: str,
        in_flight: int,
    ) -> RegistrationDecision:
        try:
            # Concurrent registrations from this IP are counted as if already created.
            existing = await self.store.count_by_registration_ip(client_ip)
            if existing + in_flight > self.max_accounts_per_ip:
                return self._reject(RegistrationStatus.IP_LIMIT_EXCEEDED, candidate, client_ip)

            if await self.store.username_taken(candidate.username):
                return self._reject(RegistrationStatus.USERNAME_TAKEN, candidate, client_ip)

            if await self.store.email_taken(candidate.email):
                return self._reject(RegistrationStatus.EMAIL_TAKEN, candidate, client_ip)

            password_hash = await self.hasher.hash(candidate.password)
            user_id = await self.store.insert_account(
                username=candidate.username,
                email=candidate.email,
                password_hash=password_hash,
                registration_ip=client_ip,
                created_at=utcnow(),
            )
        except UniquenessConflict as conflict:
            # Lost a race against a concurrent registration.
            try:
                status = await self._conflict_status(conflict, candidate)
            except StoreError:
                logger.exception("Could not resolve which unique field collided")
                return RegistrationDecision(status=RegistrationStatus.INTERNAL_ERROR)
            return self._reject(status, candidate, client_ip)
        except StoreError:
            logger.exception(f"Registration of '{candidate.username}' failed in the credential store")
            return RegistrationDecision(status=RegistrationStatus.INTERNAL_ERROR)

        logger.info(f"Registered user '{candidate.username}' ({user_id}) from {client_ip}")
        return RegistrationDecision(status=RegistrationStatus.ALLOWED, user_id=user_id)

    async def _release_slot(self, client_ip: str) -> None:
        try:
            await self.store.release_registration_slot(client_ip)
        except StoreError:
            logger.warning(f"Could not release registration slot for {client_ip}", exc_info=True)

    async def _conflict_status(
        self,
        conflict: UniquenessConflict,
        candidate: RegistrationCandidate,
    ) -> RegistrationStatus:
        if conflict.field == "username":
            return RegistrationStatus.USERNAME_TAKEN
        if conflict.field == "email":
            return RegistrationStatus.EMAIL_TAKEN
        if await self.store.username_taken(candidate.username):
            return RegistrationStatus.USERNAME_TAKEN
        return RegistrationStatus.EMAIL_TAKEN

    @staticmethod
    def _reject(
        status: RegistrationStatus,
        candidate: RegistrationCandidate,
        client_ip: str,
    ) -> RegistrationDecision:
        logger.info(f"Registration of '{candidate.username}' from {client_ip} rejected: {status.value}")
        return RegistrationDecision(status=status)
