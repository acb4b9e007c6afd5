"""
Service layer for business logic.
"""
from nakama_auth.services.admin_service import AdminService
from nakama_auth.services.auth_service import AuthService
from nakama_auth.services.captcha_service import CaptchaChallengeManager, HCaptchaVerifier
from nakama_auth.services.credential_store import CredentialStore
from nakama_auth.services.notifier import NotificationDispatcher, SmtpNotificationDispatcher
from nakama_auth.services.password_reset_service import PasswordResetService
from nakama_auth.services.profile_service import ProfileService, ProfileUpdate
from nakama_auth.services.registration_service import RegistrationCandidate, RegistrationService

__all__ = [
    "AdminService",
    "AuthService",
    "CaptchaChallengeManager",
    "HCaptchaVerifier",
    "CredentialStore",
    "NotificationDispatcher",
    "SmtpNotificationDispatcher",
    "PasswordResetService",
    "ProfileService",
    "ProfileUpdate",
    "RegistrationCandidate",
    "RegistrationService",
]
