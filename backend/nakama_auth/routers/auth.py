"""
Authentication router for registration, captcha, login and logout.
"""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Response, status

from nakama_auth.config import Settings, get_settings
from nakama_auth.core.session import Session
from nakama_auth.dependencies.providers import (
    get_auth_service,
    get_captcha_manager,
    get_client_ip,
    get_registration_service,
)
from nakama_auth.dependencies.session import (
    clear_session_cookie,
    get_optional_session,
    get_or_create_session,
    session_unavailable,
    set_session_cookie,
)
from nakama_auth.models.results import LoginStatus, RegistrationStatus
from nakama_auth.routers.errors import raise_for_result
from nakama_auth.schemas.auth import (
    CaptchaResponse,
    LoginRequest,
    LoginResponse,
    MessageResponse,
    RegisterPageResponse,
    RegisterRequest,
    RegisterResponse,
    SessionUser,
)
from nakama_auth.services.auth_service import AuthService
from nakama_auth.services.captcha_service import CaptchaChallengeManager
from nakama_auth.services.registration_service import RegistrationCandidate, RegistrationService

router = APIRouter(tags=["Authentication"])

REGISTRATION_HTTP_STATUS = {
    RegistrationStatus.IP_LIMIT_EXCEEDED: status.HTTP_403_FORBIDDEN,
    RegistrationStatus.USERNAME_TAKEN: status.HTTP_409_CONFLICT,
    RegistrationStatus.EMAIL_TAKEN: status.HTTP_409_CONFLICT,
}

LOGIN_HTTP_STATUS = {
    LoginStatus.BANNED: status.HTTP_403_FORBIDDEN,
    LoginStatus.RATE_LIMITED: status.HTTP_429_TOO_MANY_REQUESTS,
}


@router.get(
    "/register",
    response_model=RegisterPageResponse,
    summary="Registration form data",
)
async def register_page(settings: Settings = Depends(get_settings)):
    return RegisterPageResponse(hcaptcha_site_key=settings.hcaptcha_site_key)


@router.post(
    "/register",
    response_model=RegisterResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a new user",
)
async def register(
    body: RegisterRequest,
    client_ip: str = Depends(get_client_ip),
    registration_service: RegistrationService = Depends(get_registration_service),
):
    """
    Register a new user account.

    - **username**: Unique username
    - **email**: Address on an allowed provider (must be unique)
    - **password**: Password
    - **h-captcha-response**: hCaptcha proof token

    At most three accounts can be registered from the same IP.
    """
    decision = await registration_service.evaluate_registration(
        RegistrationCandidate(
            username=body.username,
            email=body.email,
            password=body.password,
            captcha_proof=body.captcha_proof,
        ),
        client_ip,
    )
    raise_for_result(decision, REGISTRATION_HTTP_STATUS)
    return RegisterResponse(user_id=decision.user_id, message=decision.message)


@router.get(
    "/login",
    response_model=CaptchaResponse,
    summary="Start a login attempt",
)
async def login_page(
    session: Session = Depends(get_or_create_session),
    captcha: CaptchaChallengeManager = Depends(get_captcha_manager),
):
    """Issue the captcha phrase the login form must echo back."""
    phrase = await captcha.issue_challenge(session)
    if phrase is None:
        raise session_unavailable()
    return CaptchaResponse(captcha_phrase=phrase)


@router.get(
    "/api/auth/new-captcha",
    response_model=CaptchaResponse,
    summary="Regenerate the login captcha",
)
async def new_captcha(
    session: Session = Depends(get_or_create_session),
    captcha: CaptchaChallengeManager = Depends(get_captcha_manager),
):
    phrase = await captcha.issue_challenge(session)
    if phrase is None:
        raise session_unavailable()
    return CaptchaResponse(captcha_phrase=phrase)


@router.post(
    "/login",
    response_model=LoginResponse,
    summary="Login with username, password and captcha",
)
async def login(
    body: LoginRequest,
    response: Response,
    client_ip: str = Depends(get_client_ip),
    session: Optional[Session] = Depends(get_optional_session),
    auth_service: AuthService = Depends(get_auth_service),
    settings: Settings = Depends(get_settings),
):
    """
    Authenticate and establish a session.

    **Rate limited**: 5 failed attempts per 15 minutes per IP. Captcha
    failures, bad credentials and banned accounts all count as failures.
    """
    result = await auth_service.login(
        username=body.username,
        password=body.password,
        captcha_input=body.captcha_input,
        client_ip=client_ip,
        session=session,
    )

    headers = None
    if result.status is LoginStatus.RATE_LIMITED:
        headers = {"Retry-After": str(result.retry_after_minutes * 60)}
    raise_for_result(result, LOGIN_HTTP_STATUS, headers=headers)

    established = result.session
    set_session_cookie(response, established, settings)
    return LoginResponse(
        message=result.message,
        user=SessionUser(
            user_id=established.user_id,
            username=established.username,
            email=established.email,
            is_admin=established.is_admin,
            created_at=established.created_at,
        ),
    )


@router.get(
    "/logout",
    response_model=MessageResponse,
    summary="Destroy the current session",
)
async def logout(
    response: Response,
    session: Optional[Session] = Depends(get_optional_session),
    auth_service: AuthService = Depends(get_auth_service),
    settings: Settings = Depends(get_settings),
):
    if not await auth_service.logout(session):
        raise session_unavailable()
    clear_session_cookie(response, settings)
    return MessageResponse(message="Logged out.")


@router.get(
    "/me",
    response_model=SessionUser,
    summary="Get current session user",
)
async def get_current_user_info(session: Optional[Session] = Depends(get_optional_session)):
    """Information about the logged-in user, taken from the session."""
    if session is None or not session.is_authenticated:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authorized.",
        )
    return SessionUser(
        user_id=session.user_id,
        username=session.username,
        email=session.email,
        is_admin=session.is_admin,
        created_at=session.created_at,
    )
