"""
Profile router: password change and profile info updates.
"""
from typing import Optional

from fastapi import APIRouter, Depends, status

from nakama_auth.core.session import Session
from nakama_auth.dependencies.providers import get_profile_service
from nakama_auth.dependencies.session import get_optional_session
from nakama_auth.models.results import AccountUpdateStatus
from nakama_auth.routers.errors import raise_for_result
from nakama_auth.schemas.auth import MessageResponse
from nakama_auth.schemas.profile import (
    ChangePasswordRequest,
    UpdateBioRequest,
    UpdateInfoRequest,
)
from nakama_auth.services.profile_service import ProfileService, ProfileUpdate

router = APIRouter(prefix="/profile", tags=["Profile"])

PROFILE_HTTP_STATUS = {
    AccountUpdateStatus.WRONG_CURRENT_PASSWORD: status.HTTP_400_BAD_REQUEST,
    AccountUpdateStatus.CONFLICT: status.HTTP_409_CONFLICT,
}


@router.post(
    "/update-password",
    response_model=MessageResponse,
    summary="Change password",
)
async def update_password(
    body: ChangePasswordRequest,
    session: Optional[Session] = Depends(get_optional_session),
    profile_service: ProfileService = Depends(get_profile_service),
):
    """
    Change the password of the logged-in user.

    The current password is checked against the stored hash first.
    """
    result = await profile_service.change_password(session, body.current_password, body.new_password)
    raise_for_result(result, PROFILE_HTTP_STATUS)
    return MessageResponse(message="Password updated successfully.")


@router.post(
    "/update-info",
    response_model=MessageResponse,
    summary="Update profile info",
)
async def update_info(
    body: UpdateInfoRequest,
    session: Optional[Session] = Depends(get_optional_session),
    profile_service: ProfileService = Depends(get_profile_service),
):
    """
    Update username, email, bio and images.

    Supplying `currentPassword` re-verifies the user and allows
    `newPassword` to be set in the same request.
    """
    result = await profile_service.update_info(
        session,
        ProfileUpdate(
            new_username=body.new_username,
            email=body.email,
            current_password=body.current_password,
            new_password=body.new_password,
            bio=body.bio,
            profile_image=body.profile_image,
            banner_image=body.banner_image,
        ),
    )
    raise_for_result(result, PROFILE_HTTP_STATUS)
    return MessageResponse(message="Profile updated successfully.")


@router.post(
    "/update-bio",
    response_model=MessageResponse,
    summary="Update bio",
)
async def update_bio(
    body: UpdateBioRequest,
    session: Optional[Session] = Depends(get_optional_session),
    profile_service: ProfileService = Depends(get_profile_service),
):
    result = await profile_service.update_bio(session, body.bio)
    raise_for_result(result)
    return MessageResponse(message="Bio updated successfully.")
