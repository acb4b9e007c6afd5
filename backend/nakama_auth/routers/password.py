"""
Password recovery router: forgot-password and reset-password.
"""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from nakama_auth.dependencies.providers import get_password_reset_service
from nakama_auth.models.results import ResetConsumeStatus, ResetRequestStatus
from nakama_auth.routers.errors import raise_for_result
from nakama_auth.schemas.auth import MessageResponse
from nakama_auth.schemas.password import (
    ForgotPasswordRequest,
    ResetLinkResponse,
    ResetPasswordRequest,
)
from nakama_auth.services.password_reset_service import PasswordResetService

router = APIRouter(tags=["Password"])


@router.post(
    "/password/forgot",
    response_model=MessageResponse,
    summary="Request a password reset email",
)
async def forgot_password(
    body: ForgotPasswordRequest,
    reset_service: PasswordResetService = Depends(get_password_reset_service),
):
    """
    Send a reset link valid for one hour to the account's email address.
    """
    result = await reset_service.request_reset(body.email)
    raise_for_result(result, {ResetRequestStatus.NOT_FOUND: status.HTTP_404_NOT_FOUND})
    return MessageResponse(message=result.message)


@router.get(
    "/reset-password",
    response_model=ResetLinkResponse,
    summary="Check a reset link",
)
async def reset_password_page(
    token: Optional[str] = Query(None, description="Reset token"),
    user_id: Optional[str] = Query(None, alias="id", description="Account id"),
    reset_service: PasswordResetService = Depends(get_password_reset_service),
):
    """
    Validate the parameters of a reset link before showing the reset form.

    Both `token` and `id` are required; nothing is looked up otherwise.
    """
    if not token or not user_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Missing parameters: token and id are required.",
        )
    valid = await reset_service.check_link(token, user_id)
    if not valid:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid or expired token.",
        )
    return ResetLinkResponse(token=token, user_id=user_id, valid=valid)


@router.post(
    "/password/reset",
    response_model=MessageResponse,
    summary="Set a new password with a reset token",
)
async def reset_password(
    body: ResetPasswordRequest,
    reset_service: PasswordResetService = Depends(get_password_reset_service),
):
    """
    Replace the password and invalidate every outstanding reset token of
    the account.
    """
    result = await reset_service.consume_reset(body.token, body.user_id, body.new_password)
    raise_for_result(result, {ResetConsumeStatus.INVALID_OR_EXPIRED: status.HTTP_400_BAD_REQUEST})
    return MessageResponse(message=result.message)
