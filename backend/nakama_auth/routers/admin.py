"""
Admin router for account demotion and bans.
"""
from typing import Optional

from fastapi import APIRouter, Depends, status

from nakama_auth.core.session import Session
from nakama_auth.dependencies.providers import get_admin_service
from nakama_auth.dependencies.session import get_optional_session
from nakama_auth.models.results import AccountUpdateStatus
from nakama_auth.routers.errors import raise_for_result
from nakama_auth.schemas.admin import AdminUserRequest, BanUserRequest
from nakama_auth.schemas.auth import MessageResponse
from nakama_auth.services.admin_service import AdminService

router = APIRouter(prefix="/admin", tags=["Admin"])

ADMIN_HTTP_STATUS = {
    AccountUpdateStatus.FORBIDDEN: status.HTTP_403_FORBIDDEN,
    AccountUpdateStatus.NOT_FOUND: status.HTTP_404_NOT_FOUND,
}


@router.post("/demote-user", response_model=MessageResponse, summary="Remove admin role")
async def demote_user(
    body: AdminUserRequest,
    session: Optional[Session] = Depends(get_optional_session),
    admin_service: AdminService = Depends(get_admin_service),
):
    result = await admin_service.demote_user(session, body.user_id)
    raise_for_result(result, ADMIN_HTTP_STATUS)
    return MessageResponse(message="User demoted.")


@router.post("/ban-user", response_model=MessageResponse, summary="Ban a user")
async def ban_user(
    body: BanUserRequest,
    session: Optional[Session] = Depends(get_optional_session),
    admin_service: AdminService = Depends(get_admin_service),
):
    """
    Ban a user. Without `banExpiration` the ban is permanent; a temporary
    ban lapses on its own once the expiration has passed.
    """
    result = await admin_service.ban_user(session, body.user_id, body.ban_expiration)
    raise_for_result(result, ADMIN_HTTP_STATUS)
    return MessageResponse(message="User banned.")


@router.post("/unban-user", response_model=MessageResponse, summary="Lift a ban")
async def unban_user(
    body: AdminUserRequest,
    session: Optional[Session] = Depends(get_optional_session),
    admin_service: AdminService = Depends(get_admin_service),
):
    result = await admin_service.unban_user(session, body.user_id)
    raise_for_result(result, ADMIN_HTTP_STATUS)
    return MessageResponse(message="User unbanned.")
