"""User profile and administration endpoints."""

import structlog
from fastapi import APIRouter, Depends

from forum.api.auth import _user_summary
from forum.api.dependencies import get_current_user, require_admin
from forum.exceptions import Conflict, NotFound
from forum.models.auth import (
    PublicUserResponse,
    UpdateProfileRequest,
    UpdateRoleRequest,
    UpdateStatusRequest,
    UserDetailResponse,
    UserMessageResponse,
    UserSummary,
)
from forum.models.user import User
from forum.services.user_service import UserService

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/users", tags=["Users"])


@router.get("/profile")
async def get_profile(current_user: User = Depends(get_current_user)) -> UserDetailResponse:
    """Current user's profile with thread and reply counts."""
    user_service = UserService()
    user = await user_service.find_by_id(current_user.id)
    if user is None:
        raise NotFound("User not found")

    stats = await user_service.get_stats(user.id)
    return UserDetailResponse(user=_user_summary(user), stats=stats)


@router.put("/profile")
async def update_profile(
    request: UpdateProfileRequest,
    current_user: User = Depends(get_current_user),
) -> UserMessageResponse:
    """Update the current user's username, bio or avatar.

    Raises:
        Conflict (400): If the new username belongs to someone else
    """
    user_service = UserService()

    username = None
    if request.username and request.username != current_user.username:
        if await user_service.username_taken(request.username, exclude_id=current_user.id):
            raise Conflict("Username already taken", status_code=400)
        username = request.username

    user = await user_service.update_profile(
        current_user.id,
        username=username,
        bio=request.bio,
        avatar=request.avatar,
    )
    if user is None:
        raise NotFound("User not found")

    return UserMessageResponse(message="Profile updated successfully", user=_user_summary(user))


@router.get("")
async def list_users(admin: User = Depends(require_admin)) -> list[UserSummary]:
    """List all users, newest first (admin only)."""
    users = await UserService().list_users()
    return [_user_summary(u) for u in users]


@router.get("/{user_id}")
async def get_user(user_id: str) -> PublicUserResponse:
    """Public profile of any user, with their five newest threads."""
    user_service = UserService()
    user = await user_service.find_by_id(user_id)
    if user is None:
        raise NotFound("User not found")

    stats = await user_service.get_stats(user.id)
    recent_threads = await user_service.get_recent_threads(user.id)
    return PublicUserResponse(
        user=_user_summary(user), stats=stats, recent_threads=recent_threads
    )


@router.put("/{user_id}/role")
async def update_role(
    user_id: str,
    request: UpdateRoleRequest,
    admin: User = Depends(require_admin),
) -> UserMessageResponse:
    """Change a user's role (admin only)."""
    user = await UserService().set_role(user_id, request.role)
    if user is None:
        raise NotFound("User not found")

    logger.info(
        "admin_updated_role",
        admin_id=admin.id,
        target_user_id=user_id,
        role=request.role.value,
    )
    return UserMessageResponse(message="User role updated successfully", user=_user_summary(user))


@router.put("/{user_id}/status")
async def update_status(
    user_id: str,
    request: UpdateStatusRequest,
    admin: User = Depends(require_admin),
) -> UserMessageResponse:
    """Ban or reinstate a user (admin only).

    A ban applies to the user's very next request: tokens stay
    cryptographically valid but the gate re-reads the active flag.
    """
    user = await UserService().set_active(user_id, request.is_active)
    if user is None:
        raise NotFound("User not found")

    logger.info(
        "admin_updated_status",
        admin_id=admin.id,
        target_user_id=user_id,
        is_active=request.is_active,
    )
    action = "activated" if request.is_active else "banned"
    return UserMessageResponse(message=f"User {action} successfully", user=_user_summary(user))
