"""Authentication API endpoints."""

import structlog
from fastapi import APIRouter, Depends, status

from forum.api.dependencies import get_current_user
from forum.models.auth import LoginRequest, RegisterRequest, TokenResponse, UserSummary
from forum.models.user import User
from forum.services.auth_strategies import Authenticator, PasswordCredentials
from forum.services.authorization import AuthorizationGate
from forum.services.token_service import get_token_service
from forum.services.user_service import UserService

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/auth", tags=["Auth"])


def _user_summary(user: User) -> UserSummary:
    """Convert a User model to a UserSummary response."""
    return UserSummary(
        id=user.id,
        username=user.username,
        email=user.email,
        role=user.role,
        is_active=user.is_active,
        bio=user.bio,
        avatar=user.avatar,
        created_at=user.created_at,
    )


def _token_response(user: User) -> TokenResponse:
    """Issue a fresh token for the user."""
    token_service = get_token_service()
    return TokenResponse(
        token=token_service.issue(user),
        token_type="bearer",
        expires_in=token_service.expires_in,
        user=_user_summary(user),
    )


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(request: RegisterRequest) -> TokenResponse:
    """Create an account and log it in.

    Raises:
        Conflict (409): If the email or username is already registered
    """
    user_service = UserService()
    user = await user_service.create_user(
        username=request.username,
        email=request.email,
        password=request.password,
    )

    logger.info("user_registered", user_id=user.id, username=user.username)
    return _token_response(user)


@router.post("/login")
async def login(request: LoginRequest) -> TokenResponse:
    """Login with email and password.

    Args:
        request: Login credentials

    Returns:
        TokenResponse with a bearer token and user info

    Raises:
        InvalidCredentials (401): Unknown email or wrong password
        Forbidden (403): The account is banned
    """
    authenticator = Authenticator(UserService(), get_token_service())
    result = await authenticator.resolve(
        PasswordCredentials(email=request.email, password=request.password)
    )
    user = AuthorizationGate().authorize(result)

    logger.info("user_logged_in", user_id=user.id, username=user.username)
    return _token_response(user)


@router.get("/me")
async def get_me(current_user: User = Depends(get_current_user)) -> UserSummary:
    """Get current authenticated user info."""
    return _user_summary(current_user)
