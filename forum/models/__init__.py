"""Models package exports."""

from forum.models.auth import LoginRequest, RegisterRequest, TokenResponse, UserSummary
from forum.models.category import Category, CategoryWithCount
from forum.models.user import Role, User

__all__ = [
    "Category",
    "CategoryWithCount",
    "LoginRequest",
    "RegisterRequest",
    "Role",
    "TokenResponse",
    "User",
    "UserSummary",
]
