"""Auth and user-management request/response models with validation."""

import re
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, StrictBool, field_validator

from forum.models.thread import RecentThread
from forum.models.user import Role

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
USERNAME_PATTERN = re.compile(r"^[a-zA-Z0-9_-]+$")
URL_PATTERN = re.compile(r"^https?://[^\s/$.?#].[^\s]*$", re.IGNORECASE)


def _normalize_email(v: str) -> str:
    v = v.strip().lower()
    if not EMAIL_PATTERN.match(v):
        raise ValueError("Must be a valid email address")
    return v


def _check_username(v: str) -> str:
    v = v.strip()
    if not 3 <= len(v) <= 30:
        raise ValueError("Username must be 3-30 characters")
    if not USERNAME_PATTERN.match(v):
        raise ValueError(
            "Username must contain only alphanumeric characters, "
            "underscores, or hyphens"
        )
    return v


class LoginRequest(BaseModel):
    """Login credentials for authentication.

    Attributes:
        email: Registered email (compared case-insensitively)
        password: Plain-text password
    """

    email: str = Field(..., max_length=254)
    password: str = Field(..., min_length=1, max_length=128)

    @field_validator("email")
    @classmethod
    def email_valid(cls, v: str) -> str:
        return _normalize_email(v)


class RegisterRequest(BaseModel):
    """New account registration.

    Attributes:
        username: Public handle (3-30 chars, alphanumeric + underscore/hyphen)
        email: Unique email address
        password: Password (6-72 bytes)
    """

    username: str
    email: str = Field(..., max_length=254)
    password: str = Field(..., min_length=6)

    @field_validator("username")
    @classmethod
    def username_valid(cls, v: str) -> str:
        return _check_username(v)

    @field_validator("email")
    @classmethod
    def email_valid(cls, v: str) -> str:
        return _normalize_email(v)

    @field_validator("password")
    @classmethod
    def password_valid(cls, v: str) -> str:
        """Ensure password is not whitespace only and fits bcrypt."""
        if not v.strip():
            raise ValueError("Password cannot be empty or whitespace only")
        if len(v.encode("utf-8")) > 72:
            raise ValueError("Password must be at most 72 bytes")
        return v


class UserSummary(BaseModel):
    """Public user representation for API responses."""

    id: str
    username: str
    email: str
    role: Role
    is_active: bool
    bio: str
    avatar: Optional[str]
    created_at: datetime


class TokenResponse(BaseModel):
    """Successful authentication response.

    Attributes:
        token: Signed bearer token
        token_type: Always "bearer"
        expires_in: Token lifetime in seconds
        user: Summary of the authenticated user
    """

    token: str
    token_type: str = "bearer"
    expires_in: int = Field(ge=1, description="Token lifetime in seconds")
    user: UserSummary


class UpdateProfileRequest(BaseModel):
    """Self-service profile update. Only provided fields change."""

    username: Optional[str] = None
    bio: Optional[str] = None
    avatar: Optional[str] = None

    @field_validator("username")
    @classmethod
    def username_valid(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        return _check_username(v)

    @field_validator("bio")
    @classmethod
    def bio_length(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        v = v.strip()
        if len(v) > 500:
            raise ValueError("Bio must be less than 500 characters")
        return v

    @field_validator("avatar")
    @classmethod
    def avatar_url(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        if not URL_PATTERN.match(v):
            raise ValueError("Avatar must be a valid URL")
        return v


class UpdateRoleRequest(BaseModel):
    role: Role


class UpdateStatusRequest(BaseModel):
    is_active: StrictBool


class UserStats(BaseModel):
    thread_count: int = 0
    reply_count: int = 0


class UserDetailResponse(BaseModel):
    """A user together with their posting statistics."""

    user: UserSummary
    stats: UserStats


class UserMessageResponse(BaseModel):
    """Confirmation message plus the affected user."""

    message: str
    user: UserSummary


class PublicUserResponse(UserDetailResponse):
    """Public profile: a user, their stats and their newest threads."""

    recent_threads: list[RecentThread] = []
