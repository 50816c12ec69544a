"""User identity models."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel


class Role(str, Enum):
    """Coarse permission tier attached to a user."""

    USER = "user"
    MODERATOR = "moderator"
    ADMIN = "admin"


class User(BaseModel):
    """A registered forum member.

    The password hash is deliberately absent: it stays inside the user store.
    """

    id: str
    username: str
    email: str
    role: Role = Role.USER
    is_active: bool = True
    bio: str = ""
    avatar: Optional[str] = None
    created_at: datetime
    updated_at: datetime
