"""Shared test helpers: user factories and auth headers."""

from datetime import datetime, timezone

from bson import ObjectId

from forum.models.user import Role, User
from forum.services.password_service import PasswordVerifier

# bcrypt is slow on purpose; hash once per session
SECRET1_HASH = PasswordVerifier().hash("secret1")


def make_user(
    user_id=None,
    username="testuser",
    email="user@example.com",
    role=Role.USER,
    is_active=True,
) -> User:
    """Create a User model for test assertions."""
    now = datetime.now(timezone.utc)
    return User(
        id=user_id or str(ObjectId()),
        username=username,
        email=email,
        role=role,
        is_active=is_active,
        created_at=now,
        updated_at=now,
    )


def make_user_doc(
    oid=None,
    username="testuser",
    email="user@example.com",
    password_hash=SECRET1_HASH,
    role="user",
    is_active=True,
) -> dict:
    """Create a dict that mimics a stored users document."""
    now = datetime.now(timezone.utc)
    return {
        "_id": oid or ObjectId(),
        "username": username,
        "email": email,
        "password_hash": password_hash,
        "role": role,
        "is_active": is_active,
        "bio": "",
        "avatar": None,
        "created_at": now,
        "updated_at": now,
    }


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def token_for(doc: dict) -> str:
    """Issue a real bearer token for a stored user document."""
    from forum.services.token_service import get_token_service

    return get_token_service().issue(make_user(user_id=str(doc["_id"])))
