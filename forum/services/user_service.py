"""User store backed by the ``users`` collection."""

from datetime import datetime, timezone
from typing import Any, Optional

import structlog
from pydantic import ValidationError
from pymongo import DESCENDING, ReturnDocument
from pymongo.errors import DuplicateKeyError

from forum.database import get_database, store_errors, to_object_id
from forum.exceptions import Conflict, CorruptRecordError
from forum.models.auth import UserStats
from forum.models.category import DEFAULT_COLOR
from forum.models.thread import RecentThread, ThreadCategory
from forum.models.user import Role, User
from forum.services.password_service import PasswordVerifier

logger = structlog.get_logger(__name__)

RECENT_THREADS_LIMIT = 5


def _to_user(doc: dict[str, Any]) -> User:
    """Build a User from a stored document, leaving the hash behind.

    Raises:
        CorruptRecordError: If the document lacks a field or holds an
            unknown role
    """
    try:
        return User(
            id=str(doc["_id"]),
            username=doc["username"],
            email=doc["email"],
            role=doc.get("role", Role.USER.value),
            is_active=doc.get("is_active", True),
            bio=doc.get("bio", ""),
            avatar=doc.get("avatar"),
            created_at=doc["created_at"],
            updated_at=doc["updated_at"],
        )
    except (KeyError, ValidationError) as e:
        logger.error("corrupt_user_record", user_id=str(doc.get("_id")), error=type(e).__name__)
        raise CorruptRecordError() from e


class UserRecord:
    """A user looked up for login.

    The stored hash is kept private; callers can only ask whether a
    candidate password matches it.
    """

    __slots__ = ("user", "_password_hash", "_verifier")

    def __init__(self, user: User, password_hash: Optional[str], verifier: PasswordVerifier):
        self.user = user
        self._password_hash = password_hash
        self._verifier = verifier

    def check_password(self, candidate: str) -> bool:
        """Compare a candidate password with the stored hash.

        Raises:
            CorruptPasswordHashError: If the stored hash is unreadable
        """
        return self._verifier.verify(candidate, self._password_hash)

    def __repr__(self) -> str:
        return f"UserRecord(user_id={self.user.id!r})"


class UserService:
    """Service for user lookups and writes."""

    def __init__(self):
        self.db = get_database()
        self.verifier = PasswordVerifier()

    async def find_by_email(self, email: str) -> Optional[UserRecord]:
        """Get a user and their credential check by email (case-insensitive).

        Args:
            email: Email to look up

        Returns:
            UserRecord or None if no user has that email
        """
        normalized = email.strip().lower()
        with store_errors("users.find_by_email"):
            doc = await self.db.users.find_one({"email": normalized})

        if doc is None:
            return None

        return UserRecord(_to_user(doc), doc.get("password_hash"), self.verifier)

    async def find_by_id(self, user_id: str) -> Optional[User]:
        """Get a user by id.

        Args:
            user_id: User ObjectId as string

        Returns:
            User model or None if not found (or the id is malformed)
        """
        oid = to_object_id(user_id)
        if oid is None:
            return None

        with store_errors("users.find_by_id"):
            doc = await self.db.users.find_one({"_id": oid})

        return _to_user(doc) if doc is not None else None

    async def username_taken(self, username: str, exclude_id: Optional[str] = None) -> bool:
        """Check whether a username belongs to someone (other than exclude_id)."""
        query: dict[str, Any] = {"username": username}
        if exclude_id is not None:
            query["_id"] = {"$ne": to_object_id(exclude_id)}

        with store_errors("users.username_taken"):
            doc = await self.db.users.find_one(query, {"_id": 1})

        return doc is not None

    async def create_user(
        self,
        username: str,
        email: str,
        password: str,
        role: Role = Role.USER,
    ) -> User:
        """Create a new user with a hashed password.

        Args:
            username: Unique username
            email: Unique email (stored lower-cased)
            password: Plain-text password (will be hashed)
            role: Initial role

        Returns:
            Created User model

        Raises:
            Conflict: If the email or username is already registered
        """
        email = email.strip().lower()

        with store_errors("users.create_user"):
            if await self.db.users.find_one({"email": email}, {"_id": 1}) is not None:
                raise Conflict("Email already registered")
            if await self.db.users.find_one({"username": username}, {"_id": 1}) is not None:
                raise Conflict("Username already taken")

            now = datetime.now(timezone.utc)
            doc = {
                "username": username,
                "email": email,
                "password_hash": self.verifier.hash(password),
                "role": role.value,
                "is_active": True,
                "bio": "",
                "avatar": None,
                "created_at": now,
                "updated_at": now,
            }
            try:
                result = await self.db.users.insert_one(doc)
            except DuplicateKeyError:
                # Lost a race with a concurrent registration
                raise Conflict("Email or username already registered")

        doc["_id"] = result.inserted_id

        logger.info(
            "user_created",
            user_id=str(result.inserted_id),
            username=username,
            role=role.value,
        )

        return _to_user(doc)

    async def list_users(self) -> list[User]:
        """Return all users, newest first."""
        with store_errors("users.list_users"):
            cursor = self.db.users.find().sort("created_at", DESCENDING)
            docs = await cursor.to_list(length=None)

        return [_to_user(doc) for doc in docs]

    async def _update(self, user_id: str, fields: dict[str, Any], operation: str) -> Optional[User]:
        oid = to_object_id(user_id)
        if oid is None:
            return None

        fields["updated_at"] = datetime.now(timezone.utc)

        with store_errors(operation):
            try:
                doc = await self.db.users.find_one_and_update(
                    {"_id": oid},
                    {"$set": fields},
                    return_document=ReturnDocument.AFTER,
                )
            except DuplicateKeyError:
                raise Conflict("Username already taken", status_code=400)

        if doc is None:
            return None

        logger.info(
            "user_updated",
            user_id=user_id,
            fields_updated=[k for k in fields if k != "updated_at"],
        )
        return _to_user(doc)

    async def update_profile(
        self,
        user_id: str,
        username: Optional[str] = None,
        bio: Optional[str] = None,
        avatar: Optional[str] = None,
    ) -> Optional[User]:
        """Update profile fields that are not None.

        Returns:
            Updated User model, or None if user not found
        """
        fields: dict[str, Any] = {}
        if username is not None:
            fields["username"] = username
        if bio is not None:
            fields["bio"] = bio
        if avatar is not None:
            fields["avatar"] = avatar

        if not fields:
            return await self.find_by_id(user_id)

        return await self._update(user_id, fields, "users.update_profile")

    async def set_role(self, user_id: str, role: Role) -> Optional[User]:
        """Change a user's role. Returns None if the user does not exist."""
        return await self._update(user_id, {"role": role.value}, "users.set_role")

    async def set_active(self, user_id: str, is_active: bool) -> Optional[User]:
        """Ban (False) or reinstate (True) a user. Returns None if not found."""
        return await self._update(user_id, {"is_active": is_active}, "users.set_active")

    async def get_stats(self, user_id: str) -> UserStats:
        """Count the threads and replies a user has authored."""
        oid = to_object_id(user_id)
        if oid is None:
            return UserStats()

        with store_errors("users.get_stats"):
            thread_count = await self.db.threads.count_documents({"author": oid})
            cursor = self.db.threads.aggregate(
                [
                    {"$unwind": "$replies"},
                    {"$match": {"replies.author": oid}},
                    {"$count": "total"},
                ]
            )
            rows = await cursor.to_list(length=1)

        reply_count = rows[0]["total"] if rows else 0
        return UserStats(thread_count=thread_count, reply_count=reply_count)

    async def get_recent_threads(
        self, user_id: str, limit: int = RECENT_THREADS_LIMIT
    ) -> list[RecentThread]:
        """Return the user's newest threads with their category name and color."""
        oid = to_object_id(user_id)
        if oid is None:
            return []

        with store_errors("users.get_recent_threads"):
            cursor = self.db.threads.find({"author": oid}).sort("created_at", DESCENDING).limit(limit)
            threads = await cursor.to_list(length=limit)

            category_ids = list({t["category"] for t in threads if t.get("category") is not None})
            categories = {}
            if category_ids:
                cursor = self.db.categories.find(
                    {"_id": {"$in": category_ids}}, {"name": 1, "color": 1}
                )
                categories = {c["_id"]: c for c in await cursor.to_list(length=None)}

        recent = []
        for thread in threads:
            category = categories.get(thread.get("category"))
            if category is not None:
                category = ThreadCategory(
                    id=str(category["_id"]),
                    name=category["name"],
                    color=category.get("color", DEFAULT_COLOR),
                )
            recent.append(
                RecentThread(
                    id=str(thread["_id"]),
                    title=thread.get("title", ""),
                    category=category,
                    created_at=thread["created_at"],
                )
            )
        return recent
