"""Category management service."""

import asyncio
from datetime import datetime, timezone
from typing import Any, Optional

import structlog
from pymongo import ASCENDING, ReturnDocument
from pymongo.errors import DuplicateKeyError

from forum.database import get_database, store_errors, to_object_id
from forum.exceptions import Conflict
from forum.models.category import DEFAULT_COLOR, Category, CategoryWithCount

logger = structlog.get_logger(__name__)


def _to_category(doc: dict[str, Any]) -> Category:
    return Category(
        id=str(doc["_id"]),
        name=doc["name"],
        description=doc.get("description", ""),
        color=doc.get("color", DEFAULT_COLOR),
        is_active=doc.get("is_active", True),
        created_at=doc["created_at"],
        updated_at=doc["updated_at"],
    )


class CategoryService:
    """Service for category CRUD and thread counts."""

    def __init__(self):
        self.db = get_database()

    async def _thread_count(self, category_id: Any) -> int:
        return await self.db.threads.count_documents({"category": category_id})

    async def _name_taken(self, name: str, exclude_id: Any = None) -> bool:
        # name_lower backs the case-insensitive unique index
        query: dict[str, Any] = {"name_lower": name.lower()}
        if exclude_id is not None:
            query["_id"] = {"$ne": exclude_id}
        return await self.db.categories.find_one(query, {"_id": 1}) is not None

    async def list_active(self) -> list[CategoryWithCount]:
        """Return active categories sorted by name, each with its thread count."""
        with store_errors("categories.list_active"):
            cursor = self.db.categories.find({"is_active": True}).sort("name", ASCENDING)
            docs = await cursor.to_list(length=None)
            counts = await asyncio.gather(*(self._thread_count(doc["_id"]) for doc in docs))

        return [
            CategoryWithCount(**_to_category(doc).model_dump(), thread_count=count)
            for doc, count in zip(docs, counts)
        ]

    async def get(self, category_id: str) -> Optional[CategoryWithCount]:
        """Get a category and its thread count, or None if not found."""
        oid = to_object_id(category_id)
        if oid is None:
            return None

        with store_errors("categories.get"):
            doc = await self.db.categories.find_one({"_id": oid})
            if doc is None:
                return None
            count = await self._thread_count(oid)

        return CategoryWithCount(**_to_category(doc).model_dump(), thread_count=count)

    async def create(self, name: str, description: str = "", color: str = DEFAULT_COLOR) -> Category:
        """Create a category.

        Raises:
            Conflict (400): If a category with that name exists, ignoring case
        """
        with store_errors("categories.create"):
            if await self._name_taken(name):
                raise Conflict("Category already exists", status_code=400)

            now = datetime.now(timezone.utc)
            doc = {
                "name": name,
                "name_lower": name.lower(),
                "description": description,
                "color": color,
                "is_active": True,
                "created_at": now,
                "updated_at": now,
            }
            try:
                result = await self.db.categories.insert_one(doc)
            except DuplicateKeyError:
                raise Conflict("Category already exists", status_code=400)

        doc["_id"] = result.inserted_id
        logger.info("category_created", category_id=str(result.inserted_id), name=name)
        return _to_category(doc)

    async def update(
        self,
        category_id: str,
        name: Optional[str] = None,
        description: Optional[str] = None,
        color: Optional[str] = None,
    ) -> Optional[Category]:
        """Update provided fields. Returns None if the category does not exist.

        Raises:
            Conflict (400): If the new name collides with another category
        """
        oid = to_object_id(category_id)
        if oid is None:
            return None

        fields: dict[str, Any] = {}
        if name is not None:
            fields["name"] = name
            fields["name_lower"] = name.lower()
        if description is not None:
            fields["description"] = description
        if color is not None:
            fields["color"] = color
        fields["updated_at"] = datetime.now(timezone.utc)

        with store_errors("categories.update"):
            if name is not None and await self._name_taken(name, exclude_id=oid):
                raise Conflict("Category already exists", status_code=400)
            try:
                doc = await self.db.categories.find_one_and_update(
                    {"_id": oid},
                    {"$set": fields},
                    return_document=ReturnDocument.AFTER,
                )
            except DuplicateKeyError:
                raise Conflict("Category already exists", status_code=400)

        if doc is None:
            return None

        logger.info("category_updated", category_id=category_id)
        return _to_category(doc)

    async def deactivate(self, category_id: str) -> bool:
        """Soft-delete a category so its threads stay reachable.

        Returns:
            True if the category existed
        """
        oid = to_object_id(category_id)
        if oid is None:
            return False

        with store_errors("categories.deactivate"):
            result = await self.db.categories.update_one(
                {"_id": oid},
                {"$set": {"is_active": False, "updated_at": datetime.now(timezone.utc)}},
            )

        found = result.matched_count == 1
        if found:
            logger.info("category_deactivated", category_id=category_id)
        else:
            logger.warning("category_deactivate_not_found", category_id=category_id)
        return found
