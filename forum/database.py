"""Database connection and index management."""

from contextlib import contextmanager
from typing import Iterator, Optional

import structlog
from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo import ASCENDING
from pymongo.errors import PyMongoError

from forum.config import get_settings
from forum.exceptions import StoreUnavailable

logger = structlog.get_logger(__name__)

# Global client, created in the application lifespan
_client: Optional[AsyncIOMotorClient] = None


def get_database() -> AsyncIOMotorDatabase:
    """Get the forum database handle.

    Returns:
        motor database for the configured MONGO_DB

    Raises:
        RuntimeError: If the client is not initialized
    """
    if _client is None:
        raise RuntimeError("Database client not initialized. Call init_database() first.")
    return _client[get_settings().mongo_db]


async def init_database() -> AsyncIOMotorDatabase:
    """Create the MongoDB client.

    motor connects lazily, so this never blocks on the server.

    Returns:
        motor database handle
    """
    global _client

    if _client is None:
        settings = get_settings()
        _client = AsyncIOMotorClient(settings.mongo_url, tz_aware=True)
        logger.info("database_client_created", database=settings.mongo_db)

    return get_database()


async def close_database() -> None:
    """Close the MongoDB client."""
    global _client

    if _client is not None:
        _client.close()
        _client = None
        logger.info("database_client_closed")


async def ensure_indexes() -> None:
    """Create the unique indexes the forum relies on.

    Index creation is idempotent and can be re-run safely.
    """
    db = get_database()

    await db.users.create_index([("email", ASCENDING)], unique=True)
    await db.users.create_index([("username", ASCENDING)], unique=True)
    await db.categories.create_index([("name_lower", ASCENDING)], unique=True)
    await db.threads.create_index([("category", ASCENDING)])
    await db.threads.create_index([("author", ASCENDING)])

    logger.info("database_indexes_ensured")


@contextmanager
def store_errors(operation: str) -> Iterator[None]:
    """Translate driver failures into ``StoreUnavailable``.

    Args:
        operation: Name of the store operation, for the log entry

    Raises:
        StoreUnavailable: If the wrapped block raised a PyMongoError
    """
    try:
        yield
    except PyMongoError as e:
        logger.error("store_unavailable", operation=operation, error=str(e))
        raise StoreUnavailable() from e


def to_object_id(value: str) -> Optional[ObjectId]:
    """Parse a string id, returning None when it is not a valid ObjectId."""
    if not isinstance(value, str) or not ObjectId.is_valid(value):
        return None
    return ObjectId(value)


async def health_check() -> bool:
    """Check database connectivity.

    Returns:
        True if database is healthy, False otherwise
    """
    try:
        db = get_database()
        result = await db.command("ping")
        return result.get("ok") == 1
    except (RuntimeError, PyMongoError) as e:
        logger.error("database_health_check_failed", error=str(e))
        return False
