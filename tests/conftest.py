"""Pytest configuration and fixtures."""

import os
from typing import Generator
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

# Set test environment variables before importing app
os.environ.setdefault("JWT_SECRET", "test-secret-key-for-unit-tests")
os.environ.setdefault("MONGO_URL", "mongodb://localhost:27017")
os.environ.setdefault("MONGO_DB", "forum_test")


@pytest.fixture
def mock_db() -> MagicMock:
    """Mock motor database with users, categories and threads collections."""
    db = MagicMock()
    for name in ("users", "categories", "threads"):
        collection = getattr(db, name)
        collection.find_one = AsyncMock(return_value=None)
        collection.insert_one = AsyncMock()
        collection.find_one_and_update = AsyncMock(return_value=None)
        collection.update_one = AsyncMock()
        collection.count_documents = AsyncMock(return_value=0)
        collection.find.return_value.sort.return_value.to_list = AsyncMock(return_value=[])
        collection.find.return_value.sort.return_value.limit.return_value.to_list = AsyncMock(
            return_value=[]
        )
        collection.find.return_value.to_list = AsyncMock(return_value=[])
        collection.aggregate.return_value.to_list = AsyncMock(return_value=[])
    return db


@pytest.fixture
def patch_db(mock_db) -> Generator[MagicMock, None, None]:
    """Route every service's get_database() to the mock database."""
    with (
        patch("forum.services.user_service.get_database", return_value=mock_db),
        patch("forum.services.category_service.get_database", return_value=mock_db),
    ):
        yield mock_db


@pytest.fixture
def client(patch_db):
    """Create a TestClient with lifespan dependencies mocked out."""
    with (
        patch("forum.database.init_database", new_callable=AsyncMock),
        patch("forum.database.ensure_indexes", new_callable=AsyncMock),
        patch("forum.database.close_database", new_callable=AsyncMock),
    ):
        from fastapi.testclient import TestClient
        from forum.main import app

        with TestClient(app) as tc:
            yield tc

        app.dependency_overrides.clear()