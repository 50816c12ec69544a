"""Category endpoints."""

import structlog
from fastapi import APIRouter, Depends, status

from forum.api.dependencies import require_admin
from forum.exceptions import NotFound
from forum.models.category import (
    Category,
    CategoryWithCount,
    CreateCategoryRequest,
    UpdateCategoryRequest,
)
from forum.models.user import User
from forum.services.category_service import CategoryService

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/categories", tags=["Categories"])


@router.get("")
async def list_categories() -> list[CategoryWithCount]:
    """Active categories sorted by name, with thread counts."""
    return await CategoryService().list_active()


@router.get("/{category_id}")
async def get_category(category_id: str) -> CategoryWithCount:
    category = await CategoryService().get(category_id)
    if category is None:
        raise NotFound("Category not found")
    return category


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_category(
    request: CreateCategoryRequest,
    admin: User = Depends(require_admin),
) -> Category:
    """Create a category (admin only).

    Raises:
        Conflict (400): If the name exists, ignoring case
    """
    category = await CategoryService().create(
        name=request.name,
        description=request.description,
        color=request.color,
    )
    logger.info("admin_created_category", admin_id=admin.id, category_id=category.id)
    return category


@router.put("/{category_id}")
async def update_category(
    category_id: str,
    request: UpdateCategoryRequest,
    admin: User = Depends(require_admin),
) -> Category:
    """Update a category (admin only)."""
    category = await CategoryService().update(
        category_id,
        name=request.name,
        description=request.description,
        color=request.color,
    )
    if category is None:
        raise NotFound("Category not found")
    return category


@router.delete("/{category_id}")
async def delete_category(
    category_id: str,
    admin: User = Depends(require_admin),
) -> dict:
    """Deactivate a category (admin only). Its threads are kept."""
    if not await CategoryService().deactivate(category_id):
        raise NotFound("Category not found")

    logger.info("admin_deactivated_category", admin_id=admin.id, category_id=category_id)
    return {"message": "Category deleted successfully"}
