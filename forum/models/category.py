"""Category models."""

import re
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator

COLOR_PATTERN = re.compile(r"^#[0-9A-F]{6}$", re.IGNORECASE)
DEFAULT_COLOR = "#3B82F6"


def _check_name(v: str) -> str:
    v = v.strip()
    if not 1 <= len(v) <= 50:
        raise ValueError("Name must be 1-50 characters")
    return v


def _check_description(v: str) -> str:
    v = v.strip()
    if len(v) > 200:
        raise ValueError("Description must be less than 200 characters")
    return v


def _check_color(v: str) -> str:
    if not COLOR_PATTERN.match(v):
        raise ValueError("Color must be a valid hex color")
    return v


class Category(BaseModel):
    """A discussion category."""

    id: str
    name: str
    description: str = ""
    color: str = DEFAULT_COLOR
    is_active: bool = True
    created_at: datetime
    updated_at: datetime


class CategoryWithCount(Category):
    thread_count: int = 0


class CreateCategoryRequest(BaseModel):
    name: str
    description: str = ""
    color: str = DEFAULT_COLOR

    @field_validator("name")
    @classmethod
    def name_valid(cls, v: str) -> str:
        return _check_name(v)

    @field_validator("description")
    @classmethod
    def description_valid(cls, v: str) -> str:
        return _check_description(v)

    @field_validator("color")
    @classmethod
    def color_valid(cls, v: str) -> str:
        return _check_color(v)


class UpdateCategoryRequest(BaseModel):
    """Partial category update. Only provided fields change."""

    name: Optional[str] = None
    description: Optional[str] = None
    color: Optional[str] = None

    @field_validator("name")
    @classmethod
    def name_valid(cls, v: Optional[str]) -> Optional[str]:
        return None if v is None else _check_name(v)

    @field_validator("description")
    @classmethod
    def description_valid(cls, v: Optional[str]) -> Optional[str]:
        return None if v is None else _check_description(v)

    @field_validator("color")
    @classmethod
    def color_valid(cls, v: Optional[str]) -> Optional[str]:
        return None if v is None else _check_color(v)
