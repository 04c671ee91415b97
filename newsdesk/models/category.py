"""Category model."""

from typing import Optional

from pydantic import Field

from .base import DBModel


class Category(DBModel):
    """Post category."""

    name: str = Field(..., description="Display name")
    slug: str = Field(..., description="Unique slug")
    description: Optional[str] = Field(None, description="Category description")
