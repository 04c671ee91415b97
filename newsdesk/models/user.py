"""User model."""

from typing import Optional

from pydantic import Field

from .base import DBModel


class User(DBModel):
    """Application user. Imports are attributed to an admin account."""

    email: str = Field(..., description="Login email")
    name: Optional[str] = Field(None, description="Display name")
    role: str = Field("EDITOR", description="Role (ADMIN, EDITOR, ...)")
