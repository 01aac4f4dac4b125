"""
Item Model Module

This module defines the Item model, the shared unit of content that users are
given roles on. Todos and notes belong to an item.
"""
from typing import Any, Optional

from sqlmodel import JSON, Column, Field, SQLModel

from todo_api.models.user import utc_now


class ItemBase(SQLModel):
    """
    Base properties for an Item.
    """
    name: str = Field(nullable=False, max_length=255)

    # Opaque structured content, stored as JSON and returned unchanged
    content: Any = Field(default_factory=list, sa_column=Column(JSON, nullable=False))


class Item(ItemBase, table=True):
    """
    Item table model.

    The version column is the optimistic lock: every successful edit increments
    it by exactly one, and edits are only applied when the caller presents the
    current value.
    """
    __tablename__ = "items"

    id: Optional[int] = Field(default=None, primary_key=True)
    version: int = Field(default=1, nullable=False)

    # Audit timestamps
    created_at: Optional[str] = Field(default_factory=utc_now)
    updated_at: Optional[str] = Field(default_factory=utc_now)

    @property
    def etag(self) -> str:
        """Strong ETag derived from the version counter."""
        return f'"{self.version}"'


class ItemRead(ItemBase):
    """Basic schema for reading an item."""
    id: int
    version: int
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class ItemReadWithAccess(ItemRead):
    """Item as seen by a particular user: their role and who shared it with them."""
    role: str
    shared_by: Optional[str] = None  # Grantor email, only set when role is not owner
