"""
Note Model Module

This module defines the Note model. Notes are free-text entries attached to an
item; they share the item's access control and are deleted with it.
"""
from typing import Optional

from sqlmodel import Field, SQLModel

from todo_api.models.user import utc_now


class NoteBase(SQLModel):
    """
    Base properties for a Note.
    """
    content: str = Field(nullable=False)


class Note(NoteBase, table=True):
    """
    Note table model.
    """
    __tablename__ = "notes"

    # Primary key
    id: Optional[int] = Field(default=None, primary_key=True)

    # Parent item
    item_id: int = Field(foreign_key="items.id", index=True, nullable=False, ondelete="CASCADE")

    # Audit timestamps
    created_at: Optional[str] = Field(default_factory=utc_now)
    updated_at: Optional[str] = Field(default_factory=utc_now)


class NoteRead(NoteBase):
    """Basic schema for reading a note."""
    id: int
    item_id: int
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
