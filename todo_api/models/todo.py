"""
Todo Model Module

Todos are checklist entries attached to exactly one item. They are removed
together with their item.
"""
from typing import Optional

from sqlmodel import Field, SQLModel

from todo_api.models.user import utc_now


class TodoBase(SQLModel):
    title: str = Field(nullable=False, max_length=255)
    body: Optional[str] = None
    done: bool = Field(default=False, nullable=False)


class Todo(TodoBase, table=True):
    __tablename__ = "todos"

    id: Optional[int] = Field(default=None, primary_key=True)
    item_id: int = Field(foreign_key="items.id", index=True, nullable=False, ondelete="CASCADE")

    # Audit timestamps
    created_at: Optional[str] = Field(default_factory=utc_now)
    updated_at: Optional[str] = Field(default_factory=utc_now)


class TodoRead(TodoBase):
    """Schema for reading a todo."""
    id: int
    item_id: int
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
