"""
Role Model Module

This module defines the reference tables of the role/permission catalog and the
UserRole table binding a user to an item with exactly one role.
"""
from typing import Optional

from sqlmodel import Field, SQLModel

from todo_api.models.user import utc_now


class Role(SQLModel, table=True):
    __tablename__ = "roles"

    role_id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(unique=True, nullable=False)
    description: Optional[str] = None


class Permission(SQLModel, table=True):
    __tablename__ = "permissions"

    permission_id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(unique=True, nullable=False)
    description: Optional[str] = None


class RolePermission(SQLModel, table=True):
    """
    Junction table between roles and permissions.

    The composite primary key makes each (role_id, permission_id) pair unique.
    """
    __tablename__ = "role_permissions"

    role_id: int = Field(foreign_key="roles.role_id", primary_key=True, ondelete="CASCADE")
    permission_id: int = Field(foreign_key="permissions.permission_id", primary_key=True, ondelete="CASCADE")


class UserRole(SQLModel, table=True):
    """
    Role assignment of a user on an item.

    The composite primary key (item_id, user_id) guarantees exactly one role per
    user and item. Rows disappear with their item through the foreign key cascade.
    Database triggers (see db/guards.py) keep at least one owner row per
    existing item.

    Attributes:
        item_id: The shared item
        user_id: The user holding the role
        role_id: The granted role
        created_by: The user who granted the role (the creator for owners)
        created_at: ISO timestamp of the grant
    """
    __tablename__ = "user_roles"

    item_id: int = Field(foreign_key="items.id", primary_key=True, ondelete="CASCADE")
    user_id: int = Field(foreign_key="users.id", primary_key=True, ondelete="CASCADE")
    role_id: int = Field(foreign_key="roles.role_id", nullable=False)
    created_by: Optional[int] = Field(default=None, foreign_key="users.id", ondelete="SET NULL")
    created_at: Optional[str] = Field(default_factory=utc_now)


class MemberRead(SQLModel):
    """A user's access to an item, as listed on the members endpoint."""
    user_id: int
    email: str
    username: str
    role: str
    created_by: Optional[int] = None
    created_at: Optional[str] = None
