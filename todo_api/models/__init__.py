from .user import User
from .item import Item
from .role import Role, Permission, RolePermission, UserRole
from .todo import Todo
from .note import Note

__all__ = [
    "User",
    "Item",
    "Role", "Permission", "RolePermission", "UserRole",
    "Todo",
    "Note",
]
