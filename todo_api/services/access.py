"""
Access Control Evaluator

Decides whether a user may perform an action on an item by resolving the
user's role on that item through the catalog tables:

    user_roles -> roles -> role_permissions -> permissions

Policy for users without any role on the item: the item is reported as not
found, so callers cannot probe which item IDs exist. A user who holds a role
that lacks the permission gets PermissionDenied.
"""
from typing import Optional, Set

from sqlmodel import Session, select

from todo_api.core.exceptions import ItemNotFound, PermissionDenied
from todo_api.core.permissions import PermissionName, RoleName
from todo_api.models.role import Permission, Role, RolePermission, UserRole


def get_role(db: Session, user_id: int, item_id: int) -> Optional[RoleName]:
    """Return the user's role on the item, or None when they have no access."""
    statement = (
        select(Role.name)
        .join(UserRole, UserRole.role_id == Role.role_id)
        .where(UserRole.user_id == user_id, UserRole.item_id == item_id)
    )
    name = db.exec(statement).first()
    return RoleName(name) if name is not None else None


def get_permissions(db: Session, user_id: int, item_id: int) -> Set[PermissionName]:
    """Return every permission the user holds on the item (empty when none)."""
    statement = (
        select(Permission.name)
        .join(RolePermission, RolePermission.permission_id == Permission.permission_id)
        .join(UserRole, UserRole.role_id == RolePermission.role_id)
        .where(UserRole.user_id == user_id, UserRole.item_id == item_id)
        .distinct()
    )
    return {PermissionName(name) for name in db.exec(statement).all()}


def has_permission(db: Session, user_id: int, item_id: int, permission: PermissionName) -> bool:
    statement = (
        select(UserRole.item_id)
        .join(RolePermission, RolePermission.role_id == UserRole.role_id)
        .join(Permission, Permission.permission_id == RolePermission.permission_id)
        .where(
            UserRole.user_id == user_id,
            UserRole.item_id == item_id,
            Permission.name == permission.value,
        )
    )
    return db.exec(statement).first() is not None


def authorize(db: Session, user_id: int, item_id: int, permission: PermissionName) -> RoleName:
    """
    Check that the user holds the permission on the item.

    Reads only; nothing is written. Writes that follow the check re-validate
    the state they depend on themselves (e.g. the version check on edits).

    Args:
        db: Database session
        user_id: The authenticated user
        item_id: The item being accessed
        permission: The permission the operation requires

    Returns:
        RoleName: The user's role on the item

    Raises:
        ItemNotFound: If the user has no role on the item (or it doesn't exist)
        PermissionDenied: If the user's role does not grant the permission
    """
    role = get_role(db, user_id, item_id)
    if role is None:
        raise ItemNotFound("Item not found")

    if not has_permission(db, user_id, item_id, permission):
        raise PermissionDenied(f"Your role '{role.value}' does not allow {permission.value} on this item")
    return role
