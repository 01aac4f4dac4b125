"""
Role/Permission Catalog Module

Static reference data describing which permissions each item role grants.

Role hierarchy (from most to least privileged):
- OWNER: full control, including sharing and deleting the item
- EDITOR: can view and modify the item, its todos and notes
- VIEWER: read-only access

The catalog is seeded into the roles, permissions and role_permissions tables
once at start-up. Application code never mutates those rows; authorization
queries join through them.
"""
from enum import Enum
from typing import Dict, FrozenSet

from sqlmodel import Session, select

from todo_api.core.exceptions import InvalidRole


class RoleName(str, Enum):
    OWNER = "owner"
    EDITOR = "editor"
    VIEWER = "viewer"


class PermissionName(str, Enum):
    CAN_VIEW = "can_view"
    CAN_EDIT = "can_edit"
    CAN_SHARE = "can_share"
    CAN_DELETE = "can_delete"


ROLE_DESCRIPTIONS: Dict[RoleName, str] = {
    RoleName.OWNER: "Full control over the item and can manage other users' access",
    RoleName.EDITOR: "Can view and edit the item content",
    RoleName.VIEWER: "Can only view the item content",
}

PERMISSION_DESCRIPTIONS: Dict[PermissionName, str] = {
    PermissionName.CAN_VIEW: "Can view the item content",
    PermissionName.CAN_EDIT: "Can modify the item content",
    PermissionName.CAN_SHARE: "Can share the item with other users",
    PermissionName.CAN_DELETE: "Can delete the item",
}

ROLE_PERMISSIONS: Dict[RoleName, FrozenSet[PermissionName]] = {
    RoleName.OWNER: frozenset(PermissionName),
    RoleName.EDITOR: frozenset({PermissionName.CAN_VIEW, PermissionName.CAN_EDIT}),
    RoleName.VIEWER: frozenset({PermissionName.CAN_VIEW}),
}

# Owner can only be obtained by creating the item
SHAREABLE_ROLES: FrozenSet[RoleName] = frozenset({RoleName.EDITOR, RoleName.VIEWER})


def role_has_permission(role: RoleName, permission: PermissionName) -> bool:
    return permission in ROLE_PERMISSIONS.get(role, frozenset())


def parse_role(value: str) -> RoleName:
    """
    Convert a client supplied role name into a RoleName.

    Raises:
        InvalidRole: If the value is not one of the known role names
    """
    try:
        return RoleName(value)
    except ValueError:
        raise InvalidRole(f"Invalid role '{value}'. Must be one of: {', '.join(r.value for r in RoleName)}")


def parse_shareable_role(value: str) -> RoleName:
    """Like parse_role, but only accepts roles that may be granted by sharing."""
    role = parse_role(value) if value else None
    if role not in SHAREABLE_ROLES:
        raise InvalidRole("Invalid role. Must be 'editor' or 'viewer'")
    return role


def seed_catalog(session: Session) -> None:
    """
    Insert the role/permission catalog if it is missing.

    Existing rows are left untouched, so calling this on every start-up is safe.
    """
    from todo_api.models.role import Permission, Role, RolePermission

    roles = {r.name: r for r in session.exec(select(Role)).all()}
    for role_name in RoleName:
        if role_name.value not in roles:
            role = Role(name=role_name.value, description=ROLE_DESCRIPTIONS[role_name])
            session.add(role)
            roles[role_name.value] = role

    permissions = {p.name: p for p in session.exec(select(Permission)).all()}
    for permission_name in PermissionName:
        if permission_name.value not in permissions:
            permission = Permission(
                name=permission_name.value,
                description=PERMISSION_DESCRIPTIONS[permission_name],
            )
            session.add(permission)
            permissions[permission_name.value] = permission

    # Assign primary keys before building the link rows
    session.flush()

    existing_links = {
        (link.role_id, link.permission_id)
        for link in session.exec(select(RolePermission)).all()
    }
    for role_name, granted in ROLE_PERMISSIONS.items():
        role_id = roles[role_name.value].role_id
        for permission_name in granted:
            permission_id = permissions[permission_name.value].permission_id
            if (role_id, permission_id) not in existing_links:
                session.add(RolePermission(role_id=role_id, permission_id=permission_id))

    session.commit()
