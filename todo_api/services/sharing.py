"""
Sharing Service Module

Grants, updates and revokes users' roles on items. Every change to the
user_roles table other than item creation and deletion goes through here.
"""
import logging
from typing import List

from sqlalchemy import delete
from sqlmodel import Session, select

from todo_api.core.exceptions import AssignmentNotFound, UserNotFound
from todo_api.core.permissions import PermissionName, RoleName, parse_shareable_role
from todo_api.db.guards import guard_last_owner
from todo_api.models.role import MemberRead, Role, UserRole
from todo_api.models.user import User, utc_now
from todo_api.services.access import authorize
from todo_api.services.items import get_role_id

logger = logging.getLogger(__name__)


def share_item(db: Session, actor_id: int, item_id: int, target_user_id: int, role: str) -> UserRole:
    """
    Give target_user_id the role on item_id, replacing any role they already hold.

    Checks run in this order, all before anything is written:
    role must be editor or viewer, the actor must hold can_share, and the
    target user must exist. The insert-or-update then happens in a single
    transaction, so sharing twice with the same role leaves one row.

    Returns:
        UserRole: The resulting assignment

    Raises:
        InvalidRole: If role is not 'editor' or 'viewer'
        ItemNotFound / PermissionDenied: If the actor may not share the item
        UserNotFound: If the target user does not exist
        LastOwnerViolation: If this would demote the item's only owner
    """
    role_name = parse_shareable_role(role)
    authorize(db, actor_id, item_id, PermissionName.CAN_SHARE)

    if db.get(User, target_user_id) is None:
        raise UserNotFound("User not found")

    role_id = get_role_id(db, role_name)
    assignment = db.get(UserRole, (item_id, target_user_id))
    if assignment is None:
        assignment = UserRole(
            item_id=item_id,
            user_id=target_user_id,
            role_id=role_id,
            created_by=actor_id,
        )
        action = "Granted"
    else:
        assignment.role_id = role_id
        assignment.created_by = actor_id
        assignment.created_at = utc_now()
        action = "Updated"
    db.add(assignment)

    with guard_last_owner(db):
        db.commit()
    db.refresh(assignment)
    logger.info(
        "%s %s role on item %s to user %s (by user %s)",
        action, role_name.value, item_id, target_user_id, actor_id,
    )
    return assignment


def revoke_access(db: Session, actor_id: int, item_id: int, target_user_id: int) -> None:
    """
    Remove target_user_id's role on the item.

    Users may always drop their own access; removing someone else requires
    can_share. The database refuses to delete the item's last owner row.
    """
    if actor_id == target_user_id:
        authorize(db, actor_id, item_id, PermissionName.CAN_VIEW)
    else:
        authorize(db, actor_id, item_id, PermissionName.CAN_SHARE)

    with guard_last_owner(db):
        result = db.exec(
            delete(UserRole).where(UserRole.item_id == item_id, UserRole.user_id == target_user_id)
        )
        if result.rowcount == 0:
            db.rollback()
            raise AssignmentNotFound("User has no access to this item")
        db.commit()
    logger.info("Revoked user %s from item %s (by user %s)", target_user_id, item_id, actor_id)


def list_members(db: Session, item_id: int) -> List[MemberRead]:
    statement = (
        select(UserRole, User, Role.name)
        .join(User, User.id == UserRole.user_id)
        .join(Role, Role.role_id == UserRole.role_id)
        .where(UserRole.item_id == item_id)
        .order_by(UserRole.created_at, UserRole.user_id)
    )
    return [
        MemberRead(
            user_id=user.id,
            email=user.email,
            username=user.username,
            role=role_name,
            created_by=assignment.created_by,
            created_at=assignment.created_at,
        )
        for assignment, user, role_name in db.exec(statement).all()
    ]


def count_owners(db: Session, item_id: int) -> int:
    owner_role_id = get_role_id(db, RoleName.OWNER)
    rows = db.exec(
        select(UserRole.user_id).where(UserRole.item_id == item_id, UserRole.role_id == owner_role_id)
    ).all()
    return len(rows)
