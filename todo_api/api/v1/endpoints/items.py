"""
Item Endpoints Module

This module provides CRUD endpoints for items and their sharing. Every route that
names an item checks the caller's permission on it through the role catalog; edits
are guarded by the item's version counter.
"""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Header, Path, Response, status
from sqlmodel import Session

from todo_api.api import deps
from todo_api.core.exceptions import ValidationFailed
from todo_api.core.permissions import PermissionName
from todo_api.db.session import get_db
from todo_api.models.item import ItemRead, ItemReadWithAccess
from todo_api.models.role import MemberRead
from todo_api.models.user import User
from todo_api.schemas.item import ItemCreate, ItemUpdate, ShareRequest
from todo_api.services import items as item_service
from todo_api.services import sharing as sharing_service

logger = logging.getLogger(__name__)

router = APIRouter()


def parse_if_match(value: Optional[str]) -> Optional[int]:
    """Extract the version from an If-Match header such as '"3"' or 'W/"3"'."""
    if not value:
        return None
    tag = value.strip()
    if tag.startswith("W/"):
        tag = tag[2:]
    tag = tag.strip('"')
    try:
        version = int(tag)
    except ValueError:
        raise ValidationFailed("If-Match must carry an item ETag")
    if version <= 0:
        raise ValidationFailed("If-Match must carry an item ETag")
    return version


@router.get("", response_model=List[ItemReadWithAccess])
def list_items(
    db: Session = Depends(get_db),
    current_user: User = Depends(deps.get_current_user),
):
    """
    Retrieve every item the current user holds a role on (owner, editor or viewer).

    Each entry carries the caller's role and, for shared items, the email of the
    user who shared it.
    """
    return item_service.list_items(db, current_user.id)


@router.post("", response_model=ItemRead)
def create_item(
    item_in: ItemCreate,
    response: Response,
    db: Session = Depends(get_db),
    current_user: User = Depends(deps.get_current_user),
):
    """
    Create a new item owned by the current user.

    The item and the creator's owner role are written in one transaction.

    Returns:
        ItemRead: The new item, at version 1
    """
    item = item_service.create_item(db, current_user.id, item_in.name, item_in.content)
    response.headers["ETag"] = item.etag
    return item


@router.get("/{item_id}", response_model=ItemReadWithAccess)
def read_item(
    response: Response,
    item_id: int = Path(gt=0),
    if_none_match: Optional[str] = Header(default=None),
    db: Session = Depends(get_db),
    current_user: User = Depends(deps.get_current_user),
    _role=Depends(deps.ItemAccess(PermissionName.CAN_VIEW)),
):
    """
    Get a specific item.

    The response carries an ETag built from the item's version. A matching
    If-None-Match header short-circuits to 304 Not Modified.

    Raises:
        404: If the item doesn't exist or the user has no role on it
    """
    item = item_service.get_item(db, current_user.id, item_id)
    etag = f'"{item.version}"'
    if if_none_match is not None and if_none_match.strip() == etag:
        return Response(status_code=status.HTTP_304_NOT_MODIFIED, headers={"ETag": etag})
    response.headers["ETag"] = etag
    return item


@router.put("/{item_id}", response_model=ItemRead)
def edit_item(
    item_update: ItemUpdate,
    response: Response,
    item_id: int = Path(gt=0),
    if_match: Optional[str] = Header(default=None),
    db: Session = Depends(get_db),
    _role=Depends(deps.ItemAccess(PermissionName.CAN_EDIT)),
):
    """
    Replace an item's name and content.

    The client must send the version it last read, either as "version" in the
    body or as the item's ETag in If-Match. The edit is applied only if that is
    still the current version.

    Returns:
        ItemRead: The updated item; its version is one higher

    Raises:
        400: If no version was supplied
        403: If the user's role does not allow editing
        404: If the item doesn't exist (or is not visible to the user)
        409: If the item was modified since the client read it
    """
    expected_version = item_update.version
    if expected_version is None:
        expected_version = parse_if_match(if_match)
    if expected_version is None:
        raise ValidationFailed("version is required (in the body or as If-Match)")

    item = item_service.edit_item(
        db, item_id, expected_version, item_update.name, item_update.content
    )
    response.headers["ETag"] = item.etag
    return item


@router.delete("/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_item(
    item_id: int = Path(gt=0),
    db: Session = Depends(get_db),
    _role=Depends(deps.ItemAccess(PermissionName.CAN_EDIT)),
):
    """
    Delete an item together with its todos, notes and role assignments.
    Requires edit access to the item.
    """
    item_service.delete_item(db, item_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{item_id}/share", response_model=MemberRead)
def share_item(
    share_in: ShareRequest,
    item_id: int = Path(gt=0),
    db: Session = Depends(get_db),
    current_user: User = Depends(deps.get_current_user),
):
    """
    Share an item with another user as editor or viewer.

    Sharing again with a user who already has access replaces their role.

    Raises:
        400: If the role is not 'editor' or 'viewer'
        403: If the current user's role does not allow sharing
        404: If the item or the target user doesn't exist
        409: If the target is the item's only owner (they would be demoted)
    """
    logger.info(
        "User %s sharing item %s with user %s as %s",
        current_user.id, item_id, share_in.user_id, share_in.role,
    )
    sharing_service.share_item(db, current_user.id, item_id, share_in.user_id, share_in.role)
    members = sharing_service.list_members(db, item_id)
    return next(m for m in members if m.user_id == share_in.user_id)


@router.get("/{item_id}/members", response_model=List[MemberRead])
def list_members(
    item_id: int = Path(gt=0),
    db: Session = Depends(get_db),
    _role=Depends(deps.ItemAccess(PermissionName.CAN_VIEW)),
):
    """List every user with access to the item and their role."""
    return sharing_service.list_members(db, item_id)


@router.delete("/{item_id}/members/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def revoke_member(
    item_id: int = Path(gt=0),
    user_id: int = Path(gt=0),
    db: Session = Depends(get_db),
    current_user: User = Depends(deps.get_current_user),
):
    """
    Remove a user's access to the item.

    Any member may remove themselves; removing someone else requires the share
    permission. The last owner of an item can never be removed (409).
    """
    sharing_service.revoke_access(db, current_user.id, item_id, user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
