"""
Item Service Module

Creation, retrieval, optimistic-locked editing and deletion of items.
"""
import logging
from typing import Any, List, Optional

from sqlalchemy import delete, update
from sqlmodel import Session, select

from todo_api.core.exceptions import ItemNotFound, VersionConflict
from todo_api.core.permissions import RoleName
from todo_api.models.item import Item, ItemReadWithAccess
from todo_api.models.note import Note
from todo_api.models.role import Role, UserRole
from todo_api.models.todo import Todo
from todo_api.models.user import User, utc_now

logger = logging.getLogger(__name__)


def get_role_id(db: Session, role: RoleName) -> int:
    role_id = db.exec(select(Role.role_id).where(Role.name == role.value)).first()
    if role_id is None:
        raise RuntimeError(f"Role catalog is missing '{role.value}'; was the database seeded?")
    return role_id


def create_item(db: Session, owner_id: int, name: str, content: Any = None) -> Item:
    """
    Create an item and make its creator the owner.

    Both rows are written in one transaction: either the item exists with an
    owner, or neither row does.
    """
    item = Item(name=name, content=content if content is not None else [])
    db.add(item)
    db.flush()  # assigns item.id

    db.add(UserRole(
        item_id=item.id,
        user_id=owner_id,
        role_id=get_role_id(db, RoleName.OWNER),
        created_by=owner_id,
    ))
    db.commit()
    db.refresh(item)
    logger.info("User %s created item %s", owner_id, item.id)
    return item


def _with_access(item: Item, role_name: str, shared_by_email: Optional[str]) -> ItemReadWithAccess:
    data = item.model_dump()
    # Only set shared_by if the item was shared (role is not owner)
    shared_by = shared_by_email if role_name != RoleName.OWNER.value else None
    return ItemReadWithAccess(**data, role=role_name, shared_by=shared_by)


def _access_query(user_id: int):
    return (
        select(Item, Role.name, User.email)
        .join(UserRole, UserRole.item_id == Item.id)
        .join(Role, Role.role_id == UserRole.role_id)
        .outerjoin(User, User.id == UserRole.created_by)
        .where(UserRole.user_id == user_id)
    )


def list_items(db: Session, user_id: int) -> List[ItemReadWithAccess]:
    """All items the user holds any role on, newest first."""
    statement = _access_query(user_id).order_by(Item.created_at.desc(), Item.id.desc())
    return [_with_access(item, role_name, email) for item, role_name, email in db.exec(statement).all()]


def get_item(db: Session, user_id: int, item_id: int) -> ItemReadWithAccess:
    row = db.exec(_access_query(user_id).where(Item.id == item_id)).first()
    if row is None:
        raise ItemNotFound("Item not found")
    item, role_name, email = row
    return _with_access(item, role_name, email)


def get_item_version(db: Session, item_id: int) -> Optional[int]:
    return db.exec(select(Item.version).where(Item.id == item_id)).first()


def edit_item(db: Session, item_id: int, expected_version: int, name: str, content: Any = None) -> Item:
    """
    Apply an edit only if the item is still at the version the caller read.
    A content of None keeps the stored content.

    The compare-and-swap is a single conditional UPDATE, so of several writers
    holding the same version at most one advances it; the rest get a conflict.

    Raises:
        ItemNotFound: If the item does not exist
        VersionConflict: If the stored version differs from expected_version
    """
    values = {"name": name, "version": Item.version + 1, "updated_at": utc_now()}
    if content is not None:
        values["content"] = content

    statement = (
        update(Item)
        .where(Item.id == item_id, Item.version == expected_version)
        .values(**values)
    )
    result = db.exec(statement)

    if result.rowcount == 0:
        # Tell a missing item apart from a stale version, in the same transaction
        current_version = get_item_version(db, item_id)
        db.rollback()
        if current_version is None:
            raise ItemNotFound("Item not found")
        logger.warning(
            "Version conflict on item %s: expected %s, current %s",
            item_id, expected_version, current_version,
        )
        raise VersionConflict(
            f"Item has been modified (expected version {expected_version}, current version {current_version})",
            current_version=current_version,
        )

    db.commit()
    item = db.get(Item, item_id, populate_existing=True)
    return item


def delete_item(db: Session, item_id: int) -> None:
    """
    Delete an item with its todos, notes and role assignments in one transaction.

    Role assignments are removed by the items foreign key cascade: the ownership
    guard lets owner rows go only once the item row itself is gone.
    """
    db.exec(delete(Todo).where(Todo.item_id == item_id))
    db.exec(delete(Note).where(Note.item_id == item_id))
    result = db.exec(delete(Item).where(Item.id == item_id))
    if result.rowcount == 0:
        db.rollback()
        raise ItemNotFound("Item not found")
    db.commit()
    logger.info("Deleted item %s", item_id)
