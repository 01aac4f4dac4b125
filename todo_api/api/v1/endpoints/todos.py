"""
Todo Endpoints Module

CRUD endpoints for the todos of an item, mounted under /items/{item_id}/todos.
Reading requires view access to the item; every change requires edit access.
"""
from typing import List

from fastapi import APIRouter, Depends, Path, Response, status
from sqlmodel import Session

from todo_api.api import deps
from todo_api.core.exceptions import ValidationFailed
from todo_api.core.permissions import PermissionName
from todo_api.db.session import get_db
from todo_api.models.todo import TodoRead
from todo_api.schemas.todo import TodoCreate, TodoUpdate
from todo_api.services import todos as todo_service

router = APIRouter()

can_view = deps.ItemAccess(PermissionName.CAN_VIEW)
can_edit = deps.ItemAccess(PermissionName.CAN_EDIT)


@router.get("", response_model=List[TodoRead], dependencies=[Depends(can_view)])
def list_todos(
    item_id: int = Path(gt=0),
    db: Session = Depends(get_db),
):
    """
    Retrieve all todos of an item, oldest first.
    """
    return todo_service.list_todos(db, item_id)


@router.post("", response_model=TodoRead, dependencies=[Depends(can_edit)])
def create_todo(
    todo_in: TodoCreate,
    item_id: int = Path(gt=0),
    db: Session = Depends(get_db),
):
    """
    Add a todo to an item.

    Args:
        todo_in: Title, optional body and done flag
        item_id: ID of the parent item
        db: Database session

    Returns:
        TodoRead: The newly created todo
    """
    return todo_service.create_todo(db, item_id, todo_in.title, todo_in.body, todo_in.done)


@router.get("/{todo_id}", response_model=TodoRead, dependencies=[Depends(can_view)])
def read_todo(
    item_id: int = Path(gt=0),
    todo_id: int = Path(gt=0),
    db: Session = Depends(get_db),
):
    return todo_service.get_todo(db, item_id, todo_id)


@router.put("/{todo_id}", response_model=TodoRead, dependencies=[Depends(can_edit)])
def edit_todo(
    todo_update: TodoUpdate,
    item_id: int = Path(gt=0),
    todo_id: int = Path(gt=0),
    db: Session = Depends(get_db),
):
    """
    Update a todo's title, body and/or done flag. Only the fields sent are changed.

    Raises:
        404: If the todo doesn't exist in this item
    """
    changes = todo_update.model_dump(exclude_unset=True)
    for field in ("title", "done"):
        if field in changes and changes[field] is None:
            raise ValidationFailed(f"{field} cannot be null")
    return todo_service.update_todo(db, item_id, todo_id, **changes)


@router.patch("/{todo_id}/done", response_model=TodoRead, dependencies=[Depends(can_edit)])
def mark_todo_done(
    item_id: int = Path(gt=0),
    todo_id: int = Path(gt=0),
    db: Session = Depends(get_db),
):
    return todo_service.mark_todo_done(db, item_id, todo_id)


@router.delete("/{todo_id}", status_code=status.HTTP_204_NO_CONTENT, dependencies=[Depends(can_edit)])
def delete_todo(
    item_id: int = Path(gt=0),
    todo_id: int = Path(gt=0),
    db: Session = Depends(get_db),
):
    todo_service.delete_todo(db, item_id, todo_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
