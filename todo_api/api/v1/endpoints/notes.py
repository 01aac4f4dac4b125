"""
Note Endpoints Module

This module provides CRUD endpoints for the notes of an item, mounted under
/items/{item_id}/notes. Notes follow the access rules of their item.
"""
from typing import List

from fastapi import APIRouter, Depends, Path, Response, status
from sqlmodel import Session

from todo_api.api import deps
from todo_api.core.permissions import PermissionName
from todo_api.db.session import get_db
from todo_api.models.note import NoteRead
from todo_api.schemas.note import NoteWrite
from todo_api.services import notes as note_service

router = APIRouter()


@router.get("", response_model=List[NoteRead])
def list_notes(
    item_id: int = Path(gt=0),
    db: Session = Depends(get_db),
    _role=Depends(deps.ItemAccess(PermissionName.CAN_VIEW)),
):
    """
    Retrieve all notes of an item.

    Args:
        item_id: ID of the parent item
        db: Database session

    Returns:
        List[NoteRead]: The item's notes, oldest first
    """
    return note_service.list_notes(db, item_id)


@router.post("", response_model=NoteRead)
def create_note(
    note_in: NoteWrite,
    item_id: int = Path(gt=0),
    db: Session = Depends(get_db),
    _role=Depends(deps.ItemAccess(PermissionName.CAN_EDIT)),
):
    """
    Create a new note on an item. Requires edit access.
    """
    return note_service.create_note(db, item_id, note_in.content)


@router.get("/{note_id}", response_model=NoteRead)
def read_note(
    item_id: int = Path(gt=0),
    note_id: int = Path(gt=0),
    db: Session = Depends(get_db),
    _role=Depends(deps.ItemAccess(PermissionName.CAN_VIEW)),
):
    """
    Get a specific note by ID.

    Raises:
        404: If the note doesn't exist or belongs to another item
    """
    return note_service.get_note(db, item_id, note_id)


@router.put("/{note_id}", response_model=NoteRead)
def update_note(
    note_in: NoteWrite,
    item_id: int = Path(gt=0),
    note_id: int = Path(gt=0),
    db: Session = Depends(get_db),
    _role=Depends(deps.ItemAccess(PermissionName.CAN_EDIT)),
):
    return note_service.update_note(db, item_id, note_id, note_in.content)


@router.delete("/{note_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_note(
    item_id: int = Path(gt=0),
    note_id: int = Path(gt=0),
    db: Session = Depends(get_db),
    _role=Depends(deps.ItemAccess(PermissionName.CAN_EDIT)),
):
    """
    Delete a note. Requires edit access to the item.
    """
    note_service.delete_note(db, item_id, note_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
