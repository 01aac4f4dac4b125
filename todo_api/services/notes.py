from typing import List

from sqlalchemy import delete
from sqlmodel import Session, select

from todo_api.core.exceptions import NoteNotFound
from todo_api.models.note import Note
from todo_api.models.user import utc_now


def list_notes(db: Session, item_id: int) -> List[Note]:
    return db.exec(select(Note).where(Note.item_id == item_id).order_by(Note.id)).all()


def get_note(db: Session, item_id: int, note_id: int) -> Note:
    note = db.exec(select(Note).where(Note.item_id == item_id, Note.id == note_id)).first()
    if note is None:
        raise NoteNotFound("Note not found")
    return note


def create_note(db: Session, item_id: int, content: str) -> Note:
    note = Note(item_id=item_id, content=content)
    db.add(note)
    db.commit()
    db.refresh(note)
    return note


def update_note(db: Session, item_id: int, note_id: int, content: str) -> Note:
    note = get_note(db, item_id, note_id)
    note.content = content
    note.updated_at = utc_now()
    db.add(note)
    db.commit()
    db.refresh(note)
    return note


def delete_note(db: Session, item_id: int, note_id: int) -> None:
    result = db.exec(delete(Note).where(Note.item_id == item_id, Note.id == note_id))
    if result.rowcount == 0:
        db.rollback()
        raise NoteNotFound("Note not found")
    db.commit()
