"""
Todo Service Module

Todos are always addressed through their item: (item_id, todo_id). A todo ID
belonging to a different item is reported as not found.
"""
from typing import List, Optional

from sqlalchemy import delete
from sqlmodel import Session, select

from todo_api.core.exceptions import TodoNotFound
from todo_api.models.todo import Todo
from todo_api.models.user import utc_now


def list_todos(db: Session, item_id: int) -> List[Todo]:
    return db.exec(select(Todo).where(Todo.item_id == item_id).order_by(Todo.id)).all()


def get_todo(db: Session, item_id: int, todo_id: int) -> Todo:
    todo = db.exec(select(Todo).where(Todo.item_id == item_id, Todo.id == todo_id)).first()
    if todo is None:
        raise TodoNotFound("Todo not found")
    return todo


def create_todo(db: Session, item_id: int, title: str, body: Optional[str] = None, done: bool = False) -> Todo:
    todo = Todo(item_id=item_id, title=title, body=body, done=done)
    db.add(todo)
    db.commit()
    db.refresh(todo)
    return todo


def update_todo(db: Session, item_id: int, todo_id: int, **changes) -> Todo:
    """Set the given fields (title, body, done) on the todo."""
    todo = get_todo(db, item_id, todo_id)
    for key, value in changes.items():
        setattr(todo, key, value)
    todo.updated_at = utc_now()
    db.add(todo)
    db.commit()
    db.refresh(todo)
    return todo


def mark_todo_done(db: Session, item_id: int, todo_id: int) -> Todo:
    return update_todo(db, item_id, todo_id, done=True)


def delete_todo(db: Session, item_id: int, todo_id: int) -> None:
    result = db.exec(delete(Todo).where(Todo.item_id == item_id, Todo.id == todo_id))
    if result.rowcount == 0:
        db.rollback()
        raise TodoNotFound("Todo not found")
    db.commit()
