from fastapi import APIRouter, Depends
from typing import Any
from sqlmodel import Session, text

from todo_api.db.session import get_db

router = APIRouter()

@router.get("", response_model=dict[str, Any])
def health_check(db: Session = Depends(get_db)) -> Any:
    """
    Health check endpoint. Also verifies the database answers.
    """
    db.exec(text("SELECT 1"))
    return {"status": "ok"}
