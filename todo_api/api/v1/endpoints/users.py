"""
User Endpoints Module

Lookup of users by email (to find whom to share an item with) and the current
user's profile.
"""
from typing import Any

from fastapi import APIRouter, Depends, Query
from pydantic import EmailStr
from sqlmodel import Session

from todo_api.api import deps
from todo_api.core.exceptions import UserNotFound
from todo_api.db.session import get_db
from todo_api.models.user import User, UserRead
from todo_api.schemas.user import UserLookup
from todo_api.services.users import get_user_by_email

router = APIRouter()


@router.get("/lookup", response_model=UserLookup)
def lookup_user(
    email: EmailStr = Query(...),
    db: Session = Depends(get_db),
    current_user: User = Depends(deps.get_current_user),
) -> Any:
    """
    Find a user's ID by email address.

    Raises:
        404: If no user has this email
    """
    user = get_user_by_email(db, email)
    if not user:
        raise UserNotFound("User not found")
    return {"user_id": user.id}


@router.get("/me", response_model=UserRead)
def read_user_me(
    current_user: User = Depends(deps.get_current_user),
) -> Any:
    """
    Get the current authenticated user's profile.
    """
    return current_user
