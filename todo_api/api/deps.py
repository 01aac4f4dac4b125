"""
API Dependencies Module

This module provides FastAPI dependency functions for authentication and authorization.
It implements a dual authentication strategy supporting both bearer tokens (for API clients)
and HTTP-only cookies (for browser clients), and the per-item permission check applied to
every item-scoped route.
"""
from typing import Optional

from fastapi import Depends, Path, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlmodel import Session

from todo_api.core.config import Settings
from todo_api.core.exceptions import NotAuthenticated
from todo_api.core.permissions import PermissionName, RoleName
from todo_api.core.security import decode_access_token
from todo_api.db.session import get_db
from todo_api.models.user import User
from todo_api.services.access import authorize

# auto_error=False allows us to check cookies as a fallback
reusable_bearer = HTTPBearer(auto_error=False)


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_current_user(
    request: Request,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(reusable_bearer),
) -> User:
    """
    Dependency that retrieves and validates the current authenticated user.

    Supports dual authentication methods:
    1. Bearer token in Authorization header (for API clients)
    2. HTTP-only cookie (for browser clients)

    A request without a usable token is never treated as anonymous.

    Args:
        request: FastAPI request object (used to access cookies)
        db: Database session
        settings: Application settings (token signing key)
        credentials: Optional bearer credentials from the Authorization header

    Returns:
        User: The authenticated user object

    Raises:
        NotAuthenticated (401): If the token is missing, invalid or expired,
            or the user it names no longer exists
    """
    token = credentials.credentials if credentials else None

    # Fall back to the cookie; its format is "Bearer <token>"
    if not token:
        token = request.cookies.get("access_token")
        if token and token.startswith("Bearer "):
            token = token[len("Bearer "):]

    if not token:
        raise NotAuthenticated("Not authenticated")

    user_id = decode_access_token(token, settings)

    user = db.get(User, user_id)
    if not user:
        raise NotAuthenticated("User not found")
    return user


class ItemAccess:
    """
    Dependency factory for checking a permission on the item named in the path.

    Usage: Depends(ItemAccess(PermissionName.CAN_EDIT))

    Returns the caller's role on the item. Users without any role on the item
    get a 404; users whose role lacks the permission get a 403.
    """
    def __init__(self, permission: PermissionName):
        self.permission = permission

    def __call__(
        self,
        item_id: int = Path(gt=0),
        db: Session = Depends(get_db),
        current_user: User = Depends(get_current_user),
    ) -> RoleName:
        return authorize(db, current_user.id, item_id, self.permission)
