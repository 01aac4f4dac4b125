"""
User Model Module

This module defines the User model. Users are created the first time they log
in through an external identity provider and are identified by a numeric ID
throughout the API.
"""
from datetime import datetime, timezone
from typing import Optional

from sqlmodel import Field, SQLModel


def utc_now() -> str:
    """Current UTC time as an ISO-8601 string, the format all audit columns use."""
    return datetime.now(timezone.utc).isoformat()


class UserBase(SQLModel):
    username: str = Field(nullable=False)
    email: str = Field(unique=True, index=True, nullable=False)


class User(UserBase, table=True):
    """
    User model representing an authenticated identity.

    The provider_user_id is assigned by the external identity provider and never
    changes; username and email are refreshed from the provider on every login.

    Attributes:
        id: Auto-incrementing primary key, carried as the subject of access tokens
        username: Display name reported by the provider
        email: Unique email address, used to look users up for sharing
        provider_user_id: Unique identifier issued by the provider (immutable)
        provider: Name of the identity provider (default: "google")
        created_at: ISO timestamp of the first login
        updated_at: ISO timestamp of the last profile refresh
    """
    __tablename__ = "users"

    id: Optional[int] = Field(default=None, primary_key=True)

    provider_user_id: str = Field(unique=True, index=True, nullable=False)
    provider: str = Field(default="google", nullable=False)

    # Audit timestamps
    created_at: Optional[str] = Field(default_factory=utc_now)
    updated_at: Optional[str] = Field(default_factory=utc_now)


class UserRead(UserBase):
    """Public profile returned by the API."""
    id: int
    provider: str
    created_at: Optional[str] = None
