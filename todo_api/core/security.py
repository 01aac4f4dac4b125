"""
Security Utilities Module

Bearer token issuance and validation. Tokens are HS256 JWTs whose subject is
the numeric user ID.
"""
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt

from todo_api.core.config import Settings
from todo_api.core.exceptions import NotAuthenticated


def create_access_token(
    subject: int, settings: Settings, expires_delta: Optional[timedelta] = None
) -> str:
    """
    Create a signed access token for the given user ID.

    Args:
        subject: The user ID the token is issued for
        settings: Application settings holding the signing key and algorithm
        expires_delta: Token lifetime; defaults to ACCESS_TOKEN_EXPIRE_MINUTES

    Returns:
        str: The encoded JWT
    """
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    expire = datetime.now(timezone.utc) + expires_delta
    to_encode = {"exp": expire, "sub": str(subject)}
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_access_token(token: str, settings: Settings) -> int:
    """Return the user ID carried by a valid token, or raise NotAuthenticated."""
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        raise NotAuthenticated("Could not validate credentials")

    subject = payload.get("sub")
    try:
        user_id = int(subject)
    except (TypeError, ValueError):
        raise NotAuthenticated("Could not validate credentials")
    if user_id <= 0:
        raise NotAuthenticated("Could not validate credentials")
    return user_id
