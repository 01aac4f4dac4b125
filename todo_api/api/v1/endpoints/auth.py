"""
Authentication Endpoints Module

This module provides the Google OAuth login flow and logout. A successful callback
creates (or refreshes) the user and issues a JWT access token, returned in the body
for API clients and as an HTTP-only cookie for browser clients.
"""
import logging

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import RedirectResponse
from sqlmodel import Session

from todo_api.api import deps
from todo_api.core.config import Settings
from todo_api.core.security import create_access_token
from todo_api.db.session import get_db
from todo_api.schemas.auth import Token
from todo_api.services.oauth import GoogleOAuthClient
from todo_api.services.users import upsert_oauth_user

logger = logging.getLogger(__name__)

router = APIRouter()


def get_oauth_client(request: Request) -> GoogleOAuthClient:
    return request.app.state.oauth_client


@router.get("/login")
def login(oauth: GoogleOAuthClient = Depends(get_oauth_client)):
    """
    Redirect the browser to Google's consent screen.
    """
    return RedirectResponse(url=oauth.authorization_url(), status_code=307)


@router.get("/callback", response_model=Token)
def callback(
    response: Response,
    code: str = "",
    db: Session = Depends(get_db),
    settings: Settings = Depends(deps.get_settings),
    oauth: GoogleOAuthClient = Depends(get_oauth_client),
):
    """
    Complete the OAuth flow and issue an access token.

    Exchanges the authorization code for the user's Google profile, creates the
    user on first login (or refreshes their email and name), then issues a token.

    Returns:
        Token: Object containing the access_token and token_type

    Raises:
        400: If no code was supplied
        502: If Google rejected the code or the profile could not be read
    """
    profile = oauth.fetch_profile(code)
    user = upsert_oauth_user(
        db,
        provider=profile.provider,
        provider_user_id=profile.provider_user_id,
        email=profile.email,
        username=profile.name,
    )

    access_token = create_access_token(subject=user.id, settings=settings)

    # Set HTTP-only cookie for browser-based authentication
    response.set_cookie(
        key="access_token",
        value=f"Bearer {access_token}",
        httponly=True,  # Cannot be accessed via JavaScript
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,  # Convert minutes to seconds
        samesite="lax"  # CSRF protection
    )
    logger.info("User %s logged in via %s", user.id, profile.provider)
    return {"access_token": access_token, "token_type": "bearer"}


@router.get("/logout")
def logout():
    """
    Log out by clearing the authentication cookie and redirecting to "/".

    API clients can simply discard their token.
    """
    redirect = RedirectResponse(url="/", status_code=303)
    redirect.delete_cookie("access_token")
    return redirect
