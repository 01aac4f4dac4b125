"""
Google OAuth Client Module

Implements the authorization-code flow against Google: building the consent
URL, exchanging the returned code for an access token and reading the user's
profile. Only the profile (id, email, name) leaves this module.
"""
import logging
from dataclasses import dataclass
from urllib.parse import urlencode

import httpx

from todo_api.core.config import Settings
from todo_api.core.exceptions import ProviderError, ValidationFailed

logger = logging.getLogger(__name__)

GOOGLE_AUTH_URL = "https://accounts.google.com/o/oauth2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GOOGLE_USERINFO_URL = "https://www.googleapis.com/oauth2/v2/userinfo"


@dataclass
class ProviderProfile:
    provider: str
    provider_user_id: str
    email: str
    name: str


class GoogleOAuthClient:
    provider = "google"

    def __init__(self, settings: Settings, http_client: httpx.Client = None):
        self.settings = settings
        self.http_client = http_client

    def authorization_url(self, state: str = "state") -> str:
        params = {
            "client_id": self.settings.GOOGLE_CLIENT_ID,
            "redirect_uri": self.settings.GOOGLE_REDIRECT_URL,
            "response_type": "code",
            "scope": "email profile",
            "access_type": "offline",
            "state": state,
        }
        return f"{GOOGLE_AUTH_URL}?{urlencode(params)}"

    def fetch_profile(self, code: str) -> ProviderProfile:
        """
        Exchange an authorization code for the user's profile.

        Raises:
            ValidationFailed: If no code was supplied
            ProviderError: If Google rejects the code or the profile request fails
        """
        if not code:
            raise ValidationFailed("Code not found")

        client = self.http_client or httpx.Client(timeout=10.0)
        try:
            token_response = client.post(GOOGLE_TOKEN_URL, data={
                "code": code,
                "client_id": self.settings.GOOGLE_CLIENT_ID,
                "client_secret": self.settings.GOOGLE_CLIENT_SECRET,
                "redirect_uri": self.settings.GOOGLE_REDIRECT_URL,
                "grant_type": "authorization_code",
            })
            token_response.raise_for_status()
            access_token = token_response.json()["access_token"]

            info_response = client.get(
                GOOGLE_USERINFO_URL,
                headers={"Authorization": f"Bearer {access_token}"},
            )
            info_response.raise_for_status()
            info = info_response.json()
        except (httpx.HTTPError, KeyError, ValueError) as exc:
            logger.error("Google OAuth exchange failed: %s", exc)
            raise ProviderError("Failed to exchange token") from exc
        finally:
            if self.http_client is None:
                client.close()

        if not info.get("id") or not info.get("email"):
            raise ProviderError("Failed to get user info")

        return ProviderProfile(
            provider=self.provider,
            provider_user_id=str(info["id"]),
            email=info["email"],
            name=info.get("name") or info["email"],
        )
