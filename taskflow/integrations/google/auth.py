"""Google sign-in: authorization URL, code exchange and profile lookup."""

import os
from urllib.parse import urlencode
import logging

import httpx
from fastapi import HTTPException
from pydantic import BaseModel

from taskflow.app.federation import ProviderProfile

GOOGLE_CLIENT_ID = os.getenv("GOOGLE_CLIENT_ID")
GOOGLE_CLIENT_SECRET = os.getenv("GOOGLE_CLIENT_SECRET")

AUTHORIZE_URL = "https://accounts.google.com/o/oauth2/v2/auth"
TOKEN_URL = "https://oauth2.googleapis.com/token"
USERINFO_URL = "https://www.googleapis.com/oauth2/v3/userinfo"
SCOPES = ["openid", "email", "profile"]

logger = logging.getLogger(__name__)


class GoogleToken(BaseModel):
    """An OAuth token returned by Google's token endpoint."""

    access_token: str
    expires_in: int | None = None
    token_type: str = "Bearer"
    scope: str | None = None
    id_token: str | None = None


def _require_configured() -> None:
    if not GOOGLE_CLIENT_ID or not GOOGLE_CLIENT_SECRET:
        raise HTTPException(
            status_code=503,
            detail="Google sign-in not configured. Missing GOOGLE_CLIENT_ID or GOOGLE_CLIENT_SECRET",
        )


def build_oauth_authorize_url(redirect_uri: str, state: str | None = None) -> str:
    """Build the Google consent-screen URL.

    Args:
        redirect_uri: Where Google should send the user back to.
        state: Optional state parameter for CSRF protection.

    Raises:
        HTTPException 503 if the client is not configured.
    """
    _require_configured()
    params = {
        "client_id": GOOGLE_CLIENT_ID,
        "redirect_uri": redirect_uri,
        "scope": " ".join(SCOPES),
        "response_type": "code",
    }
    if state is not None:
        params["state"] = state
    return f"{AUTHORIZE_URL}?{urlencode(params)}"


async def exchange_code_for_token(code: str, redirect_uri: str) -> GoogleToken:
    """Exchange an authorization code for an access token.

    Raises:
        HTTPException: 503 if not configured, 502 if Google rejects the exchange.
    """
    _require_configured()

    async with httpx.AsyncClient(timeout=10) as client:
        response = await client.post(
            TOKEN_URL,
            data={
                "client_id": GOOGLE_CLIENT_ID,
                "client_secret": GOOGLE_CLIENT_SECRET,
                "code": code,
                "grant_type": "authorization_code",
                "redirect_uri": redirect_uri,
            },
            headers={"Content-Type": "application/x-www-form-urlencoded"},
        )

    if response.status_code != 200:
        logger.error(f"Failed to exchange Google code: {response.status_code}")
        raise HTTPException(
            status_code=502,
            detail=f"Failed to exchange Google code (status {response.status_code})",
        )
    return GoogleToken.model_validate(response.json())


async def fetch_profile(access_token: str) -> ProviderProfile:
    """Fetch the signed-in user's Google profile.

    Raises:
        HTTPException 502 if the userinfo request fails.
    """
    async with httpx.AsyncClient(timeout=10) as client:
        response = await client.get(
            USERINFO_URL,
            headers={"Authorization": f"Bearer {access_token}"},
        )

    if response.status_code != 200:
        logger.error(f"Failed to fetch Google profile: {response.status_code}")
        raise HTTPException(
            status_code=502,
            detail=f"Failed to fetch Google profile (status {response.status_code})",
        )

    data = response.json()
    return ProviderProfile(
        provider="google",
        provider_id=str(data["sub"]),
        email=data.get("email"),
        display_name=data.get("name"),
        avatar_url=data.get("picture"),
    )
