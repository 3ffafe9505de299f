"""GitHub sign-in: authorization URL, code exchange and profile lookup."""

import os
from urllib.parse import urlencode
import logging

import httpx
from fastapi import HTTPException
from pydantic import BaseModel

from taskflow.app.federation import ProviderProfile

GITHUB_CLIENT_ID = os.getenv("GITHUB_CLIENT_ID")
GITHUB_CLIENT_SECRET = os.getenv("GITHUB_CLIENT_SECRET")

AUTHORIZE_URL = "https://github.com/login/oauth/authorize"
TOKEN_URL = "https://github.com/login/oauth/access_token"
API_BASE_URL = "https://api.github.com"
SCOPE = "user:email"

logger = logging.getLogger(__name__)


class GitHubToken(BaseModel):
    """An OAuth token returned by GitHub's token endpoint."""

    access_token: str
    token_type: str = "bearer"
    scope: str | None = None


def _require_configured() -> None:
    if not GITHUB_CLIENT_ID or not GITHUB_CLIENT_SECRET:
        raise HTTPException(
            status_code=503,
            detail="GitHub sign-in not configured. Missing GITHUB_CLIENT_ID or GITHUB_CLIENT_SECRET",
        )


def _api_headers(access_token: str) -> dict[str, str]:
    return {
        "Authorization": f"Bearer {access_token}",
        "Accept": "application/vnd.github+json",
    }


def build_oauth_authorize_url(redirect_uri: str, state: str | None = None) -> str:
    """Build the GitHub consent-screen URL.

    Raises:
        HTTPException 503 if the client is not configured.
    """
    _require_configured()
    params = {
        "client_id": GITHUB_CLIENT_ID,
        "redirect_uri": redirect_uri,
        "scope": SCOPE,
    }
    if state is not None:
        params["state"] = state
    return f"{AUTHORIZE_URL}?{urlencode(params)}"


async def exchange_code_for_token(code: str, redirect_uri: str) -> GitHubToken:
    """Exchange an authorization code for an access token.

    GitHub answers 200 even for a bad code, with an `error` field in the body,
    so both cases are treated as a failed exchange.

    Raises:
        HTTPException: 503 if not configured, 502 if GitHub rejects the exchange.
    """
    _require_configured()

    async with httpx.AsyncClient(timeout=10) as client:
        response = await client.post(
            TOKEN_URL,
            data={
                "client_id": GITHUB_CLIENT_ID,
                "client_secret": GITHUB_CLIENT_SECRET,
                "code": code,
                "redirect_uri": redirect_uri,
            },
            headers={"Accept": "application/json"},
        )

    data = response.json() if response.status_code == 200 else {}
    if response.status_code != 200 or "access_token" not in data:
        logger.error(
            f"Failed to exchange GitHub code: {response.status_code} {data.get('error')}"
        )
        raise HTTPException(
            status_code=502,
            detail=f"Failed to exchange GitHub code (status {response.status_code})",
        )
    return GitHubToken.model_validate(data)


def pick_primary_email(emails: list[dict]) -> str | None:
    """Choose the best address from GitHub's /user/emails listing.

    Prefers the verified primary address, then any primary, then any verified.
    """
    for wanted in (
        lambda e: e.get("primary") and e.get("verified"),
        lambda e: e.get("primary"),
        lambda e: e.get("verified"),
    ):
        for entry in emails:
            if wanted(entry) and entry.get("email"):
                return entry["email"]
    return None


async def fetch_profile(access_token: str) -> ProviderProfile:
    """Fetch the signed-in user's GitHub profile.

    The public profile omits the email when the user keeps it private, in
    which case the email listing is consulted. The returned profile may still
    have no email.

    Raises:
        HTTPException 502 if the profile request fails.
    """
    async with httpx.AsyncClient(timeout=10) as client:
        response = await client.get(
            f"{API_BASE_URL}/user", headers=_api_headers(access_token)
        )
        if response.status_code != 200:
            logger.error(f"Failed to fetch GitHub profile: {response.status_code}")
            raise HTTPException(
                status_code=502,
                detail=f"Failed to fetch GitHub profile (status {response.status_code})",
            )
        data = response.json()

        email = data.get("email")
        if not email:
            emails_response = await client.get(
                f"{API_BASE_URL}/user/emails", headers=_api_headers(access_token)
            )
            if emails_response.status_code == 200:
                email = pick_primary_email(emails_response.json())
            else:
                logger.warning(
                    f"Could not list GitHub emails: {emails_response.status_code}"
                )

    return ProviderProfile(
        provider="github",
        provider_id=str(data["id"]),
        email=email,
        display_name=data.get("name"),
        username=data.get("login"),
        avatar_url=data.get("avatar_url"),
    )
