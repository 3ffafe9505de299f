"""Sign-in through Google and GitHub.

Both flows end by redirecting the browser to the frontend with a token in the
query string, since the provider drives the browser rather than our client.
"""

import logging
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import RedirectResponse

from taskflow.app.auth import get_token_service, get_federation_adapter
from taskflow.app.env_loader import get_frontend_url, get_public_api_base_url
from taskflow.app.federation import FederationAdapter, MissingEmailError, ProviderProfile
from taskflow.app.tokens import TokenService
from taskflow.db.users import EmailAlreadyRegisteredError
from taskflow.integrations import google, github
from taskflow.models.user import FederatedProvider

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


def callback_url(provider: FederatedProvider) -> str:
    """The URL the provider should send the browser back to."""
    return f"{get_public_api_base_url()}/api/auth/{provider}/callback"


def frontend_success_redirect(token: str) -> RedirectResponse:
    query = urlencode({"token": token})
    return RedirectResponse(f"{get_frontend_url()}/oauth-callback?{query}")


def frontend_failure_redirect(error: str) -> RedirectResponse:
    query = urlencode({"error": error})
    return RedirectResponse(f"{get_frontend_url()}/login?{query}")


def complete_sign_in(
    profile: ProviderProfile,
    federation: FederationAdapter,
    tokens: TokenService,
) -> RedirectResponse:
    """Resolve the profile to a local user and hand a token to the frontend."""
    try:
        user = federation.reconcile(profile)
    except MissingEmailError:
        return frontend_failure_redirect(f"{profile.provider}_email_unavailable")
    except EmailAlreadyRegisteredError:
        # Another request created this email between lookup and insert.
        logger.warning(f"{profile.provider} sign-in raced on an existing email")
        return frontend_failure_redirect(f"{profile.provider}_auth_failed")
    return frontend_success_redirect(tokens.issue(user))


@router.get("/google")
def google_sign_in() -> RedirectResponse:
    """Send the browser to Google's consent screen."""
    url = google.auth.build_oauth_authorize_url(redirect_uri=callback_url("google"))
    return RedirectResponse(url)


@router.get("/google/callback")
async def google_callback(
    code: str | None = None,
    error: str | None = None,
    federation: FederationAdapter = Depends(get_federation_adapter),
    tokens: TokenService = Depends(get_token_service),
) -> RedirectResponse:
    """Complete Google sign-in."""
    if error or code is None:
        logger.error(f"Google sign-in failed: {error or 'no code provided'}")
        return frontend_failure_redirect("google_auth_failed")

    try:
        token = await google.auth.exchange_code_for_token(
            code, redirect_uri=callback_url("google")
        )
        profile = await google.auth.fetch_profile(token.access_token)
    except HTTPException as e:
        logger.error(f"Google sign-in failed: {e.detail}")
        return frontend_failure_redirect("google_auth_failed")

    return complete_sign_in(profile, federation, tokens)


@router.get("/github")
def github_sign_in() -> RedirectResponse:
    """Send the browser to GitHub's consent screen."""
    url = github.auth.build_oauth_authorize_url(redirect_uri=callback_url("github"))
    return RedirectResponse(url)


@router.get("/github/callback")
async def github_callback(
    code: str | None = None,
    error: str | None = None,
    federation: FederationAdapter = Depends(get_federation_adapter),
    tokens: TokenService = Depends(get_token_service),
) -> RedirectResponse:
    """Complete GitHub sign-in."""
    if error or code is None:
        logger.error(f"GitHub sign-in failed: {error or 'no code provided'}")
        return frontend_failure_redirect("github_auth_failed")

    try:
        token = await github.auth.exchange_code_for_token(
            code, redirect_uri=callback_url("github")
        )
        profile = await github.auth.fetch_profile(token.access_token)
    except HTTPException as e:
        logger.error(f"GitHub sign-in failed: {e.detail}")
        return frontend_failure_redirect("github_auth_failed")

    return complete_sign_in(profile, federation, tokens)
