"""Bearer-token authentication for protected routes."""

import logging
from typing import Optional

from fastapi import Depends, Header, HTTPException, Request, status
from pydantic import BaseModel

from taskflow.models.user import User
from taskflow.db.users import get_user_by_id
from .tokens import TokenService, TokenClaims, TokenExpiredError, InvalidTokenError
from .federation import FederationAdapter

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer"


class AuthContext(BaseModel):
    """The identity resolved for an authenticated request."""

    user: User
    claims: TokenClaims


def get_token_service(request: Request) -> TokenService:
    """FastAPI dependency returning the app's token service."""
    return request.app.state.token_service


def get_federation_adapter(request: Request) -> FederationAdapter:
    """FastAPI dependency returning the app's federation adapter."""
    return request.app.state.federation_adapter


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def extract_bearer_token(authorization: Optional[str]) -> str:
    """Pull the token out of an Authorization header value.

    Raises:
        HTTPException 401 if the header is missing, isn't a Bearer header, or
        carries an empty token.
    """
    if not authorization or not authorization.startswith(BEARER_PREFIX):
        raise _unauthorized("Not authorized, no token provided")

    token = authorization[len(BEARER_PREFIX) :].strip()
    if not token:
        raise _unauthorized("Not authorized, token is empty")
    return token


async def get_auth_context(
    authorization: Optional[str] = Header(None),
    tokens: TokenService = Depends(get_token_service),
) -> AuthContext:
    """FastAPI dependency that gates a route behind a valid bearer token.

    Verifies the token, then resolves the claimed user against the database so
    that tokens for deleted users stop working immediately.

    Returns:
        AuthContext with the public user (no password hash) and token claims.

    Raises:
        HTTPException 401 with a message specific to the failure.
    """
    token = extract_bearer_token(authorization)

    try:
        claims = tokens.verify(token)
    except TokenExpiredError:
        logger.info("Rejected expired token")
        raise _unauthorized("Token expired")
    except InvalidTokenError as e:
        logger.warning(f"Rejected invalid token: {e}")
        raise _unauthorized("Invalid token")

    user = get_user_by_id(claims.id)
    if user is None:
        logger.warning(f"Token references missing user id={claims.id}")
        raise _unauthorized("User not found or deleted")

    return AuthContext(user=user.to_public(), claims=claims)


# Shorter name for use in route signatures.
require_user = get_auth_context
