"""Issuing and verifying signed bearer tokens."""

import logging
from datetime import datetime, timedelta, timezone
from uuid import UUID

import jwt
from pydantic import BaseModel, ValidationError

from taskflow.models.user import User, Provider

logger = logging.getLogger(__name__)

DEFAULT_ALGORITHM = "HS256"
DEFAULT_TOKEN_LIFETIME = timedelta(days=1)


class TokenError(Exception):
    """Base class for token verification failures."""


class TokenExpiredError(TokenError):
    """The token was validly signed but is past its expiry."""


class InvalidTokenError(TokenError):
    """The token is malformed, has a bad signature, or lacks required claims."""


class TokenClaims(BaseModel):
    """Identity claims carried by a bearer token."""

    id: UUID
    name: str
    email: str
    provider: Provider = "local"
    iat: datetime
    exp: datetime


class TokenService:
    """Symmetric JWT issuance and verification.

    Holds no per-request state; one instance is shared by the whole app.
    """

    def __init__(
        self,
        secret: str,
        algorithm: str = DEFAULT_ALGORITHM,
        lifetime: timedelta = DEFAULT_TOKEN_LIFETIME,
    ):
        if not secret:
            raise ValueError("A token-signing secret is required")
        self._secret = secret
        self.algorithm = algorithm
        self.lifetime = lifetime

    def issue(self, user: User) -> str:
        """Mint a token for `user` that expires after the configured lifetime."""
        now = datetime.now(timezone.utc)
        payload = {
            "id": str(user.id),
            "name": user.name,
            "email": user.email,
            "provider": user.provider or "local",
            "iat": now,
            "exp": now + self.lifetime,
        }
        return jwt.encode(payload, self._secret, algorithm=self.algorithm)

    def verify(self, token: str) -> TokenClaims:
        """Validate signature and expiry and return the decoded claims.

        Raises:
            TokenExpiredError: If the token has expired.
            InvalidTokenError: For any other validation failure.
        """
        try:
            decoded = jwt.decode(
                token,
                self._secret,
                algorithms=[self.algorithm],
                options={"require": ["exp", "id"]},
            )
        except jwt.ExpiredSignatureError as e:
            raise TokenExpiredError("Token expired") from e
        except jwt.InvalidTokenError as e:
            raise InvalidTokenError(str(e)) from e

        try:
            return TokenClaims.model_validate(decoded)
        except ValidationError as e:
            logger.warning(f"Token has malformed claims: {e.error_count()} errors")
            raise InvalidTokenError("Token has malformed claims") from e
