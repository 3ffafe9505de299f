"""User model for local and federated accounts."""

from __future__ import annotations
import re
from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from taskflow.utils.passwords import verify_password


Role = Literal["user", "admin"]
Provider = Literal["local", "google", "github"]
FederatedProvider = Literal["google", "github"]

# Basic email shape: word chars, dots and dashes, an @, dot-separated domain
# labels and a 2-3 char TLD. Repetitions are split on literal separators so a
# failed match cannot backtrack exponentially.
EMAIL_PATTERN = re.compile(r"^[\w.-]+@[\w-]+(\.[\w-]+)*\.\w{2,3}$")


def is_valid_email(email: str) -> bool:
    return EMAIL_PATTERN.match(email) is not None


class User(BaseModel):
    """Application user as exposed to clients.

    Never carries the password hash.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: UUID
    name: str
    email: str
    avatar: str | None = None
    role: Role = "user"
    # None only for legacy rows created before federation existed.
    provider: Provider | None = "local"
    google_id: str | None = None
    github_id: str | None = None
    created_at: datetime
    updated_at: datetime

    def provider_id(self, provider: FederatedProvider) -> str | None:
        """Get the external id stored for a federated provider."""
        if provider == "google":
            return self.google_id
        return self.github_id


class UserRecord(User):
    """A user as stored, including the local password hash.

    The hash is excluded from serialization so a record can never leak it
    through a response body.
    """

    password_hash: str | None = Field(default=None, exclude=True, repr=False)

    @property
    def has_password(self) -> bool:
        return bool(self.password_hash)

    def match_password(self, candidate: str) -> bool:
        """Check a candidate password against the stored hash.

        Accounts that never set a local password always fail.
        """
        if not self.password_hash:
            return False
        return verify_password(candidate, self.password_hash)

    def to_public(self) -> User:
        """Drop the password hash."""
        return User.model_validate(self.model_dump())
