"""Reconciling identity-provider profiles with local user accounts."""

import logging
from types import ModuleType
from typing import Optional

from pydantic import BaseModel

from taskflow.db import users as users_db
from taskflow.models.user import UserRecord, FederatedProvider, is_valid_email

logger = logging.getLogger(__name__)


class MissingEmailError(Exception):
    """The identity provider did not share an email address for the account."""

    def __init__(self, provider: FederatedProvider, message: Optional[str] = None):
        super().__init__(message or f"No email available from {provider} profile")
        self.provider = provider


class UnusableEmailError(MissingEmailError):
    """The identity provider shared an email that fails the account email rules."""

    def __init__(self, provider: FederatedProvider, email: str):
        super().__init__(
            provider, f"Email from {provider} profile is not a usable address"
        )
        self.email = email


class ProviderProfile(BaseModel):
    """The subset of an identity provider's profile that we care about."""

    provider: FederatedProvider
    provider_id: str
    email: Optional[str] = None
    display_name: Optional[str] = None
    username: Optional[str] = None
    avatar_url: Optional[str] = None

    def best_name(self) -> str:
        """Display name, falling back to the provider username, then the email."""
        if self.display_name:
            return self.display_name
        if self.username:
            return self.username
        return (self.email or "").split("@")[0]


class FederationAdapter:
    """Find, link, or create the local user behind a provider login.

    Args:
        store: Object exposing the user store operations. Defaults to the
            Postgres-backed `taskflow.db.users` module.
    """

    def __init__(self, store: ModuleType | object = users_db):
        self.store = store

    def reconcile(self, profile: ProviderProfile) -> UserRecord:
        """Resolve a provider profile to a local user.

        Precedence:
            1. A user already linked to this provider id is returned unchanged.
            2. A user with the same email gets the provider linked onto it.
            3. Otherwise a new user is created.

        Raises:
            MissingEmailError: If the profile has no email and no linked user exists.
            UnusableEmailError: If the email fails the account email rules and no
                linked user exists.
        """
        provider = profile.provider

        existing = self.store.get_user_by_provider_id(provider, profile.provider_id)
        if existing:
            logger.debug(f"{provider} account already linked to user id={existing.id}")
            return existing

        if not profile.email:
            logger.warning(f"{provider} profile {profile.provider_id} has no email")
            raise MissingEmailError(provider)

        if not is_valid_email(profile.email):
            logger.warning(
                f"{provider} profile {profile.provider_id} has an unusable email"
            )
            raise UnusableEmailError(provider, profile.email)

        by_email = self.store.get_user_by_email(profile.email)
        if by_email:
            return self.store.link_provider(
                by_email.id, provider, profile.provider_id, profile.avatar_url
            )

        return self.store.create_federated_user(
            provider=provider,
            provider_id=profile.provider_id,
            name=profile.best_name(),
            email=profile.email,
            avatar=profile.avatar_url,
        )
