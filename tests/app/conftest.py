from typing import Iterator
from uuid import UUID

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from taskflow.app.app import create_app
from taskflow.app.federation import FederationAdapter
from taskflow.app.tokens import TokenService
from taskflow.models.user import UserRecord
from tests._factories import InMemoryUserStore, UserFactory

TEST_SECRET = "test-jwt-secret"

ALICE_ID = UUID("00000000-0000-0000-0000-00000000a11c")
BOB_ID = UUID("00000000-0000-0000-0000-000000000b0b")


@pytest.fixture
def token_service() -> TokenService:
    return TokenService(secret=TEST_SECRET)


@pytest.fixture
def user_store() -> InMemoryUserStore:
    return InMemoryUserStore()


@pytest.fixture
def app(token_service: TokenService, user_store: InMemoryUserStore) -> FastAPI:
    return create_app(
        token_service=token_service,
        federation_adapter=FederationAdapter(store=user_store),
    )


@pytest.fixture
def alice(user_factory: UserFactory) -> UserRecord:
    return user_factory.make(
        {"id": ALICE_ID, "name": "Alice", "email": "alice@example.com"}
    )


@pytest.fixture
def bob(user_factory: UserFactory) -> UserRecord:
    return user_factory.make({"id": BOB_ID, "name": "Bob", "email": "bob@example.com"})


@pytest.fixture
def registered_users(
    monkeypatch, alice: UserRecord, bob: UserRecord
) -> dict[UUID, UserRecord]:
    """Users the auth gate can resolve.

    Tests can add or remove entries to simulate accounts being created or
    deleted after a token was issued.
    """
    users = {alice.id: alice, bob.id: bob}
    monkeypatch.setattr("taskflow.app.auth.get_user_by_id", users.get)
    return users


@pytest.fixture
def client(app: FastAPI, registered_users) -> TestClient:
    """Unauthenticated test client."""
    return TestClient(app)


@pytest.fixture
def alice_client(
    app: FastAPI, token_service: TokenService, alice: UserRecord, registered_users
) -> Iterator[TestClient]:
    """Test client authenticated as Alice."""
    token = token_service.issue(alice)
    yield TestClient(app, headers={"Authorization": f"Bearer {token}"})


@pytest.fixture
def bob_client(
    app: FastAPI, token_service: TokenService, bob: UserRecord, registered_users
) -> Iterator[TestClient]:
    """Test client authenticated as Bob."""
    token = token_service.issue(bob)
    yield TestClient(app, headers={"Authorization": f"Bearer {token}"})
