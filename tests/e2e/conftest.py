import os
from pathlib import Path
from typing import Iterator
from uuid import uuid4

import pytest
from testcontainers.postgres import PostgresContainer
from alembic.config import Config
from alembic import command
from fastapi.testclient import TestClient

# Ensure allowed environment for env_loader
os.environ.setdefault("ENV", "dev")


@pytest.fixture(scope="session")
def db_url() -> Iterator[str]:
    """Start a Postgres container, run migrations, and return the DB URL."""
    with PostgresContainer("postgres:16") as pg:
        raw_url = pg.get_connection_url()
        # Normalize to psycopg3-compatible URL if needed
        url = raw_url.replace("postgresql+psycopg2://", "postgresql://")
        os.environ["DATABASE_URL"] = url

        repo_root = Path(__file__).resolve().parents[2]
        alembic_cfg = Config(str(repo_root / "alembic.ini"))
        alembic_cfg.set_main_option("script_location", str(repo_root / "alembic"))
        command.upgrade(alembic_cfg, "head")

        yield url


@pytest.fixture(scope="session")
def client(db_url: str) -> TestClient:
    """Unauthenticated test client backed by the real database."""
    from taskflow.app.app import app

    return TestClient(app)


@pytest.fixture
def new_account(client: TestClient):
    """Register a fresh local account and return a function to log in as it.

    Emails are unique per test since the database is shared by the session.
    """

    def register(name: str = "E2E User", password: str = "pw1") -> dict:
        email = f"{uuid4().hex[:12]}@example.com"
        res = client.post(
            "/api/users/register",
            json={"name": name, "email": email, "password": password},
        )
        assert res.status_code == 201, res.text
        return {**res.json(), "password": password}

    return register


def login(client: TestClient, email: str, password: str) -> TestClient:
    """Log in and return a client carrying the issued token."""
    from taskflow.app.app import app

    res = client.post("/api/users/login", json={"email": email, "password": password})
    assert res.status_code == 200, res.text
    token = res.json()["token"]
    return TestClient(app, headers={"Authorization": f"Bearer {token}"})
