import os

import pytest

# env_loader validates these at import time.
os.environ.setdefault("ENV", "dev")
os.environ.setdefault("DATABASE_URL", "postgresql://localhost:5432/taskflow_test")
os.environ.setdefault("JWT_SECRET", "test-jwt-secret")

from taskflow.app import env_loader  # noqa: E402, F401

from tests._factories import UserFactory, TaskFactory  # noqa: E402


class AccidentalDatabaseAccessError(Exception):
    """Raised when a unit test accidentally tries to access the database."""

    pass


def _raise_db_access_error(*args, **kwargs):
    """Raise an error when DB access is attempted in unit tests."""
    raise AccidentalDatabaseAccessError(
        "Unit test attempted to connect to the database! "
        "Either mock the database call with @patch('taskflow.db.connection.get_db_cursor') "
        "or similar, or mark this test as @pytest.mark.e2e if it requires real DB access."
    )


@pytest.fixture(autouse=True)
def prevent_db_access_in_unit_tests(request, monkeypatch):
    """Prevent accidental database access in unit tests.

    For e2e tests (marked with @pytest.mark.e2e), it does nothing. For all other
    tests, it patches psycopg.connect to raise a clear error if any code path
    tries to reach the database without proper mocking.
    """
    markers = [marker.name for marker in request.node.iter_markers()]
    if "e2e" in markers:
        yield
        return

    monkeypatch.setattr("psycopg.connect", _raise_db_access_error)
    yield


@pytest.fixture(scope="session")
def user_factory() -> UserFactory:
    return UserFactory()


@pytest.fixture(scope="session")
def task_factory() -> TaskFactory:
    return TaskFactory()
