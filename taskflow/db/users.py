"""Database operations for user management."""

import logging
from typing import Optional
from uuid import UUID

from psycopg import errors, sql

from taskflow.models.user import UserRecord, FederatedProvider
from taskflow.utils.passwords import hash_password
from .connection import get_db_cursor

logger = logging.getLogger(__name__)

USER_COLUMNS = """
    id, name, email, password_hash, avatar, role, provider,
    google_id, github_id, created_at, updated_at
"""

# Column holding the external id for each federated provider.
PROVIDER_ID_COLUMNS: dict[str, str] = {
    "google": "google_id",
    "github": "github_id",
}


class EmailAlreadyRegisteredError(Exception):
    """Raised when a user with the same email already exists."""

    def __init__(self, email: str):
        super().__init__(f"A user with email {email} already exists")
        self.email = email


def get_user_by_id(user_id: UUID) -> Optional[UserRecord]:
    """Get a user by their primary key."""
    with get_db_cursor() as cursor:
        cursor.execute(
            f"SELECT {USER_COLUMNS} FROM users WHERE id = %s",
            (user_id,),
        )
        row = cursor.fetchone()
        return _row_to_user(row) if row else None


def get_user_by_email(email: str) -> Optional[UserRecord]:
    """Get a user by their (unique) email address."""
    with get_db_cursor() as cursor:
        cursor.execute(
            f"SELECT {USER_COLUMNS} FROM users WHERE email = %s",
            (email,),
        )
        row = cursor.fetchone()
        return _row_to_user(row) if row else None


def get_user_by_provider_id(
    provider: FederatedProvider, provider_id: str
) -> Optional[UserRecord]:
    """Get a user already linked to an external identity provider account."""
    query = sql.SQL("SELECT {columns} FROM users WHERE {column} = %s").format(
        columns=sql.SQL(USER_COLUMNS),
        column=sql.Identifier(PROVIDER_ID_COLUMNS[provider]),
    )
    with get_db_cursor() as cursor:
        cursor.execute(query, (provider_id,))
        row = cursor.fetchone()
        return _row_to_user(row) if row else None


def create_local_user(name: str, email: str, password: str) -> UserRecord:
    """Create a user that logs in with a local password.

    The password is hashed here, before anything is sent to the database.

    Raises:
        EmailAlreadyRegisteredError: If the email is already taken.
    """
    password_hash = hash_password(password)
    try:
        with get_db_cursor() as cursor:
            cursor.execute(
                f"""
                INSERT INTO users (name, email, password_hash, provider)
                VALUES (%s, %s, %s, 'local')
                RETURNING {USER_COLUMNS}
                """,
                (name, email, password_hash),
            )
            row = cursor.fetchone()
    except errors.UniqueViolation as e:
        logger.info("Registration rejected, email already in use")
        raise EmailAlreadyRegisteredError(email) from e
    user = _row_to_user(row)
    logger.info(f"Created local user id={user.id}")
    return user


def create_federated_user(
    provider: FederatedProvider,
    provider_id: str,
    name: str,
    email: str,
    avatar: Optional[str] = None,
) -> UserRecord:
    """Create a user on their first login through an identity provider.

    Raises:
        EmailAlreadyRegisteredError: If the email is already taken.
    """
    query = sql.SQL(
        """
        INSERT INTO users (name, email, {column}, avatar, provider)
        VALUES (%s, %s, %s, %s, %s)
        RETURNING {columns}
        """
    ).format(
        column=sql.Identifier(PROVIDER_ID_COLUMNS[provider]),
        columns=sql.SQL(USER_COLUMNS),
    )
    try:
        with get_db_cursor() as cursor:
            cursor.execute(query, (name, email, provider_id, avatar, provider))
            row = cursor.fetchone()
    except errors.UniqueViolation as e:
        raise EmailAlreadyRegisteredError(email) from e
    user = _row_to_user(row)
    logger.info(f"Created {provider} user id={user.id}")
    return user


def link_provider(
    user_id: UUID,
    provider: FederatedProvider,
    provider_id: str,
    avatar: Optional[str] = None,
) -> UserRecord:
    """Attach an external provider account to an existing user.

    Sets the provider id and switches the user's provider. The avatar is only
    backfilled when the user has none. The password hash is left untouched.
    """
    query = sql.SQL(
        """
        UPDATE users
        SET {column} = %s,
            provider = %s,
            avatar = COALESCE(avatar, %s)
        WHERE id = %s
        RETURNING {columns}
        """
    ).format(
        column=sql.Identifier(PROVIDER_ID_COLUMNS[provider]),
        columns=sql.SQL(USER_COLUMNS),
    )
    with get_db_cursor() as cursor:
        cursor.execute(query, (provider_id, provider, avatar, user_id))
        row = cursor.fetchone()
    if row is None:
        raise LookupError(f"User {user_id} not found")
    logger.info(f"Linked {provider} account to user id={user_id}")
    return _row_to_user(row)


def update_user_name(user_id: UUID, name: str) -> Optional[UserRecord]:
    """Update a user's display name.

    Returns:
        The updated user, or None if user not found.
    """
    with get_db_cursor() as cursor:
        cursor.execute(
            f"""
            UPDATE users
            SET name = %s
            WHERE id = %s
            RETURNING {USER_COLUMNS}
            """,
            (name, user_id),
        )
        row = cursor.fetchone()
        return _row_to_user(row) if row else None


def set_password(user_id: UUID, password: str) -> bool:
    """Hash and store a new local password.

    Returns:
        True if the user existed and was updated.
    """
    password_hash = hash_password(password)
    with get_db_cursor() as cursor:
        cursor.execute(
            "UPDATE users SET password_hash = %s WHERE id = %s",
            (password_hash, user_id),
        )
        updated = cursor.rowcount > 0
    if updated:
        logger.info(f"Password changed for user id={user_id}")
    return updated


def backfill_local_provider(user_id: UUID) -> Optional[UserRecord]:
    """Set provider to 'local' on a legacy record that has none."""
    with get_db_cursor() as cursor:
        cursor.execute(
            f"""
            UPDATE users
            SET provider = 'local'
            WHERE id = %s AND provider IS NULL
            RETURNING {USER_COLUMNS}
            """,
            (user_id,),
        )
        row = cursor.fetchone()
    if row is None:
        return None
    logger.info(f"Backfilled provider=local for legacy user id={user_id}")
    return _row_to_user(row)


def _row_to_user(row) -> UserRecord:
    """Convert a database row to a UserRecord object."""
    (
        id,
        name,
        email,
        password_hash,
        avatar,
        role,
        provider,
        google_id,
        github_id,
        created_at,
        updated_at,
    ) = row
    return UserRecord(
        id=id,
        name=name,
        email=email,
        password_hash=password_hash,
        avatar=avatar,
        role=role,
        provider=provider,
        google_id=google_id,
        github_id=github_id,
        created_at=created_at,
        updated_at=updated_at,
    )
