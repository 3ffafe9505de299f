import os
import logging
from contextlib import contextmanager
from typing import Iterator

import psycopg

logger = logging.getLogger(__name__)

CONNECT_TIMEOUT_SECONDS = 10
APPLICATION_NAME = "taskflow"


def get_database_url() -> str:
    """Get the database URL from environment variables."""
    return os.environ["DATABASE_URL"]


def get_sqlalchemy_database_url() -> str:
    """Get the database URL in the form Alembic's SQLAlchemy engine expects.

    Both postgres:// and postgresql:// URLs are pointed at the psycopg (v3)
    driver, since psycopg2 is not installed.
    """
    url = get_database_url()
    for scheme in ("postgresql://", "postgres://"):
        if url.startswith(scheme):
            return "postgresql+psycopg://" + url[len(scheme) :]
    return url


@contextmanager
def get_db_connection() -> Iterator[psycopg.Connection]:
    """Open a connection for the duration of a block, then close it."""
    conn = psycopg.connect(
        get_database_url(),
        connect_timeout=CONNECT_TIMEOUT_SECONDS,
        application_name=APPLICATION_NAME,
    )
    try:
        yield conn
    finally:
        conn.close()


@contextmanager
def get_db_cursor() -> Iterator[psycopg.Cursor]:
    """Get a cursor whose work is committed as one transaction.

    Commits when the block exits normally. Any exception rolls the
    transaction back and propagates to the caller.
    """
    with get_db_connection() as conn:
        with conn.cursor() as cursor:
            try:
                yield cursor
                conn.commit()
            except Exception as e:
                logger.debug(f"Rolling back transaction after {type(e).__name__}")
                conn.rollback()
                raise
