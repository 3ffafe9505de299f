"""Database operations for tasks."""

import logging
from typing import Optional
from uuid import UUID

from psycopg import sql

from taskflow.models.task import Task, TaskCreate
from .connection import get_db_cursor

logger = logging.getLogger(__name__)

TASK_COLUMNS = """
    id, title, description, status, priority, due_date, user_id,
    created_at, updated_at
"""

# Columns a client is allowed to change through an update.
UPDATABLE_COLUMNS = ("title", "description", "status", "priority", "due_date")


def get_tasks_for_user(user_id: UUID) -> list[Task]:
    """Get all tasks owned by a user, newest first."""
    with get_db_cursor() as cursor:
        cursor.execute(
            f"""
            SELECT {TASK_COLUMNS}
            FROM tasks
            WHERE user_id = %s
            ORDER BY created_at DESC
            """,
            (user_id,),
        )
        rows = cursor.fetchall()
        return [_row_to_task(row) for row in rows]


def get_task_by_id(task_id: UUID) -> Optional[Task]:
    """Get a single task regardless of owner.

    Callers are responsible for checking ownership.
    """
    with get_db_cursor() as cursor:
        cursor.execute(
            f"SELECT {TASK_COLUMNS} FROM tasks WHERE id = %s",
            (task_id,),
        )
        row = cursor.fetchone()
        return _row_to_task(row) if row else None


def create_task(user_id: UUID, task: TaskCreate) -> Task:
    """Insert a new task owned by `user_id`."""
    with get_db_cursor() as cursor:
        cursor.execute(
            f"""
            INSERT INTO tasks (title, description, status, priority, due_date, user_id)
            VALUES (%s, %s, %s, %s, %s, %s)
            RETURNING {TASK_COLUMNS}
            """,
            (
                task.title,
                task.description,
                task.status,
                task.priority,
                task.due_date,
                user_id,
            ),
        )
        row = cursor.fetchone()
    created = _row_to_task(row)
    logger.info(f"Created task id={created.id} for user id={user_id}")
    return created


def update_task(task_id: UUID, changes: dict) -> Optional[Task]:
    """Apply a partial update to a task.

    Args:
        task_id: The task to update.
        changes: Mapping of column name to new value. Unknown keys are ignored.

    Returns:
        The updated task, or None if it no longer exists.
    """
    changes = {k: v for k, v in changes.items() if k in UPDATABLE_COLUMNS}
    if not changes:
        return get_task_by_id(task_id)

    assignments = sql.SQL(", ").join(
        sql.SQL("{} = %s").format(sql.Identifier(column)) for column in changes
    )
    query = sql.SQL(
        "UPDATE tasks SET {assignments} WHERE id = %s RETURNING {columns}"
    ).format(assignments=assignments, columns=sql.SQL(TASK_COLUMNS))

    with get_db_cursor() as cursor:
        cursor.execute(query, (*changes.values(), task_id))
        row = cursor.fetchone()
        return _row_to_task(row) if row else None


def delete_task(task_id: UUID) -> bool:
    """Hard-delete a task.

    Returns:
        True if a row was deleted.
    """
    with get_db_cursor() as cursor:
        cursor.execute("DELETE FROM tasks WHERE id = %s", (task_id,))
        deleted = cursor.rowcount > 0
    if deleted:
        logger.info(f"Deleted task id={task_id}")
    return deleted


def _row_to_task(row) -> Task:
    """Convert a database row to a Task object."""
    (
        id,
        title,
        description,
        status,
        priority,
        due_date,
        user_id,
        created_at,
        updated_at,
    ) = row
    return Task(
        id=id,
        title=title,
        description=description,
        status=status,
        priority=priority,
        due_date=due_date,
        user_id=user_id,
        created_at=created_at,
        updated_at=updated_at,
    )
