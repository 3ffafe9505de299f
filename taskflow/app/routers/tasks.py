"""Task routes. Every route is scoped to the authenticated user."""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel

from taskflow.app.auth import AuthContext, require_user
from taskflow.db.tasks import (
    create_task,
    delete_task,
    get_task_by_id,
    get_tasks_for_user,
    update_task,
)
from taskflow.models.task import Task, TaskCreate, TaskUpdate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/tasks", tags=["tasks"])


class DebugUser(BaseModel):
    id: UUID
    email: str
    name: str


class DebugResponse(BaseModel):
    message: str
    user: DebugUser


def get_owned_task(task_id: UUID, auth: AuthContext, action: str) -> Task:
    """Fetch a task and check that the caller owns it.

    A task owned by someone else is reported as 401, not 404, so non-owners can
    tell that the id exists.

    Raises:
        HTTPException 404 if no such task, 401 if owned by another user.
    """
    task = get_task_by_id(task_id)
    if task is None:
        raise HTTPException(status_code=404, detail="Task not found")
    if not task.is_owned_by(auth.user.id):
        logger.warning(
            f"User id={auth.user.id} attempted to {action} task id={task_id}"
        )
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Not authorized to {action} this task",
        )
    return task


@router.get("", response_model=list[Task])
def list_tasks(auth: AuthContext = Depends(require_user)) -> list[Task]:
    """Get all of the caller's tasks."""
    return get_tasks_for_user(auth.user.id)


@router.post("", response_model=Task, status_code=status.HTTP_201_CREATED)
def add_task(
    request: TaskCreate, auth: AuthContext = Depends(require_user)
) -> Task:
    """Create a task owned by the caller."""
    return create_task(auth.user.id, request)


# Registered before "/{task_id}" so "debug" isn't parsed as an id.
@router.get("/debug", response_model=DebugResponse)
def debug_auth(auth: AuthContext = Depends(require_user)) -> DebugResponse:
    """Echo the authenticated identity. Used by the client to check its token."""
    return DebugResponse(
        message="Authentication successful",
        user=DebugUser(id=auth.user.id, email=auth.user.email, name=auth.user.name),
    )


@router.get("/{task_id}", response_model=Task)
def read_task(task_id: UUID, auth: AuthContext = Depends(require_user)) -> Task:
    return get_owned_task(task_id, auth, "access")


@router.put("/{task_id}", response_model=Task)
def edit_task(
    task_id: UUID,
    request: TaskUpdate,
    auth: AuthContext = Depends(require_user),
) -> Task:
    """Apply the fields present in the body to a task."""
    get_owned_task(task_id, auth, "update")
    updated = update_task(task_id, request.changes())
    if updated is None:
        # Deleted between the ownership check and the update.
        raise HTTPException(status_code=404, detail="Task not found")
    return updated


@router.delete("/{task_id}")
def remove_task(
    task_id: UUID, auth: AuthContext = Depends(require_user)
) -> dict[str, str]:
    get_owned_task(task_id, auth, "delete")
    delete_task(task_id)
    return {"message": "Task removed"}
