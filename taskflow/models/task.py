"""Task model and request payloads."""

from __future__ import annotations
from datetime import date, datetime
from typing import Literal, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


TaskStatus = Literal["pending", "in-progress", "completed"]
TaskPriority = Literal["low", "medium", "high"]

DEFAULT_STATUS: TaskStatus = "pending"
DEFAULT_PRIORITY: TaskPriority = "medium"


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Task(CamelModel):
    id: UUID
    title: str
    description: Optional[str] = None
    status: TaskStatus = DEFAULT_STATUS
    priority: TaskPriority = DEFAULT_PRIORITY
    due_date: Optional[date] = None
    # Serialized as "user" to match what the browser client reads.
    user_id: UUID = Field(alias="user")
    created_at: datetime
    updated_at: datetime

    def is_owned_by(self, user_id: UUID) -> bool:
        return self.user_id == user_id


def _blank_date_to_none(v):
    # Browser forms post an untouched date input as "".
    if isinstance(v, str) and not v.strip():
        return None
    return v


def _clean_title(v: str) -> str:
    v = v.strip()
    if not v:
        raise ValueError("Title is required")
    return v


class TaskCreate(CamelModel):
    """Request body for creating a task.

    Any owner field in the body is ignored; the owner is always the caller.
    """

    title: str
    description: Optional[str] = None
    status: TaskStatus = DEFAULT_STATUS
    priority: TaskPriority = DEFAULT_PRIORITY
    due_date: Optional[date] = None

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, v: str) -> str:
        return _clean_title(v)

    @field_validator("due_date", mode="before")
    @classmethod
    def empty_due_date(cls, v):
        return _blank_date_to_none(v)


class TaskUpdate(CamelModel):
    """Request body for updating a task.

    Only fields present in the body are applied. Present fields are held to
    the same constraints as on creation.
    """

    title: Optional[str] = None
    description: Optional[str] = None
    status: Optional[TaskStatus] = None
    priority: Optional[TaskPriority] = None
    due_date: Optional[date] = None

    @field_validator("title", "status", "priority", mode="before")
    @classmethod
    def required_fields_not_null(cls, v, info):
        if v is None:
            raise ValueError(f"{info.field_name} cannot be null")
        return v

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        return _clean_title(v)

    @field_validator("due_date", mode="before")
    @classmethod
    def empty_due_date(cls, v):
        return _blank_date_to_none(v)

    def changes(self) -> dict:
        """Fields explicitly sent by the client, keyed by column name."""
        return self.model_dump(exclude_unset=True)
