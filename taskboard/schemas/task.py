from pydantic import field_validator
from datetime import datetime
from typing import List, Optional

from ..models.task import TaskStatus
from .base import CamelModel


def _clean_title(value: Optional[str]) -> str:
    if value is None:
        raise ValueError("Title cannot be null")
    value = value.strip()
    if not value:
        raise ValueError("Title is required")
    return value


def _clean_description(value: Optional[str]) -> Optional[str]:
    return value.strip() if value is not None else None


class TaskBase(CamelModel):
    """Base task schema with common fields."""
    title: str
    description: Optional[str] = None
    status: TaskStatus = TaskStatus.TODO


class TaskCreate(TaskBase):
    """Schema for creating new tasks. The owner always comes from the token."""
    parent_id: Optional[str] = None

    @field_validator("title")
    @classmethod
    def strip_title(cls, value):
        return _clean_title(value)

    @field_validator("description")
    @classmethod
    def strip_description(cls, value):
        return _clean_description(value)


class TaskUpdate(CamelModel):
    """Schema for updating existing tasks; unset fields are left alone."""
    title: Optional[str] = None
    description: Optional[str] = None
    status: Optional[TaskStatus] = None

    @field_validator("title")
    @classmethod
    def strip_title(cls, value):
        return _clean_title(value)

    @field_validator("description")
    @classmethod
    def strip_description(cls, value):
        return _clean_description(value)

    @field_validator("status")
    @classmethod
    def status_not_null(cls, value):
        if value is None:
            raise ValueError("Status cannot be null")
        return value


class Task(TaskBase):
    """Complete task schema with its direct sub-tasks."""
    id: str
    user_id: str
    parent_id: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    subtasks: List["Task"] = []


class OwnerSummary(CamelModel):
    id: str
    email: str
    full_name: str


class TaskWithOwner(Task):
    """Task as seen by an admin, annotated with who owns it."""
    user: OwnerSummary


class TaskDeleted(CamelModel):
    message: str = "Task deleted successfully"


Task.model_rebuild()
