from sqlmodel import SQLModel, Field, Relationship
from datetime import datetime
from typing import List, Optional
from uuid import uuid4
import enum

from .timestamps import timestamp_field


class TaskStatus(str, enum.Enum):
    TODO = "TODO"
    IN_PROGRESS = "IN_PROGRESS"
    DONE = "DONE"


class Task(SQLModel, table=True):
    """Task owned by a user, optionally a sub-task of another top-level task."""
    __tablename__ = "tasks"

    # Insertion order; breaks created_at ties. Not exposed in the API.
    seq: Optional[int] = Field(default=None, primary_key=True)
    id: str = Field(default_factory=lambda: str(uuid4()), unique=True, index=True)
    title: str
    description: Optional[str] = None
    status: TaskStatus = Field(default=TaskStatus.TODO)
    created_at: datetime = timestamp_field()
    updated_at: datetime = timestamp_field()
    user_id: str = Field(foreign_key="users.id", index=True)
    parent_id: Optional[str] = Field(
        default=None, foreign_key="tasks.id", index=True, ondelete="CASCADE"
    )

    user: Optional["User"] = Relationship(back_populates="tasks")
    parent: Optional["Task"] = Relationship(
        back_populates="subtasks",
        sa_relationship_kwargs={"remote_side": "Task.id"},
    )
    # Children go with their parent; one level deep only.
    subtasks: List["Task"] = Relationship(
        back_populates="parent",
        sa_relationship_kwargs={
            "cascade": "all, delete-orphan",
            "order_by": "[Task.created_at, Task.seq]",
            "lazy": "selectin",
        },
    )
