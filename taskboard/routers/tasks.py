from typing import List

from fastapi import APIRouter, Depends, status
from sqlmodel import Session

from ..database import get_db
from ..models import User
from ..repositories import tasks as task_repo
from ..schemas.task import Task as TaskSchema, TaskCreate, TaskDeleted, TaskUpdate, TaskWithOwner
from .auth import get_current_user, require_admin

router = APIRouter()


def _get_update_data(task_update: TaskUpdate) -> dict:
    return task_update.model_dump(exclude_unset=True)


@router.get("/tasks", response_model=List[TaskSchema])
def get_tasks(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Get the caller's tasks, newest first, each with its sub-tasks."""
    return task_repo.list_owned(db, current_user.id)


# Declared before /tasks/{task_id} so "all" is not taken for an id.
@router.get("/tasks/all", response_model=List[TaskWithOwner])
def get_all_tasks(
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Get every task along with a summary of its owner (admin only)."""
    return task_repo.list_all(db)


@router.post("/tasks", response_model=TaskSchema, status_code=status.HTTP_201_CREATED)
def create_task(
    task: TaskCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Create a task, or a sub-task when ``parentId`` is given."""
    return task_repo.create_task(
        db,
        owner_id=current_user.id,
        title=task.title,
        description=task.description,
        status=task.status,
        parent_id=task.parent_id,
    )


@router.get("/tasks/{task_id}", response_model=TaskSchema)
def get_task(
    task_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Get a specific task by ID."""
    return task_repo.get_task(db, task_id, current_user.id, current_user.role)


@router.put("/tasks/{task_id}", response_model=TaskSchema)
def update_task(
    task_id: str,
    task_update: TaskUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Update title, description or status of a task (owner or admin)."""
    return task_repo.update_task(
        db,
        task_id,
        current_user.id,
        current_user.role,
        _get_update_data(task_update),
    )


@router.delete("/tasks/{task_id}", response_model=TaskDeleted)
def delete_task(
    task_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Delete a task and its sub-tasks (owner or admin)."""
    task_repo.delete_task(db, task_id, current_user.id, current_user.role)
    return TaskDeleted()
