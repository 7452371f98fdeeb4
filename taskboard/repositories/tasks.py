"""Persistence rules for tasks.

Every function takes the request's session first. Ownership and role checks
live here so the HTTP layer only has to translate the raised errors.
"""
import logging
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import selectinload
from sqlmodel import Session, select

from ..errors import Forbidden, InternalError, NotFound, ValidationError
from ..models import Task, TaskStatus, UserRole
from ..models.timestamps import utcnow

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ("title", "description", "status")


def _commit(db: Session, action: str) -> None:
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Failed to %s", action)
        raise InternalError()


def _ensure_can_modify(task: Task, caller_id: str, caller_role: UserRole) -> None:
    if task.user_id != caller_id and caller_role != UserRole.ADMIN:
        logger.warning("User %s may not modify task %s", caller_id, task.id)
        raise Forbidden("Not authorized")


def _find(db: Session, task_id: str) -> Optional[Task]:
    return db.exec(select(Task).where(Task.id == task_id)).first()


def _get_or_404(db: Session, task_id: str) -> Task:
    task = _find(db, task_id)
    if not task:
        raise NotFound("Task not found")
    return task


def list_owned(db: Session, user_id: str) -> List[Task]:
    """All tasks owned by ``user_id``, newest first, with their sub-tasks."""
    query = (
        select(Task)
        .where(Task.user_id == user_id)
        .order_by(Task.created_at.desc(), Task.seq.desc())
    )
    return list(db.exec(query).all())


def list_all(db: Session) -> List[Task]:
    """Every task with its owner loaded, newest first."""
    query = (
        select(Task)
        .options(selectinload(Task.user))
        .order_by(Task.created_at.desc(), Task.seq.desc())
    )
    return list(db.exec(query).all())


def create_task(
    db: Session,
    owner_id: str,
    title: str,
    description: Optional[str] = None,
    status: TaskStatus = TaskStatus.TODO,
    parent_id: Optional[str] = None,
) -> Task:
    if not title or not title.strip():
        raise ValidationError("Title is required")

    if parent_id:
        parent = _find(db, parent_id)
        if not parent or parent.user_id != owner_id:
            raise NotFound("Parent task not found")
        if parent.parent_id is not None:
            raise ValidationError("Sub-tasks cannot have sub-tasks of their own")

    task = Task(
        title=title.strip(),
        description=description,
        status=status,
        user_id=owner_id,
        parent_id=parent_id or None,
    )
    db.add(task)
    _commit(db, "create task")
    db.refresh(task)
    logger.info("User %s created task %s", owner_id, task.id)
    return task


def get_task(db: Session, task_id: str, caller_id: str, caller_role: UserRole) -> Task:
    task = _get_or_404(db, task_id)
    _ensure_can_modify(task, caller_id, caller_role)
    return task


def update_task(
    db: Session,
    task_id: str,
    caller_id: str,
    caller_role: UserRole,
    patch: dict,
) -> Task:
    """Apply the provided fields of ``patch``; ``updated_at`` always moves."""
    task = _get_or_404(db, task_id)
    _ensure_can_modify(task, caller_id, caller_role)

    for field, value in patch.items():
        if field not in UPDATABLE_FIELDS:
            continue
        if field == "title" and (value is None or not value.strip()):
            raise ValidationError("Title is required")
        setattr(task, field, value)

    task.updated_at = utcnow()

    _commit(db, "update task")
    db.refresh(task)
    return task


def delete_task(db: Session, task_id: str, caller_id: str, caller_role: UserRole) -> None:
    """Delete a task together with its sub-tasks."""
    task = _get_or_404(db, task_id)
    _ensure_can_modify(task, caller_id, caller_role)

    db.delete(task)
    _commit(db, "delete task")
    logger.info("User %s deleted task %s", caller_id, task_id)
