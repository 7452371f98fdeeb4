from collections import defaultdict
from typing import Dict, List

from sqlalchemy import func
from sqlmodel import Session, select

from ..models import Task, TaskStatus, User
from ..schemas.user import TaskCounts, UserWithStats
from . import tasks as task_repo

_STATUS_KEYS = {
    TaskStatus.TODO: "todo",
    TaskStatus.IN_PROGRESS: "in_progress",
    TaskStatus.DONE: "done",
}


def _task_counts_by_user(db: Session) -> Dict[str, TaskCounts]:
    rows = db.exec(
        select(Task.user_id, Task.status, func.count(Task.id))
        .group_by(Task.user_id, Task.status)
    ).all()

    counts = defaultdict(TaskCounts)
    for user_id, status, count in rows:
        entry = counts[user_id]
        setattr(entry, _STATUS_KEYS[TaskStatus(status)], count)
        entry.total += count
    return counts


def list_with_stats(db: Session) -> List[UserWithStats]:
    """Every user, newest first, with task totals per status."""
    users = db.exec(select(User).order_by(User.created_at.desc())).all()
    counts = _task_counts_by_user(db)

    return [
        UserWithStats(
            id=user.id,
            email=user.email,
            full_name=user.full_name,
            role=user.role,
            created_at=user.created_at,
            task_counts=counts.get(user.id) or TaskCounts(),
        )
        for user in users
    ]


def get_owned_tasks(db: Session, user_id: str) -> List[Task]:
    return task_repo.list_owned(db, user_id)
