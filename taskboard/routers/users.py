from typing import List

from fastapi import APIRouter, Depends
from sqlmodel import Session

from ..database import get_db
from ..models import User
from ..repositories import users as user_repo
from ..schemas.task import Task as TaskSchema
from ..schemas.user import UserWithStats
from .auth import require_admin

router = APIRouter()


@router.get("/users", response_model=List[UserWithStats])
def list_users(
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Get every user with task counts per status (admin only)."""
    return user_repo.list_with_stats(db)


@router.get("/users/{user_id}/tasks", response_model=List[TaskSchema])
def get_user_tasks(
    user_id: str,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Get another user's tasks (admin only)."""
    return user_repo.get_owned_tasks(db, user_id)
