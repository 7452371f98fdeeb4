from pydantic import BaseModel, EmailStr, Field, field_validator
from datetime import datetime

from ..models.user import UserRole
from .base import CamelModel


class UserBase(CamelModel):
    email: str


class UserCreate(CamelModel):
    email: EmailStr
    password: str = Field(min_length=6)
    full_name: str

    @field_validator("full_name")
    @classmethod
    def strip_full_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Full name is required")
        return value


class UserLogin(CamelModel):
    email: str
    password: str


class User(UserBase):
    id: str
    full_name: str
    role: UserRole
    created_at: datetime


class TaskCounts(BaseModel):
    """Per-status task totals; keys stay snake_case on the wire."""
    total: int = 0
    todo: int = 0
    in_progress: int = 0
    done: int = 0


class UserWithStats(User):
    task_counts: TaskCounts


class TokenData(BaseModel):
    user_id: str
    role: UserRole


class AuthResponse(CamelModel):
    user: User
    token: str
