from sqlmodel import SQLModel, Field, Relationship
from datetime import datetime
from typing import List
from uuid import uuid4
import enum

from .timestamps import timestamp_field


class UserRole(str, enum.Enum):
    USER = "USER"
    ADMIN = "ADMIN"


class User(SQLModel, table=True):
    """Account used to sign in; role ADMIN unlocks the admin views."""
    __tablename__ = "users"

    id: str = Field(default_factory=lambda: str(uuid4()), primary_key=True)
    email: str = Field(unique=True, index=True)
    full_name: str
    role: UserRole = Field(default=UserRole.USER)
    hashed_password: str
    created_at: datetime = timestamp_field()
    updated_at: datetime = timestamp_field()

    tasks: List["Task"] = Relationship(back_populates="user")

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN
