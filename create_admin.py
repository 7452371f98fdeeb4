#!/usr/bin/env python
"""Create an admin account, or promote an existing user to admin.

Usage: python create_admin.py EMAIL PASSWORD [FULL_NAME]
"""
import argparse

from sqlmodel import select

from taskboard.database import get_session, create_tables
from taskboard.models import User, UserRole
from taskboard.routers.auth import get_password_hash, normalize_email


def ensure_admin(session, email: str, password: str, full_name: str) -> User:
    email = normalize_email(email)
    user = session.exec(select(User).where(User.email == email)).first()
    if user:
        user.role = UserRole.ADMIN
    else:
        user = User(
            email=email,
            full_name=full_name,
            role=UserRole.ADMIN,
            hashed_password=get_password_hash(password),
        )
        session.add(user)
    session.commit()
    session.refresh(user)
    return user


def main():
    parser = argparse.ArgumentParser(description="Create or promote a Taskboard admin")
    parser.add_argument("email")
    parser.add_argument("password")
    parser.add_argument("full_name", nargs="?", default="Administrator")
    args = parser.parse_args()

    create_tables()
    with get_session() as session:
        user = ensure_admin(session, args.email, args.password, args.full_name)
        print(f"Admin ready: {user.email} ({user.id})")


if __name__ == "__main__":
    main()
