from typing import List, Optional

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from taskboard.database import get_db
from taskboard.main import app
from taskboard.models import User, UserRole
from taskboard.routers.auth import create_user_token, get_password_hash
from taskboard.services.suggestions import SuggestionProvider, get_suggestion_provider


class FakeSuggestionProvider(SuggestionProvider):
    """Returns canned titles and records what it was asked."""

    def __init__(self, titles: Optional[List[str]] = None, error: Exception = None):
        self.titles = titles if titles is not None else ["Book flights", "Reserve hotel", "Pack bags"]
        self.error = error
        self.calls = []

    def suggest(self, title, description=None):
        self.calls.append((title, description))
        if self.error:
            raise self.error
        return list(self.titles)


@pytest.fixture()
def engine():
    # One in-memory database shared by every session of a test
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture()
def db(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture()
def suggestions():
    return FakeSuggestionProvider()


@pytest.fixture()
def client(engine, suggestions):
    def override_get_db():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_suggestion_provider] = lambda: suggestions
    yield TestClient(app)
    app.dependency_overrides.clear()


def register(client: TestClient, email: str, full_name: str = "Test User", password: str = "password123") -> dict:
    res = client.post(
        "/auth/register",
        json={"email": email, "password": password, "fullName": full_name},
    )
    assert res.status_code == 201, res.text
    return res.json()


def auth_headers(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def alice(client):
    return register(client, "alice@example.com", "Alice Anders")


@pytest.fixture()
def bob(client):
    return register(client, "bob@example.com", "Bob Brown")


@pytest.fixture()
def admin(db):
    user = User(
        email="admin@example.com",
        full_name="Ada Admin",
        role=UserRole.ADMIN,
        hashed_password=get_password_hash("adminpass"),
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return {"user": {"id": user.id, "email": user.email}, "token": create_user_token(user)}
