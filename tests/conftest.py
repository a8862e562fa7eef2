"""
Test configuration and fixtures

Settings are injected through the environment before the application is
imported; every test gets freshly created tables in a throwaway SQLite file.
"""
import itertools
import os
import tempfile

_TMP_DIR = tempfile.mkdtemp(prefix="studyhub-tests-")

os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_TMP_DIR, 'test.db')}"
os.environ["SECRET_KEY"] = "test-secret-key-for-testing-only"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["UPLOAD_DIR"] = os.path.join(_TMP_DIR, "uploads")
os.environ["SKIP_DB_INIT"] = "1"

import pytest
from fastapi.testclient import TestClient

from main import app
from studyhub.core.security import create_access_token
from studyhub.db.database import Base, SessionLocal, engine
from studyhub.db import init_db  # noqa: F401  registers every model on Base
from studyhub.schemas.groups import GroupCreate
from studyhub.schemas.user import UserRegister
from studyhub.services.auth_service import register_user
from studyhub.services.group_service import create_group
from studyhub.websocket.manager import manager


@pytest.fixture(autouse=True)
def fresh_database():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    manager.active_connections.clear()
    manager.channels.clear()
    yield
    manager.active_connections.clear()
    manager.channels.clear()


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def make_user(db):
    """Create users directly through the auth service"""
    counter = itertools.count(1)

    def _make(full_name=None):
        n = next(counter)
        return register_user(db, UserRegister(
            full_name=full_name or f"Student {n}",
            email=f"student{n}@example.edu",
            password="password123",
        ))

    return _make


@pytest.fixture
def make_group(db):
    def _make(creator, capacity=5, is_private=False, name="Linear Algebra Crew"):
        return create_group(db, GroupCreate(
            name=name,
            subject="Mathematics",
            university="State University",
            capacity=capacity,
            is_private=is_private,
        ), creator.id)

    return _make


def token_for(user) -> str:
    return create_access_token({"user_id": user.id})


@pytest.fixture
def auth_headers():
    def _headers(user) -> dict:
        return {"Authorization": f"Bearer {token_for(user)}"}

    return _headers


@pytest.fixture
def user_token():
    return token_for
