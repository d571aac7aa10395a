"""Shared test fixtures for quizauth-core."""

import os
import sqlite3
import tempfile

# Cheap bcrypt rounds and a throwaway default database, set before the
# application modules read their settings.
os.environ.setdefault("BCRYPT_WORK_FACTOR", "4")
os.environ.setdefault(
    "DATABASE_PATH",
    os.path.join(tempfile.gettempdir(), "quizauth-test-default.db")
)

import pytest

from quizauth_core.main import app
from quizauth_core.config import settings
from quizauth_core.db import Core, init_db
from quizauth_core.schema import read_schema
from quizauth_core.auth.token import TokenCodec


TEST_PASSWORD = "Secret123"


@pytest.fixture
def test_db():
    """Create in-memory test database with schema."""
    db = sqlite3.connect(":memory:")
    db.row_factory = sqlite3.Row
    db.execute("PRAGMA foreign_keys = ON")
    db.executescript(read_schema())
    db.commit()

    yield db

    db.close()


@pytest.fixture
def users(test_db):
    """User store bound to the in-memory database."""
    return Core(test_db).user


@pytest.fixture
def codec():
    """Token codec with a fixed secret and a one hour lifetime."""
    return TokenCodec("test-secret-key-for-quizauth-tests", expires_in=3600)


@pytest.fixture
def alice(users, test_db):
    """A registered user "alice" whose password is TEST_PASSWORD."""
    user = users.create(
        username="alice",
        email="alice@example.com",
        password=TEST_PASSWORD,
        name="alice",
    )
    test_db.commit()
    return user


@pytest.fixture
def client():
    """Create test client backed by a fresh temp-file database."""
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)
    os.unlink(db_path)

    original_db_path = settings.database_path
    settings.database_path = db_path
    try:
        init_db()

        app.config['TESTING'] = True
        with app.test_client() as client:
            yield client

    finally:
        settings.database_path = original_db_path
        if os.path.exists(db_path):
            os.unlink(db_path)


@pytest.fixture
def api_prefix():
    return settings.api_prefix


@pytest.fixture
def registered(client, api_prefix):
    """Register "bob" through the API. Returns (token, user dict)."""
    response = client.post(
        f"{api_prefix}/register",
        json={"username": "bob", "email": "bob@example.com", "password": TEST_PASSWORD}
    )
    assert response.status_code == 201
    data = response.get_json()["data"]
    return data["token"], data["user"]


@pytest.fixture
def auth_headers(registered):
    """Authorization header for the registered user."""
    token, _user = registered
    return {"Authorization": f"Bearer {token}"}
