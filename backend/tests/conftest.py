"""Pytest fixtures: file-backed SQLite database, recreated for every test."""
import os

SQLITE_URL = "sqlite:///./test.db"

# Must be set before the app (and its settings) are imported
os.environ["DATABASE_URL"] = SQLITE_URL
os.environ["EXPIRY_SCHEDULER_ENABLED"] = "false"

import pytest  # noqa: E402
from sqlalchemy import create_engine, event  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from app.database import Base, get_db  # noqa: E402
from app.main import app  # noqa: E402
from app.services import message_service  # noqa: E402

# Import all models so they register with Base.metadata
from app.models.user import User                        # noqa: F401,E402
from app.models.group import ChatGroup, GroupMember     # noqa: F401,E402
from app.models.message import ChatMessage              # noqa: F401,E402


@pytest.fixture(scope="function")
def db_engine():
    """Create a fresh SQLite engine for each test."""
    engine = create_engine(SQLITE_URL, connect_args={"check_same_thread": False})

    # Enable WAL mode for better concurrency
    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.close()

    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def session_factory(db_engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=db_engine)


@pytest.fixture(scope="function")
def db(session_factory):
    """Yield a database session, closed after the test."""
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="function")
def client(session_factory):
    """FastAPI TestClient with the database dependency overridden to use SQLite."""

    def _override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
def create_test_user(client: TestClient, name: str = "alice") -> dict:
    """Helper: POST /api/login and return response JSON."""
    resp = client.post("/api/login", json={"username": name})
    assert resp.status_code == 200, resp.text
    return resp.json()


def create_test_group(
    client: TestClient,
    creator: str = "alice",
    name: str = "test-group",
    expiry_minutes: int = 60,
) -> dict:
    """Helper: POST /api/groups and return response JSON."""
    resp = client.post("/api/groups/", json={
        "group_name": name,
        "created_by": creator,
        "expiry_minutes": expiry_minutes,
    })
    assert resp.status_code == 201, resp.text
    return resp.json()


def add_test_messages(db, group_name: str, *contents: str, sender: str = "alice") -> list:
    """Helper: persist chat messages directly through the message store."""
    return [message_service.append_message(db, group_name, sender, c) for c in contents]
