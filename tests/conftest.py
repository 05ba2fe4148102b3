"""
Pytest configuration and fixtures for Lifebook people resolution tests.
"""

import os

# Keep the application engine off PostgreSQL; must run before lifebook imports
os.environ.setdefault("DB_URL", "sqlite://")

from uuid import uuid4

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from lifebook.models import Base
from lifebook.services.sql_store import SqlPersonStore


@pytest.fixture(scope="function")
def engine():
    """Create an in-memory SQLite engine with the schema created from the models.

    StaticPool keeps a single connection so the TestClient's worker thread
    sees the same database as the test.
    """
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture(scope="function")
def db_session(engine) -> Session:
    """Provide a database session for tests."""
    session_factory = sessionmaker(bind=engine, autoflush=False)
    session = session_factory()

    yield session

    session.close()


@pytest.fixture
def store(db_session):
    """Record store over the test session."""
    return SqlPersonStore(db_session)


@pytest.fixture
def project_id():
    return uuid4()


@pytest.fixture
def make_person(store, project_id):
    """Factory creating a person in the test project."""

    def _make(name, aliases=None, importance=1.0, **fields):
        values = {
            "name": name,
            "aliases": aliases or [],
            "importance_score": importance,
        }
        values.update(fields)
        with store.transaction():
            return store.create_person(project_id, values)

    return _make


@pytest.fixture
def test_client(db_session):
    """Create test client with database session override."""
    from lifebook.database import get_db
    from lifebook.main import app

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()
