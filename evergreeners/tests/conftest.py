"""
Shared fixtures for the test suite.
"""
import os
import tempfile

# Must be set before any evergreeners module reads its configuration
os.environ.setdefault("EVERGREENERS_DATABASE_URL", "sqlite://")
os.environ.setdefault("EVERGREENERS_SCHEDULER_ENABLED", "false")
os.environ.setdefault("EVERGREENERS_API_KEY", "test-api-key")
os.environ.setdefault("EVERGREENERS_LOG_DIR", os.path.join(tempfile.gettempdir(), "evergreeners-test-logs"))

import pytest
from datetime import date, timedelta
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from evergreeners import config
from evergreeners.database import Base, get_db
from evergreeners.models import User


@pytest.fixture
def engine():
    """Fresh in-memory database per test"""
    test_engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=test_engine)
    yield test_engine
    Base.metadata.drop_all(bind=test_engine)
    test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def today():
    return date(2024, 6, 10)


@pytest.fixture
def client(db_session):
    """API client sharing the test session"""
    from fastapi.testclient import TestClient
    from evergreeners.main import app

    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def api_headers():
    return {"X-API-Key": config.API_KEY}


def make_calendar(today: date, counts: list) -> list:
    """
    Build a raw calendar from counts listed newest first.

    counts[0] is today, counts[1] yesterday, and so on. None leaves the
    date out entirely.
    """
    calendar = []
    for offset, count in enumerate(counts):
        if count is None:
            continue
        calendar.append({
            "date": (today - timedelta(days=offset)).isoformat(),
            "contributionCount": count,
        })
    return calendar


def make_user(db, user_id: str, username: str = None, is_public: bool = True, **stats) -> User:
    """Insert a user with the given stat columns"""
    user = User(id=user_id, username=username or user_id, is_public=is_public, **stats)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user
