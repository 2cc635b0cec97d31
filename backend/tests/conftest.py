"""
Pytest configuration and fixtures for backend tests.

Provides shared fixtures for:
- Test database sessions (in-memory SQLite with SAVEPOINT support)
- FastAPI test client with the database dependency overridden
- Actors and request headers
- Sample data factories
"""

import os
import pytest
from datetime import date, time

# Set test environment variables before importing app modules
os.environ['COLLABCAL_DB_URL'] = 'sqlite:///:memory:'
os.environ.setdefault('COLLABCAL_ORG_TIMEZONE', 'Asia/Tokyo')

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from backend.src.db.database import enable_sqlite_savepoints
from backend.src.models import Base
from backend.src.services.approval_workflow import Actor
from backend.src.services.event_service import EventService
from backend.src.services.participation_service import ParticipationService


# ============================================================================
# Database Fixtures
# ============================================================================

@pytest.fixture(scope='function')
def test_db_engine():
    """Create an in-memory SQLite database engine for testing."""
    engine = create_engine(
        'sqlite:///:memory:',
        connect_args={'check_same_thread': False},
        poolclass=StaticPool,
    )

    # Foreign keys on and SAVEPOINT-capable transactions, per connection
    enable_sqlite_savepoints(engine)

    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture(scope='function')
def test_db_session(test_db_engine):
    """Create a test database session."""
    TestingSessionLocal = sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=test_db_engine
    )
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def test_client(test_db_session):
    """Create a test client for FastAPI application."""
    from fastapi.testclient import TestClient
    from backend.src.main import app
    from backend.src.db.database import get_db

    def get_test_db():
        try:
            yield test_db_session
        finally:
            pass

    app.dependency_overrides[get_db] = get_test_db

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()


# ============================================================================
# Actors
# ============================================================================

@pytest.fixture
def creator():
    """Plain member who creates events."""
    return Actor.of("user-creator")


@pytest.fixture
def manager():
    """Staff member holding an event-manager role."""
    return Actor.of("staff-1", ["SUPPORT"])


@pytest.fixture
def auth_headers():
    """Factory for gateway identity headers."""
    def _headers(user_id, roles=()):
        headers = {"X-User-Id": user_id}
        if roles:
            headers["X-User-Roles"] = ",".join(roles)
        return headers
    return _headers


# ============================================================================
# Sample Data Factories
# ============================================================================

@pytest.fixture
def event_service(test_db_session):
    return EventService(test_db_session)


@pytest.fixture
def participation_service(test_db_session):
    return ParticipationService(test_db_session)


@pytest.fixture
def sample_event(event_service, creator):
    """Factory for creating sample Event models through the service."""
    def _create(
        name='Town Meeting',
        event_type='OFFICIAL',
        event_date=date(2024, 6, 10),
        start_time=time(10, 0),
        end_time=time(12, 0),
        actor=None,
        **kwargs
    ):
        return event_service.create(
            actor=actor or creator,
            name=name,
            event_type=event_type,
            event_date=event_date,
            start_time=start_time,
            end_time=end_time,
            **kwargs
        )
    return _create
