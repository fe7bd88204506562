"""Pytest configuration and shared fixtures."""

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from missionflow.core.approval.service import MissionApprovalService
from missionflow.db.inmemory import InMemoryMissionRepository
from missionflow.db.session import init_db


class FixedClock:
    """Clock that starts at a fixed instant and ticks one minute per call."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        current = self.now
        self.now = current + timedelta(minutes=1)
        return current


@pytest.fixture
def clock():
    return FixedClock(datetime(2025, 1, 10, 8, 0, tzinfo=timezone.utc))


@pytest.fixture
def repository():
    return InMemoryMissionRepository()


@pytest.fixture
def service(repository, clock):
    """Approval service over an in-memory repository."""
    return MissionApprovalService(repository, clock=clock)


@pytest.fixture
def engine(tmp_path):
    """SQLite database in a temporary file, one per test."""
    engine = create_engine(
        f"sqlite:///{tmp_path / 'missionflow-test.db'}",
        connect_args={"check_same_thread": False},
    )
    init_db(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autoflush=False, bind=engine)


@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(session_factory):
    """API client bound to the test database."""
    from missionflow.api.deps import get_db
    from missionflow.api.main import app

    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
