"""Shared fixtures: in-memory SQLite store, fake notifier, API client."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

# Must be set before app.config is imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["API_KEY"] = ""
os.environ["NOTIFY_API_KEY"] = ""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.config import Settings
from app.database import create_tables, get_db
from app.main import app
from app.routers.vehicles import get_notifier


class FakeNotifier:
    """Records creation notifications instead of sending email."""

    def __init__(self):
        self.sent = []

    async def notify_vehicle_created(self, vehicle: dict) -> bool:
        self.sent.append(vehicle)
        return True


@pytest.fixture
def config():
    return Settings(NOTIFY_API_KEY="re_test_key", NOTIFY_TO="ops@example.com")


@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    create_tables(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)
    engine.dispose()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def notifier():
    return FakeNotifier()


@pytest.fixture
def client(session_factory, notifier):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_notifier] = lambda: notifier
    yield TestClient(app)
    app.dependency_overrides.clear()
