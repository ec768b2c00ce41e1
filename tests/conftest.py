import os

# Point the app at a throwaway in-memory database before anything imports it
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("DB_LOG_SLOW_QUERIES", "false")

from datetime import datetime, timedelta  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from slotswap.database import Base, SessionLocal, engine  # noqa: E402
from slotswap.models import Event, EventStatus, User  # noqa: E402

BASE_TIME = datetime(2026, 11, 2, 9, 0)


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def make_user(db):
    def _make(name, email=None):
        user = User(name=name, email=email or f"{name.lower()}@example.com")
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make


@pytest.fixture
def make_event(db):
    counter = {"n": 0}

    def _make(owner, title=None, status=EventStatus.SWAPPABLE, start=None, hours=1):
        counter["n"] += 1
        start = start or BASE_TIME + timedelta(days=counter["n"])
        event = Event(
            title=title or f"Slot {counter['n']}",
            start_time=start,
            end_time=start + timedelta(hours=hours),
            status=status.value,
            owner_id=owner.id,
        )
        db.add(event)
        db.commit()
        db.refresh(event)
        return event

    return _make


@pytest.fixture
def alice(make_user):
    return make_user("Alice")


@pytest.fixture
def bob(make_user):
    return make_user("Bob")


@pytest.fixture
def carol(make_user):
    return make_user("Carol")


@pytest.fixture
def client(db):
    from slotswap.main import app

    with TestClient(app) as test_client:
        yield test_client
