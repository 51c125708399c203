import os

os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("DATABASE_URL", "sqlite://")

from datetime import datetime

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from core.auth import security
from core.database import Base
from models.card import Card  # noqa: F401
from models.deck import Deck  # noqa: F401
from services.review_store import ReviewStateStore

NOW = datetime(2026, 3, 1, 9, 30)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(params=["sql", "memory"])
def store(request, db):
    if request.param == "sql":
        return ReviewStateStore.from_session(db, clock=lambda: NOW)
    return ReviewStateStore.in_memory(clock=lambda: NOW)


@pytest.fixture
def client(session_factory):
    from main import app
    from routers.deps import get_store

    def override_get_store():
        session = session_factory()
        try:
            yield ReviewStateStore.from_session(session)
        finally:
            session.close()

    app.dependency_overrides[get_store] = override_get_store
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def auth_headers(user_id: str) -> dict[str, str]:
    token = security.create_access_token(uid=user_id)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def alice():
    return auth_headers("alice")


@pytest.fixture
def bob():
    return auth_headers("bob")
