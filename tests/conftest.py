# tests/conftest.py
"""
Shared fixtures.

Settings are read when ``lunarlink.core.config`` is first imported, so the
environment is prepared before any lunarlink import:
- DATABASE_DSN points the module engine at an in-memory SQLite database
- ADMIN_KEY holds the base64 form of ADMIN_PASSWORD

Each test gets its own in-memory SQLite engine (StaticPool keeps the single
connection alive across sessions) with the tables created from the models.
"""

from __future__ import annotations

import base64
import os
import random

ADMIN_PASSWORD = "test-admin#1"

os.environ.setdefault("DATABASE_DSN", "sqlite://")
os.environ["ADMIN_KEY"] = base64.b64encode(ADMIN_PASSWORD.encode("utf-8")).decode("ascii")
os.environ["REDIS_URL"] = ""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from lunarlink import models  # noqa: F401
from lunarlink.core.security import get_today_password
from lunarlink.db.session import Base, get_db
from lunarlink.main import app
from lunarlink.schemas.code import SpeedTier
from lunarlink.services.code_repository import CodeRepository
from lunarlink.services.state_store import MemoryStateStore, get_state_store


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db_session(session_factory):
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def repository(db_session):
    return CodeRepository(db_session, rng=random.Random(1234))


@pytest.fixture
def seed(repository):
    """Insert a batch of codes: seed(["A", "B"], tier=SpeedTier.MBPS_16, name="batch")."""
    def _seed(codes, tier=SpeedTier.MBPS_16, name="seed batch"):
        return repository.insert_batch(list(codes), name, tier)
    return _seed


@pytest.fixture
def state_store():
    return MemoryStateStore()


@pytest.fixture
def client(session_factory, state_store):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_state_store] = lambda: state_store
    yield TestClient(app)
    app.dependency_overrides.clear()


def _login(client, password):
    response = client.post("/auth/login", json={"password": password})
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


@pytest.fixture
def admin_headers(client):
    return _login(client, ADMIN_PASSWORD)


@pytest.fixture
def user_headers(client):
    return _login(client, get_today_password())
