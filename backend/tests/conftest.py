"""
Mishmaat - Test Configuration and Fixtures
"""
import os
from typing import Generator

import pytest

# Set testing environment before mishmaat.db builds its engine
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.pop("ASSISTANT_API_KEY", None)
os.environ.pop("OPENAI_API_KEY", None)

from fastapi.testclient import TestClient
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

from mishmaat.db import Base, get_db, make_engine, make_session_factory
from mishmaat.main import app
from mishmaat.realtime import hub as hub_module
from mishmaat.realtime.hub import ChangeHub
from mishmaat.sync.store import DatabaseRemoteStore


@pytest.fixture
def engine():
    """Fresh in-memory database per test, one shared connection across threads"""
    eng = make_engine("sqlite://", poolclass=StaticPool)
    Base.metadata.create_all(eng)
    yield eng
    Base.metadata.drop_all(eng)
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return make_session_factory(engine)


@pytest.fixture
def db_session(session_factory) -> Generator[Session, None, None]:
    with session_factory() as session:
        yield session


@pytest.fixture(autouse=True)
def change_hub(monkeypatch) -> ChangeHub:
    """Isolated change hub so subscriptions never leak between tests"""
    hub = ChangeHub()
    monkeypatch.setattr(hub_module, "change_hub", hub)
    return hub


@pytest.fixture
def client(session_factory) -> Generator[TestClient, None, None]:
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def store(session_factory) -> DatabaseRemoteStore:
    return DatabaseRemoteStore(session_factory=session_factory)
