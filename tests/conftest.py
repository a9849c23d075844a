import os

# Settings refuse to load without a signing secret
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session

from app.database import build_engine, create_db_and_tables, get_session
from app.dependencies import get_notification_sender

from fakes import FakeSender


@pytest.fixture
def engine(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'test.db'}")
    create_db_and_tables(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def sender():
    return FakeSender()


@pytest.fixture
def client(engine, sender):
    from app.main import app

    def _session():
        with Session(engine) as s:
            yield s

    app.dependency_overrides[get_session] = _session
    app.dependency_overrides[get_notification_sender] = lambda: sender
    # not entered as a context manager: lifespan would touch the configured database
    yield TestClient(app)
    app.dependency_overrides.clear()
