from __future__ import annotations

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, func, select
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app import source
from app.main import app, get_db
from app.models import Base


class FakeResponse:
    def __init__(self, payload=None, status_code: int = 200, invalid_json: bool = False):
        self.payload = payload
        self.status_code = status_code
        self.invalid_json = invalid_json

    def json(self):
        if self.invalid_json:
            raise ValueError("Expecting value: line 1 column 1 (char 0)")
        return self.payload


@pytest.fixture
def session():
    """Fresh in-memory database per test, configured like the app's SessionLocal."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    Session = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    db = Session()
    try:
        yield db
    finally:
        db.close()
        engine.dispose()


@pytest.fixture
def client(session):
    app.dependency_overrides[get_db] = lambda: session
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def upstream(monkeypatch):
    """Replace the listings API with a canned response (or a raised error)."""
    calls = []

    def install(payload=None, status_code=200, error=None, invalid_json=False):
        def fake_get(url, **kwargs):
            calls.append((url, kwargs))
            if error is not None:
                raise error
            return FakeResponse(payload, status_code, invalid_json)

        monkeypatch.setattr(source.requests, "get", fake_get)
        return calls

    return install


@pytest.fixture
def row_count(session):
    def count(model) -> int:
        return session.execute(select(func.count()).select_from(model)).scalar_one()

    return count


@pytest.fixture
def failing_genre_lookups(session, monkeypatch):
    """Make genre queries fail once ``after`` of them have succeeded."""

    def install(after=0):
        execute = session.execute
        seen = []

        def flaky_execute(statement, *args, **kwargs):
            if "FROM genres" in str(statement):
                seen.append(statement)
                if len(seen) > after:
                    raise OperationalError(str(statement), {}, Exception("database is locked"))
            return execute(statement, *args, **kwargs)

        monkeypatch.setattr(session, "execute", flaky_execute)
        return monkeypatch

    return install
