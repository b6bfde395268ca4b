"""Shared fixtures: a throwaway SQLite database per test."""
from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient

from apps.shared.database import Base, create_db_engine, create_session_factory
from apps.blog.main import create_app
from apps.blog.store import PostStore

T0 = datetime(2024, 1, 1, 12, 0, 0)


class StepClock:
    """Deterministic clock: T0, then one second later on every call."""

    def __init__(self, start: datetime = T0, step: timedelta = timedelta(seconds=1)):
        self.current = start
        self.step = step

    def __call__(self) -> datetime:
        value = self.current
        self.current += self.step
        return value


@pytest.fixture
def db_engine(tmp_path):
    engine = create_db_engine(f"sqlite:///{tmp_path / 'blog.db'}")
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return create_session_factory(db_engine)


@pytest.fixture
def clock():
    return StepClock()


@pytest.fixture
def store(session_factory, clock):
    return PostStore(session_factory, clock=clock)


@pytest.fixture
def make_app(store, db_engine):
    def _make_app(**overrides):
        options = {"rate_limit": None, "static_dir": None, "seed": False}
        options.update(overrides)
        return create_app(store, engine=db_engine, **options)
    return _make_app


@pytest.fixture
def client(make_app):
    with TestClient(make_app()) as test_client:
        yield test_client
