"""
Shared fixtures: an in-memory SQLite database, sample data, and recording
collaborators for jobs and broadcasts.
"""

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from rowgate.db import Base, enable_sqlite_savepoints
from rowgate.engine import Engine
from rowgate.persistence.store import SqlAlchemyStore
from rowgate.settings import Settings
from sample_models import Person, RecordingDispatcher, RecordingPublisher


@pytest.fixture
def sa_engine():
    """In-memory SQLite shared across threads (TestClient runs sync endpoints in a pool)."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_savepoints(engine)
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session_factory(sa_engine):
    return sessionmaker(bind=sa_engine, autoflush=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def store(db):
    return SqlAlchemyStore(db)


@pytest.fixture
def settings():
    return Settings(_env_file=None)


@pytest.fixture
def dispatcher():
    return RecordingDispatcher()


@pytest.fixture
def publisher():
    return RecordingPublisher()


@pytest.fixture
def engine(dispatcher, publisher, settings):
    return Engine(dispatcher=dispatcher, publisher=publisher, settings=settings)


@pytest.fixture
def people(db):
    """A handful of people with varied roles and ages."""
    rows = [
        Person(name="Ana", role="admin", age=34, email="ana@example.com"),
        Person(name="Bruno", role="user", age=17, email="bruno@example.com"),
        Person(name="Carla", role="user", age=65, email="carla@example.com"),
        Person(name="Davi", role="guest", age=42, email=None),
        Person(name="Eva", role=None, age=None, email="eva@example.com"),
    ]
    db.add_all(rows)
    db.commit()
    return rows
