"""
Pytest fixtures for testing
"""
from datetime import date

import pytest
from sqlalchemy import create_engine, JSON
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool
from sqlalchemy.dialects.postgresql import JSONB

from herdbook.infrastructure.db.session import Base
from herdbook.infrastructure.db import models  # noqa: F401  (registers tables)
from herdbook.infrastructure.store import ChangeFeed, CattleStore


@pytest.fixture
def db_engine():
    """In-memory SQLite engine shared across threads, with JSONB→JSON mapping."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # SQLite has no JSONB, remap to JSON
    for table in Base.metadata.tables.values():
        for col in table.columns:
            if isinstance(col.type, JSONB):
                col.type = JSON()
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db_session(db_engine) -> Session:
    """Create database session for tests"""
    SessionLocal = sessionmaker(bind=db_engine, autoflush=False, autocommit=False)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def feed():
    """Private change feed so listeners never leak between tests"""
    return ChangeFeed()


@pytest.fixture
def sample_cattle_id(db_session):
    """A registered cow to hang events on"""
    record = CattleStore(db_session).create({"name": "Gauri", "type": "Gir", "image": "data:image/jpeg;base64,AAAA"})
    return record["id"]


@pytest.fixture
def anchor():
    return date(2024, 1, 1)
