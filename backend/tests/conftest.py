import os

import pytest
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from tablealloc.services.history_provider import InMemoryHistoryProvider

TEST_DATABASE_URL = "sqlite:///:memory:"

# Keep tablealloc.database off the on-disk default when a test imports it
os.environ.setdefault("DATABASE_URL", TEST_DATABASE_URL)


@pytest.fixture(name="session", scope="function")
def session_fixture():
    """Provide a fresh in-memory database session per test

    StaticPool keeps every connection on the same :memory: database.
    Tables are dropped afterwards so stored history never leaks between tests.
    """
    # Import all models to ensure they're registered BEFORE create_all
    from tablealloc.models.player import Player  # noqa: F401
    from tablealloc.models.round import Round  # noqa: F401
    from tablealloc.models.table_allocation import TableAllocation  # noqa: F401
    from tablealloc.models.terrain_type import TerrainType  # noqa: F401
    from tablealloc.models.tournament import Tournament  # noqa: F401
    from tablealloc.models.tournament_table import TournamentTable  # noqa: F401

    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)

    with Session(engine) as session:
        yield session

    SQLModel.metadata.drop_all(engine)


@pytest.fixture(name="empty_history")
def empty_history_fixture():
    return InMemoryHistoryProvider()
