# tests/conftest.py

"""Pytest configuration and fixtures."""

from datetime import datetime, timezone
from typing import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient
from rallyrank.db.models import Base, Guest, MatchSet, Player, SetScore
from rallyrank.db.session import get_db
from rallyrank.main import app
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

# Fixed reference time for anything that depends on recency
NOW = datetime(2026, 10, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
async def db_engine() -> AsyncGenerator[AsyncEngine, None]:
    """A fresh in-memory database per test.

    Rating recomputes commit once per player, so each test gets its own
    database instead of an outer rolled-back transaction.
    """
    engine = create_async_engine(TEST_DATABASE_URL, poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def db_session(db_engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    """Fixture to provide a database session to a test."""
    session_factory = async_sessionmaker(
        bind=db_engine, expire_on_commit=False, autocommit=False, autoflush=False
    )
    async with session_factory() as session:
        yield session


@pytest.fixture
async def async_client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Fixture to provide an async test client for the API."""

    # Override the get_db dependency to use the test database
    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    # Clean up the override after the test
    del app.dependency_overrides[get_db]


# =============================================================================
# Data helpers
# =============================================================================


@pytest.fixture
def make_player(db_session: AsyncSession):
    """Create a registered player, optionally with a stored rating."""

    async def _make(name: str, rating: float | None = None) -> Player:
        player = Player(name=name, rating=rating)
        db_session.add(player)
        await db_session.commit()
        return player

    return _make


@pytest.fixture
def make_guest(db_session: AsyncSession):
    """Create an unregistered guest."""

    async def _make(name: str) -> Guest:
        guest = Guest(name=name)
        db_session.add(guest)
        await db_session.commit()
        return guest

    return _make


@pytest.fixture
def make_set(db_session: AsyncSession):
    """Create a scored set from (player_or_guest, games_won) pairs."""

    async def _make(
        scores: list[tuple[Player | Guest, int]],
        created_at: datetime | None = None,
    ) -> MatchSet:
        kwargs = {"created_at": created_at} if created_at is not None else {}
        match_set = MatchSet(**kwargs)
        for participant, games_won in scores:
            if isinstance(participant, Player):
                score = SetScore(user_id=participant.id, games_won=games_won)
            else:
                score = SetScore(guest_id=participant.id, games_won=games_won)
            match_set.scores.append(score)
        db_session.add(match_set)
        await db_session.commit()
        return match_set

    return _make
