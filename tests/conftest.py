"""
tests/conftest.py - Shared Test Fixtures
=========================================

Every test gets a fresh in-memory SQLite database (aiosqlite) built from
the models, plus small factories for the league fixtures the services read.
"""

import os

# The application engine is built at import time; point it at SQLite before
# anything under survivor_league is imported.
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"

import pytest  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from survivor_league.core.database import Base  # noqa: E402
from survivor_league.models.models import (  # noqa: E402
    Contestant, DraftPick, DraftState, DraftStatus, Episode, Player, Ranking,
)
from survivor_league.services.event_catalog import seed_default_event_types  # noqa: E402


@pytest.fixture
async def db_engine():
    """In-memory database shared by every connection of one test."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
async def event_types(db) -> dict:
    """The default catalog, keyed by event type name."""
    created = await seed_default_event_types(db)
    return {event_type.name: event_type for event_type in created}


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------
@pytest.fixture
def make_episode(db):
    async def _make(episode_number: int, **kwargs) -> Episode:
        episode = Episode(episode_number=episode_number, **kwargs)
        db.add(episode)
        await db.flush()
        return episode
    return _make


@pytest.fixture
def make_contestant(db):
    async def _make(name: str, **kwargs) -> Contestant:
        contestant = Contestant(name=name, **kwargs)
        db.add(contestant)
        await db.flush()
        return contestant
    return _make


@pytest.fixture
def make_player(db):
    async def _make(name: str, **kwargs) -> Player:
        kwargs.setdefault("email", f"{name.lower()}@example.com")
        player = Player(name=name, **kwargs)
        db.add(player)
        await db.flush()
        return player
    return _make


@pytest.fixture
def draft(db):
    """Give a player a ranking and a roster, as the external draft would."""
    async def _draft(player: Player, picks: list[Contestant], ranking: list[Contestant] = ()) -> None:
        for rank, contestant in enumerate(ranking, start=1):
            db.add(Ranking(player_id=player.id, contestant_id=contestant.id, rank=rank))
        for pick_number, contestant in enumerate(picks, start=1):
            db.add(DraftPick(player_id=player.id, contestant_id=contestant.id, pick_number=pick_number))
        await db.flush()
    return _draft


@pytest.fixture
def complete_draft(db):
    async def _complete() -> None:
        db.add(DraftStatus(id=1, state=DraftState.COMPLETED))
        await db.flush()
    return _complete
