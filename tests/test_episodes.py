"""
tests/test_episodes.py - Episode registry
==========================================
"""

from datetime import date

import pytest

from survivor_league.core.errors import ConflictError, NotFoundError, ValidationError
from survivor_league.services import episodes


class TestCreate:
    async def test_create(self, db):
        episode = await episodes.create_episode(db, 1, date(2026, 2, 25))
        assert episode.id is not None
        assert episode.episode_number == 1
        assert not episode.is_current
        assert not episode.scoring_locked

    async def test_duplicate_number_conflicts(self, db):
        await episodes.create_episode(db, 3)
        with pytest.raises(ConflictError):
            await episodes.create_episode(db, 3)

    @pytest.mark.parametrize("number", [0, -1, "2"])
    async def test_invalid_number(self, db, number):
        with pytest.raises(ValidationError):
            await episodes.create_episode(db, number)


class TestCurrentEpisode:
    async def test_only_one_current(self, db, make_episode):
        first = await make_episode(1)
        second = await make_episode(2)

        await episodes.set_current_episode(db, first.id)
        await episodes.set_current_episode(db, second.id)

        assert not first.is_current
        assert second.is_current

    async def test_missing_episode(self, db):
        with pytest.raises(NotFoundError):
            await episodes.set_current_episode(db, 42)

    async def test_resolve_defaults_to_one(self, db):
        assert await episodes.resolve_current_episode_number(db) == 1

    async def test_resolve_uses_latest_without_current(self, db, make_episode):
        await make_episode(1)
        await make_episode(4)
        assert await episodes.resolve_current_episode_number(db) == 4

    async def test_resolve_prefers_current(self, db, make_episode):
        await make_episode(1)
        await make_episode(2, is_current=True)
        await make_episode(3)
        assert await episodes.resolve_current_episode_number(db) == 2


class TestScoringLock:
    async def test_lock_and_unlock(self, db, make_episode):
        episode = await make_episode(1)
        await episodes.set_scoring_lock(db, episode.id, True)
        with pytest.raises(ConflictError):
            await episodes.get_unlocked_episode(db, episode.id)

        await episodes.set_scoring_lock(db, episode.id, False)
        assert (await episodes.get_unlocked_episode(db, episode.id)) is episode
