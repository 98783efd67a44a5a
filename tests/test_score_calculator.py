"""
tests/test_score_calculator.py - Event ledger, episode scores, totals
======================================================================
"""

import pytest
from sqlalchemy import func, select

from survivor_league.core.errors import ConflictError, NotFoundError, ValidationError
from survivor_league.models.models import ContestantEvent, EpisodeScore, ScoreSource
from survivor_league.services import score_calculator
from survivor_league.services.episodes import set_scoring_lock
from survivor_league.services.event_catalog import set_event_type_active


async def _episode_score(db, episode_id, contestant_id):
    result = await db.execute(
        select(EpisodeScore).where(
            EpisodeScore.episode_id == episode_id,
            EpisodeScore.contestant_id == contestant_id,
        )
    )
    return result.scalar_one_or_none()


async def _event_count(db) -> int:
    return (await db.execute(select(func.count(ContestantEvent.id)))).scalar()


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------
@pytest.fixture
async def season(make_episode, make_contestant, event_types):
    return {
        "ep1": await make_episode(1),
        "ep2": await make_episode(2),
        "ep3": await make_episode(3),
        "alice": await make_contestant("Alice"),
        "zed": await make_contestant("Zed"),
        "types": event_types,
    }


class TestRecordEvent:
    async def test_immunity_win_scores_three(self, db, season):
        """An individual immunity win in episode 2 gives a total of 3."""
        win = season["types"]["individual_immunity_win"]
        result = await score_calculator.record_event(db, season["ep2"].id, season["alice"].id, win.id)

        assert result["event"].point_value == 3
        assert result["score"]["episode_score"] == 3
        assert result["score"]["total_score"] == 3
        assert season["alice"].total_score == 3

    async def test_total_is_sum_of_episode_scores(self, db, season):
        types = season["types"]
        alice = season["alice"]
        await score_calculator.record_event(db, season["ep1"].id, alice.id, types["team_reward_win"].id)
        await score_calculator.record_event(db, season["ep1"].id, alice.id, types["found_hidden_idol"].id)
        await score_calculator.record_event(db, season["ep2"].id, alice.id, types["eliminated"].id)

        assert (await _episode_score(db, season["ep1"].id, alice.id)).score == 4
        assert (await _episode_score(db, season["ep2"].id, alice.id)).score == -1
        assert alice.total_score == 3

    async def test_records_actor(self, db, season, make_player):
        host = await make_player("Host")
        win = season["types"]["team_immunity_win"]
        result = await score_calculator.record_event(
            db, season["ep1"].id, season["alice"].id, win.id, actor_id=host.id,
        )
        assert result["event"].recorded_by == host.id

    async def test_unknown_actor(self, db, season):
        win = season["types"]["team_immunity_win"]
        with pytest.raises(NotFoundError):
            await score_calculator.record_event(db, season["ep1"].id, season["alice"].id, win.id, actor_id=77)

    async def test_locked_episode(self, db, season):
        await set_scoring_lock(db, season["ep1"].id, True)
        with pytest.raises(ConflictError):
            await score_calculator.record_event(
                db, season["ep1"].id, season["alice"].id, season["types"]["made_fire"].id,
            )
        assert await _event_count(db) == 0

    async def test_inactive_event_type(self, db, season):
        made_fire = season["types"]["made_fire"]
        await set_event_type_active(db, made_fire.id, False)
        with pytest.raises(ConflictError):
            await score_calculator.record_event(db, season["ep1"].id, season["alice"].id, made_fire.id)

    async def test_missing_contestant(self, db, season):
        with pytest.raises(NotFoundError):
            await score_calculator.record_event(db, season["ep1"].id, 999, season["types"]["made_fire"].id)

    @pytest.mark.parametrize("bad", [0, -3, True, "1", None])
    async def test_invalid_ids(self, db, season, bad):
        with pytest.raises(ValidationError) as exc:
            await score_calculator.record_event(db, bad, season["alice"].id, season["types"]["made_fire"].id)
        assert exc.value.field == "episode_id"


class TestDeleteEvent:
    async def test_deleting_only_event_leaves_zero_row(self, db, season):
        """Removing the only event of (episode 3, Z) keeps the score row at 0."""
        zed = season["zed"]
        recorded = await score_calculator.record_event(
            db, season["ep3"].id, zed.id, season["types"]["read_tree_mail"].id,
        )
        result = await score_calculator.delete_event(db, recorded["event"].id)

        row = await _episode_score(db, season["ep3"].id, zed.id)
        assert row is not None
        assert row.score == 0
        assert result["score"]["total_score"] == 0
        assert zed.total_score == 0

    async def test_missing_event(self, db, season):
        with pytest.raises(NotFoundError):
            await score_calculator.delete_event(db, 12345)

    async def test_wrong_episode(self, db, season):
        recorded = await score_calculator.record_event(
            db, season["ep1"].id, season["alice"].id, season["types"]["made_fire"].id,
        )
        with pytest.raises(ValidationError) as exc:
            await score_calculator.delete_event(db, recorded["event"].id, episode_id=season["ep2"].id)
        assert exc.value.field == "episode_id"
        assert await _event_count(db) == 1

    async def test_locked_episode(self, db, season):
        recorded = await score_calculator.record_event(
            db, season["ep1"].id, season["alice"].id, season["types"]["made_fire"].id,
        )
        await set_scoring_lock(db, season["ep1"].id, True)
        with pytest.raises(ConflictError):
            await score_calculator.delete_event(db, recorded["event"].id)


class TestManualScores:
    async def test_manual_wins_over_events(self, db, season):
        alice = season["alice"]
        ep1 = season["ep1"]
        await score_calculator.record_manual_score(db, ep1.id, alice.id, 7)
        result = await score_calculator.record_event(db, ep1.id, alice.id, season["types"]["found_hidden_idol"].id)

        assert result["score"]["episode_score"] == 7
        assert result["score"]["source"] == "manual"
        assert alice.total_score == 7

    async def test_manual_overwrites_event_row(self, db, season):
        alice = season["alice"]
        ep1 = season["ep1"]
        await score_calculator.record_event(db, ep1.id, alice.id, season["types"]["found_hidden_idol"].id)
        await score_calculator.record_manual_score(db, ep1.id, alice.id, -2)

        row = await _episode_score(db, ep1.id, alice.id)
        assert row.score == -2
        assert row.source == ScoreSource.MANUAL
        assert row.calculated_at is not None
        assert alice.total_score == -2

    async def test_clear_returns_to_event_sum(self, db, season):
        alice = season["alice"]
        ep1 = season["ep1"]
        await score_calculator.record_event(db, ep1.id, alice.id, season["types"]["found_hidden_idol"].id)
        await score_calculator.record_manual_score(db, ep1.id, alice.id, 10)

        result = await score_calculator.clear_manual_score(db, ep1.id, alice.id)
        assert result["source"] == "events"
        assert result["episode_score"] == 3
        assert alice.total_score == 3

    @pytest.mark.parametrize("bad", [1.5, "4", None])
    async def test_score_must_be_integer(self, db, season, bad):
        with pytest.raises(ValidationError) as exc:
            await score_calculator.record_manual_score(db, season["ep1"].id, season["alice"].id, bad)
        assert exc.value.field == "score"

    async def test_locked_episode(self, db, season):
        await set_scoring_lock(db, season["ep2"].id, True)
        with pytest.raises(ConflictError):
            await score_calculator.record_manual_score(db, season["ep2"].id, season["alice"].id, 5)


class TestBulkChanges:
    async def test_add_and_remove(self, db, season):
        types = season["types"]
        ep1, alice, zed = season["ep1"], season["alice"], season["zed"]
        old = await score_calculator.record_event(db, ep1.id, alice.id, types["made_fire"].id)

        result = await score_calculator.apply_event_changes(
            db,
            ep1.id,
            add=[(alice.id, types["made_final_three"].id), (zed.id, types["read_tree_mail"].id)],
            remove=[old["event"].id],
        )

        assert result["added"] == 2
        assert result["removed"] == 1
        assert [u["contestant_id"] for u in result["updated_scores"]] == sorted([alice.id, zed.id])
        assert alice.total_score == 10
        assert zed.total_score == 1

    async def test_bad_entry_rejects_batch(self, db, season):
        types = season["types"]
        ep1, alice = season["ep1"], season["alice"]
        with pytest.raises(NotFoundError):
            await score_calculator.apply_event_changes(
                db, ep1.id, add=[(alice.id, types["made_fire"].id)], remove=[999],
            )
        assert await _event_count(db) == 0
        assert alice.total_score == 0

    async def test_remove_from_other_episode(self, db, season):
        types = season["types"]
        recorded = await score_calculator.record_event(db, season["ep2"].id, season["alice"].id, types["made_fire"].id)
        with pytest.raises(ValidationError):
            await score_calculator.apply_event_changes(db, season["ep1"].id, remove=[recorded["event"].id])
        assert await _event_count(db) == 1


class TestRecalculate:
    async def test_repairs_drifted_totals(self, db, season):
        alice = season["alice"]
        await score_calculator.record_event(db, season["ep1"].id, alice.id, season["types"]["made_final_three"].id)
        alice.total_score = 99
        await db.flush()

        result = await score_calculator.recalculate_all_scores(db)
        assert result["totals_corrected"] == 1
        assert alice.total_score == 10

    async def test_leaves_manual_rows(self, db, season):
        alice = season["alice"]
        await score_calculator.record_event(db, season["ep1"].id, alice.id, season["types"]["made_final_three"].id)
        await score_calculator.record_manual_score(db, season["ep1"].id, alice.id, 4)

        await score_calculator.recalculate_all_scores(db)
        assert (await _episode_score(db, season["ep1"].id, alice.id)).score == 4
        assert alice.total_score == 4


class TestQueries:
    async def test_episode_events_grouped_by_contestant(self, db, season):
        types = season["types"]
        ep1, alice, zed = season["ep1"], season["alice"], season["zed"]
        await score_calculator.record_event(db, ep1.id, zed.id, types["made_fire"].id)
        await score_calculator.record_event(db, ep1.id, alice.id, types["team_reward_win"].id)
        await score_calculator.record_event(db, ep1.id, alice.id, types["read_tree_mail"].id)

        groups = await score_calculator.get_episode_events(db, ep1.id)
        assert [g["contestant_name"] for g in groups] == ["Alice", "Zed"]
        assert [e["name"] for e in groups[0]["events"]] == ["team_reward_win", "read_tree_mail"]
        assert groups[0]["event_total"] == 2
        assert groups[0]["episode_score"] == 2

    async def test_contestant_breakdown(self, db, season):
        types = season["types"]
        alice = season["alice"]
        await score_calculator.record_event(db, season["ep2"].id, alice.id, types["individual_immunity_win"].id)
        await score_calculator.record_event(db, season["ep1"].id, alice.id, types["made_fire"].id)

        breakdown = await score_calculator.get_contestant_score_breakdown(db, alice.id)
        assert breakdown["total_score"] == 4
        assert [e["episode_number"] for e in breakdown["episodes"]] == [1, 2]
        assert breakdown["episodes"][1]["events"] == [
            {"name": "individual_immunity_win", "display_name": "Individual Immunity Challenge Win", "points": 3},
        ]
        assert breakdown["episodes"][1]["episode_total"] == 3

    async def test_breakdown_missing_contestant(self, db):
        with pytest.raises(NotFoundError):
            await score_calculator.get_contestant_score_breakdown(db, 5)
