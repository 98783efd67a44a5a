"""
Leaderboard: team score per player, ranked.

team score = drafted contestants' totals
           + sole survivor's total
           + sole survivor tenure bonus
           + winner bonus

Ties go to the alphabetically first name (plain code-point order), then the
lower player id, so the order is stable across requests and databases.
Nothing is stored; a weekly change is only reported when the caller passes
the scores from an earlier run.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from survivor_league.core.config import Settings, get_settings
from survivor_league.core.errors import require_id
from survivor_league.repositories.league import (
    PlayerRepository, DraftPickRepository, SoleSurvivorHistoryRepository,
)
from survivor_league.repositories.scoring import ContestantRepository
from survivor_league.services.episodes import resolve_current_episode_number
from survivor_league.services.sole_survivor import tenure_episodes, winner_bonus

logger = logging.getLogger(__name__)


def rank_standings(entries: list[dict], previous_snapshot: dict[int, int] | None = None) -> list[dict]:
    """Sort entries and fill in rank, points_behind_leader and weekly_change."""
    ordered = sorted(entries, key=lambda e: (-e["team_score"], e["player_name"], e["player_id"]))
    leader = ordered[0]["team_score"] if ordered else 0
    for position, entry in enumerate(ordered, start=1):
        entry["rank"] = position
        entry["points_behind_leader"] = max(0, leader - entry["team_score"])
        if previous_snapshot is not None and entry["player_id"] in previous_snapshot:
            entry["weekly_change"] = entry["team_score"] - previous_snapshot[entry["player_id"]]
        else:
            entry["weekly_change"] = None
    return ordered


async def compute_leaderboard(
    db: AsyncSession,
    as_of_episode_number: int | None = None,
    previous_snapshot: dict[int, int] | None = None,
    settings: Settings | None = None,
) -> dict:
    settings = settings or get_settings()
    if as_of_episode_number is not None:
        require_id("as_of_episode_number", as_of_episode_number)
    as_of = as_of_episode_number or await resolve_current_episode_number(db)

    players = await PlayerRepository(db).list()
    contestants = {c.id: c for c in await ContestantRepository(db).list()}
    picks_by_player: dict[int, list] = {p.id: [] for p in players}
    for pick in await DraftPickRepository(db).list_all():
        picks_by_player.setdefault(pick.player_id, []).append(pick)
    histories = await SoleSurvivorHistoryRepository(db).list_for_players(p.id for p in players)

    entries = []
    for player in players:
        draft_picks = []
        for pick in picks_by_player.get(player.id, []):
            contestant = contestants[pick.contestant_id]
            draft_picks.append({
                "contestant_id": contestant.id,
                "contestant_name": contestant.name,
                "pick_number": pick.pick_number,
                "total_score": contestant.total_score,
                "is_eliminated": contestant.is_eliminated,
            })
        draft_total = sum(p["total_score"] for p in draft_picks)

        sole_survivor = contestants.get(player.sole_survivor_id) if player.sole_survivor_id else None
        sole_survivor_score = sole_survivor.total_score if sole_survivor else 0

        intervals = histories.get(player.id, [])
        episodes = tenure_episodes(intervals, as_of)
        tenure_bonus = episodes * settings.sole_survivor_points_per_episode
        winner = winner_bonus(intervals, contestants, settings)

        entries.append({
            "player_id": player.id,
            "player_name": player.name,
            "draft_picks": draft_picks,
            "draft_score": draft_total,
            "under_rostered": len(draft_picks) < settings.draft_roster_size,
            "sole_survivor_id": sole_survivor.id if sole_survivor else None,
            "sole_survivor_name": sole_survivor.name if sole_survivor else None,
            "sole_survivor_score": sole_survivor_score,
            "tenure_episodes": episodes,
            "sole_survivor_bonus": tenure_bonus,
            "winner_bonus": winner,
            "team_score": draft_total + sole_survivor_score + tenure_bonus + winner,
        })

    standings = rank_standings(entries, previous_snapshot)
    logger.debug(f"Leaderboard computed for {len(standings)} players as of episode {as_of}")
    return {"as_of_episode": as_of, "standings": standings}
