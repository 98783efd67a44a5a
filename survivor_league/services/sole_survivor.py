"""
Sole survivor history and the tenure bonus derived from it.

Each player holds one sole survivor pick at a time. Every pick is kept as an
interval of episode numbers [start_episode, end_episode]; the current pick
is the single interval with no end. A player earns points for every episode
they held a pick, so switching late costs nothing already earned but
switching often does not earn more either.
"""

import logging
from typing import Iterable

from sqlalchemy.ext.asyncio import AsyncSession

from survivor_league.core.config import Settings, get_settings
from survivor_league.core.errors import ConflictError, NotFoundError, require_id, require_int
from survivor_league.models.models import Contestant, SoleSurvivorHistory
from survivor_league.repositories.league import (
    PlayerRepository, DraftPickRepository, SoleSurvivorHistoryRepository,
)
from survivor_league.repositories.scoring import ContestantRepository
from survivor_league.services.episodes import resolve_current_episode_number

logger = logging.getLogger(__name__)


def interval_episodes(start: int, end: int | None, as_of: int) -> int:
    """Episodes of one interval that had aired by as_of. An open interval runs up to as_of."""
    if end is None or end > as_of:
        end = as_of
    return max(0, end - start + 1)


def tenure_episodes(intervals: Iterable[SoleSurvivorHistory], as_of: int) -> int:
    return sum(interval_episodes(i.start_episode, i.end_episode, as_of) for i in intervals)


def winner_bonus(
    intervals: Iterable[SoleSurvivorHistory],
    contestants: dict[int, Contestant],
    settings: Settings,
) -> int:
    """Configured bonus when the pick still held is the winner and was made early enough."""
    if not settings.sole_survivor_winner_bonus:
        return 0
    open_interval = next((i for i in intervals if i.end_episode is None), None)
    if open_interval is None:
        return 0
    contestant = contestants.get(open_interval.contestant_id)
    if contestant is None or not contestant.is_winner:
        return 0
    if open_interval.start_episode > settings.winner_bonus_deadline_episode:
        return 0
    return settings.sole_survivor_winner_bonus


async def _get_player(db: AsyncSession, player_id: int, lock: bool = False):
    require_id("player_id", player_id)
    repo = PlayerRepository(db)
    player = await (repo.get_for_update(player_id) if lock else repo.get(player_id))
    if player is None:
        raise NotFoundError("Player", player_id)
    return player


async def set_sole_survivor(
    db: AsyncSession,
    player_id: int,
    contestant_id: int,
    as_of_episode_number: int | None = None,
) -> dict:
    require_id("player_id", player_id)
    require_id("contestant_id", contestant_id)
    if as_of_episode_number is not None:
        require_id("as_of_episode_number", as_of_episode_number)

    player = await _get_player(db, player_id, lock=True)
    contestant = await ContestantRepository(db).get(contestant_id)
    if contestant is None:
        raise NotFoundError("Contestant", contestant_id)

    picks = await DraftPickRepository(db).list_for_player(player.id)
    if any(p.contestant_id == contestant_id for p in picks):
        raise ConflictError(f"Contestant {contestant_id} is already on player {player_id}'s draft roster")

    as_of = as_of_episode_number or await resolve_current_episode_number(db)
    history = SoleSurvivorHistoryRepository(db)
    open_interval = await history.get_open(player.id)

    if open_interval is not None and open_interval.contestant_id == contestant_id:
        if player.sole_survivor_id != contestant_id:
            player.sole_survivor_id = contestant_id
            await history.flush()
        return {
            "changed": False,
            "player_id": player.id,
            "contestant_id": contestant_id,
            "previous_contestant_id": contestant_id,
            "start_episode": open_interval.start_episode,
            "closed_interval": None,
        }

    if open_interval is not None and open_interval.start_episode >= as_of:
        # Changed again within the episode the pick was made in: the open row
        # takes the new contestant instead of a new interval past as_of.
        previous_contestant_id = open_interval.contestant_id
        open_interval.contestant_id = contestant_id
        player.sole_survivor_id = contestant_id
        await history.flush()
        logger.info(
            f"Player {player.id} sole survivor {previous_contestant_id} -> {contestant_id} "
            f"within episode {open_interval.start_episode}"
        )
        return {
            "changed": True,
            "player_id": player.id,
            "contestant_id": contestant_id,
            "previous_contestant_id": previous_contestant_id,
            "start_episode": open_interval.start_episode,
            "closed_interval": None,
        }

    closed = None
    previous_contestant_id = None
    if open_interval is not None:
        open_interval.end_episode = as_of - 1
        previous_contestant_id = open_interval.contestant_id
        closed = {
            "contestant_id": open_interval.contestant_id,
            "start_episode": open_interval.start_episode,
            "end_episode": open_interval.end_episode,
        }
        # Close before inserting: only one open row per player is allowed.
        await history.flush()

    start = as_of
    await history.add(SoleSurvivorHistory(
        player_id=player.id,
        contestant_id=contestant_id,
        start_episode=start,
    ))
    player.sole_survivor_id = contestant_id
    await history.flush()

    logger.info(
        f"Player {player.id} sole survivor {previous_contestant_id} -> {contestant_id} "
        f"from episode {start}"
    )
    return {
        "changed": True,
        "player_id": player.id,
        "contestant_id": contestant_id,
        "previous_contestant_id": previous_contestant_id,
        "start_episode": start,
        "closed_interval": closed,
    }


async def compute_tenure_bonus(
    db: AsyncSession,
    player_id: int,
    as_of_episode_number: int | None = None,
    points_per_episode: int | None = None,
) -> int:
    player = await _get_player(db, player_id)
    if as_of_episode_number is None:
        as_of_episode_number = await resolve_current_episode_number(db)
    require_id("as_of_episode_number", as_of_episode_number)
    if points_per_episode is None:
        points_per_episode = get_settings().sole_survivor_points_per_episode
    require_int("points_per_episode", points_per_episode)
    intervals = await SoleSurvivorHistoryRepository(db).list_for_player(player.id)
    return tenure_episodes(intervals, as_of_episode_number) * points_per_episode


async def compute_sole_survivor_bonus(
    db: AsyncSession,
    player_id: int,
    as_of_episode_number: int | None = None,
    settings: Settings | None = None,
) -> dict:
    """Tenure bonus plus the winner bonus, broken out."""
    settings = settings or get_settings()
    player = await _get_player(db, player_id)
    if as_of_episode_number is not None:
        require_id("as_of_episode_number", as_of_episode_number)
    as_of = as_of_episode_number or await resolve_current_episode_number(db)
    intervals = await SoleSurvivorHistoryRepository(db).list_for_player(player.id)
    contestants = await ContestantRepository(db).list_by_ids(i.contestant_id for i in intervals)

    episodes = tenure_episodes(intervals, as_of)
    tenure = episodes * settings.sole_survivor_points_per_episode
    winner = winner_bonus(intervals, contestants, settings)
    return {
        "player_id": player.id,
        "as_of_episode": as_of,
        "tenure_episodes": episodes,
        "tenure_bonus": tenure,
        "winner_bonus": winner,
        "total": tenure + winner,
    }


async def get_sole_survivor_history(db: AsyncSession, player_id: int) -> list[dict]:
    player = await _get_player(db, player_id)
    intervals = await SoleSurvivorHistoryRepository(db).list_for_player(player.id)
    contestants = await ContestantRepository(db).list_by_ids(i.contestant_id for i in intervals)
    return [
        {
            "id": i.id,
            "contestant_id": i.contestant_id,
            "contestant_name": contestants[i.contestant_id].name if i.contestant_id in contestants else None,
            "start_episode": i.start_episode,
            "end_episode": i.end_episode,
        }
        for i in intervals
    ]
