"""
Score Calculator: turns recorded contestant events into episode scores and
contestant totals.

Three numbers are kept in step inside every write:
  contestant_events.point_value   (the ledger, snapshot per event)
  episode_scores.score            (one row per contestant per episode)
  contestants.total_score         (cached sum of that contestant's episode scores)

An episode score with source MANUAL is an admin override. Event aggregation
never touches it until the override is cleared.

None of these functions commit. The caller's session (``get_db`` or
``session_scope``) makes each call one transaction.
"""

import logging
from datetime import datetime, timezone
from typing import Iterable

from sqlalchemy.ext.asyncio import AsyncSession

from survivor_league.core.errors import NotFoundError, ValidationError, require_id, require_int
from survivor_league.models.models import (
    Contestant, ContestantEvent, EpisodeScore, ScoreSource, EventCategory,
)
from survivor_league.repositories.league import PlayerRepository
from survivor_league.repositories.scoring import (
    ContestantRepository, ContestantEventRepository, EpisodeScoreRepository,
)
from survivor_league.services.episodes import get_episode, get_unlocked_episode
from survivor_league.services.event_catalog import get_active_event_type

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


async def _get_contestant(db: AsyncSession, contestant_id: int, lock: bool = False) -> Contestant:
    require_id("contestant_id", contestant_id)
    repo = ContestantRepository(db)
    contestant = await (repo.get_for_update(contestant_id) if lock else repo.get(contestant_id))
    if contestant is None:
        raise NotFoundError("Contestant", contestant_id)
    return contestant


async def _check_actor(db: AsyncSession, actor_id: int | None) -> None:
    if actor_id is None:
        return
    require_id("actor_id", actor_id)
    if await PlayerRepository(db).get(actor_id) is None:
        raise NotFoundError("Player", actor_id)


async def refresh_contestant_total(db: AsyncSession, contestant: Contestant) -> int:
    """Rewrite the cached total from the episode score rows."""
    total = await EpisodeScoreRepository(db).sum_for_contestant(contestant.id)
    contestant.total_score = total
    await ContestantRepository(db).flush()
    return total


async def recompute_episode_score(db: AsyncSession, episode_id: int, contestant: Contestant) -> dict:
    """
    Re-aggregate one (episode, contestant) pair from its events, unless a
    manual override owns it, then refresh the contestant total.
    """
    scores = EpisodeScoreRepository(db)
    row = await scores.get_pair(episode_id, contestant.id)

    if row is not None and row.source == ScoreSource.MANUAL:
        logger.info(
            f"Manual score kept for contestant {contestant.id} in episode {episode_id}; "
            "event total not applied"
        )
    else:
        computed = await ContestantEventRepository(db).sum_for_pair(episode_id, contestant.id)
        if row is None:
            row = await scores.add(EpisodeScore(
                episode_id=episode_id,
                contestant_id=contestant.id,
                score=computed,
                source=ScoreSource.EVENTS,
                calculated_at=_now(),
            ))
        else:
            row.score = computed
            row.calculated_at = _now()
            await scores.flush()

    total = await refresh_contestant_total(db, contestant)
    return {
        "episode_id": episode_id,
        "contestant_id": contestant.id,
        "episode_score": row.score,
        "source": ScoreSource(row.source).value,
        "total_score": total,
    }


# --- Commands ---

async def record_event(
    db: AsyncSession,
    episode_id: int,
    contestant_id: int,
    event_type_id: int,
    actor_id: int | None = None,
) -> dict:
    require_id("episode_id", episode_id)
    require_id("contestant_id", contestant_id)
    require_id("event_type_id", event_type_id)

    episode = await get_unlocked_episode(db, episode_id)
    event_type = await get_active_event_type(db, event_type_id)
    await _check_actor(db, actor_id)
    contestant = await _get_contestant(db, contestant_id, lock=True)

    event = await ContestantEventRepository(db).add(ContestantEvent(
        episode_id=episode.id,
        contestant_id=contestant.id,
        event_type_id=event_type.id,
        point_value=event_type.point_value,
        recorded_by=actor_id,
    ))
    update = await recompute_episode_score(db, episode.id, contestant)
    logger.info(
        f"Recorded '{event_type.name}' ({event_type.point_value:+d}) for contestant {contestant.id} "
        f"in episode {episode.episode_number}; total now {update['total_score']}"
    )
    return {"event": event, "score": update}


async def delete_event(db: AsyncSession, event_id: int, episode_id: int | None = None) -> dict:
    require_id("event_id", event_id)
    if episode_id is not None:
        require_id("episode_id", episode_id)

    events = ContestantEventRepository(db)
    event = await events.get(event_id)
    if event is None:
        raise NotFoundError("Event", event_id)
    if episode_id is not None and event.episode_id != episode_id:
        raise ValidationError("episode_id", f"event {event_id} does not belong to episode {episode_id}")

    episode = await get_unlocked_episode(db, event.episode_id)
    contestant = await _get_contestant(db, event.contestant_id, lock=True)

    await events.delete(event)
    update = await recompute_episode_score(db, episode.id, contestant)
    logger.info(f"Deleted event {event_id} for contestant {contestant.id} in episode {episode.episode_number}")
    return {"deleted_event_id": event_id, "score": update}


async def record_manual_score(db: AsyncSession, episode_id: int, contestant_id: int, score: int) -> dict:
    require_id("episode_id", episode_id)
    require_id("contestant_id", contestant_id)
    require_int("score", score)

    episode = await get_unlocked_episode(db, episode_id)
    contestant = await _get_contestant(db, contestant_id, lock=True)

    scores = EpisodeScoreRepository(db)
    row = await scores.get_pair(episode.id, contestant.id)
    if row is None:
        row = await scores.add(EpisodeScore(
            episode_id=episode.id,
            contestant_id=contestant.id,
            score=score,
            source=ScoreSource.MANUAL,
            calculated_at=_now(),
        ))
    else:
        row.score = score
        row.source = ScoreSource.MANUAL
        row.calculated_at = _now()
        await scores.flush()

    total = await refresh_contestant_total(db, contestant)
    logger.info(f"Manual score {score} for contestant {contestant.id} in episode {episode.episode_number}")
    return {
        "episode_id": episode.id,
        "contestant_id": contestant.id,
        "episode_score": row.score,
        "source": ScoreSource.MANUAL.value,
        "total_score": total,
    }


async def clear_manual_score(db: AsyncSession, episode_id: int, contestant_id: int) -> dict:
    """Hand a manually scored pair back to event aggregation."""
    require_id("episode_id", episode_id)
    require_id("contestant_id", contestant_id)

    episode = await get_unlocked_episode(db, episode_id)
    contestant = await _get_contestant(db, contestant_id, lock=True)

    row = await EpisodeScoreRepository(db).get_pair(episode.id, contestant.id)
    if row is not None and row.source == ScoreSource.MANUAL:
        row.source = ScoreSource.EVENTS
        logger.info(f"Cleared manual score for contestant {contestant.id} in episode {episode.episode_number}")
    return await recompute_episode_score(db, episode.id, contestant)


async def apply_event_changes(
    db: AsyncSession,
    episode_id: int,
    add: Iterable[tuple[int, int]] = (),
    remove: Iterable[int] = (),
    actor_id: int | None = None,
) -> dict:
    """
    Remove and record events for one episode as a single unit. Every entry
    is validated before anything is written; one bad entry rejects the batch.
    """
    add = list(add)
    remove = list(remove)
    require_id("episode_id", episode_id)
    for i, (contestant_id, event_type_id) in enumerate(add):
        require_id(f"add[{i}].contestant_id", contestant_id)
        require_id(f"add[{i}].event_type_id", event_type_id)
    for i, event_id in enumerate(remove):
        require_id(f"remove[{i}]", event_id)

    episode = await get_unlocked_episode(db, episode_id)
    await _check_actor(db, actor_id)
    events = ContestantEventRepository(db)

    to_remove = []
    for event_id in dict.fromkeys(remove):
        event = await events.get(event_id)
        if event is None:
            raise NotFoundError("Event", event_id)
        if event.episode_id != episode.id:
            raise ValidationError("remove", f"event {event_id} does not belong to episode {episode_id}")
        to_remove.append(event)

    to_add = []
    for contestant_id, event_type_id in add:
        await _get_contestant(db, contestant_id)
        to_add.append((contestant_id, await get_active_event_type(db, event_type_id)))

    affected_ids = sorted({e.contestant_id for e in to_remove} | {cid for cid, _ in to_add})
    contestants = {cid: await _get_contestant(db, cid, lock=True) for cid in affected_ids}

    for event in to_remove:
        await events.delete(event)
    for contestant_id, event_type in to_add:
        await events.add(ContestantEvent(
            episode_id=episode.id,
            contestant_id=contestant_id,
            event_type_id=event_type.id,
            point_value=event_type.point_value,
            recorded_by=actor_id,
        ))

    updated = [await recompute_episode_score(db, episode.id, contestants[cid]) for cid in affected_ids]
    logger.info(
        f"Episode {episode.episode_number}: added {len(to_add)} and removed {len(to_remove)} events "
        f"across {len(affected_ids)} contestants"
    )
    return {"added": len(to_add), "removed": len(to_remove), "updated_scores": updated}


async def recalculate_all_scores(db: AsyncSession) -> dict:
    """
    Rebuild every event-sourced episode score from the ledger, then every
    contestant total. Totals that had drifted are logged.
    """
    scores = EpisodeScoreRepository(db)
    events = ContestantEventRepository(db)
    contestants = await ContestantRepository(db).list()
    by_id = {c.id: c for c in contestants}

    pairs = await events.list_pairs()
    pairs |= {(row.episode_id, row.contestant_id) for row in await scores.list_by_source(ScoreSource.EVENTS)}

    for episode_id, contestant_id in sorted(pairs):
        row = await scores.get_pair(episode_id, contestant_id)
        if row is not None and row.source == ScoreSource.MANUAL:
            continue
        computed = await events.sum_for_pair(episode_id, contestant_id)
        if row is None:
            await scores.add(EpisodeScore(
                episode_id=episode_id,
                contestant_id=contestant_id,
                score=computed,
                source=ScoreSource.EVENTS,
                calculated_at=_now(),
            ))
        elif row.score != computed:
            row.score = computed
            row.calculated_at = _now()
    await scores.flush()

    drifted = 0
    for contestant in by_id.values():
        cached = contestant.total_score
        total = await refresh_contestant_total(db, contestant)
        if cached != total:
            drifted += 1
            logger.warning(f"Contestant {contestant.id} total drifted: cached {cached}, ledger {total}")

    return {
        "episode_scores_recalculated": len(pairs),
        "contestants_updated": len(by_id),
        "totals_corrected": drifted,
    }


# --- Queries ---

async def get_episode_events(db: AsyncSession, episode_id: int) -> list[dict]:
    """All events of one episode, grouped by contestant."""
    episode = await get_episode(db, episode_id)
    grouped: dict[int, dict] = {}
    for event, event_type, contestant in await ContestantEventRepository(db).list_for_episode(episode.id):
        entry = grouped.setdefault(contestant.id, {
            "contestant_id": contestant.id,
            "contestant_name": contestant.name,
            "events": [],
            "event_total": 0,
            "episode_score": 0,
            "source": ScoreSource.EVENTS.value,
        })
        entry["events"].append({
            "id": event.id,
            "event_type_id": event_type.id,
            "name": event_type.name,
            "display_name": event_type.display_name,
            "category": EventCategory(event_type.category).value,
            "point_value": event.point_value,
            "created_at": event.created_at,
        })
        entry["event_total"] += event.point_value

    for row in await EpisodeScoreRepository(db).list_for_episode(episode.id):
        if row.contestant_id in grouped:
            grouped[row.contestant_id]["episode_score"] = row.score
            grouped[row.contestant_id]["source"] = ScoreSource(row.source).value

    return [grouped[cid] for cid in sorted(grouped)]


async def get_contestant_score_breakdown(db: AsyncSession, contestant_id: int) -> dict:
    """Per-episode events and totals for one contestant, in airing order."""
    contestant = await _get_contestant(db, contestant_id)

    episodes: dict[int, dict] = {}
    for row, episode_number in await EpisodeScoreRepository(db).list_for_contestant(contestant.id):
        episodes[episode_number] = {
            "episode_number": episode_number,
            "events": [],
            "episode_total": row.score,
            "source": ScoreSource(row.source).value,
        }
    for event, event_type, episode_number in await ContestantEventRepository(db).list_for_contestant(contestant.id):
        entry = episodes.setdefault(episode_number, {
            "episode_number": episode_number,
            "events": [],
            "episode_total": 0,
            "source": ScoreSource.EVENTS.value,
        })
        entry["events"].append({
            "name": event_type.name,
            "display_name": event_type.display_name,
            "points": event.point_value,
        })

    return {
        "contestant_id": contestant.id,
        "contestant_name": contestant.name,
        "total_score": contestant.total_score,
        "episodes": [episodes[n] for n in sorted(episodes)],
    }
