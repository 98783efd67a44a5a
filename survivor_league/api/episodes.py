import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from survivor_league.core.database import get_db
from survivor_league.schemas.episodes import (
    EpisodeCreate, EpisodeResponse, ScoringLockUpdate,
    EventRecordCreate, EventChangesSubmit, ManualScoreSubmit,
    RecordEventResponse, DeleteEventResponse, EventChangesResponse,
    ScoreUpdateResponse, EpisodeContestantEvents,
)
from survivor_league.services import episodes as episode_service
from survivor_league.services import score_calculator

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/episodes", tags=["Episodes"])


@router.post("", response_model=EpisodeResponse, status_code=201)
async def create_episode(body: EpisodeCreate, db: AsyncSession = Depends(get_db)):
    return await episode_service.create_episode(db, body.episode_number, body.aired_date)


@router.get("", response_model=list[EpisodeResponse])
async def list_episodes(db: AsyncSession = Depends(get_db)):
    return await episode_service.list_episodes(db)


@router.post("/{episode_id}/current", response_model=EpisodeResponse)
async def set_current_episode(episode_id: int, db: AsyncSession = Depends(get_db)):
    return await episode_service.set_current_episode(db, episode_id)


@router.put("/{episode_id}/lock", response_model=EpisodeResponse)
async def set_scoring_lock(episode_id: int, body: ScoringLockUpdate, db: AsyncSession = Depends(get_db)):
    return await episode_service.set_scoring_lock(db, episode_id, body.locked)


# --- Events ---

@router.get("/{episode_id}/events", response_model=list[EpisodeContestantEvents])
async def get_episode_events(episode_id: int, db: AsyncSession = Depends(get_db)):
    return await score_calculator.get_episode_events(db, episode_id)


@router.post("/{episode_id}/events", response_model=RecordEventResponse, status_code=201)
async def record_event(episode_id: int, body: EventRecordCreate, db: AsyncSession = Depends(get_db)):
    return await score_calculator.record_event(
        db, episode_id, body.contestant_id, body.event_type_id, actor_id=body.actor_id,
    )


@router.post("/{episode_id}/events/bulk", response_model=EventChangesResponse)
async def apply_event_changes(episode_id: int, body: EventChangesSubmit, db: AsyncSession = Depends(get_db)):
    """Add and remove several events in one transaction."""
    return await score_calculator.apply_event_changes(
        db,
        episode_id,
        add=[(item.contestant_id, item.event_type_id) for item in body.add],
        remove=body.remove,
        actor_id=body.actor_id,
    )


@router.delete("/{episode_id}/events/{event_id}", response_model=DeleteEventResponse)
async def delete_event(episode_id: int, event_id: int, db: AsyncSession = Depends(get_db)):
    return await score_calculator.delete_event(db, event_id, episode_id=episode_id)


# --- Manual scores ---

@router.put("/{episode_id}/scores/manual", response_model=ScoreUpdateResponse)
async def record_manual_score(episode_id: int, body: ManualScoreSubmit, db: AsyncSession = Depends(get_db)):
    return await score_calculator.record_manual_score(db, episode_id, body.contestant_id, body.score)


@router.delete("/{episode_id}/scores/manual/{contestant_id}", response_model=ScoreUpdateResponse)
async def clear_manual_score(episode_id: int, contestant_id: int, db: AsyncSession = Depends(get_db)):
    return await score_calculator.clear_manual_score(db, episode_id, contestant_id)
