from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from survivor_league.core.database import get_db
from survivor_league.schemas.leaderboard import LeaderboardResponse, LeaderboardQuery
from survivor_league.services.leaderboard import compute_leaderboard

router = APIRouter(prefix="/api/leaderboard", tags=["Leaderboard"])


@router.get("", response_model=LeaderboardResponse)
async def leaderboard(as_of: int | None = None, db: AsyncSession = Depends(get_db)):
    return await compute_leaderboard(db, as_of_episode_number=as_of)


@router.post("", response_model=LeaderboardResponse)
async def leaderboard_with_snapshot(body: LeaderboardQuery, db: AsyncSession = Depends(get_db)):
    """Same standings, with weekly_change against the scores the caller sends."""
    return await compute_leaderboard(
        db,
        as_of_episode_number=body.as_of_episode_number,
        previous_snapshot=body.previous_snapshot,
    )
