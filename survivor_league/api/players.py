from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from survivor_league.core.database import get_db
from survivor_league.schemas.sole_survivor import (
    SoleSurvivorSet, SoleSurvivorChangeResponse, SoleSurvivorHistoryItem, SoleSurvivorBonusResponse,
)
from survivor_league.services import sole_survivor

router = APIRouter(prefix="/api/players/{player_id}/sole-survivor", tags=["Sole Survivor"])


@router.put("", response_model=SoleSurvivorChangeResponse)
async def set_sole_survivor(player_id: int, body: SoleSurvivorSet, db: AsyncSession = Depends(get_db)):
    return await sole_survivor.set_sole_survivor(
        db, player_id, body.contestant_id, as_of_episode_number=body.as_of_episode_number,
    )


@router.get("/history", response_model=list[SoleSurvivorHistoryItem])
async def sole_survivor_history(player_id: int, db: AsyncSession = Depends(get_db)):
    return await sole_survivor.get_sole_survivor_history(db, player_id)


@router.get("/bonus", response_model=SoleSurvivorBonusResponse)
async def sole_survivor_bonus(player_id: int, as_of: int | None = None, db: AsyncSession = Depends(get_db)):
    return await sole_survivor.compute_sole_survivor_bonus(db, player_id, as_of_episode_number=as_of)
