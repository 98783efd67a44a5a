from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from survivor_league.core.database import get_db
from survivor_league.schemas.contestants import (
    EliminationResponse, RepairResponse, ContestantScoreBreakdown,
)
from survivor_league.schemas.episodes import RecalculateResponse
from survivor_league.services import draft_replacement, score_calculator

router = APIRouter(prefix="/api/contestants", tags=["Contestants"])


@router.post("/repair-eliminations", response_model=RepairResponse)
async def repair_eliminated_picks(db: AsyncSession = Depends(get_db)):
    """Replace eliminated contestants that are still on someone's roster."""
    return await draft_replacement.repair_eliminated_picks(db)


@router.post("/recalculate-scores", response_model=RecalculateResponse)
async def recalculate_all_scores(db: AsyncSession = Depends(get_db)):
    return await score_calculator.recalculate_all_scores(db)


@router.post("/{contestant_id}/eliminate", response_model=EliminationResponse)
async def eliminate_contestant(contestant_id: int, db: AsyncSession = Depends(get_db)):
    return await draft_replacement.on_contestant_eliminated(db, contestant_id)


@router.get("/{contestant_id}/breakdown", response_model=ContestantScoreBreakdown)
async def contestant_score_breakdown(contestant_id: int, db: AsyncSession = Depends(get_db)):
    return await score_calculator.get_contestant_score_breakdown(db, contestant_id)
