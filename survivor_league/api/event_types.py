from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from survivor_league.core.database import get_db
from survivor_league.schemas.event_types import (
    EventTypeResponse, EventTypeCatalogResponse, EventTypeUpdate,
)
from survivor_league.services import event_catalog

router = APIRouter(prefix="/api/event-types", tags=["Event Types"])


@router.get("", response_model=EventTypeCatalogResponse)
async def list_event_types(include_inactive: bool = False, db: AsyncSession = Depends(get_db)):
    return await event_catalog.list_event_types(db, include_inactive=include_inactive)


@router.patch("/{event_type_id}", response_model=EventTypeResponse)
async def update_event_type(event_type_id: int, body: EventTypeUpdate, db: AsyncSession = Depends(get_db)):
    event_type = await event_catalog.get_event_type(db, event_type_id)
    if body.point_value is not None:
        event_type = await event_catalog.update_point_value(db, event_type_id, body.point_value)
    if body.is_active is not None:
        event_type = await event_catalog.set_event_type_active(db, event_type_id, body.is_active)
    return event_type


@router.post("/seed", response_model=list[EventTypeResponse], status_code=201)
async def seed_event_types(db: AsyncSession = Depends(get_db)):
    """Insert any missing default event types."""
    return await event_catalog.seed_default_event_types(db)
