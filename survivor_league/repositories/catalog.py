from sqlalchemy import select

from survivor_league.models.models import EventType
from survivor_league.repositories.base import BaseRepository


class EventTypeRepository(BaseRepository):

    async def get(self, event_type_id: int) -> EventType | None:
        return await self.db.get(EventType, event_type_id)

    async def list(self, include_inactive: bool = False) -> list[EventType]:
        query = select(EventType).order_by(EventType.category, EventType.display_name, EventType.id)
        if not include_inactive:
            query = query.where(EventType.is_active == True)  # noqa: E712
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def existing_names(self) -> set[str]:
        result = await self.db.execute(select(EventType.name))
        return {row[0] for row in result.all()}
