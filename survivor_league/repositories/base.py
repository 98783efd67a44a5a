import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from survivor_league.core.errors import ConstraintViolation

logger = logging.getLogger(__name__)


class BaseRepository:
    """Holds the request's session. Repositories never commit; the caller owns the transaction."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def flush(self) -> None:
        try:
            await self.db.flush()
        except IntegrityError as e:
            # The engine validates before writing, so reaching this is a gap in that validation.
            logger.error(f"Store rejected a write that passed engine validation: {e.orig}")
            raise ConstraintViolation(f"Write rejected by the store: {e.orig}") from e

    async def add(self, entity):
        """Insert, then reload so server defaults such as created_at are readable."""
        self.db.add(entity)
        await self.flush()
        await self.db.refresh(entity)
        return entity
