import logging
from datetime import date

from sqlalchemy.ext.asyncio import AsyncSession

from survivor_league.core.errors import ConflictError, NotFoundError, require_id
from survivor_league.models.models import Episode
from survivor_league.repositories.scoring import EpisodeRepository

logger = logging.getLogger(__name__)


async def get_episode(db: AsyncSession, episode_id: int) -> Episode:
    require_id("episode_id", episode_id)
    episode = await EpisodeRepository(db).get(episode_id)
    if episode is None:
        raise NotFoundError("Episode", episode_id)
    return episode


async def get_unlocked_episode(db: AsyncSession, episode_id: int) -> Episode:
    episode = await get_episode(db, episode_id)
    if episode.scoring_locked:
        raise ConflictError(f"Episode {episode.episode_number} is locked for scoring")
    return episode


async def create_episode(
    db: AsyncSession,
    episode_number: int,
    aired_date: date | None = None,
) -> Episode:
    require_id("episode_number", episode_number)
    repo = EpisodeRepository(db)
    if await repo.get_by_number(episode_number) is not None:
        raise ConflictError(f"Episode {episode_number} already exists")
    episode = await repo.add(Episode(episode_number=episode_number, aired_date=aired_date))
    logger.info(f"Created episode {episode_number}")
    return episode


async def set_current_episode(db: AsyncSession, episode_id: int) -> Episode:
    episode = await get_episode(db, episode_id)
    repo = EpisodeRepository(db)
    await repo.clear_current()
    episode.is_current = True
    await repo.flush()
    logger.info(f"Episode {episode.episode_number} is now current")
    return episode


async def set_scoring_lock(db: AsyncSession, episode_id: int, locked: bool) -> Episode:
    episode = await get_episode(db, episode_id)
    episode.scoring_locked = bool(locked)
    await EpisodeRepository(db).flush()
    logger.info(f"Episode {episode.episode_number} scoring_locked={episode.scoring_locked}")
    return episode


async def resolve_current_episode_number(db: AsyncSession) -> int:
    """The is_current episode, else the latest aired, else 1 before anything airs."""
    repo = EpisodeRepository(db)
    current = await repo.get_current()
    if current is not None:
        return current.episode_number
    latest = await repo.max_episode_number()
    return latest if latest is not None else 1


async def list_episodes(db: AsyncSession) -> list[Episode]:
    return await EpisodeRepository(db).list()
