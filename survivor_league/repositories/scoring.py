from sqlalchemy import select, func, update

from survivor_league.models.models import (
    Episode, Contestant, ContestantEvent, EpisodeScore, EventType, ScoreSource,
)
from survivor_league.repositories.base import BaseRepository


class EpisodeRepository(BaseRepository):

    async def get(self, episode_id: int) -> Episode | None:
        return await self.db.get(Episode, episode_id)

    async def get_by_number(self, episode_number: int) -> Episode | None:
        result = await self.db.execute(select(Episode).where(Episode.episode_number == episode_number))
        return result.scalar_one_or_none()

    async def list(self) -> list[Episode]:
        result = await self.db.execute(select(Episode).order_by(Episode.episode_number))
        return list(result.scalars().all())

    async def get_current(self) -> Episode | None:
        result = await self.db.execute(
            select(Episode).where(Episode.is_current == True).order_by(Episode.episode_number.desc()).limit(1)  # noqa: E712
        )
        return result.scalar_one_or_none()

    async def max_episode_number(self) -> int | None:
        return (await self.db.execute(select(func.max(Episode.episode_number)))).scalar()

    async def clear_current(self) -> None:
        await self.db.execute(
            update(Episode).where(Episode.is_current == True).values(is_current=False)  # noqa: E712
        )


class ContestantRepository(BaseRepository):

    async def get(self, contestant_id: int) -> Contestant | None:
        return await self.db.get(Contestant, contestant_id)

    async def get_for_update(self, contestant_id: int) -> Contestant | None:
        result = await self.db.execute(
            select(Contestant).where(Contestant.id == contestant_id).with_for_update()
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def list(self) -> list[Contestant]:
        result = await self.db.execute(select(Contestant).order_by(Contestant.id))
        return list(result.scalars().all())

    async def list_by_ids(self, contestant_ids) -> dict[int, Contestant]:
        ids = set(contestant_ids)
        if not ids:
            return {}
        result = await self.db.execute(select(Contestant).where(Contestant.id.in_(ids)))
        return {c.id: c for c in result.scalars().all()}

    async def eliminated_ids(self) -> set[int]:
        result = await self.db.execute(
            select(Contestant.id).where(Contestant.is_eliminated == True)  # noqa: E712
        )
        return {row[0] for row in result.all()}


class ContestantEventRepository(BaseRepository):

    async def get(self, event_id: int) -> ContestantEvent | None:
        return await self.db.get(ContestantEvent, event_id)

    async def delete(self, event: ContestantEvent) -> None:
        await self.db.delete(event)
        await self.flush()

    async def sum_for_pair(self, episode_id: int, contestant_id: int) -> int:
        result = await self.db.execute(
            select(func.coalesce(func.sum(ContestantEvent.point_value), 0)).where(
                ContestantEvent.episode_id == episode_id,
                ContestantEvent.contestant_id == contestant_id,
            )
        )
        return int(result.scalar())

    async def list_pairs(self) -> set[tuple[int, int]]:
        """Every (episode_id, contestant_id) that has at least one event."""
        result = await self.db.execute(
            select(ContestantEvent.episode_id, ContestantEvent.contestant_id).distinct()
        )
        return {(row[0], row[1]) for row in result.all()}

    async def list_for_episode(self, episode_id: int) -> list[tuple[ContestantEvent, EventType, Contestant]]:
        result = await self.db.execute(
            select(ContestantEvent, EventType, Contestant)
            .join(EventType, ContestantEvent.event_type_id == EventType.id)
            .join(Contestant, ContestantEvent.contestant_id == Contestant.id)
            .where(ContestantEvent.episode_id == episode_id)
            .order_by(ContestantEvent.contestant_id, ContestantEvent.created_at, ContestantEvent.id)
        )
        return [tuple(row) for row in result.all()]

    async def list_for_contestant(self, contestant_id: int) -> list[tuple[ContestantEvent, EventType, int]]:
        """Events with their type and episode number, in airing order."""
        result = await self.db.execute(
            select(ContestantEvent, EventType, Episode.episode_number)
            .join(EventType, ContestantEvent.event_type_id == EventType.id)
            .join(Episode, ContestantEvent.episode_id == Episode.id)
            .where(ContestantEvent.contestant_id == contestant_id)
            .order_by(Episode.episode_number, ContestantEvent.created_at, ContestantEvent.id)
        )
        return [tuple(row) for row in result.all()]


class EpisodeScoreRepository(BaseRepository):

    async def get_pair(self, episode_id: int, contestant_id: int) -> EpisodeScore | None:
        result = await self.db.execute(
            select(EpisodeScore).where(
                EpisodeScore.episode_id == episode_id,
                EpisodeScore.contestant_id == contestant_id,
            )
        )
        return result.scalar_one_or_none()

    async def sum_for_contestant(self, contestant_id: int) -> int:
        result = await self.db.execute(
            select(func.coalesce(func.sum(EpisodeScore.score), 0)).where(
                EpisodeScore.contestant_id == contestant_id
            )
        )
        return int(result.scalar())

    async def list_for_contestant(self, contestant_id: int) -> list[tuple[EpisodeScore, int]]:
        result = await self.db.execute(
            select(EpisodeScore, Episode.episode_number)
            .join(Episode, EpisodeScore.episode_id == Episode.id)
            .where(EpisodeScore.contestant_id == contestant_id)
            .order_by(Episode.episode_number)
        )
        return [tuple(row) for row in result.all()]

    async def list_for_episode(self, episode_id: int) -> list[EpisodeScore]:
        result = await self.db.execute(select(EpisodeScore).where(EpisodeScore.episode_id == episode_id))
        return list(result.scalars().all())

    async def list_by_source(self, source: ScoreSource) -> list[EpisodeScore]:
        result = await self.db.execute(select(EpisodeScore).where(EpisodeScore.source == source))
        return list(result.scalars().all())
