from sqlalchemy import select

from survivor_league.models.models import (
    Player, Ranking, DraftPick, SoleSurvivorHistory, DraftStatus, DraftState, Contestant,
)
from survivor_league.repositories.base import BaseRepository


class PlayerRepository(BaseRepository):

    async def get(self, player_id: int) -> Player | None:
        return await self.db.get(Player, player_id)

    async def get_for_update(self, player_id: int) -> Player | None:
        result = await self.db.execute(
            select(Player).where(Player.id == player_id).with_for_update()
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def lock_many(self, player_ids) -> list[Player]:
        """Lock rows in id order so concurrent lockers cannot deadlock."""
        ids = sorted(set(player_ids))
        if not ids:
            return []
        result = await self.db.execute(
            select(Player).where(Player.id.in_(ids)).order_by(Player.id).with_for_update()
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    async def list(self) -> list[Player]:
        result = await self.db.execute(select(Player).order_by(Player.id))
        return list(result.scalars().all())


class RankingRepository(BaseRepository):

    async def ordered_contestant_ids(self, player_id: int) -> list[int]:
        result = await self.db.execute(
            select(Ranking.contestant_id)
            .where(Ranking.player_id == player_id)
            .order_by(Ranking.rank)
        )
        return [row[0] for row in result.all()]


class DraftPickRepository(BaseRepository):

    async def list_for_player(self, player_id: int) -> list[DraftPick]:
        result = await self.db.execute(
            select(DraftPick).where(DraftPick.player_id == player_id).order_by(DraftPick.pick_number)
        )
        return list(result.scalars().all())

    async def list_referencing(self, contestant_id: int) -> list[DraftPick]:
        result = await self.db.execute(
            select(DraftPick)
            .where(DraftPick.contestant_id == contestant_id)
            .order_by(DraftPick.player_id, DraftPick.pick_number)
        )
        return list(result.scalars().all())

    async def list_all(self) -> list[DraftPick]:
        result = await self.db.execute(select(DraftPick).order_by(DraftPick.player_id, DraftPick.pick_number))
        return list(result.scalars().all())

    async def eliminated_contestant_ids_on_rosters(self) -> list[int]:
        result = await self.db.execute(
            select(DraftPick.contestant_id)
            .join(Contestant, DraftPick.contestant_id == Contestant.id)
            .where(Contestant.is_eliminated == True)  # noqa: E712
            .distinct()
            .order_by(DraftPick.contestant_id)
        )
        return [row[0] for row in result.all()]

    async def replace(self, pick: DraftPick, contestant_id: int) -> DraftPick:
        """Delete the old row and insert one in the same slot."""
        player_id, pick_number = pick.player_id, pick.pick_number
        await self.db.delete(pick)
        await self.flush()
        new_pick = DraftPick(player_id=player_id, contestant_id=contestant_id, pick_number=pick_number)
        self.db.add(new_pick)
        await self.flush()
        return new_pick

    async def delete(self, pick: DraftPick) -> None:
        await self.db.delete(pick)
        await self.flush()


class SoleSurvivorHistoryRepository(BaseRepository):

    async def list_for_player(self, player_id: int) -> list[SoleSurvivorHistory]:
        result = await self.db.execute(
            select(SoleSurvivorHistory)
            .where(SoleSurvivorHistory.player_id == player_id)
            .order_by(SoleSurvivorHistory.start_episode, SoleSurvivorHistory.id)
        )
        return list(result.scalars().all())

    async def list_for_players(self, player_ids) -> dict[int, list[SoleSurvivorHistory]]:
        ids = set(player_ids)
        grouped: dict[int, list[SoleSurvivorHistory]] = {pid: [] for pid in ids}
        if not ids:
            return grouped
        result = await self.db.execute(
            select(SoleSurvivorHistory)
            .where(SoleSurvivorHistory.player_id.in_(ids))
            .order_by(SoleSurvivorHistory.player_id, SoleSurvivorHistory.start_episode)
        )
        for row in result.scalars().all():
            grouped[row.player_id].append(row)
        return grouped

    async def get_open(self, player_id: int) -> SoleSurvivorHistory | None:
        result = await self.db.execute(
            select(SoleSurvivorHistory).where(
                SoleSurvivorHistory.player_id == player_id,
                SoleSurvivorHistory.end_episode.is_(None),
            )
        )
        return result.scalar_one_or_none()


class DraftStatusRepository(BaseRepository):
    """The draft state machine, owned by the external draft flow."""

    async def lock_state(self) -> DraftState:
        """Read the state under a row lock; roster repairs serialize on this row."""
        result = await self.db.execute(
            select(DraftStatus).where(DraftStatus.id == 1).with_for_update()
            .execution_options(populate_existing=True)
        )
        status = result.scalar_one_or_none()
        if status is None:
            return DraftState.NOT_STARTED
        return status.state
