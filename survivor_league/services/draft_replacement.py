"""
Draft replacement: when a drafted contestant leaves the game, every roster
holding them gets the best contestant still available to that player.

"Available" is decided from the player's own pre-draft ranking: the first
ranked contestant who is still in the game, not already on the roster, not
the player's sole survivor, and not just handed to another player for the
same elimination.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from survivor_league.core.errors import IntegrityWarning, NotFoundError, require_id
from survivor_league.models.models import DraftState, Player
from survivor_league.repositories.league import (
    PlayerRepository, RankingRepository, DraftPickRepository, DraftStatusRepository,
)
from survivor_league.repositories.scoring import ContestantRepository

logger = logging.getLogger(__name__)


def pick_replacement(
    ranking: list[int],
    roster: set[int],
    sole_survivor_id: int | None,
    eliminated: set[int],
    handed_out: set[int],
) -> int | None:
    for contestant_id in ranking:
        if contestant_id in eliminated or contestant_id in roster or contestant_id in handed_out:
            continue
        if contestant_id == sole_survivor_id:
            continue
        return contestant_id
    return None


async def _repair_for_contestant(db: AsyncSession, contestant_id: int) -> tuple[list[dict], list[IntegrityWarning]]:
    picks_repo = DraftPickRepository(db)
    rankings = RankingRepository(db)

    affected = {p.player_id for p in await picks_repo.list_referencing(contestant_id)}
    if not affected:
        return [], []
    players: list[Player] = await PlayerRepository(db).lock_many(affected)
    eliminated = await ContestantRepository(db).eliminated_ids()

    replacements: list[dict] = []
    warnings: list[IntegrityWarning] = []
    handed_out: set[int] = set()

    for player in players:
        roster = await picks_repo.list_for_player(player.id)
        pick = next((p for p in roster if p.contestant_id == contestant_id), None)
        if pick is None:
            continue
        pick_number = pick.pick_number

        replacement = pick_replacement(
            await rankings.ordered_contestant_ids(player.id),
            {p.contestant_id for p in roster},
            player.sole_survivor_id,
            eliminated,
            handed_out,
        )
        if replacement is None:
            await picks_repo.delete(pick)
            warning = IntegrityWarning(
                player_id=player.id,
                contestant_id=contestant_id,
                pick_number=pick_number,
                message="No eligible replacement in ranking; player is under-rostered",
            )
            warnings.append(warning)
            logger.warning(f"Player {player.id} lost contestant {contestant_id} with no replacement available")
            continue

        await picks_repo.replace(pick, replacement)
        handed_out.add(replacement)
        replacements.append({
            "player_id": player.id,
            "old_contestant_id": contestant_id,
            "new_contestant_id": replacement,
            "pick_number": pick_number,
        })
        logger.info(f"Player {player.id}: replaced {contestant_id} with {replacement} in slot {pick_number}")

    return replacements, warnings


async def on_contestant_eliminated(db: AsyncSession, contestant_id: int) -> dict:
    require_id("contestant_id", contestant_id)
    # Taken before anything is read so one elimination sees the rosters and
    # eliminated set left behind by the previous one.
    draft_state = await DraftStatusRepository(db).lock_state()
    contestant = await ContestantRepository(db).get_for_update(contestant_id)
    if contestant is None:
        raise NotFoundError("Contestant", contestant_id)

    if not contestant.is_eliminated:
        contestant.is_eliminated = True
        await ContestantRepository(db).flush()
        logger.info(f"Contestant {contestant.id} ({contestant.name}) eliminated")

    result = {
        "contestant_id": contestant.id,
        "draft_completed": False,
        "replacements": [],
        "warnings": [],
    }
    if draft_state != DraftState.COMPLETED:
        logger.info("Draft not completed; no rosters to repair")
        return result

    replacements, warnings = await _repair_for_contestant(db, contestant.id)
    result.update(
        draft_completed=True,
        replacements=replacements,
        warnings=[w.as_dict() for w in warnings],
    )
    return result


async def repair_eliminated_picks(db: AsyncSession) -> dict:
    """Replace every eliminated contestant still sitting on a roster."""
    result = {"draft_completed": False, "contestants_repaired": [], "replacements": [], "warnings": []}
    if await DraftStatusRepository(db).lock_state() != DraftState.COMPLETED:
        return result
    result["draft_completed"] = True

    for contestant_id in await DraftPickRepository(db).eliminated_contestant_ids_on_rosters():
        replacements, warnings = await _repair_for_contestant(db, contestant_id)
        result["contestants_repaired"].append(contestant_id)
        result["replacements"].extend(replacements)
        result["warnings"].extend(w.as_dict() for w in warnings)

    if result["contestants_repaired"]:
        logger.info(
            f"Repaired {len(result['contestants_repaired'])} eliminated contestants: "
            f"{len(result['replacements'])} replacements, {len(result['warnings'])} under-rostered"
        )
    return result
