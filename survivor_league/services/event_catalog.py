"""
Event catalog: the fixed list of things that can happen to a contestant in
an episode, and what each is currently worth.

Point values can be edited mid-season. Events already recorded keep the
value they were recorded with; only future events see the new value.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from survivor_league.core.errors import NotFoundError, ConflictError, require_id, require_int
from survivor_league.models.models import EventType, EventCategory
from survivor_league.repositories.catalog import EventTypeRepository

logger = logging.getLogger(__name__)


DEFAULT_EVENT_TYPES = [
    # Basic
    {"name": "individual_immunity_win", "display_name": "Individual Immunity Challenge Win", "category": EventCategory.BASIC, "point_value": 3, "description": "Won individual immunity challenge"},
    {"name": "team_immunity_win", "display_name": "Team Immunity Challenge Win", "category": EventCategory.BASIC, "point_value": 2, "description": "Won team immunity challenge"},
    {"name": "individual_reward_win", "display_name": "Individual Reward Challenge Win", "category": EventCategory.BASIC, "point_value": 2, "description": "Won individual reward challenge"},
    {"name": "team_reward_win", "display_name": "Team Reward Challenge Win", "category": EventCategory.BASIC, "point_value": 1, "description": "Won team reward challenge"},
    {"name": "found_hidden_idol", "display_name": "Found Hidden Immunity Idol", "category": EventCategory.BASIC, "point_value": 3, "description": "Found a hidden immunity idol"},
    {"name": "played_idol_successfully", "display_name": "Played Idol Successfully", "category": EventCategory.BASIC, "point_value": 2, "description": "Successfully played an immunity idol"},
    {"name": "tribe_member_eliminated", "display_name": "Tribe Member Eliminated", "category": EventCategory.BASIC, "point_value": 1, "description": "A member of their tribe was eliminated"},
    {"name": "read_tree_mail", "display_name": "Read Tree Mail", "category": EventCategory.BASIC, "point_value": 1, "description": "Read tree mail to the tribe"},
    {"name": "made_interesting_food", "display_name": "Made Interesting Food", "category": EventCategory.BASIC, "point_value": 1, "description": "Prepared interesting or notable food"},
    # Penalty
    {"name": "eliminated", "display_name": "Eliminated", "category": EventCategory.PENALTY, "point_value": -1, "description": "Voted out or eliminated from the game"},
    {"name": "voted_out_with_idol", "display_name": "Voted Out with Idol", "category": EventCategory.PENALTY, "point_value": -3, "description": "Eliminated while holding an idol"},
    # Bonus
    {"name": "made_final_three", "display_name": "Made Final 3", "category": EventCategory.BONUS, "point_value": 10, "description": "Reached the final three"},
    {"name": "made_fire", "display_name": "Made Fire", "category": EventCategory.BONUS, "point_value": 1, "description": "Successfully made fire in fire-making challenge"},
    {"name": "played_shot_in_dark", "display_name": "Played Shot in the Dark", "category": EventCategory.BONUS, "point_value": 1, "description": "Used shot in the dark advantage"},
    {"name": "got_immunity_shot_in_dark", "display_name": "Got Immunity from Shot in the Dark", "category": EventCategory.BONUS, "point_value": 4, "description": "Successfully gained immunity from shot in the dark"},
]


async def seed_default_event_types(db: AsyncSession) -> list[EventType]:
    """Insert any default event type not already present. Returns created types."""
    repo = EventTypeRepository(db)
    existing = await repo.existing_names()
    created = []
    for data in DEFAULT_EVENT_TYPES:
        if data["name"] in existing:
            continue
        created.append(await repo.add(EventType(is_active=True, **data)))
    if created:
        logger.info(f"Seeded {len(created)} event types")
    return created


async def get_event_type(db: AsyncSession, event_type_id: int) -> EventType:
    require_id("event_type_id", event_type_id)
    event_type = await EventTypeRepository(db).get(event_type_id)
    if event_type is None:
        raise NotFoundError("Event type", event_type_id)
    return event_type


async def get_active_event_type(db: AsyncSession, event_type_id: int) -> EventType:
    event_type = await get_event_type(db, event_type_id)
    if not event_type.is_active:
        raise ConflictError(f"Event type {event_type_id} is not active")
    return event_type


async def list_event_types(db: AsyncSession, include_inactive: bool = False) -> dict[str, list[EventType]]:
    """Event types grouped by category, each group ordered by display name."""
    grouped: dict[str, list[EventType]] = {c.value: [] for c in EventCategory}
    for event_type in await EventTypeRepository(db).list(include_inactive=include_inactive):
        grouped[EventCategory(event_type.category).value].append(event_type)
    for group in grouped.values():
        group.sort(key=lambda e: (e.display_name, e.id))
    return grouped


async def update_point_value(db: AsyncSession, event_type_id: int, point_value: int) -> EventType:
    require_int("point_value", point_value)
    event_type = await get_event_type(db, event_type_id)
    if event_type.point_value == point_value:
        return event_type
    old_value = event_type.point_value
    event_type.point_value = point_value
    await EventTypeRepository(db).flush()
    # Recorded events keep their snapshot; nothing is recomputed here.
    logger.info(f"Event type '{event_type.name}' point value {old_value} -> {point_value}")
    return event_type


async def set_event_type_active(db: AsyncSession, event_type_id: int, is_active: bool) -> EventType:
    event_type = await get_event_type(db, event_type_id)
    event_type.is_active = bool(is_active)
    await EventTypeRepository(db).flush()
    logger.info(f"Event type '{event_type.name}' is_active={event_type.is_active}")
    return event_type
