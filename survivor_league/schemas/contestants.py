from pydantic import BaseModel


class ReplacementItem(BaseModel):
    player_id: int
    old_contestant_id: int
    new_contestant_id: int
    pick_number: int


class IntegrityWarningItem(BaseModel):
    player_id: int
    contestant_id: int
    pick_number: int | None
    message: str


class EliminationResponse(BaseModel):
    contestant_id: int
    draft_completed: bool
    replacements: list[ReplacementItem]
    warnings: list[IntegrityWarningItem]


class RepairResponse(BaseModel):
    draft_completed: bool
    contestants_repaired: list[int]
    replacements: list[ReplacementItem]
    warnings: list[IntegrityWarningItem]


class BreakdownEventItem(BaseModel):
    name: str
    display_name: str
    points: int


class BreakdownEpisodeItem(BaseModel):
    episode_number: int
    events: list[BreakdownEventItem]
    episode_total: int
    source: str


class ContestantScoreBreakdown(BaseModel):
    contestant_id: int
    contestant_name: str
    total_score: int
    episodes: list[BreakdownEpisodeItem]
