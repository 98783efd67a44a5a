from pydantic import BaseModel, Field
from datetime import date, datetime


class EpisodeCreate(BaseModel):
    episode_number: int = Field(..., gt=0)
    aired_date: date | None = None


class EpisodeResponse(BaseModel):
    id: int
    episode_number: int
    is_current: bool
    aired_date: date | None
    predictions_locked: bool
    scoring_locked: bool

    model_config = {"from_attributes": True}


class ScoringLockUpdate(BaseModel):
    locked: bool


class EventRecordCreate(BaseModel):
    contestant_id: int
    event_type_id: int
    actor_id: int | None = None


class EventAddItem(BaseModel):
    contestant_id: int
    event_type_id: int


class EventChangesSubmit(BaseModel):
    add: list[EventAddItem] = []
    remove: list[int] = []
    actor_id: int | None = None


class ManualScoreSubmit(BaseModel):
    contestant_id: int
    score: int


class ContestantEventResponse(BaseModel):
    id: int
    episode_id: int
    contestant_id: int
    event_type_id: int
    point_value: int
    recorded_by: int | None
    created_at: datetime | None = None

    model_config = {"from_attributes": True}


class ScoreUpdateResponse(BaseModel):
    episode_id: int
    contestant_id: int
    episode_score: int
    source: str
    total_score: int


class RecordEventResponse(BaseModel):
    event: ContestantEventResponse
    score: ScoreUpdateResponse


class DeleteEventResponse(BaseModel):
    deleted_event_id: int
    score: ScoreUpdateResponse


class EventChangesResponse(BaseModel):
    added: int
    removed: int
    updated_scores: list[ScoreUpdateResponse]


class EpisodeEventItem(BaseModel):
    id: int
    event_type_id: int
    name: str
    display_name: str
    category: str
    point_value: int
    created_at: datetime | None = None


class EpisodeContestantEvents(BaseModel):
    contestant_id: int
    contestant_name: str
    events: list[EpisodeEventItem]
    event_total: int
    episode_score: int
    source: str


class RecalculateResponse(BaseModel):
    episode_scores_recalculated: int
    contestants_updated: int
    totals_corrected: int
